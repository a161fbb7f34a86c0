class QuasiforgeError(Exception):
    """Base class for forge engine errors."""
    def __init__(self, message="Forge engine error."):
        super().__init__(message)

class LatticeShapeError(QuasiforgeError):
    """Site or shard arena does not match the fixed grid."""
    def __init__(self, message="Lattice arena shape mismatch."):
        super().__init__(message)

class StateTransitionError(QuasiforgeError):
    """Invalid engine or scheduler lifecycle transition."""
    def __init__(self, message="Invalid state transition attempted."):
        super().__init__(message)
