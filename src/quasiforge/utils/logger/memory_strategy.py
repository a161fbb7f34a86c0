from collections import deque
from .log_storage_strategy import LogStorageStrategy

class MemoryStrategy(LogStorageStrategy):
    """
    Keeps the most recent log entries in memory.

    Used by the CLI verbose mode and by tests that assert on log output.
    """

    def __init__(self, max_entries=1000):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.entries = deque(maxlen=max_entries)

    def store_log(self, message, priority, timestamp):
        self.entries.append((timestamp, priority, message))

    def flush_logs(self):
        self.entries.clear()

    def messages(self, priority=None):
        """Return stored messages, optionally only those with the given priority name."""
        return [m for (_, p, m) in self.entries if priority is None or p == priority]
