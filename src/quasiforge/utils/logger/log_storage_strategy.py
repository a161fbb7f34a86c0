class LogStorageStrategy:
    """
    Interface for log sinks used by Logger.
    Subclasses decide where formatted entries end up.
    """
    # STORE ONE ENTRY
    def store_log(self, message, priority, timestamp):
        """
        Stores a log message with the given priority and timestamp.

        Parameters:
        message (str): The log message.
        priority (str): Name of the priority level.
        timestamp (str): Formatted wall-clock time of the entry.

        Raises:
        NotImplementedError: If this method is not overridden in a subclass.
        """
        raise NotImplementedError()

    # DROP ALL STORED ENTRIES
    def flush_logs(self):
        """
        Discards every stored entry.

        Raises:
        NotImplementedError: If this method is not overridden in a subclass.
        """
        raise NotImplementedError()
