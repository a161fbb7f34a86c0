import os
import tempfile
import threading
from datetime import datetime
from enum import Enum
from .local_file_strategy import LocalFileStrategy

class Logger:
    """
    Process-wide logger for the forge engine.
    Static class: every method is a classmethod and state lives on the class.
    Messages are dropped until a storage strategy is installed.
    """

    class LogPriority(Enum):
        DEBUG = 1
        INFO = 2
        WARNING = 3
        ERROR = 4
        CRITICAL = 5
        DEFAULT = 6


    is_logging_enabled = True
    log_storage_strategy = None
    _log_lock = threading.RLock()
    _strategy_lock = threading.Lock()
    _initialize_lock = threading.Lock()

    # INSTALL DEFAULT FILE STRATEGY
    @classmethod
    def initialize(cls):
        """
        Installs a LocalFileStrategy if no strategy is set yet.
        The file path comes from QUASIFORGE_LOG_PATH, falling back to the temp directory.
        """
        with cls._initialize_lock:
            if cls.log_storage_strategy is None:
                default_path = os.path.join(tempfile.gettempdir(), "quasiforge_logs.txt")
                file_location = os.getenv("QUASIFORGE_LOG_PATH", default_path)
                cls.set_log_storage_strategy(LocalFileStrategy(file_location))

                cls.log(f"Logger initialized with file storage at {file_location}.", cls.LogPriority.INFO)

    @classmethod
    def log(cls, message, priority=LogPriority.DEBUG):
        """
        Stores a message through the current strategy.

        Parameters:
        message (str): The log message.
        priority (LogPriority): Priority level (default DEBUG).
        """
        with cls._log_lock:
            if cls.is_logging_enabled and cls.log_storage_strategy:
                cls.log_storage_strategy.store_log(
                    message, priority.name, datetime.now().strftime("%Y-%m-%d %H:%M:%S")
                )

    @classmethod
    def set_log_storage_strategy(cls, log_storage_strategy):
        """
        Replaces the storage strategy. Passing None silences the logger.
        """
        with cls._strategy_lock:
            cls.log_storage_strategy = log_storage_strategy

    @classmethod
    def flush_logs(cls):
        """
        Clears everything the current strategy has stored.
        """
        with cls._log_lock:
            if cls.is_logging_enabled and cls.log_storage_strategy:
                cls.log_storage_strategy.flush_logs()

    @classmethod
    def disable_logging(cls):
        with cls._log_lock:
            cls.is_logging_enabled = False

    @classmethod
    def enable_logging(cls):
        with cls._log_lock:
            cls.is_logging_enabled = True
