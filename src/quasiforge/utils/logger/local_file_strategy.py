from .log_storage_strategy import LogStorageStrategy
import os
from datetime import datetime

class LocalFileStrategy(LogStorageStrategy):
    """
    Appends log entries to a text file on disk.
    """

    def __init__(self, file_location):
        """
        Args:
            file_location (str): Path of the log file, relative paths resolve against cwd.
        """
        self.file_location = self.resolve_file_path(file_location)
        self.initialize_log_file()

    # RESOLVE PATH AND CREATE PARENT DIRECTORY
    def resolve_file_path(self, file_location):
        """
        Returns the absolute log path, creating its directory if needed.
        """
        file_location = os.fspath(file_location)
        if not os.path.isabs(file_location):
            file_location = os.path.join(os.getcwd(), file_location)

        dir_name = os.path.dirname(file_location)
        if dir_name and not os.path.exists(dir_name):
            os.makedirs(dir_name, exist_ok=True)

        return file_location

    # START A FRESH FILE FOR THIS PROCESS
    def initialize_log_file(self):
        """
        Creates the log file, or truncates it if a previous run left one behind.
        """
        if os.path.exists(self.file_location):
            self.flush_logs()
        else:
            with open(self.file_location, 'w') as log_file:
                log_file.write(f"FORGE LOG STARTED: {datetime.now()}\n")

    def store_log(self, message, priority, timestamp):
        """
        Appends one formatted line.
        """
        with open(self.file_location, 'a') as log_file:
            log_file.write(f"[{timestamp}] [{priority}] {message}\n")

    def flush_logs(self):
        """
        Truncates the file and writes a flush marker.
        """
        with open(self.file_location, 'w') as log_file:
            log_file.write(f"FORGE LOG FLUSHED: {datetime.now()}\n")
