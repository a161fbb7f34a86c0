"""
Tests for the static Logger and its storage strategies.
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from quasiforge.utils.logger import LocalFileStrategy, Logger, LogStorageStrategy, MemoryStrategy


@pytest.fixture(autouse=True)
def reset_logger():
    Logger.set_log_storage_strategy(None)
    Logger.enable_logging()
    yield
    Logger.set_log_storage_strategy(None)
    Logger.enable_logging()


class TestLogger:

    def test_no_strategy_is_noop(self):
        Logger.log("dropped")
        Logger.flush_logs()

    def test_memory_strategy_records(self):
        memory = MemoryStrategy()
        Logger.set_log_storage_strategy(memory)
        Logger.log("hello", Logger.LogPriority.INFO)
        Logger.log("debugging")
        assert memory.messages() == ["hello", "debugging"]
        assert memory.messages("INFO") == ["hello"]
        assert memory.messages("DEBUG") == ["debugging"]

    def test_disable_logging(self):
        memory = MemoryStrategy()
        Logger.set_log_storage_strategy(memory)
        Logger.disable_logging()
        Logger.log("silent")
        Logger.enable_logging()
        Logger.log("loud")
        assert memory.messages() == ["loud"]

    def test_flush(self):
        memory = MemoryStrategy()
        Logger.set_log_storage_strategy(memory)
        Logger.log("one")
        Logger.flush_logs()
        assert memory.messages() == []

    def test_initialize_uses_env_path(self, tmp_path, monkeypatch):
        log_path = tmp_path / "logs" / "forge.txt"
        monkeypatch.setenv("QUASIFORGE_LOG_PATH", str(log_path))
        Logger.initialize()
        assert isinstance(Logger.log_storage_strategy, LocalFileStrategy)
        Logger.log("after init", Logger.LogPriority.WARNING)
        content = log_path.read_text()
        assert "FORGE LOG STARTED" in content
        assert "[WARNING] after init" in content

    def test_initialize_keeps_existing_strategy(self):
        memory = MemoryStrategy()
        Logger.set_log_storage_strategy(memory)
        Logger.initialize()
        assert Logger.log_storage_strategy is memory


class TestStrategies:

    def test_memory_bounded(self):
        memory = MemoryStrategy(max_entries=2)
        for i in range(5):
            memory.store_log(str(i), "INFO", "t")
        assert memory.messages() == ["3", "4"]

    def test_memory_rejects_zero(self):
        with pytest.raises(ValueError):
            MemoryStrategy(max_entries=0)

    def test_base_strategy_abstract(self):
        with pytest.raises(NotImplementedError):
            LogStorageStrategy().store_log("m", "INFO", "t")

    def test_file_flush(self, tmp_path):
        strategy = LocalFileStrategy(tmp_path / "f.txt")
        strategy.store_log("entry", "INFO", "ts")
        strategy.flush_logs()
        content = (tmp_path / "f.txt").read_text()
        assert "entry" not in content
        assert "FORGE LOG FLUSHED" in content

    def test_file_restarts_existing(self, tmp_path):
        path = tmp_path / "f.txt"
        path.write_text("old run\n")
        LocalFileStrategy(path)
        assert "old run" not in path.read_text()
