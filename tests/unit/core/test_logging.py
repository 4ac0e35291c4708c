"""
core/logging.py 테스트
"""

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import pytest

from core.constants import Paths
from core.logging import get_log_dir, level_from_name, setup_logging


@pytest.fixture
def restore_root_logger():
    """테스트 후 루트 로거 핸들러 복원"""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestGetLogDir:
    def test_process_dirs(self) -> None:
        assert get_log_dir("web") == Paths.WEB_LOGS_DIR
        assert get_log_dir("scripts") == Paths.SCRIPT_LOGS_DIR
        assert get_log_dir("other") == Paths.LOGS_DIR


class TestSetupLogging:
    """setup_logging() 테스트"""

    def test_creates_file_handler(self, temp_dir: Path, restore_root_logger) -> None:
        root = setup_logging("web", log_dir=temp_dir / "logs")

        file_handlers = [h for h in root.handlers if isinstance(h, TimedRotatingFileHandler)]
        assert len(file_handlers) == 1
        assert (temp_dir / "logs" / "web.log").exists()

    def test_no_duplicate_handlers(self, temp_dir: Path, restore_root_logger) -> None:
        """여러 번 호출해도 핸들러 중복 없음"""
        setup_logging("scripts", log_dir=temp_dir)
        root = setup_logging("scripts", log_dir=temp_dir)

        file_handlers = [h for h in root.handlers if isinstance(h, TimedRotatingFileHandler)]
        assert len(file_handlers) == 1

    def test_noisy_loggers_quieted(self, temp_dir: Path, restore_root_logger) -> None:
        setup_logging("web", log_dir=temp_dir)

        assert logging.getLogger("aiosqlite").level == logging.WARNING


class TestLevelFromName:
    def test_known(self) -> None:
        assert level_from_name("debug") == logging.DEBUG
        assert level_from_name("WARNING") == logging.WARNING

    def test_unknown_falls_back(self) -> None:
        assert level_from_name("LOUD") == logging.INFO
