import logging

import pytest
from rich.logging import RichHandler

from promptgate.infrastructure.monitoring.logger_setup import resolve_log_level, setup_logging

@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)

@pytest.mark.parametrize("value, expected", [("debug", logging.DEBUG), ("WARNING", logging.WARNING), (logging.ERROR, logging.ERROR)])
def test_resolve_log_level(value, expected):
    assert resolve_log_level(value) == expected

def test_resolve_unknown_level():
    with pytest.raises(ValueError):
        resolve_log_level("chatty")

def test_plain_console_handler(restore_root_logger):
    setup_logging("info")
    assert restore_root_logger.level == logging.INFO
    assert len(restore_root_logger.handlers) == 1
    assert not isinstance(restore_root_logger.handlers[0], RichHandler)
    assert logging.getLogger("httpx").level == logging.WARNING

def test_rich_console_and_file_handler(restore_root_logger, tmp_path):
    log_file = tmp_path / "promptgate.log"
    setup_logging("debug", log_file=str(log_file), rich_console=True)

    handler_types = [type(h) for h in restore_root_logger.handlers]
    assert RichHandler in handler_types
    assert logging.FileHandler in handler_types

    logging.getLogger("promptgate.test").debug("written to file")
    for handler in restore_root_logger.handlers:
        handler.flush()
    assert "written to file" in log_file.read_text()
