import logging

import pytest

from pdbview.logging_config import configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_logs_to_file_at_named_level(tmp_path, restore_root_logger):
    log_file = tmp_path / "pdbview.log"
    configure_logging(str(log_file), level="info")
    assert restore_root_logger.level == logging.INFO
    logging.getLogger("pdbview.test").info("loaded %d atoms", 3)
    logging.getLogger("pdbview.test").debug("hidden")
    for handler in restore_root_logger.handlers:
        handler.flush()
    text = log_file.read_text(encoding="utf-8")
    assert "INFO pdbview.test: loaded 3 atoms" in text
    assert "hidden" not in text


def test_unwritable_log_file_falls_back_to_stderr(tmp_path, restore_root_logger, capsys):
    configure_logging(str(tmp_path / "missing" / "pdbview.log"), level="bogus")
    assert restore_root_logger.level == logging.WARNING
    handler = restore_root_logger.handlers[0]
    assert isinstance(handler, logging.StreamHandler)
    assert not isinstance(handler, logging.FileHandler)
    assert "Cannot write log file" in capsys.readouterr().err
