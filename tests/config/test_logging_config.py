"""
Brief: Tests for init_logging handlers and the bracketed level formatter.

Inputs:
  - None

Outputs:
  - None
"""

import logging

import pytest

from siplocator.config.logging_config import BracketLevelFormatter, init_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    try:
        yield root
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            if h not in handlers:
                h.close()
        for h in handlers:
            root.addHandler(h)
        root.setLevel(level)


def test_default_is_info_on_stderr(restore_root_logger):
    """
    Brief: No config gives one stderr handler at INFO.

    Inputs:
      - restore_root_logger: fixture restoring root handlers

    Outputs:
      - None
    """
    init_logging(None)
    root = restore_root_logger
    assert root.level == logging.INFO
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0], logging.StreamHandler)


def test_file_handler_writes_bracketed_levels(restore_root_logger, tmp_path):
    """
    Brief: File logging uses bracketed lowercase level tags.

    Inputs:
      - restore_root_logger: fixture restoring root handlers
      - tmp_path: pytest temporary directory

    Outputs:
      - None
    """
    path = tmp_path / "logs" / "siplocator.log"
    init_logging({"level": "debug", "stderr": False, "file": str(path)})
    logging.getLogger("siplocator.test").warning("hop %s", "x")
    for h in restore_root_logger.handlers:
        h.flush()
    text = path.read_text(encoding="utf-8")
    assert "[warn] siplocator.test: hop x" in text
    assert restore_root_logger.level == logging.DEBUG


def test_unknown_level_falls_back_to_info(restore_root_logger):
    """
    Brief: An unrecognized level name is treated as info.

    Inputs:
      - restore_root_logger: fixture restoring root handlers

    Outputs:
      - None
    """
    init_logging({"level": "chatty", "stderr": False})
    assert restore_root_logger.level == logging.INFO
    assert restore_root_logger.handlers == []


def test_formatter_time_is_utc():
    """
    Brief: Timestamps are UTC with a Z suffix.

    Inputs:
      - None

    Outputs:
      - None
    """
    record = logging.LogRecord("n", logging.INFO, __file__, 1, "m", None, None)
    record.created = 0
    fmt = BracketLevelFormatter(fmt="%(asctime)s %(level_tag)s %(message)s")
    assert fmt.format(record) == "1970-01-01T00:00:00Z [info] m"
