from __future__ import annotations

import logging
from io import StringIO

from maintlog.logging.error_log import ErrorLogBuffer
from maintlog.logging.init import LabeledFormatter, get_logger, log_summary, set_debug, setup_logging
from maintlog.models.error_record import ErrorRecord


def test_setup_logging_creates_logger_with_labeled_formatter():
    """Test that setup_logging creates a logger with labeled format."""
    logger = setup_logging()

    assert logger.name == "maintlog"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], logging.StreamHandler)
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False


def test_setup_logging_is_idempotent():
    first = setup_logging()
    second = setup_logging()
    assert first is second
    assert len(second.handlers) == 1


def test_logging_labeled_prefixes():
    """Outputs carry INFO|WARN|ERROR|SUMMARY prefixes."""
    captured_output = StringIO()

    logger = logging.getLogger("test_maintlog_labels")
    logger.setLevel(logging.INFO)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logging.addLevelName(25, "SUMMARY")

    handler = logging.StreamHandler(captured_output)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    logger.info("Test info message")
    logger.warning("Test warning message")
    logger.error("Test error message")
    logger.log(25, "Test summary message")

    lines = captured_output.getvalue().strip().split("\n")
    assert lines == [
        "INFO Test info message",
        "WARN Test warning message",
        "ERROR Test error message",
        "SUMMARY Test summary message",
    ]


def test_module_loggers_reach_app_handler(capsys):
    setup_logging()
    logging.getLogger("maintlog.sheets.client").warning("sheet slow")
    log_summary("equipments=0")
    out = capsys.readouterr().out
    assert "WARN sheet slow" in out
    assert "SUMMARY equipments=0" in out


def test_set_debug_lowers_threshold():
    logger = setup_logging()
    set_debug(logger)
    assert logger.level == logging.DEBUG
    assert all(h.level == logging.DEBUG for h in logger.handlers)


def test_get_logger_returns_configured_logger():
    setup_logger = setup_logging()
    assert get_logger() is setup_logger


def test_error_log_buffer_integration():
    logger = setup_logging()
    error_buffer = ErrorLogBuffer()
    error_buffer.append(ErrorRecord.create("ML", 3, "DATE_PARSE", "bad date"))
    assert len(error_buffer) == 1
    logger.info("Processing ML")
