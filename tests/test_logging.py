"""Tests for structured logging functionality."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from budgetcycle.config import BaseConfig
from budgetcycle.logging_config import JSONFormatter, get_logger, setup_logging


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    logger = logging.getLogger("budgetcycle")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def test_json_formatter():
    """Test that JSONFormatter correctly formats log records."""
    formatter = JSONFormatter()

    record = logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname="test.py",
        lineno=42,
        msg="Test message",
        args=(),
        exc_info=None,
    )
    record.module = "test_module"
    record.funcName = "test_function"

    log_data = json.loads(formatter.format(record))

    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "test.logger"
    assert log_data["message"] == "Test message"
    assert log_data["module"] == "test_module"
    assert log_data["function"] == "test_function"
    assert log_data["line"] == 42
    assert "timestamp" in log_data
    assert "extra" not in log_data


def test_json_formatter_with_exception():
    """Test that JSONFormatter correctly handles exceptions."""
    formatter = JSONFormatter()

    try:
        raise ValueError("Test error")
    except ValueError:
        exc_info = sys.exc_info()

    record = logging.LogRecord(
        name="test.logger",
        level=logging.ERROR,
        pathname="test.py",
        lineno=42,
        msg="Error occurred",
        args=(),
        exc_info=exc_info,
    )

    log_data = json.loads(formatter.format(record))

    assert log_data["exception"]["type"] == "ValueError"
    assert "Test error" in log_data["exception"]["message"]
    assert log_data["exception"]["traceback"] is not None


def test_json_formatter_includes_extra_fields():
    formatter = JSONFormatter()
    record = logging.LogRecord(
        name="budgetcycle.services.contributions",
        level=logging.INFO,
        pathname="contributions.py",
        lineno=7,
        msg="Collected budget leftovers",
        args=(),
        exc_info=None,
    )
    record.goal_id = 3
    record.amount = 12.5

    log_data = json.loads(formatter.format(record))

    assert log_data["extra"] == {"goal_id": 3, "amount": 12.5}


def test_setup_logging(tmp_path):
    """Test that logging setup creates log files with rotation."""
    config = BaseConfig()
    config.DATA_DIR = str(tmp_path)
    config.DEV_MODE = True

    logger = setup_logging(config)

    assert logger.name == "budgetcycle"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 2  # Console + File

    log_file = tmp_path / "logs" / "budgetcycle.log"
    assert log_file.exists()

    get_logger("tests").warning("Test warning message", extra={"budget_id": 7})
    for handler in logger.handlers:
        handler.flush()

    lines = [line for line in log_file.read_text().splitlines() if line.strip()]
    entries = [json.loads(line) for line in lines]

    assert entries[0]["message"] == "Logging initialized"
    assert entries[-1]["logger"] == "budgetcycle.tests"
    assert entries[-1]["extra"] == {"budget_id": 7}


def test_setup_logging_twice_does_not_duplicate_handlers(tmp_path):
    config = BaseConfig()
    config.DATA_DIR = str(tmp_path)

    setup_logging(config)
    logger = setup_logging(config)

    assert len(logger.handlers) == 2


def test_get_logger():
    """Test that get_logger returns properly namespaced loggers."""
    logger1 = get_logger("module1")
    logger2 = get_logger("module2")

    assert logger1.name == "budgetcycle.module1"
    assert logger2.name == "budgetcycle.module2"
    assert logger1 != logger2


@pytest.mark.parametrize("dev_mode", [True, False])
def test_logging_levels_by_mode(tmp_path, dev_mode):
    """Test that console logging level adjusts based on dev mode."""
    config = BaseConfig()
    config.DATA_DIR = str(tmp_path)
    config.DEV_MODE = dev_mode

    logger = setup_logging(config)

    console_handler = None
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(
            handler, logging.handlers.RotatingFileHandler
        ):
            console_handler = handler
            break

    assert console_handler is not None

    expected_level = logging.INFO if dev_mode else logging.WARNING
    assert console_handler.level == expected_level
