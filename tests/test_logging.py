from __future__ import annotations

import json
import logging

import pytest

from rtfmon.utils.logging import JsonFormatter, setup_logging


def test_json_formatter_includes_extra_fields() -> None:
    record = logging.LogRecord("rtfmon.test", logging.INFO, __file__, 1, "wrote %s", ("out.csv",), None)
    record.samples = 12
    payload = json.loads(JsonFormatter().format(record))
    assert payload["level"] == "INFO"
    assert payload["logger"] == "rtfmon.test"
    assert payload["message"] == "wrote out.csv"
    assert payload["samples"] == 12
    assert "lineno" not in payload


@pytest.fixture
def restore_loggers():  # noqa: ANN201
    root, app_logger = logging.getLogger(), logging.getLogger("rtfmon")
    handlers, root_level, app_level = list(root.handlers), root.level, app_logger.level
    yield
    root.handlers[:] = handlers
    root.setLevel(root_level)
    app_logger.setLevel(app_level)


def test_setup_logging_levels_apply_per_logger(restore_loggers) -> None:  # noqa: ANN001
    setup_logging("debug")
    assert logging.getLogger("rtfmon").level == logging.DEBUG
    assert logging.getLogger().level == logging.WARNING
    assert logging.getLogger("rtfmon.cli").isEnabledFor(logging.DEBUG)
    assert not logging.getLogger("somelib").isEnabledFor(logging.INFO)
    assert logging.getLogger("urllib3").propagate is False


def test_setup_logging_installs_single_json_handler(restore_loggers) -> None:  # noqa: ANN001
    setup_logging("INFO", third_party_level="INFO")
    setup_logging("INFO", third_party_level="INFO")
    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)
    assert root.level == logging.INFO
