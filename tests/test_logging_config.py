"""
Tests for structured logging helpers.
"""
import json
import logging

import pytest

from shader_assist.logging_config import (
    HumanFormatter,
    JSONFormatter,
    StructuredLogger,
    configure_logging,
    get_logger,
    log_event,
)


def make_record(**extra):
    record = logging.LogRecord(
        name="shader_assist.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Compiled %s",
        args=("a.vert",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    """Test JSON and human formatting."""

    def test_json_includes_structured_fields(self):
        record = make_record(
            subsystem="compiler",
            shader="a.vert",
            event_type="compile_ok",
            latency_ms=12.345,
            extra_data={"returncode": 0},
        )

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "Compiled a.vert"
        assert data["level"] == "INFO"
        assert data["subsystem"] == "compiler"
        assert data["shader"] == "a.vert"
        assert data["event"] == "compile_ok"
        assert data["latency_ms"] == 12.35
        assert data["returncode"] == 0

    def test_json_plain_record(self):
        data = json.loads(JSONFormatter().format(make_record()))
        assert "event" not in data
        assert "latency_ms" not in data

    def test_human_format(self):
        record = make_record(subsystem="compiler", latency_ms=3.0)
        line = HumanFormatter(use_colors=False).format(record)

        assert "[compiler]" in line
        assert line.endswith("Compiled a.vert (3.0ms)")


@pytest.fixture
def structured_loggers():
    """Install StructuredLogger as the logger class, as configure_logging does."""
    previous = logging.getLoggerClass()
    logging.setLoggerClass(StructuredLogger)
    yield
    logging.setLoggerClass(previous)


class TestLogEvent:
    """Test structured fields on plain loggers."""

    def test_fields_become_record_attributes(self, caplog):
        logger = logging.getLogger("shader_assist.tests.plain_events")

        with caplog.at_level(logging.INFO, logger="shader_assist.tests.plain_events"):
            log_event(
                logger,
                logging.WARNING,
                "Compile failed for a.vert",
                event_type="compile_failed",
                subsystem="compiler",
                shader="a.vert",
                latency_ms=2.5,
                returncode=1,
            )

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.event_type == "compile_failed"
        assert record.shader == "a.vert"
        assert record.latency_ms == 2.5
        assert record.extra_data == {"returncode": 1}
        assert record.funcName == "test_fields_become_record_attributes"

    def test_disabled_level_is_dropped(self, caplog):
        logger = logging.getLogger("shader_assist.tests.quiet")

        with caplog.at_level(logging.WARNING, logger="shader_assist.tests.quiet"):
            log_event(logger, logging.INFO, "not shown", event_type="noise")

        assert not caplog.records


class TestStructuredLogger:
    """Test logger helpers."""

    def test_get_logger_returns_structured_logger(self, structured_loggers):
        logger = get_logger("shader_assist.tests.fresh")
        assert isinstance(logger, StructuredLogger)

    def test_event_carries_fields(self, caplog, structured_loggers):
        logger = get_logger("shader_assist.tests.events")

        with caplog.at_level(logging.INFO, logger="shader_assist.tests.events"):
            logger.event("compile_ok", "Compiled a.vert", shader="a.vert", latency_ms=5.0)

        record = caplog.records[-1]
        assert record.getMessage() == "Compiled a.vert"
        assert record.event_type == "compile_ok"
        assert record.shader == "a.vert"
        assert record.latency_ms == 5.0
        assert record.funcName == "test_event_carries_fields"

    def test_latency_is_debug(self, caplog, structured_loggers):
        logger = get_logger("shader_assist.tests.latency")

        with caplog.at_level(logging.INFO, logger="shader_assist.tests.latency"):
            logger.latency("scan", 1.0)
        assert not caplog.records

        with caplog.at_level(logging.DEBUG, logger="shader_assist.tests.latency"):
            logger.latency("scan", 1.0)
        assert caplog.records[-1].getMessage() == "scan completed"


class TestConfigureLogging:
    """Test handler setup."""

    def test_writes_log_files(self, tmp_path):
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        saved_class = logging.getLoggerClass()
        try:
            configure_logging(level="DEBUG", log_dir=str(tmp_path))
            get_logger("shader_assist.tests.files").event("startup", "hello")
            for handler in root.handlers:
                handler.flush()

            assert "hello" in (tmp_path / "shaderassist.log").read_text()
            line = (tmp_path / "shaderassist.json.log").read_text().strip().splitlines()[-1]
            assert json.loads(line)["event"] == "startup"
        finally:
            for handler in list(root.handlers):
                root.removeHandler(handler)
                handler.close()
            for handler in saved_handlers:
                root.addHandler(handler)
            root.setLevel(saved_level)
            logging.setLoggerClass(saved_class)
