"""
Structured logging configuration.

Emits human-readable logs on the console and, optionally, rotating
human and JSON log files. JSON logs include:
- Timestamp
- Level
- Subsystem
- Shader file name
- Event type
- Latency metrics
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional


class JSONFormatter(logging.Formatter):
    """Format log records as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }

        subsystem = getattr(record, "subsystem", None)
        if subsystem:
            log_data["subsystem"] = subsystem
        shader = getattr(record, "shader", None)
        if shader:
            log_data["shader"] = shader
        event_type = getattr(record, "event_type", None)
        if event_type:
            log_data["event"] = event_type
        latency_ms = getattr(record, "latency_ms", None)
        if latency_ms is not None:
            log_data["latency_ms"] = round(latency_ms, 2)
        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            log_data.update(extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class HumanFormatter(logging.Formatter):
    """Human-readable format with colors."""

    COLORS = {
        "DEBUG": "\033[36m",    # Cyan
        "INFO": "\033[32m",     # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",    # Red
        "CRITICAL": "\033[35m", # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        level = record.levelname[:4]

        prefix_parts = [f"{timestamp} {level}"]
        subsystem = getattr(record, "subsystem", None)
        if subsystem and subsystem != "general":
            prefix_parts.append(f"[{subsystem}]")

        prefix = " ".join(prefix_parts)
        message = record.getMessage()

        latency_ms = getattr(record, "latency_ms", None)
        if latency_ms is not None:
            message = f"{message} ({latency_ms:.1f}ms)"

        line = f"{prefix}: {message}"

        if self.use_colors and sys.stderr.isatty():
            color = self.COLORS.get(record.levelname, "")
            line = f"{color}{line}{self.RESET}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


def log_event(
    logger: logging.Logger,
    level: int,
    msg: str,
    subsystem: str = "general",
    shader: Optional[str] = None,
    event_type: Optional[str] = None,
    latency_ms: Optional[float] = None,
    stacklevel: int = 2,
    **extra,
) -> None:
    """
    Log with structured fields through any logger.

    The fields travel as record attributes, so JSONFormatter and
    HumanFormatter pick them up whatever the logger class is.
    """
    if not logger.isEnabledFor(level):
        return
    logger.log(
        level,
        msg,
        extra={
            "subsystem": subsystem,
            "shader": shader,
            "event_type": event_type,
            "latency_ms": latency_ms,
            "extra_data": extra,
        },
        stacklevel=stacklevel,
    )


class StructuredLogger(logging.Logger):
    """Logger with structured logging methods."""

    def _log_structured(self, level: int, msg: str, **kwargs) -> None:
        log_event(self, level, msg, stacklevel=4, **kwargs)

    def event(self, event_type: str, msg: str, **kwargs) -> None:
        """Log an event."""
        self._log_structured(logging.INFO, msg, event_type=event_type, **kwargs)

    def latency(self, operation: str, latency_ms: float, **kwargs) -> None:
        """Log a latency measurement."""
        self._log_structured(
            logging.DEBUG,
            f"{operation} completed",
            latency_ms=latency_ms,
            **kwargs,
        )


def configure_logging(
    level: str = "INFO",
    log_dir: Optional[str] = None,
    json_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for log files
        json_file: Path for JSON logs (in log_dir if relative)
        max_bytes: Max size per log file
        backup_count: Number of backup files to keep
    """
    logging.setLoggerClass(StructuredLogger)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Clear existing handlers
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(HumanFormatter())
    root_logger.addHandler(console)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

        human_path = os.path.join(log_dir, "shaderassist.log")
        human_handler = RotatingFileHandler(
            human_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        human_handler.setFormatter(HumanFormatter(use_colors=False))
        root_logger.addHandler(human_handler)

        json_path = json_file or "shaderassist.json.log"
        if not os.path.isabs(json_path):
            json_path = os.path.join(log_dir, json_path)

        json_handler = RotatingFileHandler(
            json_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        json_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(json_handler)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger."""
    return logging.getLogger(name)  # type: ignore
