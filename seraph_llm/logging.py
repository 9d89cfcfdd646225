"""
Structured logging for Seraph.

This module provides a structured logging system that outputs JSON-formatted
logs, enabling easy parsing by both terminals and log collectors.

Usage:
    from seraph_llm.logging import get_logger

    logger = get_logger("client")
    logger.info("Client ready", base_url="http://localhost:11434")
    logger.request("remote", request_id="3f2a", model="gpt-4o")
    logger.response("remote", request_id="3f2a", chars=128)
"""

import json
import sys
import time
from enum import Enum
from typing import Any, Optional
from dataclasses import dataclass, asdict


class LogLevel(Enum):
    """Log severity levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


@dataclass
class LogEntry:
    """Structured log entry."""
    ts: float           # Unix timestamp
    module: str         # Module name
    level: str          # Log level
    msg: str            # Message
    tag: Optional[str] = None      # Semantic tag (REQUEST/RESPONSE/CANCELLED/FAILED)
    details: Optional[dict] = None  # Additional data

    def to_json(self) -> str:
        """Convert to JSON string, omitting None fields."""
        data = {k: v for k, v in asdict(self).items() if v is not None}
        return json.dumps(data, ensure_ascii=False, default=str)

    def to_console(self) -> str:
        """Format for console output with colors."""
        # ANSI colors
        colors = {
            "DEBUG": "\033[90m",    # Gray
            "INFO": "\033[97m",     # White
            "WARN": "\033[93m",     # Yellow
            "ERROR": "\033[91m",    # Red
        }
        reset = "\033[0m"

        color = colors.get(self.level, "")
        timestamp = time.strftime("%H:%M:%S", time.localtime(self.ts))
        details_str = ""
        if self.details:
            details_str = " " + " ".join(f"{k}={v}" for k, v in self.details.items())

        if self.tag == "REQUEST":
            return f"{color}[{timestamp}] -> {self.msg}{details_str}{reset}"
        elif self.tag == "RESPONSE":
            return f"{color}[{timestamp}] <- {self.msg}{details_str}{reset}"
        elif self.tag in ("CANCELLED", "FAILED"):
            return f"{color}[{timestamp}] [{self.tag}] [{self.module}] {self.msg}{details_str}{reset}"
        else:
            return f"{color}[{timestamp}] [{self.level}] [{self.module}] {self.msg}{details_str}{reset}"


class StructuredLogger:
    """
    Structured logger with JSON output.

    Features:
    - Multiple log levels (DEBUG -> ERROR)
    - JSON format for programmatic parsing
    - Dual output: terminal + optional queue
    - Request tags (REQUEST/RESPONSE/CANCELLED/FAILED)

    Args:
        module: Module name for identification
        queue: Optional queue for an external log sink
        min_level: Minimum level to log (default: INFO)
    """

    _LEVEL_ORDER = {
        LogLevel.DEBUG: 0,
        LogLevel.INFO: 1,
        LogLevel.WARN: 2,
        LogLevel.ERROR: 3,
    }

    def __init__(
        self,
        module: str,
        queue: Optional[Any] = None,
        min_level: LogLevel = LogLevel.INFO
    ):
        self.module = module
        self.queue = queue
        self.min_level = min_level

    def _should_log(self, level: LogLevel) -> bool:
        """Check if level meets minimum threshold."""
        return self._LEVEL_ORDER.get(level, 0) >= self._LEVEL_ORDER.get(self.min_level, 0)

    def log(
        self,
        level: LogLevel,
        msg: str,
        tag: Optional[str] = None,
        **extra
    ) -> Optional[LogEntry]:
        """
        Log a message with optional extra fields.

        Args:
            level: Log level
            msg: Log message
            tag: Optional semantic tag
            **extra: Additional fields to include

        Returns:
            The emitted entry, or None if filtered out by level.
        """
        if not self._should_log(level):
            return None

        entry = LogEntry(
            ts=time.time(),
            module=self.module,
            level=level.value,
            msg=msg,
            tag=tag,
            details=extra if extra else None
        )

        # Output to terminal
        try:
            print(entry.to_console(), file=sys.stderr)
        except (UnicodeEncodeError, ValueError):
            # Fallback if color codes fail or stderr is closed
            sys.__stderr__.write(entry.to_json() + "\n")
            sys.__stderr__.flush()

        # Output to queue (for external sinks)
        if self.queue is not None:
            self.queue.put(entry.to_json())

        return entry

    # ========== Standard Levels ==========

    def debug(self, msg: str, **extra) -> None:
        """Log debug message."""
        self.log(LogLevel.DEBUG, msg, **extra)

    def info(self, msg: str, **extra) -> None:
        """Log info message."""
        self.log(LogLevel.INFO, msg, **extra)

    def warn(self, msg: str, **extra) -> None:
        """Log warning message."""
        self.log(LogLevel.WARN, msg, **extra)

    def error(self, msg: str, **extra) -> None:
        """Log error message."""
        self.log(LogLevel.ERROR, msg, **extra)

    # ========== Request Lifecycle ==========

    def request(self, path: str, **extra) -> None:
        """Log an outgoing model request."""
        self.log(LogLevel.DEBUG, f"{path} request", tag="REQUEST", **extra)

    def response(self, path: str, **extra) -> None:
        """Log a completed model request."""
        self.log(LogLevel.DEBUG, f"{path} response", tag="RESPONSE", **extra)

    def cancelled(self, msg: str = "Request cancelled", **extra) -> None:
        """Log request cancellation."""
        self.log(LogLevel.WARN, msg, tag="CANCELLED", **extra)

    def failed(self, msg: str, **extra) -> None:
        """Log a request that ended with an error."""
        self.log(LogLevel.ERROR, msg, tag="FAILED", **extra)


# ========== Logger Factory ==========

_loggers: dict[str, StructuredLogger] = {}
_global_queue: Optional[Any] = None
_global_level: LogLevel = LogLevel.INFO


def set_global_queue(queue: Any) -> None:
    """Set the global queue for all loggers."""
    global _global_queue
    _global_queue = queue
    # Update existing loggers
    for logger in _loggers.values():
        logger.queue = queue


def set_global_level(level: LogLevel | str) -> None:
    """Set the minimum level for all existing and future loggers."""
    global _global_level
    if isinstance(level, str):
        name = level.upper().replace("WARNING", "WARN")
        if name not in LogLevel.__members__:
            raise ValueError(f"Unknown log level: {level}")
        level = LogLevel[name]
    _global_level = level
    for logger in _loggers.values():
        logger.min_level = level


def get_logger(module: str, min_level: Optional[LogLevel] = None) -> StructuredLogger:
    """
    Get or create a logger for the given module.

    Args:
        module: Module name
        min_level: Minimum log level (defaults to the global level)

    Returns:
        StructuredLogger instance
    """
    if module not in _loggers:
        _loggers[module] = StructuredLogger(module, _global_queue, min_level or _global_level)
    return _loggers[module]
