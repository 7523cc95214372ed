"""Logging setup with contextual dimensions.

Usage:
    from draftsync.core.logging import logger

    session_logger = logger.with_context(session_id=str(session_id), operation="publish")
    session_logger.info("Publishing folders")

    # Or build a logger for a named component
    log = LoggerConfigurator.configure_logger(
        "draftsync.publishing.revert", dimensions={"operation": "revert"}
    )
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from draftsync.core.config import settings
from draftsync.core.config.enums import LogFormat

_ROOT_NAME = "draftsync"


class _TextFormatter(logging.Formatter):
    """Human readable single-line format with trailing dimensions."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        dimensions = getattr(record, "dimensions", None)
        if dimensions:
            rendered = " ".join(f"{k}={v}" for k, v in sorted(dimensions.items()))
            return f"{base} [{rendered}]"
        return base


class _JsonFormatter(logging.Formatter):
    """One JSON object per line, dimensions flattened into the payload."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(getattr(record, "dimensions", None) or {})
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that carries dimensions and an optional message prefix.

    Dimensions are attached to every record under ``record.dimensions`` so
    both formatters can render them. ``with_context`` and ``with_prefix``
    return new adapters and never mutate the receiver.
    """

    def __init__(
        self,
        logger: logging.Logger,
        dimensions: Optional[Dict[str, Any]] = None,
        prefix: str = "",
    ) -> None:
        super().__init__(logger, {})
        self.dimensions: Dict[str, Any] = dict(dimensions or {})
        self.prefix = prefix

    def process(self, msg: Any, kwargs: Any):
        extra = dict(kwargs.pop("extra", None) or {})
        kwargs["extra"] = {"dimensions": {**self.dimensions, **extra}}
        return f"{self.prefix}{msg}", kwargs

    def with_context(self, **dimensions: Any) -> "ContextualLogger":
        """Return a logger with additional dimensions."""
        return ContextualLogger(self.logger, {**self.dimensions, **dimensions}, self.prefix)

    def with_prefix(self, prefix: str) -> "ContextualLogger":
        """Return a logger that prepends ``prefix`` to every message."""
        return ContextualLogger(self.logger, self.dimensions, f"{self.prefix}{prefix}")


class LoggerConfigurator:
    """Configures the package root logger once and hands out contextual loggers."""

    _configured = False

    @classmethod
    def _configure_root(cls) -> None:
        if cls._configured:
            return
        root = logging.getLogger(_ROOT_NAME)
        root.setLevel(settings.LOG_LEVEL.upper())
        handler = logging.StreamHandler(sys.stdout)
        if settings.LOG_FORMAT == LogFormat.JSON:
            handler.setFormatter(_JsonFormatter())
        else:
            handler.setFormatter(
                _TextFormatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s")
            )
        root.handlers = [handler]
        root.propagate = False
        cls._configured = True

    @classmethod
    def configure_logger(
        cls, name: str, dimensions: Optional[Dict[str, Any]] = None
    ) -> ContextualLogger:
        """Create a contextual logger for a named component.

        Args:
        ----
            name (str): Dotted logger name, normally under ``draftsync.``.
            dimensions (dict, optional): Dimensions attached to every record.

        Returns:
        -------
            ContextualLogger: The configured logger.

        """
        cls._configure_root()
        return ContextualLogger(logging.getLogger(name), dimensions)


logger = LoggerConfigurator.configure_logger(_ROOT_NAME)
