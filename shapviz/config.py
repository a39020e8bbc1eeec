"""
Configuration constants and logging setup for shapviz
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generator

# Random seed for reproducible row subsampling
RANDOM_STATE = 42

# Package logger name (all modules log through this logger)
LOGGER_NAME = 'shapviz'

# =============================================================================
# DISPLAY DEFAULTS (consumed by summaries, never by the container itself)
# =============================================================================

# Max features shown in importance summaries before the rest are aggregated
SHAP_MAX_DISPLAY = 15

# Max contributions shown in waterfall/force data before collapsing the tail
WATERFALL_MAX_DISPLAY = 10

# Label used for aggregated features ("Sum of 7 other features")
OTHER_FEATURES_LABEL = 'Sum of {n} other features'

# Significant digits used when formatting feature values in labels
LABEL_DIGITS = 4

# =============================================================================
# VALIDATION TOLERANCES
# =============================================================================

# Interaction tensors must be symmetric in their last two axes.
# TreeExplainer output is symmetric up to float noise, so compare with tolerance.
INTERACTION_SYMMETRY_RTOL = 1e-5
INTERACTION_SYMMETRY_ATOL = 1e-8

# Max rows explained by the tree adapter (None = all rows)
TREE_MAX_ROWS: int | None = None

# Libraries to suppress verbose logging
_SUPPRESS_LIBRARIES = (
    ('shap', logging.WARNING),
    ('numba', logging.WARNING),
)


def _apply_log_suppression() -> None:
    """Apply log level suppression to noisy libraries."""
    for lib_name, level in _SUPPRESS_LIBRARIES:
        logging.getLogger(lib_name).setLevel(level)


def _level_from_env(default: int) -> int:
    """Resolve log level from SHAPVIZ_LOG_LEVEL (name or number)."""
    raw = os.environ.get('SHAPVIZ_LOG_LEVEL')
    if not raw:
        return default
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelName(raw.upper())
    return level if isinstance(level, int) else default


def setup_logging(level: int | None = None, force: bool = False) -> logging.Logger:
    """
    Configure package logging with proper handler management.

    Unlike logging.basicConfig(), repeated calls do not stack handlers;
    pass force=True to replace an existing configuration.

    Args:
        level: Logging level (default: SHAPVIZ_LOG_LEVEL env var, else INFO)
        force: If True, remove existing handlers before adding new ones.

    Returns:
        Configured 'shapviz' logger instance
    """
    if level is None:
        level = _level_from_env(logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)

    if force or not logger.handlers:
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)

        logger.setLevel(level)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter('[%(levelname)s] %(message)s'))
        logger.addHandler(console_handler)

        # Avoid duplicate messages through the root logger
        logger.propagate = False

    _apply_log_suppression()
    return logger


# =============================================================================
# STRUCTURED LOGGING (JSON format for log aggregation)
# =============================================================================

@dataclass
class LogRecord:
    """Structured log record for JSON serialization."""
    timestamp: str
    level: str
    message: str
    logger: str = LOGGER_NAME
    module: str | None = None
    function: str | None = None
    line: int | None = None
    duration_ms: float | None = None
    metrics: dict[str, Any] = field(default_factory=dict)
    context: dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        """Serialize to JSON string."""
        data = {k: v for k, v in asdict(self).items() if v is not None}
        if not data.get("metrics"):
            data.pop("metrics", None)
        if not data.get("context"):
            data.pop("context", None)
        return json.dumps(data, default=str)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_record = LogRecord(
            timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            level=record.levelname,
            message=record.getMessage(),
            logger=record.name,
            module=record.module,
            function=record.funcName,
            line=record.lineno,
        )

        if hasattr(record, "duration_ms"):
            log_record.duration_ms = record.duration_ms
        if hasattr(record, "metrics"):
            log_record.metrics = record.metrics
        if hasattr(record, "context"):
            log_record.context = record.context

        return log_record.to_json()


def setup_json_logging(
    level: int = logging.INFO,
    log_file: Path | None = None,
    console: bool = True
) -> logging.Logger:
    """
    Configure structured JSON logging.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional file path for JSON logs
        console: Whether to also log to console in JSON format

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    json_formatter = JSONFormatter()

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(json_formatter)
        logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(json_formatter)
        logger.addHandler(file_handler)

    _apply_log_suppression()
    return logger


@contextmanager
def log_execution_time(
    logger: logging.Logger,
    operation: str,
    level: int = logging.DEBUG,
    extra_context: dict[str, Any] | None = None
) -> Generator[dict[str, Any], None, None]:
    """
    Context manager for logging operation execution time.

    Nothing is logged when the operation raises; the exception propagates.

    Args:
        logger: Logger instance
        operation: Name of the operation being timed
        level: Log level for the completion message
        extra_context: Additional context to include in log

    Yields:
        Dict for collecting metrics during execution

    Example:
        with log_execution_time(logger, "construct_shap_container") as metrics:
            sv = build(...)
            metrics["n_rows"] = len(sv)
    """
    metrics: dict[str, Any] = {}
    context = extra_context or {}
    start_time = time.perf_counter()

    yield metrics

    if not logger.isEnabledFor(level):
        return

    duration_ms = (time.perf_counter() - start_time) * 1000

    record = logging.LogRecord(
        name=logger.name,
        level=level,
        pathname="",
        lineno=0,
        msg=f"{operation} completed",
        args=(),
        exc_info=None,
    )
    record.duration_ms = duration_ms
    record.metrics = metrics
    record.context = {"operation": operation, **context}

    logger.handle(record)
