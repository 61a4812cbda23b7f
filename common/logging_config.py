import logging
import os
import re
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Top-level packages whose module loggers share one configured handler each
SERVICE_COMPONENTS = ('controller', 'filestore', 'common')

MAX_BYTES_PREVIEW = 32

_SECRET_KEYS = ('token', 'authorization', 'secret')
_MASK = r'\1***MASKED***'


def _key_pattern(key: str) -> re.Pattern:
    return re.compile(rf'({key}["\']?\s*[:=]\s*["\']?)([^"\'}}\s,]+)', re.IGNORECASE)


class SensitiveDataFilter(logging.Filter):
    """
    Masks credential-looking values and replaces raw file content passed as
    a logging argument with its length.
    """

    PATTERNS = [(_key_pattern(key), _MASK) for key in _SECRET_KEYS] + [
        (re.compile(r'(bearer\s+)([^\s,}\'\"]+)', re.IGNORECASE), _MASK),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self._mask_text(record.msg)

        if isinstance(record.args, dict):
            record.args = {k: self._scrub(v) for k, v in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(self._scrub(arg) for arg in record.args)

        return True

    def _mask_text(self, text: str) -> str:
        for pattern, replacement in self.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def _scrub(self, value):
        if isinstance(value, str):
            return self._mask_text(value)
        if isinstance(value, (bytes, bytearray)) and len(value) > MAX_BYTES_PREVIEW:
            return f"<{len(value)} bytes>"
        return value


def _resolve_level(log_level: Optional[str]) -> int:
    name = (log_level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    return getattr(logging, name, logging.INFO)


def _build_handler(level: int, correlation_id: Optional[str]) -> logging.Handler:
    fmt = LOG_FORMAT
    if correlation_id:
        fmt = f'%(asctime)s - %(name)s - %(levelname)s - [{correlation_id}] - %(message)s'

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
    handler.addFilter(SensitiveDataFilter())
    return handler


def setup_logging(
    component_name: str,
    log_level: Optional[str] = None,
    correlation_id: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging configuration for a component.

    Module loggers created with get_logger(__name__) inside the component's
    package propagate to this logger's handler. Calling it again for the
    same component only updates the level.

    Args:
        component_name: Top-level package name (e.g., 'controller', 'filestore')
        log_level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL env var or INFO
        correlation_id: Optional correlation ID to include in log format

    Returns:
        Configured logger instance
    """
    level = _resolve_level(log_level)

    logger = logging.getLogger(component_name)
    logger.setLevel(level)

    if not logger.handlers:
        logger.addHandler(_build_handler(level, correlation_id))
        logger.propagate = False

    return logger


def setup_service_logging(log_level: Optional[str] = None) -> logging.Logger:
    """
    Configure every package of the file store service.

    Returns:
        The controller logger
    """
    loggers = [setup_logging(name, log_level) for name in SERVICE_COMPONENTS]
    return loggers[0]


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, typically get_logger(__name__)."""
    return logging.getLogger(name)
