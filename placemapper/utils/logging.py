"""Structured logging utilities."""
import json
import logging
import traceback
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from placemapper.utils.error_tracking import capture_exception


def setup_logging(level: str = "INFO"):
    """Setup structured JSON logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(message)s',
        handlers=[logging.StreamHandler()]
    )


def log_structured(level: str, message: str, **kwargs):
    """
    Log structured JSON message.

    Args:
        level: Log level (info, warning, error, etc.)
        message: Log message
        **kwargs: Additional structured fields
    """
    log_entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level.upper(),
        "message": message,
        **kwargs
    }

    logger = logging.getLogger("placemapper")
    getattr(logger, level.lower(), logger.info)(json.dumps(log_entry, default=str))


def _error_fields(error: Exception, context: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "traceback": "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        ),
        "context": context or {},
    }


def log_error(error: Exception, context: Optional[Dict[str, Any]] = None):
    """
    Log a recovered error and forward it to error tracking.

    Args:
        error: The exception that was handled
        context: Where it happened (module, function, query, ...)
    """
    log_structured("error", str(error) or type(error).__name__, **_error_fields(error, context))
    capture_exception(error, context)


def log_critical(error: Exception, context: Optional[Dict[str, Any]] = None):
    """Log an error that stopped a page or command."""
    log_structured("critical", str(error) or type(error).__name__, **_error_fields(error, context))
    capture_exception(error, context)
