"""Error tracking and monitoring setup."""
import os
import logging
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

SENSITIVE_HEADERS = {"authorization", "api-key", "x-api-key", "cookie", "set-cookie"}
SENSITIVE_ENV_MARKERS = ("API_KEY", "SECRET", "PASSWORD", "TOKEN", "DSN")

_initialized = False


def filter_sensitive_data(event, hint):
    """Redact headers and environment values that may carry secrets."""
    request = event.get("request") or {}
    if "headers" in request:
        request["headers"] = {
            k: "***REDACTED***" if k.lower() in SENSITIVE_HEADERS else v
            for k, v in request["headers"].items()
        }

    env = event.get("environment")
    if isinstance(env, dict):
        for key in list(env.keys()):
            if any(marker in key.upper() for marker in SENSITIVE_ENV_MARKERS):
                env[key] = "***REDACTED***"

    return event


def setup_error_tracking(
    dsn: Optional[str] = None,
    environment: Optional[str] = None,
    release: Optional[str] = None,
    traces_sample_rate: float = 0.0,
) -> bool:
    """
    Setup Sentry error tracking.

    Args:
        dsn: Sentry DSN (if None, will try to get from SENTRY_DSN env var)
        environment: Environment name (development, staging, production)
        release: Release version
        traces_sample_rate: Percentage of transactions to trace (0.0 to 1.0)

    Returns:
        True if Sentry was initialized, False otherwise
    """
    global _initialized

    dsn = dsn or os.getenv("SENTRY_DSN")
    if not dsn:
        logging.info("Sentry DSN not provided. Error tracking disabled.")
        return False

    environment = environment or os.getenv("ENVIRONMENT", "development")
    release = release or os.getenv("RELEASE", "unknown")

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
        integrations=[LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)],
        traces_sample_rate=traces_sample_rate,
        before_send=filter_sensitive_data,
        attach_stacktrace=True,
        send_default_pii=False,
    )
    _initialized = True
    logging.info(f"Sentry error tracking initialized for environment: {environment}")
    return True


def capture_exception(error: Exception, context: Optional[dict] = None) -> bool:
    """Capture exception and send to Sentry if it was initialized."""
    if not _initialized:
        return False

    with sentry_sdk.new_scope() as scope:
        for key, value in (context or {}).items():
            scope.set_context(key, {"value": str(value)})
        sentry_sdk.capture_exception(error)
    return True
