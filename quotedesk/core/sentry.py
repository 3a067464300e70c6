"""
Sentry error tracking.

Enabled only when SENTRY_DSN is set. Request bodies on this API carry
passwords, drawn signatures and portal tokens; those are scrubbed before an
event leaves the process.
"""

import logging
import re
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from quotedesk.config import settings

logger = logging.getLogger(__name__)

FILTERED = "[Filtered]"
SENSITIVE_HEADERS = ("authorization", "cookie", "x-api-key")
SENSITIVE_FIELDS = ("password", "signature", "token", "login_token", "iban")
# Public quote and portal URLs embed the access token
TOKEN_IN_PATH = re.compile(r"(/api/public/(?:quotes|client/dossier|client/auto-login)/)[^/?]+")

_sentry_initialized = False


def init_sentry() -> bool:
    """Called once from the application lifespan."""
    global _sentry_initialized

    if not settings.SENTRY_DSN:
        logger.info("Sentry DSN not configured, error tracking disabled")
        return False

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=0.1 if settings.is_production else 1.0,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            LoggingIntegration(level=logging.WARNING, event_level=logging.ERROR),
        ],
        before_send=filter_sensitive_data,
        send_default_pii=False,
        attach_stacktrace=True,
    )
    _sentry_initialized = True
    logger.info(f"Sentry initialized for {settings.ENVIRONMENT} environment")
    return True


def filter_sensitive_data(event: Dict[str, Any], hint: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    request = event.get("request") or {}

    headers = request.get("headers")
    if isinstance(headers, dict):
        for name in list(headers):
            if name.lower() in SENSITIVE_HEADERS:
                headers[name] = FILTERED

    data = request.get("data")
    if isinstance(data, dict):
        for field in SENSITIVE_FIELDS:
            if field in data:
                data[field] = FILTERED

    url = request.get("url")
    if isinstance(url, str):
        request["url"] = TOKEN_IN_PATH.sub(r"\g<1>" + FILTERED, url)

    return event


def capture_exception(exception: Exception, context: Optional[Dict[str, Any]] = None) -> Optional[str]:
    """Forward an unhandled exception. Returns the Sentry event id, or None when disabled."""
    if not _sentry_initialized:
        return None

    with sentry_sdk.new_scope() as scope:
        for key, value in (context or {}).items():
            scope.set_extra(key, value)
        return sentry_sdk.capture_exception(exception)
