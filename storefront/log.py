"""
Logging setup and structured security/API logging.

    from storefront.log import setup_logging, log_security_event, SecurityEvent

    setup_logging("INFO")
    log_security_event(SecurityEvent.RATE_LIMIT_EXCEEDED, "Too many requests", client_id=cid)
"""

from __future__ import annotations

import json
import logging
import sys
from enum import StrEnum
from typing import Any

from storefront._types import utcnow

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

MAX_INPUT_LENGTH = 500

SENSITIVE_KEYS = ("password", "token", "secret", "apikey", "api_key", "authorization", "cookie")

security_logger = logging.getLogger("storefront.security")
api_logger = logging.getLogger("storefront.api")


# ═══════════════════════════════════════════════════════════════════════════════
# Setup
# ═══════════════════════════════════════════════════════════════════════════════


def setup_logging(level: str | int = "INFO") -> logging.Logger:
    """Configure the `storefront` logger once; repeated calls only adjust the level."""
    logger = logging.getLogger("storefront")
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger


# ═══════════════════════════════════════════════════════════════════════════════
# Security Events
# ═══════════════════════════════════════════════════════════════════════════════


class SecurityEvent(StrEnum):
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    SUSPICIOUS_INPUT = "SUSPICIOUS_INPUT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    API_ERROR = "API_ERROR"
    UNAUTHORIZED_ACCESS = "UNAUTHORIZED_ACCESS"


def sanitize(metadata: dict[str, Any]) -> dict[str, Any]:
    """Redact sensitive keys and truncate long strings."""
    clean: dict[str, Any] = {}
    for key, value in metadata.items():
        if any(marker in key.lower() for marker in SENSITIVE_KEYS):
            clean[key] = "[REDACTED]"
        elif isinstance(value, str) and len(value) > MAX_INPUT_LENGTH:
            clean[key] = value[:MAX_INPUT_LENGTH] + "...[truncated]"
        else:
            clean[key] = value
    return clean


def log_security_event(event: SecurityEvent, message: str, **metadata: Any) -> None:
    payload = {
        "timestamp": utcnow().isoformat(),
        "event": str(event),
        "message": message,
        **sanitize(metadata),
    }
    level = logging.ERROR if event is SecurityEvent.UNAUTHORIZED_ACCESS else logging.WARNING
    security_logger.log(level, json.dumps(payload, default=str))


def log_api_request(
    method: str,
    endpoint: str,
    client_id: str,
    status: int,
    duration_ms: float,
    **metadata: Any,
) -> None:
    payload = {
        "method": method,
        "endpoint": endpoint,
        "client_id": client_id,
        "status": status,
        "duration_ms": round(duration_ms, 1),
        **sanitize(metadata),
    }
    level = logging.WARNING if status >= 400 else logging.INFO
    api_logger.log(level, json.dumps(payload, default=str))


__all__ = (
    "LOG_FORMAT",
    "setup_logging",
    "SecurityEvent",
    "sanitize",
    "log_security_event",
    "log_api_request",
)
