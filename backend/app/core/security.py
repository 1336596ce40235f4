"""
Passcode gate for the dashboard endpoints.

A single shared passcode (PROTECTED_PASSCODE) is stored in an httpOnly cookie
after the operator enters it once. It is an access gate, not an identity.
"""

import secrets
from typing import Optional

from fastapi import Request

from app.core.config import settings
from app.core.exceptions import AuthenticationError, ConfigurationError
from app.core.logging_config import logger


def verify_passcode(candidate: Optional[str], expected: Optional[str] = None) -> bool:
    """Constant-time comparison against the configured passcode"""
    expected = settings.PROTECTED_PASSCODE if expected is None else expected
    if not candidate or not expected:
        return False
    return secrets.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


async def require_passcode(request: Request) -> None:
    """
    Dependency: allow the request only with a valid passcode cookie.

    Usage:
        @router.get("/list-offer-letters", dependencies=[Depends(require_passcode)])
    """
    if not settings.PROTECTED_PASSCODE:
        logger.error("PROTECTED_PASSCODE is not configured; dashboard endpoints are locked")
        raise ConfigurationError(setting="PROTECTED_PASSCODE")

    cookie = request.cookies.get(settings.PASSCODE_COOKIE_NAME)
    if not verify_passcode(cookie):
        logger.log_auth_event("passcode_gate", success=False, reason="missing or invalid cookie",
                              path=request.url.path)
        raise AuthenticationError("Passcode required")
