"""
Event logger utility for authentication events.
"""
from datetime import datetime, timezone
from typing import Optional
from fastapi import Request
import logging

logger = logging.getLogger(__name__)


ALLOWED_EVENT_TYPES = {
    "signup_success",
    "signup_failure",
    "signin_success",
    "signin_failure",
}


def client_ip(request: Request) -> Optional[str]:
    ip_address = None
    if request.client:
        ip_address = request.client.host

    # Check for X-Forwarded-For header (proxy/load balancer scenarios)
    if not ip_address and request.headers.get("x-forwarded-for"):
        # X-Forwarded-For can contain multiple IPs, take the first one
        ip_address = request.headers.get("x-forwarded-for").split(",")[0].strip()

    return ip_address


def log_auth_event(
    event_type: str,
    email: Optional[str],
    request: Request,
    identifier: Optional[str] = None,
    reason: Optional[str] = None,
) -> None:
    """
    Log an authentication event.

    Args:
        event_type: One of: signup_success, signup_failure,
                    signin_success, signin_failure
        email: Email the request was made for, if known
        request: FastAPI Request object
        identifier: Credential Record identifier, if one was resolved
        reason: Short failure reason (never a password or token)

    Raises:
        ValueError: If event_type is invalid
    """
    if event_type not in ALLOWED_EVENT_TYPES:
        raise ValueError(
            f"Invalid event_type '{event_type}'. Must be one of: {', '.join(sorted(ALLOWED_EVENT_TYPES))}"
        )

    user_agent = request.headers.get("user-agent")
    level = logging.INFO if event_type.endswith("_success") else logging.WARNING

    logger.log(
        level,
        "AUTH %s email=%s identifier=%s reason=%s ip=%s user_agent=%s timestamp=%s",
        event_type, email, identifier, reason, client_ip(request), user_agent,
        datetime.now(timezone.utc).isoformat()
    )
