"""
Event logger utility for authentication events.
"""
import logging
import os
import sys
from datetime import datetime, timezone

from fastapi import Request

from ..config import settings

# Configure file and stdout logging
log_dir = settings.LOG_DIR

# Create handlers list
handlers = [logging.StreamHandler(sys.stdout)]

# Try to add file handler, but continue without it if directory creation fails
try:
    os.makedirs(log_dir, exist_ok=True)
    handlers.append(logging.FileHandler(f"{log_dir}/auth_events.log"))
except (OSError, PermissionError) as e:
    print(f"WARNING: Could not set up file logging: {e}", file=sys.stderr)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s:%(message)s",
    handlers=handlers
)

logger = logging.getLogger(__name__)


ALLOWED_EVENT_TYPES = {
    "login_success",
    "login_failure",
    "signup",
    "token_rejected",
}


def client_ip(request: Request):
    """Client address, falling back to the first X-Forwarded-For hop."""
    if request.client:
        return request.client.host
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return None


def clean(value):
    """Escape non-printable characters so client input stays on one log line."""
    if value is None:
        return None
    return "".join(c if c.isprintable() else repr(c)[1:-1] for c in str(value))


def log_auth_event(
    event_type: str,
    username: str,
    request: Request = None,
    **extra
) -> None:
    """
    Log an authentication event.

    Args:
        event_type: One of: login_success, login_failure, signup, token_rejected
        username: Username the event refers to (may not exist in the store)
        request: Optional FastAPI Request used for ip / user agent
        **extra: Additional key=value context appended to the line

    Raises:
        ValueError: If event_type is invalid
    """
    if event_type not in ALLOWED_EVENT_TYPES:
        raise ValueError(
            f"Invalid event_type '{event_type}'. Must be one of: {', '.join(sorted(ALLOWED_EVENT_TYPES))}"
        )

    ip_address = None
    user_agent = None
    if request is not None:
        ip_address = client_ip(request)
        user_agent = request.headers.get("user-agent")

    context = "".join(f" {key}={clean(value)}" for key, value in sorted(extra.items()))
    logger.info(
        "AUTH %s username=%s ip=%s user_agent=%s timestamp=%s%s",
        event_type, clean(username), clean(ip_address), clean(user_agent),
        datetime.now(timezone.utc).isoformat(), context
    )
