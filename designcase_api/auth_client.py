from typing import Optional

from fastapi import Header
import structlog

from designcase_api.errors import AuthenticationError

logger = structlog.get_logger(__name__)


async def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Get the acting user from the identity header set by the auth gateway"""
    if not x_user_id or not x_user_id.strip():
        logger.warning("Request without user identity header")
        raise AuthenticationError("Unauthorized: missing user ID")
    return x_user_id.strip()
