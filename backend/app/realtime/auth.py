"""
Socket.IO authentication module.
Validates JWT tokens for socket connections.
"""
from typing import Optional, Tuple
from urllib.parse import parse_qs
from jose import JWTError, jwt

from app.core.config import settings
from app.core.security import extract_identity
import logging

logger = logging.getLogger(__name__)


def extract_token(auth: dict = None, environ: dict = None) -> Optional[str]:
    """
    Find the bearer token for a handshake.

    Looks in, in order:
    1. auth.token (Socket.IO auth object)
    2. ?token= query parameter
    3. Authorization header
    """
    token = None

    if auth and isinstance(auth, dict):
        token = auth.get("token")

    if not token and environ:
        query = parse_qs(environ.get("QUERY_STRING", ""))
        values = query.get("token")
        if values:
            token = values[0]

    if not token and environ:
        headers = environ.get("HTTP_AUTHORIZATION", "")
        if headers.startswith("Bearer "):
            token = headers[7:]

    return token or None


async def authenticate_socket(auth: dict = None, environ: dict = None) -> Tuple[bool, Optional[dict]]:
    """
    Authenticate a Socket.IO connection using JWT.

    Returns:
        Tuple of (is_authenticated, user_data)
        user_data contains: user_id, role if authenticated
    """
    token = extract_token(auth, environ)

    if not token:
        logger.warning("Socket connection rejected: No token provided")
        return False, None

    payload = decode_token_sync(token)
    if payload is None:
        logger.warning("Socket connection rejected: Invalid JWT")
        return False, None

    user_data = extract_identity(payload)
    if user_data is None:
        logger.warning("Socket connection rejected: No user identity in token")
        return False, None

    logger.info(f"Socket authenticated for user {user_data['user_id']} (role: {user_data['role']})")
    return True, user_data


def decode_token_sync(token: str) -> Optional[dict]:
    """
    Synchronous token decode.
    Returns the payload, or None for any bad signature, expiry or malformed token.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM]
        )
        return payload
    except JWTError:
        return None
