"""
Security utilities - identity tokens and admin delete confirmations

Identity tokens are minted by the hosted auth provider; this service only
verifies them. create_access_token exists for local tooling and tests.
Delete confirmations are short-lived signed tokens naming the exact row an
admin agreed to delete.
"""
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from storefront.core.config import settings

ACCESS_TOKEN_EXPIRE_MINUTES = 60
DELETE_CONFIRMATION_TYPE = "delete_confirmation"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()
    # "sub" must be a string per RFC 7519
    if "sub" in to_encode:
        to_encode["sub"] = str(to_encode["sub"])
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({
        "exp": expire,
        "type": "access",
        "jti": str(uuid.uuid4()),
        "iat": now,
    })
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode and validate JWT token"""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"verify_sub": False}
        )
        return payload
    except JWTError:
        return None


def create_delete_confirmation(kind: str, target_id: str, admin_id: str) -> str:
    """Sign a one-target delete confirmation for an admin."""
    now = datetime.now(timezone.utc)
    payload = {
        "type": DELETE_CONFIRMATION_TYPE,
        "kind": kind,
        "target": str(target_id),
        "sub": str(admin_id),
        "iat": now,
        "exp": now + timedelta(seconds=settings.DELETE_CONFIRMATION_TTL_SECONDS),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_delete_confirmation(token: Optional[str], kind: str, target_id: str, admin_id: str) -> bool:
    """True only if the token was issued to this admin for exactly this row."""
    if not token:
        return False
    payload = decode_token(token)
    if not payload or payload.get("type") != DELETE_CONFIRMATION_TYPE:
        return False
    return (
        payload.get("kind") == kind
        and payload.get("target") == str(target_id)
        and payload.get("sub") == str(admin_id)
    )
