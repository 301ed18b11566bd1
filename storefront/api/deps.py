"""
API dependencies

Identity comes from the hosted auth provider as a bearer JWT signed with the
shared SECRET_KEY; `sub` is the profile id. Delete confirmations are signed
with the same key, so only access tokens are accepted here.
"""
import logging
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.core.exceptions import AdminRequired, AuthRequired, TransientStoreFailure
from storefront.core.security import decode_token
from storefront.models.profile import Profile
from storefront.services.cart_store import CartStore

logger = logging.getLogger(__name__)

# Optional bearer - doesn't fail if no Authorization header
security = HTTPBearer(auto_error=False)


async def _resolve_profile(db: AsyncSession, token: Optional[str]) -> Optional[Profile]:
    if not token:
        return None

    payload = decode_token(token)
    if not payload or payload.get("type", "access") != "access":
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    try:
        result = await db.execute(select(Profile).where(Profile.id == str(user_id)))
    except SQLAlchemyError as e:
        logger.error(f"Profile lookup failed for {user_id}: {e}")
        raise TransientStoreFailure("Failed to load your profile")
    return result.scalar_one_or_none()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Profile:
    """Get current authenticated user."""
    token = credentials.credentials if credentials else None
    user = await _resolve_profile(db, token)
    if user is None:
        raise AuthRequired()
    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Optional[Profile]:
    """Get current user if authenticated, None otherwise"""
    token = credentials.credentials if credentials else None
    return await _resolve_profile(db, token)


async def get_current_admin(user: Profile = Depends(get_current_user)) -> Profile:
    """Require admin user"""
    if not user.is_admin:
        logger.warning(f"Non-admin {user.email} attempted admin access")
        raise AdminRequired()
    return user


async def get_cart_store(
    user: Optional[Profile] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """
    A cart store attached to the caller for the duration of the request.

    Anonymous callers get an empty, detached store; its mutations raise
    AuthRequired.
    """
    store = CartStore(db)
    await store.attach(user)
    try:
        yield store
    finally:
        store.detach()
