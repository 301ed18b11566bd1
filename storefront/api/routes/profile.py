"""
Profile routes
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import get_current_user
from storefront.core.database import get_db
from storefront.core.exceptions import TransientStoreFailure
from storefront.core.utils import utcnow
from storefront.models.profile import Profile
from storefront.schemas.profile import ProfileResponse, ProfileUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=ProfileResponse)
async def get_profile(user: Profile = Depends(get_current_user)):
    return user


@router.patch("", response_model=ProfileResponse)
async def update_profile(
    update_data: ProfileUpdate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update name, phone and address of the signed-in user"""
    for field, value in update_data.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    user.updated_at = utcnow()

    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Profile update failed for {user.id}: {e}")
        raise TransientStoreFailure("Failed to update profile")

    logger.info(f"Profile {user.id} updated")
    return user
