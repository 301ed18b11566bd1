"""
Category routes (public catalog)
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.schemas.catalog import CategoryResponse
from storefront.services.catalog_reader import CatalogReader

router = APIRouter()


@router.get("", response_model=List[CategoryResponse])
async def list_categories(
    limit: Optional[int] = Query(None, ge=1),
    db: AsyncSession = Depends(get_db)
):
    """Active categories ordered by name"""
    return await CatalogReader(db).list_categories(limit)
