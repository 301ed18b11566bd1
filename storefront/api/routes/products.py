"""
Product routes (public catalog)
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.schemas.catalog import ProductFilters, ProductList, ProductResponse, ReviewResponse, ReviewSummary
from storefront.services.catalog_reader import CatalogReader

router = APIRouter()


@router.get("", response_model=ProductList)
async def list_products(
    category_id: Optional[str] = None,
    price_min: Optional[float] = Query(None, ge=0),
    price_max: Optional[float] = Query(None, ge=0),
    search: Optional[str] = None,
    featured: Optional[bool] = None,
    in_stock: Optional[bool] = None,
    sort_by: str = Query("created_at", pattern="^(created_at|price|name|stock_quantity)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: AsyncSession = Depends(get_db)
):
    """List active products with filtering and sorting"""
    filters = ProductFilters(
        category_id=category_id,
        price_min=price_min,
        price_max=price_max,
        search=search,
        featured=featured,
        in_stock=in_stock,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    products, total = await CatalogReader(db).list_products(filters)
    return ProductList(products=products, total=total)


@router.get("/featured", response_model=List[ProductResponse])
async def featured_products(
    limit: int = Query(8, ge=1, le=50),
    db: AsyncSession = Depends(get_db)
):
    return await CatalogReader(db).featured_products(limit)


@router.get("/{slug}", response_model=ProductResponse)
async def get_product(slug: str, db: AsyncSession = Depends(get_db)):
    """Get single active product by slug"""
    return await CatalogReader(db).get_product(slug)


@router.get("/{slug}/reviews", response_model=List[ReviewResponse])
async def product_reviews(slug: str, db: AsyncSession = Depends(get_db)):
    reader = CatalogReader(db)
    product = await reader.get_product(slug)
    return await reader.product_reviews(product.id)


@router.get("/{slug}/reviews/summary", response_model=ReviewSummary)
async def product_review_summary(slug: str, db: AsyncSession = Depends(get_db)):
    """Average rating and review count for the product page header"""
    reader = CatalogReader(db)
    product = await reader.get_product(slug)
    return await reader.review_summary(product.id)
