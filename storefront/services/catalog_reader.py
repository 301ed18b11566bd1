"""
Catalog Reader

Read-only queries behind the browsing pages. Only active products and
categories are visible here; the admin console sees everything.
"""
import logging
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import NotFound, TransientStoreFailure
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.profile import Profile
from storefront.models.review import Review
from storefront.schemas.catalog import ProductFilters, ReviewResponse, ReviewSummary

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = {
    "created_at": Product.created_at,
    "price": Product.price,
    "name": Product.name,
    "stock_quantity": Product.stock_quantity,
}


def build_product_query(filters: ProductFilters):
    """Select active products matching the browse filters."""
    query = select(Product).where(Product.is_active.is_(True))

    if filters.category_id:
        query = query.where(Product.category_id == filters.category_id)
    if filters.price_min is not None:
        query = query.where(Product.price >= filters.price_min)
    if filters.price_max is not None:
        query = query.where(Product.price <= filters.price_max)
    if filters.search:
        query = query.where(Product.name.ilike(f"%{filters.search}%"))
    if filters.featured:
        query = query.where(Product.featured.is_(True))
    if filters.in_stock:
        query = query.where(Product.stock_quantity > 0)

    column = SORTABLE_COLUMNS.get(filters.sort_by, Product.created_at)
    query = query.order_by(column.asc() if filters.sort_order == "asc" else column.desc())
    return query


class CatalogReader:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_products(self, filters: Optional[ProductFilters] = None):
        """Returns (products, total)."""
        query = build_product_query(filters or ProductFilters())
        try:
            total = await self.db.scalar(select(func.count()).select_from(query.subquery()))
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Product listing failed: {e}")
            raise TransientStoreFailure("Failed to load products")
        return result.scalars().all(), total or 0

    async def get_product(self, slug: str) -> Product:
        try:
            result = await self.db.execute(
                select(Product).where(Product.slug == slug, Product.is_active.is_(True))
            )
            product = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Product lookup failed for {slug}: {e}")
            raise TransientStoreFailure("Failed to load product")

        if not product:
            raise NotFound("Product not found", details={"slug": slug})
        return product

    async def featured_products(self, limit: int = 8) -> List[Product]:
        try:
            result = await self.db.execute(
                select(Product)
                .where(Product.is_active.is_(True), Product.featured.is_(True))
                .order_by(Product.created_at.desc())
                .limit(limit)
            )
        except SQLAlchemyError as e:
            logger.error(f"Featured products query failed: {e}")
            raise TransientStoreFailure("Failed to load products")
        return result.scalars().all()

    async def list_categories(self, limit: Optional[int] = None) -> List[Category]:
        query = select(Category).where(Category.is_active.is_(True)).order_by(Category.name.asc())
        if limit:
            query = query.limit(limit)
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Category listing failed: {e}")
            raise TransientStoreFailure("Failed to load categories")
        return result.scalars().all()

    async def product_reviews(self, product_id: str) -> List[ReviewResponse]:
        """Newest first, with the reviewer's display name."""
        try:
            result = await self.db.execute(
                select(Review, Profile.full_name)
                .outerjoin(Profile, Review.user_id == Profile.id)
                .where(Review.product_id == product_id)
                .order_by(Review.created_at.desc())
            )
            rows = result.all()
        except SQLAlchemyError as e:
            logger.error(f"Review query failed for product {product_id}: {e}")
            raise TransientStoreFailure("Failed to load reviews")

        return [
            ReviewResponse(
                id=review.id,
                product_id=review.product_id,
                user_id=review.user_id,
                reviewer_name=full_name,
                rating=review.rating,
                title=review.title,
                comment=review.comment,
                verified_purchase=bool(review.verified_purchase),
                created_at=review.created_at,
            )
            for review, full_name in rows
        ]

    async def review_summary(self, product_id: str) -> ReviewSummary:
        try:
            result = await self.db.execute(
                select(func.count(Review.id), func.avg(Review.rating))
                .where(Review.product_id == product_id)
            )
            count, average = result.one()
        except SQLAlchemyError as e:
            logger.error(f"Review summary failed for product {product_id}: {e}")
            raise TransientStoreFailure("Failed to load reviews")

        return ReviewSummary(
            product_id=product_id,
            average_rating=float(average or 0),
            review_count=count or 0,
        )
