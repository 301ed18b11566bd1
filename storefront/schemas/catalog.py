"""
Catalog schemas
"""
from datetime import datetime
from typing import Optional, List, Literal
from pydantic import BaseModel, Field


class Dimensions(BaseModel):
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None


class CategoryResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProductResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    price: float
    category_id: Optional[str] = None
    stock_quantity: int = 0
    image_urls: List[str] = []
    is_active: bool = True
    featured: bool = False
    weight: Optional[float] = None
    dimensions: Optional[Dimensions] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def primary_image_url(self) -> Optional[str]:
        """First image, captured on order items."""
        return self.image_urls[0] if self.image_urls else None


class ProductList(BaseModel):
    products: List[ProductResponse]
    total: int


class ProductFilters(BaseModel):
    """Browse filters; every field is optional."""
    category_id: Optional[str] = None
    price_min: Optional[float] = Field(None, ge=0)
    price_max: Optional[float] = Field(None, ge=0)
    search: Optional[str] = None
    featured: Optional[bool] = None
    in_stock: Optional[bool] = None
    sort_by: Literal["created_at", "price", "name", "stock_quantity"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"


class ReviewResponse(BaseModel):
    id: str
    product_id: str
    user_id: Optional[str] = None
    reviewer_name: Optional[str] = None
    rating: int
    title: Optional[str] = None
    comment: Optional[str] = None
    verified_purchase: bool = False
    created_at: Optional[datetime] = None


class ReviewSummary(BaseModel):
    """Average rating is 0 when there are no reviews."""
    product_id: str
    average_rating: float = 0.0
    review_count: int = 0
