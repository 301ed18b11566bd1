"""
Admin console schemas
"""
from datetime import datetime
from typing import Optional, List, Literal
from pydantic import BaseModel, Field, field_validator

from storefront.models.order import OrderStatus, PaymentStatus
from storefront.schemas.catalog import CategoryResponse, Dimensions, ProductResponse
from storefront.schemas.order import OrderSummary
from storefront.schemas.profile import ProfileResponse

DeleteKind = Literal["product", "category"]


# ----- Products -----

class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    slug: Optional[str] = None
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    category_id: Optional[str] = None
    stock_quantity: int = Field(0, ge=0)
    image_urls: List[str] = []
    is_active: bool = True
    featured: bool = False
    weight: Optional[float] = None
    dimensions: Optional[Dimensions] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        if not v.strip():
            raise ValueError("name is required")
        return v.strip()


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    category_id: Optional[str] = None
    stock_quantity: Optional[int] = Field(None, ge=0)
    image_urls: Optional[List[str]] = None
    is_active: Optional[bool] = None
    featured: Optional[bool] = None
    weight: Optional[float] = None
    dimensions: Optional[Dimensions] = None


# ----- Categories -----

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1)
    slug: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        if not v.strip():
            raise ValueError("name is required")
        return v.strip()


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: Optional[bool] = None


# ----- Orders & users (update only) -----

class OrderAdminUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    tracking_number: Optional[str] = None
    notes: Optional[str] = None


class UserAdminUpdate(BaseModel):
    full_name: Optional[str] = None
    role: Optional[Literal["user", "admin"]] = None
    phone: Optional[str] = None


# ----- Pages -----

class PageInfo(BaseModel):
    page: int
    page_size: int
    total: int
    total_pages: int


class ProductPage(PageInfo):
    products: List[ProductResponse]


class CategoryPage(PageInfo):
    categories: List[CategoryResponse]


class OrderPage(PageInfo):
    orders: List[OrderSummary]


class UserPage(PageInfo):
    users: List[ProfileResponse]


# ----- Delete confirmation -----

class DeleteIntentResponse(BaseModel):
    kind: str
    target_id: str
    target_name: str
    confirmation_token: str
    expires_in: int
    message: str


class DeleteResult(BaseModel):
    kind: str
    target_id: str
    deleted: bool = True
    message: str


class SlugPreview(BaseModel):
    name: str
    slug: str


class DashboardStats(BaseModel):
    total_products: int
    total_orders: int
    total_users: int
    total_revenue: float
    recent_orders: List[OrderSummary]
    generated_at: datetime
