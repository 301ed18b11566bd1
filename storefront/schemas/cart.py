"""
Cart schemas
"""
from typing import List, Optional
from pydantic import BaseModel, Field

from storefront.schemas.catalog import ProductResponse


class CartItemCreate(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1)


class CartItemUpdate(BaseModel):
    quantity: int


class CartItemResponse(BaseModel):
    id: str
    product_id: str
    product: Optional[ProductResponse] = None
    quantity: int
    line_total: float = 0.0

    class Config:
        from_attributes = True


class CartResponse(BaseModel):
    items: List[CartItemResponse]
    item_count: int
    subtotal: float
    subtotal_display: str


class CartMutationResponse(BaseModel):
    message: str
    cart: CartResponse
