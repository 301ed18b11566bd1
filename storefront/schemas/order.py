"""
Order schemas
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel


class Address(BaseModel):
    street: str
    city: str
    state: str
    zip: str
    country: str = "United States"


class OrderItemResponse(BaseModel):
    id: str
    product_id: Optional[str] = None
    product_name: str
    product_image_url: Optional[str] = None
    price: float
    quantity: int

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    status: str
    payment_status: str
    total_amount: float
    shipping_address: Address
    billing_address: Optional[Address] = None
    payment_method: Optional[str] = None
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    items: List[OrderItemResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderSummary(BaseModel):
    """Order header without items (admin tables, dashboard)."""
    id: str
    user_id: Optional[str] = None
    status: str
    payment_status: str
    total_amount: float
    tracking_number: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderList(BaseModel):
    orders: List[OrderResponse]
    total: int
