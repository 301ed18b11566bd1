"""
Product model

category_id is a plain reference: deleting a category leaves its products
pointing at nothing, and the client shows "No Category".
"""
from sqlalchemy import Column, String, Boolean, DateTime, Text, JSON, Integer, Numeric, Float, CheckConstraint

from storefront.core.database import Base
from storefront.core.utils import new_id, utcnow


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False, index=True)
    slug = Column(String, unique=True, nullable=False, index=True)
    description = Column(Text)

    price = Column(Numeric(12, 2), nullable=False, default=0)
    category_id = Column(String(36), nullable=True, index=True)

    stock_quantity = Column(Integer, nullable=False, default=0)

    image_urls = Column(JSON, default=list)
    is_active = Column(Boolean, default=True, index=True)
    featured = Column(Boolean, default=False, index=True)

    # Shipping attributes
    weight = Column(Float)
    dimensions = Column(JSON)  # length, width, height

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="check_stock_non_negative"),
        CheckConstraint("price >= 0", name="check_price_non_negative"),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, slug='{self.slug}')>"
