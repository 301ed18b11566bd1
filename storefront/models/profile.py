"""
Profile model

One row per identity-provider user. The id is the provider's user id, so
no local credentials are stored.
"""
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.orm import relationship

from storefront.core.database import Base
from storefront.core.utils import utcnow

ROLE_USER = "user"
ROLE_ADMIN = "admin"


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String)
    role = Column(String(20), nullable=False, default=ROLE_USER, index=True)
    avatar_url = Column(String)
    phone = Column(String(50))
    address = Column(JSON)  # street, city, state, zip, country

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    orders = relationship("Order", back_populates="user")
    cart_items = relationship("CartItem", back_populates="user")

    def __repr__(self):
        return f"<Profile(id={self.id}, email='{self.email}')>"

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
