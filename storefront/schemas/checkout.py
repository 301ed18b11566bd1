"""
Checkout schemas

Card fields are only checked for presence; they are never stored.
"""
from typing import List, Optional
from pydantic import BaseModel

from storefront.schemas.order import Address

SHIPPING_FIELDS = ("shipping_street", "shipping_city", "shipping_state", "shipping_zip")
BILLING_FIELDS = ("billing_street", "billing_city", "billing_state", "billing_zip")
PAYMENT_FIELDS = ("card_number", "card_expiry", "card_cvc", "card_name")


class CheckoutForm(BaseModel):
    # Shipping Address
    shipping_street: str = ""
    shipping_city: str = ""
    shipping_state: str = ""
    shipping_zip: str = ""
    shipping_country: str = "United States"

    # Billing Address
    same_as_shipping: bool = True
    billing_street: str = ""
    billing_city: str = ""
    billing_state: str = ""
    billing_zip: str = ""
    billing_country: str = "United States"

    # Payment
    payment_method: str = "credit_card"
    card_number: str = ""
    card_expiry: str = ""
    card_cvc: str = ""
    card_name: str = ""

    notes: Optional[str] = None

    def missing_fields(self) -> List[str]:
        """Required fields left blank, in form order."""
        required = list(SHIPPING_FIELDS)
        if not self.same_as_shipping:
            required.extend(BILLING_FIELDS)
        required.extend(PAYMENT_FIELDS)
        return [name for name in required if not str(getattr(self, name) or "").strip()]

    def shipping_address(self) -> Address:
        return Address(
            street=self.shipping_street,
            city=self.shipping_city,
            state=self.shipping_state,
            zip=self.shipping_zip,
            country=self.shipping_country,
        )

    def billing_address(self) -> Address:
        if self.same_as_shipping:
            return self.shipping_address()
        return Address(
            street=self.billing_street,
            city=self.billing_city,
            state=self.billing_state,
            zip=self.billing_zip,
            country=self.billing_country,
        )


class CheckoutResponse(BaseModel):
    order_id: str
    status: str
    payment_status: str
    total_amount: float
    total_display: str
    cart_cleared: bool = True
    message: str = "Order placed successfully!"
    redirect_to: str = "/profile?tab=orders"
