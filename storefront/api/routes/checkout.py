"""
Checkout route

Rate limited per client IP. Payment is simulated; card fields are checked
for presence only and never stored.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import get_cart_store
from storefront.core.config import settings
from storefront.core.database import get_db
from storefront.core.rate_limit import limiter
from storefront.schemas.checkout import CheckoutForm, CheckoutResponse
from storefront.services.cart_store import CartStore
from storefront.services.checkout_orchestrator import CheckoutOrchestrator
from storefront.services.pricing import format_price

router = APIRouter()


@router.post("/checkout", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_CHECKOUT)
async def place_order(
    request: Request,
    form: CheckoutForm,
    store: CartStore = Depends(get_cart_store),
    db: AsyncSession = Depends(get_db)
):
    """Turn the caller's cart into a paid order"""
    result = await CheckoutOrchestrator(db, store).place_order(form)
    return CheckoutResponse(
        order_id=result.order_id,
        status=result.status,
        payment_status=result.payment_status,
        total_amount=float(result.total_amount),
        total_display=format_price(result.total_amount),
        cart_cleared=result.cart_cleared,
        message=result.message,
        redirect_to=result.redirect_to,
    )
