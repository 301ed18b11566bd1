"""
Order routes (order history for the signed-in user)
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.api.deps import get_current_user
from storefront.core.database import get_db
from storefront.core.exceptions import NotFound, TransientStoreFailure
from storefront.models.order import Order
from storefront.models.profile import Profile
from storefront.schemas.order import OrderList, OrderResponse
from storefront.services.cart_store import CartStore
from storefront.services.checkout_orchestrator import CheckoutOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


async def load_own_order(db: AsyncSession, order_id: str, user_id: str) -> Order:
    try:
        result = await db.execute(
            select(Order)
            .where(Order.id == order_id, Order.user_id == user_id)
            .options(selectinload(Order.items))
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error(f"Order lookup failed for {order_id}: {e}")
        raise TransientStoreFailure("Failed to load order")

    if not order:
        raise NotFound("Order not found", details={"order_id": order_id})
    return order


@router.get("", response_model=OrderList)
async def list_orders(
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Current user's orders, newest first, with their items"""
    try:
        result = await db.execute(
            select(Order)
            .where(Order.user_id == user.id)
            .options(selectinload(Order.items))
            .order_by(Order.created_at.desc())
        )
        orders = result.scalars().all()
    except SQLAlchemyError as e:
        logger.error(f"[orders] Listing failed for user {user.id}: {e}")
        raise TransientStoreFailure("Failed to load orders")

    logger.info(f"[orders] User {user.id} has {len(orders)} orders")
    return OrderList(orders=orders, total=len(orders))


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await load_own_order(db, order_id, user.id)


@router.post("/{order_id}/settle", response_model=OrderResponse)
async def settle_order(
    order_id: str,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Retry payment settlement. Already-paid orders are returned unchanged."""
    orchestrator = CheckoutOrchestrator(db, CartStore(db, user))
    await orchestrator.settle_payment(order_id, user_id=user.id)
    return await load_own_order(db, order_id, user.id)
