"""
Checkout Orchestrator

Turns a non-empty cart into a persisted order.

- Order header, order items and stock decrements commit in one transaction.
  Product rows are locked (SELECT .. FOR UPDATE) before the floored decrement.
- Payment settlement is a separate step keyed by order id and is idempotent,
  so an owner can retry it.
- If settlement fails the order is cancelled and exactly the stock taken by
  this checkout is put back.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.exceptions import (
    AuthRequired,
    CartEmpty,
    NotFound,
    PartialCheckoutFailure,
    TransientStoreFailure,
    ValidationFailure,
)
from storefront.core.utils import utcnow
from storefront.models.order import Order, OrderItem, OrderStatus, PaymentStatus
from storefront.models.product import Product
from storefront.schemas.checkout import CheckoutForm
from storefront.services import pricing
from storefront.services.cart_store import CartLine, CartStore

logger = logging.getLogger(__name__)

ORDER_FAILED_MESSAGE = "Failed to place order. Please try again."
ORDER_PLACED_MESSAGE = "Order placed successfully!"
ORDER_CONFIRMATION_PATH = "/profile?tab=orders"


@dataclass
class CheckoutResult:
    order_id: str
    total_amount: Decimal
    status: str
    payment_status: str
    cart_cleared: bool = True
    message: str = ORDER_PLACED_MESSAGE
    redirect_to: str = ORDER_CONFIRMATION_PATH


class CheckoutOrchestrator:
    """Runs checkout for the identity bound to a CartStore."""

    def __init__(self, db: AsyncSession, cart: CartStore):
        self.db = db
        self.cart = cart

    async def place_order(self, form: CheckoutForm) -> CheckoutResult:
        start_time = time.time()

        # Preconditions: nothing is written if these fail
        if self.cart.user_id is None:
            raise AuthRequired()
        lines = [line for line in self.cart.items if line.product is not None]
        if not lines:
            raise CartEmpty()

        missing = form.missing_fields()
        if missing:
            raise ValidationFailure(missing_fields=missing)

        user_id = self.cart.user_id
        subtotal = self.cart.total_price()
        total = pricing.order_total(subtotal)

        order_id, restock = await self._record_order(user_id, form, lines, total)

        try:
            order = await self.settle_payment(order_id)
        except TransientStoreFailure as e:
            logger.error(f"Payment settlement failed for order {order_id}: {e.message}")
            compensated = await self._compensate(order_id, restock)
            raise PartialCheckoutFailure(order_id=order_id, compensated=compensated)
        status, payment_status = order.status, order.payment_status

        cart_cleared = True
        try:
            await self.cart.clear()
        except TransientStoreFailure:
            cart_cleared = False
            logger.warning(f"Order {order_id} placed but cart for user {user_id} was not cleared")

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"CHECKOUT_METRIC: order_placed "
            f"user_id={user_id} "
            f"order_id={order_id} "
            f"total={total} "
            f"item_count={len(lines)} "
            f"duration_ms={duration_ms:.2f}"
        )

        return CheckoutResult(
            order_id=order_id,
            total_amount=total,
            status=status,
            payment_status=payment_status,
            cart_cleared=cart_cleared,
        )

    async def _record_order(
        self,
        user_id: str,
        form: CheckoutForm,
        lines: List[CartLine],
        total: Decimal,
    ):
        """Insert header + items and take stock, all or nothing."""
        shipping = form.shipping_address().model_dump()
        billing = form.billing_address().model_dump()
        try:
            order = Order(
                user_id=user_id,
                status=OrderStatus.PENDING.value,
                payment_status=PaymentStatus.PENDING.value,
                total_amount=total,
                shipping_address=shipping,
                billing_address=billing,
                payment_method=form.payment_method,
                notes=form.notes,
            )
            self.db.add(order)
            await self.db.flush()

            for line in lines:
                product = line.product
                self.db.add(OrderItem(
                    order_id=order.id,
                    product_id=line.product_id,
                    product_name=product.name,
                    product_image_url=product.primary_image_url,
                    price=pricing.to_money(product.price),
                    quantity=line.quantity,
                ))

            restock = await self._take_stock(lines)
            order_id = order.id
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Order creation failed for user {user_id}: {e}")
            raise TransientStoreFailure(ORDER_FAILED_MESSAGE, details={"operation": "checkout"})

        logger.info(f"Order {order_id} recorded for user {user_id}: total={total}")
        return order_id, restock

    async def _take_stock(self, lines: List[CartLine]) -> Dict[str, int]:
        """
        Decrement stock for each line, floored at zero.

        Returns the amount actually taken per product; that is what
        compensation puts back.
        """
        taken: Dict[str, int] = {}
        for line in lines:
            result = await self.db.execute(
                select(Product)
                .where(Product.id == line.product_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            product = result.scalar_one_or_none()
            if product is None:
                continue
            amount = min(product.stock_quantity, line.quantity)
            product.stock_quantity = product.stock_quantity - amount
            product.updated_at = utcnow()
            if amount:
                taken[product.id] = taken.get(product.id, 0) + amount
        return taken

    async def settle_payment(self, order_id: str, user_id: Optional[str] = None) -> Order:
        """
        Simulated payment: fixed delay, always succeeds.

        No-op for an order that is already paid. When user_id is given the
        order must belong to that user.
        """
        try:
            query = (
                select(Order)
                .where(Order.id == order_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            if user_id is not None:
                query = query.where(Order.user_id == user_id)
            result = await self.db.execute(query)
            order = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Could not load order {order_id} for settlement: {e}")
            raise TransientStoreFailure(ORDER_FAILED_MESSAGE, details={"operation": "settle"})

        if order is None:
            raise NotFound("Order not found", details={"order_id": order_id})
        if order.payment_status == PaymentStatus.PAID.value:
            logger.info(f"Order {order_id} already paid, settlement skipped")
            return order
        if order.status == OrderStatus.CANCELLED.value:
            raise ValidationFailure(
                "This order was cancelled and cannot be paid",
                details={"order_id": order_id},
            )

        await asyncio.sleep(settings.PAYMENT_SIMULATION_DELAY_SECONDS)

        try:
            order.payment_status = PaymentStatus.PAID.value
            order.status = OrderStatus.PROCESSING.value
            order.updated_at = utcnow()
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Payment settlement write failed for order {order_id}: {e}")
            raise TransientStoreFailure(ORDER_FAILED_MESSAGE, details={"operation": "settle"})

        logger.info(f"Order {order_id} paid")
        return order

    async def _compensate(self, order_id: str, restock: Dict[str, int]) -> bool:
        """Cancel the order and return the stock it took."""
        try:
            await self.db.execute(
                update(Order)
                .where(Order.id == order_id)
                .values(
                    status=OrderStatus.CANCELLED.value,
                    payment_status=PaymentStatus.FAILED.value,
                    updated_at=utcnow(),
                )
            )
            for product_id, amount in restock.items():
                await self.db.execute(
                    update(Product)
                    .where(Product.id == product_id)
                    .values(stock_quantity=Product.stock_quantity + amount)
                )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                f"Compensation failed for order {order_id}, manual repair required "
                f"(restock={restock}): {e}"
            )
            return False

        logger.warning(f"Order {order_id} cancelled and stock restored: {restock}")
        return True
