"""
Cart Store

Holds one user's cart as materialized lines (cart row joined with the current
product) and keeps it in step with the cart_items table.

A store is built per request with an explicit session and identity:

    store = CartStore(db)
    await store.attach(user)     # initialize + load
    ...
    store.detach()               # identity cleared

Adding an existing product is a single INSERT .. ON CONFLICT DO UPDATE so
concurrent adds for the same (user, product) never lose an increment.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, delete, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import AuthRequired, NotFound, TransientStoreFailure, ValidationFailure
from storefront.core.utils import utcnow
from storefront.models.cart import CartItem
from storefront.models.product import Product
from storefront.models.profile import Profile
from storefront.schemas.catalog import ProductResponse
from storefront.services import pricing

logger = logging.getLogger(__name__)


@dataclass
class CartLine:
    """A cart row joined with its product. product is None once deleted."""
    id: str
    product_id: str
    quantity: int
    product: Optional[ProductResponse] = None

    @property
    def line_total(self) -> Decimal:
        if self.product is None:
            return Decimal("0.00")
        return pricing.line_total(self.product.price, self.quantity)


class CartStore:
    """Per-request cart state for one identity."""

    def __init__(self, db: AsyncSession, user: Optional[Profile] = None):
        self.db = db
        self.items: List[CartLine] = []
        self._bind(user)

    def _bind(self, user: Optional[Profile]) -> None:
        # Plain string, still readable after a rollback expires the Profile
        self.user = user
        self._user_id = user.id if user is not None else None

    # ----- lifecycle -----

    async def attach(self, user: Optional[Profile]) -> List[CartLine]:
        """Bind the store to an identity and load its cart."""
        self._bind(user)
        self.items = []
        return await self.load()

    def detach(self) -> None:
        """Drop identity and in-memory lines."""
        self._bind(None)
        self.items = []

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    def _require_user(self, message: str = "Please login to continue") -> str:
        if self._user_id is None:
            raise AuthRequired(message)
        return self._user_id

    async def _fail(self, operation: str, message: str, exc: Exception) -> TransientStoreFailure:
        user_id = self.user_id
        await self.db.rollback()
        logger.error(f"Cart {operation} failed for user {user_id}: {exc}")
        return TransientStoreFailure(message, details={"operation": operation})

    # ----- reads -----

    async def load(self) -> List[CartLine]:
        """
        Fetch the user's cart rows, then their products in one batch.

        In-memory lines are only replaced once both reads succeed.
        """
        if self._user_id is None:
            self.items = []
            return self.items

        try:
            result = await self.db.execute(
                select(CartItem)
                .where(CartItem.user_id == self._user_id)
                .order_by(CartItem.created_at)
                .execution_options(populate_existing=True)
            )
            rows = result.scalars().all()

            products = {}
            product_ids = list({row.product_id for row in rows})
            if product_ids:
                result = await self.db.execute(
                    select(Product)
                    .where(Product.id.in_(product_ids))
                    .execution_options(populate_existing=True)
                )
                products = {
                    p.id: ProductResponse.model_validate(p)
                    for p in result.scalars().all()
                }
        except SQLAlchemyError as e:
            raise await self._fail("load", "Failed to load cart", e)

        self.items = [
            CartLine(
                id=row.id,
                product_id=row.product_id,
                quantity=row.quantity,
                product=products.get(row.product_id),
            )
            for row in rows
        ]
        return self.items

    def total_item_count(self) -> int:
        return pricing.total_item_count(self.items)

    def total_price(self) -> Decimal:
        return pricing.cart_subtotal(self.items)

    def is_empty(self) -> bool:
        return not self.items

    # ----- writes -----

    def _upsert(self, user_id: str, product_id: str, quantity: int):
        dialect = self.db.get_bind().dialect.name
        insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
        stmt = insert(CartItem).values(
            user_id=user_id,
            product_id=product_id,
            quantity=quantity,
        )
        return stmt.on_conflict_do_update(
            index_elements=["user_id", "product_id"],
            set_={
                "quantity": CartItem.quantity + stmt.excluded.quantity,
                "updated_at": utcnow(),
            },
        )

    async def add(self, product_id: str, quantity: int = 1) -> str:
        """Add a product, incrementing the existing line if present."""
        user_id = self._require_user("Please login to add items to cart")
        if quantity < 1:
            raise ValidationFailure("Quantity must be at least 1", details={"quantity": quantity})

        try:
            result = await self.db.execute(select(Product.id).where(Product.id == product_id))
            if result.scalar_one_or_none() is None:
                raise NotFound("Product not found", details={"product_id": product_id})

            await self.db.execute(self._upsert(user_id, product_id, quantity))
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._fail("add", "Failed to add item to cart", e)

        logger.info(f"Cart add: user={user_id} product={product_id} qty={quantity}")
        await self.load()
        return "Item added to cart!"

    async def remove(self, item_id: str) -> str:
        user_id = self._require_user()
        try:
            await self.db.execute(
                delete(CartItem).where(CartItem.id == item_id, CartItem.user_id == user_id)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._fail("remove", "Failed to remove item from cart", e)

        await self.load()
        return "Item removed from cart"

    async def set_quantity(self, item_id: str, quantity: int) -> str:
        """Set a line's quantity; zero or less removes the line."""
        if quantity <= 0:
            return await self.remove(item_id)

        user_id = self._require_user()
        try:
            await self.db.execute(
                update(CartItem)
                .where(CartItem.id == item_id, CartItem.user_id == user_id)
                .values(quantity=quantity, updated_at=utcnow())
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._fail("update", "Failed to update cart", e)

        await self.load()
        return "Cart updated"

    async def clear(self) -> None:
        """Delete every line the user owns. No reload round-trip."""
        if self._user_id is None:
            self.items = []
            return
        try:
            await self.db.execute(delete(CartItem).where(CartItem.user_id == self._user_id))
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._fail("clear", "Failed to clear cart", e)
        self.items = []
