"""
Admin Data Manager

CRUD over products, categories, orders (update only) and user profiles
(update only) for the admin console.

Lists load every row in a fixed order, then search/filter and paginate in
process (10 rows per page by default). Deletes are two-step: request_delete
hands out a signed confirmation naming the row, confirm_delete only removes
the row when that confirmation comes back.
"""
import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.audit_log import (
    log_admin_action,
    ACTION_CATEGORY_CREATE,
    ACTION_CATEGORY_DELETE,
    ACTION_CATEGORY_UPDATE,
    ACTION_ORDER_UPDATE,
    ACTION_PRODUCT_CREATE,
    ACTION_PRODUCT_DELETE,
    ACTION_PRODUCT_UPDATE,
    ACTION_USER_UPDATE,
)
from storefront.core.config import settings
from storefront.core.exceptions import DeleteNotConfirmed, NotFound, TransientStoreFailure, ValidationFailure
from storefront.core.security import create_delete_confirmation, verify_delete_confirmation
from storefront.core.utils import generate_slug, new_id, utcnow
from storefront.models.category import Category
from storefront.models.order import Order, OrderStatus
from storefront.models.product import Product
from storefront.models.profile import Profile
from storefront.schemas.admin import (
    CategoryCreate,
    CategoryUpdate,
    OrderAdminUpdate,
    ProductCreate,
    ProductUpdate,
    UserAdminUpdate,
)

logger = logging.getLogger(__name__)

RECENT_ORDERS_LIMIT = 5

# Columns a patch may change but never clear
NON_NULLABLE = {
    Product: ("price", "stock_quantity", "image_urls", "is_active", "featured"),
    Category: ("is_active",),
    Order: ("status", "payment_status"),
}

# kind -> (model, audit action, label field)
DELETABLE = {
    "product": (Product, ACTION_PRODUCT_DELETE, "name"),
    "category": (Category, ACTION_CATEGORY_DELETE, "name"),
}


@dataclass
class Page:
    items: List[Any]
    page: int
    page_size: int
    total: int
    total_pages: int


def paginate(rows: List[Any], page: int = 1, page_size: Optional[int] = None) -> Page:
    """Slice one page out of an already filtered list. Page numbers clamp to >= 1."""
    page_size = page_size or settings.ADMIN_PAGE_SIZE
    page = max(1, page or 1)
    total = len(rows)
    start = (page - 1) * page_size
    return Page(
        items=rows[start:start + page_size],
        page=page,
        page_size=page_size,
        total=total,
        total_pages=math.ceil(total / page_size),
    )


def _contains(value: Optional[str], term: str) -> bool:
    return term in (value or "").lower()


class AdminDataManager:
    """All operations run as the given admin and are audit logged."""

    def __init__(self, db: AsyncSession, admin: Profile):
        self.db = db
        self.admin = admin
        # Plain strings, still readable after a rollback expires the Profile
        self.admin_id = admin.id
        self.admin_email = admin.email

    def _audit(self, action: str, resource_type: str, resource_id=None, details=None, success=True):
        log_admin_action(
            action=action,
            user_id=self.admin_id,
            user_email=self.admin_email,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details,
            success=success,
        )

    async def _fetch_all(self, query, label: str) -> List[Any]:
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Admin {label} listing failed: {e}")
            raise TransientStoreFailure(f"Failed to load {label}")
        return list(result.scalars().all())

    async def _get(self, model, row_id: str, label: str):
        try:
            row = await self.db.get(model, row_id)
        except SQLAlchemyError as e:
            logger.error(f"Admin {label} lookup failed for {row_id}: {e}")
            raise TransientStoreFailure(f"Failed to load {label}")
        if row is None:
            raise NotFound(f"{label.capitalize()} not found", details={"id": row_id})
        return row

    async def _commit(self, action: str, resource_type: str, resource_id=None, details=None):
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Admin {action} failed: {e}")
            self._audit(action, resource_type, resource_id, details, success=False)
            raise TransientStoreFailure(f"Failed to save {resource_type}")
        self._audit(action, resource_type, resource_id, details)

    @staticmethod
    def _reject_nulls(model, changes: Dict[str, Any]) -> None:
        cleared = [f for f in NON_NULLABLE.get(model, ()) if f in changes and changes[f] is None]
        if cleared:
            raise ValidationFailure("These fields cannot be empty", missing_fields=cleared)

    async def _slug_taken(self, model, slug: str, exclude_id: Optional[str] = None) -> bool:
        query = select(model.id).where(model.slug == slug)
        if exclude_id:
            query = query.where(model.id != exclude_id)
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Slug check failed for {slug}: {e}")
            raise TransientStoreFailure("Failed to validate slug")
        return result.first() is not None

    async def _resolve_slug(self, model, name: str, slug: Optional[str], exclude_id: Optional[str] = None) -> str:
        slug = (slug or "").strip() or generate_slug(name)
        if not slug:
            raise ValidationFailure("A slug could not be derived from the name", missing_fields=["slug"])
        if await self._slug_taken(model, slug, exclude_id):
            raise ValidationFailure(
                f"Slug '{slug}' is already in use",
                details={"slug": slug},
            )
        return slug

    @staticmethod
    def slug_preview(name: str) -> str:
        return generate_slug(name)

    # ----- lists -----

    async def list_products(
        self,
        search: Optional[str] = None,
        category_id: Optional[str] = None,
        page: int = 1,
    ) -> Page:
        rows = await self._fetch_all(select(Product).order_by(Product.created_at.desc()), "products")
        if search:
            term = search.lower()
            rows = [p for p in rows if _contains(p.name, term)]
        if category_id:
            rows = [p for p in rows if p.category_id == category_id]
        return paginate(rows, page)

    async def list_categories(
        self,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
    ) -> Page:
        rows = await self._fetch_all(select(Category).order_by(Category.name.asc()), "categories")
        if search:
            term = search.lower()
            rows = [c for c in rows if _contains(c.name, term)]
        if is_active is not None:
            rows = [c for c in rows if bool(c.is_active) == is_active]
        return paginate(rows, page)

    async def list_orders(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
    ) -> Page:
        rows = await self._fetch_all(select(Order).order_by(Order.created_at.desc()), "orders")
        if search:
            term = search.lower()
            rows = [o for o in rows if _contains(o.id, term)]
        if status:
            rows = [o for o in rows if o.status == status]
        return paginate(rows, page)

    async def list_users(
        self,
        search: Optional[str] = None,
        role: Optional[str] = None,
        page: int = 1,
    ) -> Page:
        rows = await self._fetch_all(select(Profile).order_by(Profile.created_at.desc()), "users")
        if search:
            term = search.lower()
            rows = [u for u in rows if _contains(u.full_name, term) or _contains(u.email, term)]
        if role:
            rows = [u for u in rows if u.role == role]
        return paginate(rows, page)

    # ----- products -----

    async def create_product(self, data: ProductCreate) -> Product:
        values = data.model_dump()
        values["slug"] = await self._resolve_slug(Product, data.name, data.slug)
        product = Product(id=new_id(), **values)
        self.db.add(product)
        await self._commit(
            ACTION_PRODUCT_CREATE, "product", product.id,
            {"name": product.name, "slug": product.slug},
        )
        return product

    async def update_product(self, product_id: str, data: ProductUpdate) -> Product:
        product = await self._get(Product, product_id, "product")
        changes = data.model_dump(exclude_unset=True)
        await self._apply_named_changes(Product, product, changes)
        await self._commit(ACTION_PRODUCT_UPDATE, "product", product.id, changes)
        return product

    # ----- categories -----

    async def create_category(self, data: CategoryCreate) -> Category:
        values = data.model_dump()
        values["slug"] = await self._resolve_slug(Category, data.name, data.slug)
        category = Category(id=new_id(), **values)
        self.db.add(category)
        await self._commit(
            ACTION_CATEGORY_CREATE, "category", category.id,
            {"name": category.name, "slug": category.slug},
        )
        return category

    async def update_category(self, category_id: str, data: CategoryUpdate) -> Category:
        category = await self._get(Category, category_id, "category")
        changes = data.model_dump(exclude_unset=True)
        await self._apply_named_changes(Category, category, changes)
        await self._commit(ACTION_CATEGORY_UPDATE, "category", category.id, changes)
        return category

    async def _apply_named_changes(self, model, row, changes: Dict[str, Any]) -> None:
        """
        Patch a product or category.

        The stored slug never follows a renamed entity; it only changes when
        a non-empty slug is sent explicitly.
        """
        self._reject_nulls(model, changes)
        if "name" in changes:
            name = (changes["name"] or "").strip()
            if not name:
                raise ValidationFailure(missing_fields=["name"])
            changes["name"] = name
        if "slug" in changes:
            slug = (changes.pop("slug") or "").strip()
            if slug and slug != row.slug:
                if await self._slug_taken(model, slug, exclude_id=row.id):
                    raise ValidationFailure(f"Slug '{slug}' is already in use", details={"slug": slug})
                changes["slug"] = slug
        for field, value in changes.items():
            setattr(row, field, value)
        row.updated_at = utcnow()

    # ----- orders & users -----

    async def update_order(self, order_id: str, data: OrderAdminUpdate) -> Order:
        order = await self._get(Order, order_id, "order")
        changes = data.model_dump(exclude_unset=True, mode="json")
        self._reject_nulls(Order, changes)
        cancelled = OrderStatus.CANCELLED.value
        if order.status == cancelled and changes.get("status", cancelled) != cancelled:
            raise ValidationFailure(
                "Cancelled orders cannot be reopened",
                details={"order_id": order.id, "status": changes["status"]},
            )
        for field, value in changes.items():
            setattr(order, field, value)
        order.updated_at = utcnow()
        await self._commit(ACTION_ORDER_UPDATE, "order", order.id, changes)
        return order

    async def update_user(self, user_id: str, data: UserAdminUpdate) -> Profile:
        user = await self._get(Profile, user_id, "user")
        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(user, field, value)
        user.updated_at = utcnow()
        await self._commit(ACTION_USER_UPDATE, "user", user.id, changes)
        return user

    # ----- deletes -----

    def _deletable(self, kind: str):
        if kind not in DELETABLE:
            raise NotFound(f"Unknown resource type '{kind}'", details={"kind": kind})
        return DELETABLE[kind]

    async def request_delete(self, kind: str, target_id: str) -> Dict[str, Any]:
        """First step: name the target and issue a confirmation for it. Nothing is removed."""
        model, _, label_field = self._deletable(kind)
        row = await self._get(model, target_id, kind)
        name = getattr(row, label_field)
        return {
            "kind": kind,
            "target_id": row.id,
            "target_name": name,
            "confirmation_token": create_delete_confirmation(kind, row.id, self.admin_id),
            "expires_in": settings.DELETE_CONFIRMATION_TTL_SECONDS,
            "message": f"Are you sure you want to delete {kind} '{name}'?",
        }

    async def confirm_delete(self, kind: str, target_id: str, confirmation_token: Optional[str]) -> Dict[str, Any]:
        """Second step: delete only with a confirmation issued for this exact row."""
        model, action, label_field = self._deletable(kind)
        if not verify_delete_confirmation(confirmation_token, kind, target_id, self.admin_id):
            logger.warning(f"Unconfirmed delete of {kind}/{target_id} by {self.admin_email}")
            raise DeleteNotConfirmed(
                "Delete was not confirmed",
                details={"kind": kind, "target_id": target_id},
            )

        row = await self._get(model, target_id, kind)
        name = getattr(row, label_field)
        try:
            await self.db.delete(row)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Admin delete of {kind}/{target_id} failed: {e}")
            raise TransientStoreFailure(f"Failed to delete {kind}")
        await self._commit(action, kind, target_id, {"name": name})
        return {
            "kind": kind,
            "target_id": target_id,
            "deleted": True,
            "message": f"{kind.capitalize()} deleted successfully",
        }

    # ----- dashboard -----

    async def dashboard_stats(self) -> Dict[str, Any]:
        try:
            total_products = await self.db.scalar(select(func.count(Product.id)))
            total_orders = await self.db.scalar(select(func.count(Order.id)))
            total_users = await self.db.scalar(select(func.count(Profile.id)))
            revenue = await self.db.scalar(select(func.coalesce(func.sum(Order.total_amount), 0)))
            result = await self.db.execute(
                select(Order).order_by(Order.created_at.desc()).limit(RECENT_ORDERS_LIMIT)
            )
            recent = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Dashboard stats query failed: {e}")
            raise TransientStoreFailure("Failed to load dashboard")

        return {
            "total_products": total_products or 0,
            "total_orders": total_orders or 0,
            "total_users": total_users or 0,
            "total_revenue": float(Decimal(str(revenue or 0))),
            "recent_orders": recent,
            "generated_at": utcnow(),
        }
