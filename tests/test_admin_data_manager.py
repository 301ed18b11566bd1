"""
Tests for the Admin Data Manager.
"""
import logging
from datetime import timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from storefront.core.exceptions import DeleteNotConfirmed, NotFound, TransientStoreFailure, ValidationFailure
from storefront.core.utils import utcnow
from storefront.models import Category, Order, Product
from storefront.schemas.admin import (
    CategoryCreate,
    CategoryUpdate,
    OrderAdminUpdate,
    ProductCreate,
    ProductUpdate,
    UserAdminUpdate,
)
from storefront.services.admin_data_manager import AdminDataManager, paginate


class TestPaginate:
    def test_pages_of_ten(self):
        page = paginate(list(range(23)), page=3)
        assert page.items == [20, 21, 22]
        assert page.total == 23
        assert page.total_pages == 3

    @pytest.mark.parametrize("requested", [0, -4])
    def test_page_clamps_to_one(self, requested):
        page = paginate(list(range(15)), page=requested)
        assert page.page == 1
        assert page.items == list(range(10))

    def test_empty(self):
        page = paginate([], page=1)
        assert page.items == []
        assert page.total_pages == 0

    def test_past_the_end(self):
        assert paginate(list(range(5)), page=4).items == []


class TestSlugs:
    @pytest.mark.asyncio
    async def test_create_derives_slug_and_edit_keeps_it(self, db_session, make_profile):
        admin = await make_profile(role="admin")
        manager = AdminDataManager(db_session, admin)

        category = await manager.create_category(CategoryCreate(name="Men's T-Shirts!!"))
        assert category.slug == "men-s-t-shirts"

        updated = await manager.update_category(category.id, CategoryUpdate(name="Women's Hoodies"))
        assert updated.name == "Women's Hoodies"
        assert updated.slug == "men-s-t-shirts"

    @pytest.mark.asyncio
    async def test_explicit_slug_on_edit(self, db_session, make_profile):
        admin = await make_profile(role="admin")
        manager = AdminDataManager(db_session, admin)
        category = await manager.create_category(CategoryCreate(name="Posters"))

        updated = await manager.update_category(category.id, CategoryUpdate(slug="wall-art"))

        assert updated.slug == "wall-art"

    @pytest.mark.asyncio
    async def test_explicit_slug_on_create_wins(self, db_session, make_profile):
        admin = await make_profile(role="admin")
        manager = AdminDataManager(db_session, admin)

        product = await manager.create_product(ProductCreate(name="Deluxe Box Set", slug="box-set", price=59.99))

        assert product.slug == "box-set"

    @pytest.mark.asyncio
    async def test_duplicate_slug_rejected(self, db_session, make_profile):
        admin = await make_profile(role="admin")
        manager = AdminDataManager(db_session, admin)
        await manager.create_product(ProductCreate(name="Sticker Pack", price=3))

        with pytest.raises(ValidationFailure):
            await manager.create_product(ProductCreate(name="Sticker pack!", price=4))

    @pytest.mark.asyncio
    async def test_underivable_slug(self, db_session, make_profile):
        admin = await make_profile(role="admin")
        manager = AdminDataManager(db_session, admin)

        with pytest.raises(ValidationFailure) as exc_info:
            await manager.create_category(CategoryCreate(name="!!!"))

        assert exc_info.value.missing_fields == ["slug"]

    def test_slug_preview(self):
        assert AdminDataManager.slug_preview("Men's T-Shirts!!") == "men-s-t-shirts"


class TestDelete:
    @pytest.mark.asyncio
    async def test_intent_alone_does_not_delete(self, db_session, make_profile, make_product):
        admin = await make_profile(role="admin")
        product = await make_product(name="Keep Me")
        manager = AdminDataManager(db_session, admin)

        intent = await manager.request_delete("product", product.id)

        assert intent["target_name"] == "Keep Me"
        assert "Keep Me" in intent["message"]
        assert intent["confirmation_token"]
        assert await db_session.get(Product, product.id) is not None

    @pytest.mark.asyncio
    async def test_delete_without_confirmation_rejected(self, db_session, make_profile, make_product):
        admin = await make_profile(role="admin")
        product = await make_product()
        manager = AdminDataManager(db_session, admin)

        with pytest.raises(DeleteNotConfirmed):
            await manager.confirm_delete("product", product.id, None)

        assert await db_session.get(Product, product.id) is not None

    @pytest.mark.asyncio
    async def test_confirmation_for_other_row_rejected(self, db_session, make_profile, make_product):
        admin = await make_profile(role="admin")
        first = await make_product()
        second = await make_product()
        manager = AdminDataManager(db_session, admin)
        intent = await manager.request_delete("product", first.id)

        with pytest.raises(DeleteNotConfirmed):
            await manager.confirm_delete("product", second.id, intent["confirmation_token"])

        assert await db_session.get(Product, second.id) is not None

    @pytest.mark.asyncio
    async def test_confirmed_delete(self, db_session, make_profile, make_product):
        admin = await make_profile(role="admin")
        product = await make_product()
        manager = AdminDataManager(db_session, admin)
        intent = await manager.request_delete("product", product.id)

        result = await manager.confirm_delete("product", product.id, intent["confirmation_token"])

        assert result["deleted"] is True
        result = await db_session.execute(select(Product).where(Product.id == product.id))
        assert result.scalar_one_or_none() is None

    @pytest.mark.asyncio
    async def test_category_delete_leaves_products(self, db_session, make_profile, make_category, make_product):
        admin = await make_profile(role="admin")
        category = await make_category("Figures")
        product = await make_product(category_id=category.id)
        manager = AdminDataManager(db_session, admin)
        intent = await manager.request_delete("category", category.id)

        await manager.confirm_delete("category", category.id, intent["confirmation_token"])

        remaining = await db_session.get(Product, product.id)
        assert remaining is not None
        assert remaining.category_id == category.id
        assert await db_session.get(Category, category.id) is None

    @pytest.mark.asyncio
    async def test_unknown_kind(self, db_session, make_profile):
        admin = await make_profile(role="admin")
        with pytest.raises(NotFound):
            await AdminDataManager(db_session, admin).request_delete("order", "x")


class TestLists:
    @pytest.mark.asyncio
    async def test_products_newest_first_and_paged(self, db_session, make_profile, make_product):
        admin = await make_profile(role="admin")
        products = [await make_product() for _ in range(12)]
        manager = AdminDataManager(db_session, admin)

        first_page = await manager.list_products(page=1)
        second_page = await manager.list_products(page=2)

        assert first_page.total == 12
        assert first_page.total_pages == 2
        assert first_page.items[0].id == products[-1].id
        assert len(second_page.items) == 2
        assert second_page.items[-1].id == products[0].id

    @pytest.mark.asyncio
    async def test_products_search_and_category_filter(self, db_session, make_profile, make_product):
        admin = await make_profile(role="admin")
        await make_product(name="Blue Mug", category_id="cat-a")
        await make_product(name="Red Mug", category_id="cat-b")
        await make_product(name="Blue Poster", category_id="cat-a")
        manager = AdminDataManager(db_session, admin)

        mugs = await manager.list_products(search="MUG")
        blue_a = await manager.list_products(search="blue", category_id="cat-a")

        assert {p.name for p in mugs.items} == {"Blue Mug", "Red Mug"}
        assert {p.name for p in blue_a.items} == {"Blue Mug", "Blue Poster"}

    @pytest.mark.asyncio
    async def test_categories_by_name_with_active_filter(self, db_session, make_profile, make_category):
        admin = await make_profile(role="admin")
        await make_category("Zines")
        await make_category("Apparel")
        await make_category("Archived", is_active=False)
        manager = AdminDataManager(db_session, admin)

        everything = await manager.list_categories()
        active = await manager.list_categories(is_active=True)

        assert [c.name for c in everything.items] == ["Apparel", "Archived", "Zines"]
        assert [c.name for c in active.items] == ["Apparel", "Zines"]

    @pytest.mark.asyncio
    async def test_users_search_name_or_email_and_role(self, db_session, make_profile):
        admin = await make_profile(email="boss@example.com", full_name="Boss", role="admin")
        await make_profile(email="jane@shop.test", full_name="Jane Doe")
        await make_profile(email="sam@example.com", full_name="Sam Jane")
        manager = AdminDataManager(db_session, admin)

        janes = await manager.list_users(search="jane")
        admins = await manager.list_users(role="admin")

        assert {u.email for u in janes.items} == {"jane@shop.test", "sam@example.com"}
        assert [u.id for u in admins.items] == [admin.id]

    @pytest.mark.asyncio
    async def test_orders_search_by_id_and_status(self, db_session, make_profile):
        admin = await make_profile(role="admin")
        now = utcnow()
        address = {"street": "1 A St", "city": "X", "state": "Y", "zip": "1", "country": "United States"}
        pending = Order(id="aaaa1111-0000", user_id=admin.id, total_amount=10, shipping_address=address,
                        created_at=now)
        shipped = Order(id="bbbb2222-0000", user_id=admin.id, total_amount=20, status="shipped",
                        shipping_address=address, created_at=now + timedelta(seconds=1))
        db_session.add_all([pending, shipped])
        await db_session.commit()
        manager = AdminDataManager(db_session, admin)

        by_id = await manager.list_orders(search="BBBB")
        by_status = await manager.list_orders(status="pending")
        newest_first = await manager.list_orders()

        assert [o.id for o in by_id.items] == ["bbbb2222-0000"]
        assert [o.id for o in by_status.items] == ["aaaa1111-0000"]
        assert [o.id for o in newest_first.items] == ["bbbb2222-0000", "aaaa1111-0000"]


class TestUpdates:
    @pytest.mark.asyncio
    async def test_update_product_stamps_updated_at(self, db_session, make_profile, make_product):
        admin = await make_profile(role="admin")
        product = await make_product(price="10.00")
        before = product.updated_at
        manager = AdminDataManager(db_session, admin)

        updated = await manager.update_product(product.id, ProductUpdate(price=12.5, stock_quantity=3))

        assert float(updated.price) == 12.5
        assert updated.stock_quantity == 3
        assert updated.updated_at != before

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, db_session, make_profile, make_product):
        admin = await make_profile(role="admin")
        product = await make_product()
        manager = AdminDataManager(db_session, admin)

        with pytest.raises(ValidationFailure):
            await manager.update_product(product.id, ProductUpdate(name="  "))

    @pytest.mark.asyncio
    async def test_update_order_status(self, db_session, make_profile):
        admin = await make_profile(role="admin")
        order = Order(
            user_id=admin.id,
            total_amount=10,
            shipping_address={"street": "1", "city": "2", "state": "3", "zip": "4"},
        )
        db_session.add(order)
        await db_session.commit()
        manager = AdminDataManager(db_session, admin)

        updated = await manager.update_order(
            order.id, OrderAdminUpdate(status="shipped", tracking_number="1Z999")
        )

        assert updated.status == "shipped"
        assert updated.tracking_number == "1Z999"
        assert updated.payment_status == "pending"

    @pytest.mark.asyncio
    async def test_update_user_role(self, db_session, make_profile):
        admin = await make_profile(role="admin")
        user = await make_profile()
        manager = AdminDataManager(db_session, admin)

        updated = await manager.update_user(user.id, UserAdminUpdate(role="admin"))

        assert updated.is_admin

    @pytest.mark.asyncio
    async def test_update_missing_row(self, db_session, make_profile):
        admin = await make_profile(role="admin")
        with pytest.raises(NotFound):
            await AdminDataManager(db_session, admin).update_user("nobody", UserAdminUpdate(full_name="X"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["price", "stock_quantity", "image_urls", "is_active", "featured"])
    async def test_clearing_required_product_field_rejected(self, db_session, make_profile, make_product, field):
        admin = await make_profile(role="admin")
        product = await make_product(price="10.00")
        manager = AdminDataManager(db_session, admin)

        with pytest.raises(ValidationFailure) as exc_info:
            await manager.update_product(product.id, ProductUpdate(**{field: None}))

        assert exc_info.value.missing_fields == [field]
        assert exc_info.value.to_dict()["notification"] == "inline"
        await db_session.refresh(product)
        assert float(product.price) == 10.0

    @pytest.mark.asyncio
    async def test_clearing_category_active_flag_rejected(self, db_session, make_profile, make_category):
        admin = await make_profile(role="admin")
        category = await make_category("Posters")

        with pytest.raises(ValidationFailure):
            await AdminDataManager(db_session, admin).update_category(category.id, CategoryUpdate(is_active=None))

    @pytest.mark.asyncio
    async def test_cancelled_order_cannot_be_reopened(self, db_session, make_profile):
        admin = await make_profile(role="admin")
        order = Order(
            user_id=admin.id,
            status="cancelled",
            payment_status="failed",
            total_amount=10,
            shipping_address={"street": "1", "city": "2", "state": "3", "zip": "4"},
        )
        db_session.add(order)
        await db_session.commit()
        manager = AdminDataManager(db_session, admin)

        with pytest.raises(ValidationFailure):
            await manager.update_order(order.id, OrderAdminUpdate(status="processing", payment_status="paid"))

        await db_session.refresh(order)
        assert order.status == "cancelled"
        assert order.payment_status == "failed"

        noted = await manager.update_order(order.id, OrderAdminUpdate(notes="customer called", status="cancelled"))
        assert noted.notes == "customer called"
        assert noted.status == "cancelled"


class TestAuditAndStats:
    @pytest.mark.asyncio
    async def test_mutations_are_audited(self, db_session, make_profile, caplog):
        admin = await make_profile(email="auditor@example.com", role="admin")
        caplog.set_level(logging.INFO, logger="audit")

        product = await AdminDataManager(db_session, admin).create_product(ProductCreate(name="Logged", price=1))

        records = [r for r in caplog.records if r.name == "audit"]
        assert len(records) == 1
        assert records[0].audit["action"] == "product.create"
        assert records[0].audit["admin_email"] == "auditor@example.com"
        assert records[0].audit["resource_id"] == product.id

    @pytest.mark.asyncio
    async def test_dashboard_stats(self, db_session, make_profile, make_product):
        admin = await make_profile(role="admin")
        await make_product()
        await make_product()
        now = utcnow()
        for i in range(6):
            db_session.add(Order(
                user_id=admin.id,
                total_amount=10 + i,
                shipping_address={"street": "1", "city": "2", "state": "3", "zip": "4"},
                created_at=now + timedelta(seconds=i),
            ))
        await db_session.commit()

        stats = await AdminDataManager(db_session, admin).dashboard_stats()

        assert stats["total_products"] == 2
        assert stats["total_orders"] == 6
        assert stats["total_users"] == 1
        assert stats["total_revenue"] == 75.0
        assert len(stats["recent_orders"]) == 5
        assert float(stats["recent_orders"][0].total_amount) == 15.0


class TestStoreFailures:
    @pytest.mark.asyncio
    async def test_failed_create_is_transient_and_audited(self, db_session, make_profile, monkeypatch, caplog):
        admin = await make_profile(email="ops@example.com", role="admin")
        manager = AdminDataManager(db_session, admin)
        caplog.set_level(logging.INFO, logger="audit")

        async def failing_commit():
            raise OperationalError("COMMIT", {}, Exception("connection lost"))

        monkeypatch.setattr(db_session, "commit", failing_commit)

        with pytest.raises(TransientStoreFailure) as exc_info:
            await manager.create_category(CategoryCreate(name="Vinyl"))

        assert exc_info.value.message == "Failed to save category"
        records = [r for r in caplog.records if r.name == "audit"]
        assert records[-1].audit["success"] is False
        assert records[-1].audit["admin_email"] == "ops@example.com"

    @pytest.mark.asyncio
    async def test_failed_update_is_transient(self, db_session, make_profile, make_product, monkeypatch):
        admin = await make_profile(role="admin")
        product = await make_product()
        product_id = product.id
        manager = AdminDataManager(db_session, admin)

        async def failing_commit():
            raise OperationalError("COMMIT", {}, Exception("connection lost"))

        monkeypatch.setattr(db_session, "commit", failing_commit)

        with pytest.raises(TransientStoreFailure):
            await manager.update_product(product_id, ProductUpdate(stock_quantity=1))
