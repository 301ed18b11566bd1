"""
Admin console routes

All routes require an admin profile. Mutations are audit logged by the
AdminDataManager. Deleting is two calls: POST .../delete-intent returns a
confirmation token, DELETE ... with that token removes the row.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import get_current_admin
from storefront.core.database import get_db
from storefront.models.profile import Profile
from storefront.schemas.admin import (
    CategoryCreate,
    CategoryPage,
    CategoryUpdate,
    DashboardStats,
    DeleteIntentResponse,
    DeleteKind,
    DeleteResult,
    OrderAdminUpdate,
    OrderPage,
    ProductCreate,
    ProductPage,
    ProductUpdate,
    SlugPreview,
    UserAdminUpdate,
    UserPage,
)
from storefront.schemas.catalog import CategoryResponse, ProductResponse
from storefront.schemas.order import OrderSummary
from storefront.schemas.profile import ProfileResponse
from storefront.services.admin_data_manager import AdminDataManager, Page

router = APIRouter()


def get_admin_manager(
    admin: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
) -> AdminDataManager:
    return AdminDataManager(db, admin)


def page_fields(page: Page) -> dict:
    return {
        "page": page.page,
        "page_size": page.page_size,
        "total": page.total,
        "total_pages": page.total_pages,
    }


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(manager: AdminDataManager = Depends(get_admin_manager)):
    return await manager.dashboard_stats()


@router.get("/slug-preview", response_model=SlugPreview)
async def slug_preview(name: str, _: Profile = Depends(get_current_admin)):
    """Slug the create forms show while the name is typed"""
    return SlugPreview(name=name, slug=AdminDataManager.slug_preview(name))


# ----- Products -----

@router.get("/products", response_model=ProductPage)
async def list_products(
    search: Optional[str] = None,
    category_id: Optional[str] = None,
    page: int = Query(1),
    manager: AdminDataManager = Depends(get_admin_manager)
):
    result = await manager.list_products(search=search, category_id=category_id, page=page)
    return ProductPage(products=result.items, **page_fields(result))


@router.post("/products", response_model=ProductResponse, status_code=201)
async def create_product(
    product_data: ProductCreate,
    manager: AdminDataManager = Depends(get_admin_manager)
):
    return await manager.create_product(product_data)


@router.patch("/products/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    product_data: ProductUpdate,
    manager: AdminDataManager = Depends(get_admin_manager)
):
    return await manager.update_product(product_id, product_data)


# ----- Categories -----

@router.get("/categories", response_model=CategoryPage)
async def list_categories(
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    page: int = Query(1),
    manager: AdminDataManager = Depends(get_admin_manager)
):
    result = await manager.list_categories(search=search, is_active=is_active, page=page)
    return CategoryPage(categories=result.items, **page_fields(result))


@router.post("/categories", response_model=CategoryResponse, status_code=201)
async def create_category(
    category_data: CategoryCreate,
    manager: AdminDataManager = Depends(get_admin_manager)
):
    return await manager.create_category(category_data)


@router.patch("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    category_data: CategoryUpdate,
    manager: AdminDataManager = Depends(get_admin_manager)
):
    return await manager.update_category(category_id, category_data)


# ----- Orders -----

@router.get("/orders", response_model=OrderPage)
async def list_orders(
    search: Optional[str] = None,
    status: Optional[str] = None,
    page: int = Query(1),
    manager: AdminDataManager = Depends(get_admin_manager)
):
    result = await manager.list_orders(search=search, status=status, page=page)
    return OrderPage(orders=result.items, **page_fields(result))


@router.patch("/orders/{order_id}", response_model=OrderSummary)
async def update_order(
    order_id: str,
    order_data: OrderAdminUpdate,
    manager: AdminDataManager = Depends(get_admin_manager)
):
    return await manager.update_order(order_id, order_data)


# ----- Users -----

@router.get("/users", response_model=UserPage)
async def list_users(
    search: Optional[str] = None,
    role: Optional[str] = None,
    page: int = Query(1),
    manager: AdminDataManager = Depends(get_admin_manager)
):
    result = await manager.list_users(search=search, role=role, page=page)
    return UserPage(users=result.items, **page_fields(result))


@router.patch("/users/{user_id}", response_model=ProfileResponse)
async def update_user(
    user_id: str,
    user_data: UserAdminUpdate,
    manager: AdminDataManager = Depends(get_admin_manager)
):
    return await manager.update_user(user_id, user_data)


# ----- Two-step delete -----

@router.post("/{kind}/{target_id}/delete-intent", response_model=DeleteIntentResponse)
async def request_delete(
    kind: DeleteKind,
    target_id: str,
    manager: AdminDataManager = Depends(get_admin_manager)
):
    """Name the row and issue a confirmation token. Nothing is deleted."""
    return await manager.request_delete(kind, target_id)


@router.delete("/{kind}/{target_id}", response_model=DeleteResult)
async def confirm_delete(
    kind: DeleteKind,
    target_id: str,
    confirmation_token: Optional[str] = Query(None),
    manager: AdminDataManager = Depends(get_admin_manager)
):
    return await manager.confirm_delete(kind, target_id, confirmation_token)
