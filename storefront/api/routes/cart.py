"""
Cart routes

Every route works through a CartStore attached to the caller, so responses
always carry the reloaded cart.
"""
from fastapi import APIRouter, Depends, status

from storefront.api.deps import get_cart_store
from storefront.schemas.cart import (
    CartItemCreate,
    CartItemResponse,
    CartItemUpdate,
    CartMutationResponse,
    CartResponse,
)
from storefront.services.cart_store import CartStore
from storefront.services.pricing import format_price

router = APIRouter()


def build_cart_response(store: CartStore) -> CartResponse:
    subtotal = store.total_price()
    return CartResponse(
        items=[
            CartItemResponse(
                id=line.id,
                product_id=line.product_id,
                product=line.product,
                quantity=line.quantity,
                line_total=float(line.line_total),
            )
            for line in store.items
        ],
        item_count=store.total_item_count(),
        subtotal=float(subtotal),
        subtotal_display=format_price(subtotal),
    )


@router.get("", response_model=CartResponse)
async def get_cart(store: CartStore = Depends(get_cart_store)):
    """Get current user's cart"""
    return build_cart_response(store)


@router.post("/items", response_model=CartMutationResponse, status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    item_data: CartItemCreate,
    store: CartStore = Depends(get_cart_store)
):
    """Add a product; an existing line is incremented"""
    message = await store.add(item_data.product_id, item_data.quantity)
    return CartMutationResponse(message=message, cart=build_cart_response(store))


@router.patch("/items/{item_id}", response_model=CartMutationResponse)
async def update_cart_item(
    item_id: str,
    update_data: CartItemUpdate,
    store: CartStore = Depends(get_cart_store)
):
    """Set quantity; zero or less removes the line"""
    message = await store.set_quantity(item_id, update_data.quantity)
    return CartMutationResponse(message=message, cart=build_cart_response(store))


@router.delete("/items/{item_id}", response_model=CartMutationResponse)
async def remove_from_cart(
    item_id: str,
    store: CartStore = Depends(get_cart_store)
):
    message = await store.remove(item_id)
    return CartMutationResponse(message=message, cart=build_cart_response(store))


@router.delete("", response_model=CartMutationResponse)
async def clear_cart(store: CartStore = Depends(get_cart_store)):
    await store.clear()
    return CartMutationResponse(message="Cart cleared", cart=build_cart_response(store))
