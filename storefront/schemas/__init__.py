from storefront.schemas.catalog import (
    CategoryResponse, ProductResponse, ProductList, ProductFilters, ReviewResponse, ReviewSummary,
)
from storefront.schemas.cart import (
    CartItemCreate, CartItemUpdate, CartItemResponse, CartResponse, CartMutationResponse,
)
from storefront.schemas.order import Address, OrderItemResponse, OrderResponse, OrderSummary, OrderList
from storefront.schemas.checkout import CheckoutForm, CheckoutResponse
from storefront.schemas.profile import ProfileResponse, ProfileUpdate
