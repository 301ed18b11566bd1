from storefront.models.profile import Profile, ROLE_ADMIN, ROLE_USER
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.cart import CartItem
from storefront.models.order import Order, OrderItem, OrderStatus, PaymentStatus
from storefront.models.review import Review
