# Services layer for business logic
from storefront.services.cart_store import CartLine, CartStore
from storefront.services.catalog_reader import CatalogReader
from storefront.services.checkout_orchestrator import CheckoutOrchestrator, CheckoutResult
from storefront.services.admin_data_manager import AdminDataManager, paginate
