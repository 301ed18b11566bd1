"""
Storefront Exception Hierarchy

All exceptions include code, message, and details so they can be logged and
returned to the client as a structured notification.

Exception Hierarchy:
    StorefrontError
    ├── AuthRequired
    ├── AdminRequired
    ├── NotFound
    ├── ValidationFailure
    ├── CartEmpty
    ├── DeleteNotConfirmed
    ├── TransientStoreFailure
    └── PartialCheckoutFailure
"""
import logging
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)

# How the client is expected to surface the error
NOTIFICATION_TOAST = "toast"
NOTIFICATION_INLINE = "inline"
NOTIFICATION_REDIRECT = "redirect"


class StorefrontError(Exception):
    """
    Base exception for all storefront errors.

    Attributes:
        message: Human-readable error description, safe to show the user
        code: Machine-readable error code for programmatic handling
        details: Additional context for the client or for debugging
    """

    default_code: str = "STOREFRONT_ERROR"
    status_code: int = 500
    notification: str = NOTIFICATION_TOAST

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
            "notification": self.notification,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class AuthRequired(StorefrontError):
    """The operation needs an identity that is absent."""
    default_code = "AUTH_REQUIRED"
    status_code = 401
    notification = NOTIFICATION_REDIRECT

    def __init__(self, message: str = "Please login to continue", **kwargs):
        details = kwargs.pop("details", {})
        details.setdefault("redirect_to", "/login")
        super().__init__(message, details=details, **kwargs)


class AdminRequired(StorefrontError):
    """Authenticated, but not an administrator."""
    default_code = "ADMIN_REQUIRED"
    status_code = 403
    notification = NOTIFICATION_TOAST

    def __init__(self, message: str = "You don't have permission to access the admin dashboard.", **kwargs):
        super().__init__(message, **kwargs)


class NotFound(StorefrontError):
    default_code = "NOT_FOUND"
    status_code = 404


class ValidationFailure(StorefrontError):
    """Required input missing. Raised before any write happens."""
    default_code = "VALIDATION_FAILED"
    status_code = 422
    notification = NOTIFICATION_INLINE

    def __init__(self, message: str = "Please fill in all required fields", missing_fields=None, **kwargs):
        details = kwargs.pop("details", {})
        if missing_fields is not None:
            details["missing_fields"] = list(missing_fields)
        super().__init__(message, details=details, **kwargs)

    @property
    def missing_fields(self):
        return self.details.get("missing_fields", [])


class CartEmpty(StorefrontError):
    """Checkout attempted with nothing in the cart."""
    default_code = "CART_EMPTY"
    status_code = 409
    notification = NOTIFICATION_REDIRECT

    def __init__(self, message: str = "Your cart is empty", **kwargs):
        details = kwargs.pop("details", {})
        details.setdefault("redirect_to", "/cart")
        super().__init__(message, details=details, **kwargs)


class DeleteNotConfirmed(StorefrontError):
    """Admin delete issued without a valid confirmation for the target."""
    default_code = "DELETE_NOT_CONFIRMED"
    status_code = 400


class TransientStoreFailure(StorefrontError):
    """
    A read or write against the persisted store failed.

    Not retried automatically; the user can re-trigger the action.
    """
    default_code = "STORE_UNAVAILABLE"
    status_code = 503


class PartialCheckoutFailure(StorefrontError):
    """
    Checkout failed after the order row was committed.

    details["order_id"] names the order; details["compensated"] tells whether
    the order was cancelled and its stock restored.
    """
    default_code = "CHECKOUT_INCOMPLETE"
    status_code = 500

    def __init__(
        self,
        message: str = "Failed to place order. Please try again.",
        order_id: Optional[str] = None,
        compensated: bool = False,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        details.update({"order_id": order_id, "compensated": compensated})
        super().__init__(message, details=details, **kwargs)
