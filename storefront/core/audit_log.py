"""
Audit logging for admin actions

Records who did what and when to a structured logger.
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Any

from storefront.core.config import settings

audit_logger = logging.getLogger("audit")
audit_logger.setLevel(logging.INFO)

# Action categories
ACTION_PRODUCT_CREATE = "product.create"
ACTION_PRODUCT_UPDATE = "product.update"
ACTION_PRODUCT_DELETE = "product.delete"
ACTION_CATEGORY_CREATE = "category.create"
ACTION_CATEGORY_UPDATE = "category.update"
ACTION_CATEGORY_DELETE = "category.delete"
ACTION_ORDER_UPDATE = "order.update"
ACTION_USER_UPDATE = "user.update"


def log_admin_action(
    action: str,
    user_id: str,
    user_email: str,
    resource_type: str,
    resource_id: Optional[Any] = None,
    details: Optional[dict] = None,
    success: bool = True,
):
    """
    Log an administrative action.

    Args:
        action: Action identifier (e.g., "product.create")
        user_id: ID of the admin performing the action
        user_email: Email of the admin
        resource_type: Type of resource affected (e.g., "product", "category")
        resource_id: ID of the affected resource (if applicable)
        details: Additional context about the action
        success: Whether the action succeeded
    """
    log_entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "action": action,
        "admin_id": user_id,
        "admin_email": user_email,
        "resource_type": resource_type,
        "resource_id": str(resource_id) if resource_id else None,
        "success": success,
        "environment": settings.ENVIRONMENT,
    }

    if details:
        safe_details = {
            k: v for k, v in details.items()
            if k.lower() not in ("password", "secret", "token", "key", "credential")
        }
        log_entry["details"] = safe_details

    if success:
        audit_logger.info(
            f"AUDIT: {action} by {user_email} on {resource_type}/{resource_id}",
            extra={"audit": log_entry}
        )
    else:
        audit_logger.warning(
            f"AUDIT FAILED: {action} by {user_email} on {resource_type}/{resource_id}",
            extra={"audit": log_entry}
        )
