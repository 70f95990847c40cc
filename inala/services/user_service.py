"""
inala/services/user_service.py

Purpose: User data management

- Create, update and remove platform and tenant users
- Role changes (with permission-change notification)
- Access checks used by the API layer
"""

from datetime import datetime
from typing import Optional, Dict, Any, List

from inala.db.mongo import get_collection, new_id, sanitize_document, USERS, GLOBAL_TENANT_ID
from inala.domain.states import UserRole, MailTriggerType, is_admin_role
from inala.core.exceptions import ResourceNotFoundError, ValidationError, BusinessRuleError
from inala.core.logging import get_logger, LogContext
from inala.services.email_service import email_service
from utils.validation_utils import validate_email, sanitize_input

logger = get_logger(__name__)


async def create_user(data: Dict[str, Any], send_welcome: bool = True) -> Dict[str, Any]:
    """
    Creates a user and queues the welcome email.

    Args:
        data: name, email, role and tenant_id ("global" for super admins)
        send_welcome: Whether to send the welcome email

    Returns:
        User document
    """
    email = (data.get("email") or "").strip().lower()
    if not validate_email(email):
        raise ValidationError("A valid email address is required", details={"email": data.get("email")})

    users = get_collection(USERS)
    if await users.find_one({"email": email}):
        raise BusinessRuleError(f"A user with email {email} already exists")

    role = UserRole(data.get("role", UserRole.MEMBER)).value
    user_id = data.get("id") or new_id("u")

    user = {
        "branch_id": None,
        "avatar_url": None,
        "tenant_access": [],
        **data,
        "id": user_id,
        "name": sanitize_input(data.get("name", "")),
        "email": email,
        "role": role,
        "tenant_id": data.get("tenant_id") or GLOBAL_TENANT_ID,
        "is_active": data.get("is_active", True),
        "created_at": datetime.utcnow(),
    }

    with LogContext(user_id=user_id, tenant_id=user["tenant_id"]):
        await users.insert_one(user)
        logger.info(f"User created with role {role}")

    if send_welcome:
        await email_service.send_welcome_email(sanitize_document(user))

    return sanitize_document(user)


async def get_user(user_id: str) -> Optional[Dict[str, Any]]:
    """
    Retrieves a user by ID.

    Returns:
        User document or None if not found
    """
    if not user_id:
        return None
    return sanitize_document(await get_collection(USERS).find_one({"id": user_id}))


async def require_user(user_id: str) -> Dict[str, Any]:
    user = await get_user(user_id)
    if not user:
        raise ResourceNotFoundError(f"User '{user_id}' not found")
    return user


async def list_users(tenant_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Lists users, optionally only those belonging to one tenant.
    """
    query = {"tenant_id": tenant_id} if tenant_id else {}
    cursor = get_collection(USERS).find(query).sort("name", 1)
    return [sanitize_document(doc) for doc in await cursor.to_list(length=None)]


async def update_user(user_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    """
    Partially updates a user. Role changes go through change_user_role.
    """
    changes = {k: v for k, v in changes.items() if k not in ("id", "role", "created_at")}
    if "email" in changes:
        changes["email"] = changes["email"].strip().lower()
        if not validate_email(changes["email"]):
            raise ValidationError("A valid email address is required")
    changes["updated_at"] = datetime.utcnow()

    result = await get_collection(USERS).find_one_and_update(
        {"id": user_id},
        {"$set": changes},
        return_document=True
    )
    if not result:
        raise ResourceNotFoundError(f"User '{user_id}' not found")

    return sanitize_document(result)


async def change_user_role(user_id: str, role: str) -> Dict[str, Any]:
    """
    Changes a user's role and notifies them by email.
    """
    new_role = UserRole(role).value

    result = await get_collection(USERS).find_one_and_update(
        {"id": user_id},
        {"$set": {"role": new_role, "updated_at": datetime.utcnow()}},
        return_document=True
    )
    if not result:
        raise ResourceNotFoundError(f"User '{user_id}' not found")

    logger.info(f"Role changed to {new_role}", extra={"user_id": user_id})

    await email_service.create_mail_trigger(
        MailTriggerType.PERMISSION_CHANGE,
        {"email": result["email"], "name": result.get("name"), "role": new_role}
    )

    return sanitize_document(result)


async def delete_user(user_id: str) -> bool:
    result = await get_collection(USERS).delete_one({"id": user_id})
    if result.deleted_count == 0:
        raise ResourceNotFoundError(f"User '{user_id}' not found")

    logger.warning("User deleted", extra={"user_id": user_id})
    return True


def is_admin(user: Optional[Dict[str, Any]]) -> bool:
    """Super admins and tenant admins."""
    return bool(user) and is_admin_role(user.get("role", ""))


def can_access_tenant(user: Optional[Dict[str, Any]], tenant_id: str) -> bool:
    """
    Super admins reach every tenant; everyone else only their own
    tenant and any tenant listed in tenant_access.
    """
    if not user or not user.get("is_active", True):
        return False
    if user.get("role") == UserRole.SUPER_ADMIN.value:
        return True
    return user.get("tenant_id") == tenant_id or tenant_id in (user.get("tenant_access") or [])
