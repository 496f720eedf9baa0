"""
Admin Action Executor - applies protected edits and deletes to portal users.

Only ProtectedActionService calls into this module, and only after a
two-step confirmation has completed. Changes are flushed, not committed,
so the mutation and the confirmation state land in one transaction.
"""
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.models.audit import AuditLog
from app.models.user import User
from app.schemas.user import UserAdminUpdate, UserResponse

logger = logging.getLogger(__name__)

# Columns that cannot be cleared by an edit
REQUIRED_FIELDS = ("full_name", "two_factor_enabled")


class AdminActionError(Exception):
    """The mutation could not be applied"""


class TargetNotFound(AdminActionError):
    pass


def snapshot_user(user: User) -> Dict[str, Any]:
    """JSON-safe copy of a user record for audit and pending actions"""
    return UserResponse.model_validate(user).model_dump(mode="json")


class AdminActionExecutor:
    """Performs the actual mutation on behalf of one admin"""

    def __init__(self, db: AsyncSession, admin_id: int):
        self.db = db
        self.admin_id = admin_id

    async def _load(self, email: str) -> User:
        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if not user:
            raise TargetNotFound(f"User {email} not found")
        return user

    def _audit(self, action: str, email: str, changes: Optional[Dict[str, Any]]) -> None:
        self.db.add(AuditLog(
            admin_id=self.admin_id,
            action=action,
            entity_type="user",
            entity_ref=email,
            changes=changes,
        ))

    async def edit_record(self, email: str, fields: Dict[str, Any]) -> User:
        """Apply whitelisted profile changes"""
        try:
            update = UserAdminUpdate.model_validate(fields or {})
        except ValidationError as e:
            invalid = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
            raise AdminActionError(f"Invalid fields detected: {', '.join(invalid)}")

        update_data = update.model_dump(exclude_unset=True)
        if not update_data:
            raise AdminActionError("No fields to update")

        cleared = sorted(f for f in REQUIRED_FIELDS if f in update_data and update_data[f] is None)
        if cleared:
            raise AdminActionError(f"Fields cannot be empty: {', '.join(cleared)}")

        user = await self._load(email)
        if update_data.get("two_factor_enabled") and not user.two_factor_secret:
            raise AdminActionError("Two-factor authentication can only be enabled by the user")

        before = snapshot_user(user)
        for field, value in update_data.items():
            setattr(user, field, value)
        if update_data.get("two_factor_enabled") is False:
            user.two_factor_secret = None

        await self.db.flush()
        await self.db.refresh(user)
        self._audit("edit_user", email, {"before": before, "after": snapshot_user(user)})
        await self.db.flush()

        logger.info(f"Admin {self.admin_id} edited user {email}: {sorted(update_data)}")
        return user

    async def delete_record(self, email: str) -> Dict[str, Any]:
        """Delete the user; checklist progress goes with it"""
        user = await self._load(email)
        before = snapshot_user(user)

        await self.db.delete(user)
        self._audit("delete_user", email, {"before": before})
        await self.db.flush()

        logger.info(f"Admin {self.admin_id} deleted user {email}")
        return before
