"""
Protected action service - persists two-step confirmations between requests
and is the only caller of the Admin Action Executor.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import Select, select

from app.models.admin import AdminUser
from app.models.protected_action import ProtectedAction
from app.models.user import User
from app.services.admin_actions import AdminActionExecutor, snapshot_user
from app.services.totp_service import OneTimeSecret, TotpVerifier
from app.services.two_step import (
    ActionType,
    ConfirmationState,
    PendingAction,
    TwoStepConfirmation,
)

logger = logging.getLogger(__name__)


class ProtectedActionError(Exception):
    """Request does not match the staged action"""


class ProtectedActionNotFound(ProtectedActionError):
    pass


class ProtectedActionService:
    """Drive a TwoStepConfirmation for one admin, backed by protected_actions rows"""

    def __init__(self, db: AsyncSession, admin: AdminUser, verifier: TotpVerifier):
        self.db = db
        self.admin = admin
        self.verifier = verifier
        self.executor = AdminActionExecutor(db, admin.id)

    async def _execute(self, pending: PendingAction, fields: Optional[Dict[str, Any]]) -> Any:
        if pending.action_type == ActionType.EDIT:
            return await self.executor.edit_record(pending.target_id, fields or {})
        return await self.executor.delete_record(pending.target_id)

    def _machine(self, record: ProtectedAction) -> TwoStepConfirmation:
        pending = None
        if record.state not in (ConfirmationState.COMPLETED, ConfirmationState.CANCELLED):
            pending = PendingAction(
                action_type=record.action_type,
                target_id=record.target_email,
                target_snapshot=record.target_snapshot or {},
            )
        return TwoStepConfirmation(
            verifier=self.verifier,
            executor=self._execute,
            state=record.state,
            pending=pending,
            secret=record.secret,
            first_step=record.first_step,
        )

    @staticmethod
    def _store(record: ProtectedAction, machine: TwoStepConfirmation) -> None:
        record.state = machine.state
        record.secret = machine.secret
        record.first_step = machine.first_step
        if machine.state == ConfirmationState.COMPLETED:
            record.completed_at = datetime.utcnow()

    def _query(self, action_id: int, lock: bool = False) -> Select:
        query = select(ProtectedAction).where(
            ProtectedAction.id == action_id,
            ProtectedAction.admin_id == self.admin.id,
        )
        if lock:
            # Concurrent transitions of one action queue behind the row lock
            query = query.with_for_update().execution_options(populate_existing=True)
        return query

    async def get(self, action_id: int, lock: bool = False) -> ProtectedAction:
        """
        Load an action started by this admin.

        Pass lock=True before changing its state; the lock holds until the
        transaction commits or rolls back.
        """
        result = await self.db.execute(self._query(action_id, lock))
        record = result.scalar_one_or_none()
        if not record:
            raise ProtectedActionNotFound(f"Protected action {action_id} not found")
        return record

    async def start(self, action_type: ActionType, target_email: str) -> Tuple[ProtectedAction, OneTimeSecret]:
        """Stage the action and issue a fresh secret for it"""
        result = await self.db.execute(select(User).where(User.email == target_email))
        target = result.scalar_one_or_none()
        if not target:
            raise ProtectedActionNotFound(f"User {target_email} not found")

        record = ProtectedAction(
            admin_id=self.admin.id,
            action_type=action_type,
            target_email=target_email,
            target_snapshot=snapshot_user(target),
            state=ConfirmationState.IDLE,
        )
        machine = self._machine(record)
        issued = machine.begin(
            PendingAction(action_type, target_email, record.target_snapshot),
            identity_label=self.admin.email,
        )
        self._store(record, machine)

        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)

        logger.info(f"Admin {self.admin.id} staged {action_type.value} of {target_email} (action {record.id})")
        return record, issued

    async def submit_first_code(self, action_id: int, code: str) -> Tuple[ProtectedAction, Optional[str]]:
        """Returns the record and an error message when the code was rejected"""
        record = await self.get(action_id, lock=True)
        machine = self._machine(record)

        verified = machine.submit_first_code(code)
        self._store(record, machine)
        await self.db.commit()

        if not verified:
            logger.info(f"First code rejected for protected action {action_id}")
        return record, machine.error

    async def complete(
        self,
        action_id: int,
        action_type: ActionType,
        target_email: str,
        code: str,
        fields: Optional[Dict[str, Any]] = None,
    ) -> Tuple[ProtectedAction, Any, Optional[str]]:
        """
        Verify the second code and apply the staged mutation in one step.

        The request must name the same action type and target as the staged
        action. Returns (record, executor result, error message).
        """
        record = await self.get(action_id, lock=True)
        if record.action_type != action_type or record.target_email != target_email:
            raise ProtectedActionError("Request does not match the staged action")

        machine = self._machine(record)
        result = await machine.submit_second_code(code, fields)
        if machine.error:
            logger.info(f"Second code rejected for protected action {action_id}: {machine.error}")
            return record, None, machine.error

        self._store(record, machine)
        await self.db.commit()
        await self.db.refresh(record)
        return record, result, None

    async def cancel(self, action_id: int) -> ProtectedAction:
        record = await self.get(action_id, lock=True)
        machine = self._machine(record)
        machine.cancel()
        self._store(record, machine)
        await self.db.commit()
        await self.db.refresh(record)

        logger.info(f"Protected action {action_id} cancelled")
        return record
