"""
Two-step confirmation for protected admin actions.

An edit or delete of a portal user is staged as a PendingAction and only
released to the executor after two independently entered TOTP codes verify
against the secret issued for that action. The second code must come from
a later time step than the first so a code captured at "intent to edit"
cannot be replayed for the actual mutation.

    IDLE -> SECRET_ISSUED -> FIRST_VERIFIED -> AWAITING_SECOND_CODE -> COMPLETED
      \\___________\\_______________\\________________\\-> CANCELLED
"""
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

from app.services.totp_service import Moment, OneTimeSecret, TotpVerifier

logger = logging.getLogger(__name__)


class ActionType(str, enum.Enum):
    EDIT = "edit"
    DELETE = "delete"


class ConfirmationState(str, enum.Enum):
    IDLE = "idle"
    SECRET_ISSUED = "secret_issued"
    FIRST_VERIFIED = "first_verified"
    AWAITING_SECOND_CODE = "awaiting_second_code"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TRANSITIONS = {
    ConfirmationState.IDLE: {ConfirmationState.SECRET_ISSUED, ConfirmationState.CANCELLED},
    ConfirmationState.SECRET_ISSUED: {ConfirmationState.FIRST_VERIFIED, ConfirmationState.CANCELLED},
    ConfirmationState.FIRST_VERIFIED: {ConfirmationState.AWAITING_SECOND_CODE, ConfirmationState.CANCELLED},
    ConfirmationState.AWAITING_SECOND_CODE: {ConfirmationState.COMPLETED, ConfirmationState.CANCELLED},
    ConfirmationState.COMPLETED: set(),
    ConfirmationState.CANCELLED: set(),
}

INVALID_CODE_MESSAGE = "Invalid verification code"
STALE_CODE_MESSAGE = "Please wait for a new code from your authenticator app"


class InvalidTransition(Exception):
    """Raised when an operation is not allowed in the current state"""

    def __init__(self, current: ConfirmationState, target: ConfirmationState):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move from {current.value} to {target.value}")


@dataclass
class PendingAction:
    """The staged edit/delete request awaiting double verification"""
    action_type: ActionType
    target_id: str
    target_snapshot: Dict[str, Any] = field(default_factory=dict)


Executor = Callable[[PendingAction, Optional[Dict[str, Any]]], Awaitable[Any]]


class TwoStepConfirmation:
    """State machine sequencing the two verifications before a protected mutation"""

    def __init__(
        self,
        verifier: TotpVerifier,
        executor: Executor,
        state: ConfirmationState = ConfirmationState.IDLE,
        pending: Optional[PendingAction] = None,
        secret: Optional[str] = None,
        first_step: Optional[int] = None,
    ):
        self.verifier = verifier
        self.executor = executor
        self.state = state
        self.pending = pending
        self.secret = secret
        self.first_step = first_step
        self.error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return not TRANSITIONS[self.state]

    def _move(self, target: ConfirmationState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise InvalidTransition(self.state, target)
        logger.debug(f"Confirmation state {self.state.value} -> {target.value}")
        self.state = target

    def _clear(self) -> None:
        self.pending = None
        self.secret = None
        self.first_step = None

    def begin(self, pending: PendingAction, identity_label: str) -> OneTimeSecret:
        """Stage the action and issue the secret both codes will be checked against"""
        self._move(ConfirmationState.SECRET_ISSUED)
        issued = self.verifier.issue(identity_label)
        self.pending = pending
        self.secret = issued.secret
        self.first_step = None
        self.error = None
        return issued

    def submit_first_code(self, code: str, at: Optional[Moment] = None) -> bool:
        """
        Check code #1. On failure the flow stays in SECRET_ISSUED; on success
        it passes through FIRST_VERIFIED and waits for a newer code.
        """
        if self.state != ConfirmationState.SECRET_ISSUED:
            raise InvalidTransition(self.state, ConfirmationState.FIRST_VERIFIED)

        step = self.verifier.matched_step(code, self.secret, at)
        if step is None:
            self.error = INVALID_CODE_MESSAGE
            return False

        self._move(ConfirmationState.FIRST_VERIFIED)
        self.first_step = step
        self.error = None
        self._move(ConfirmationState.AWAITING_SECOND_CODE)
        return True

    async def submit_second_code(
        self,
        code: str,
        fields: Optional[Dict[str, Any]] = None,
        at: Optional[Moment] = None,
    ) -> Any:
        """
        Check code #2 and, if it verifies, run the staged action.

        Returns the executor's result, or None when the code was rejected
        (``error`` says why). The executor runs at most once per flow.
        """
        if self.state != ConfirmationState.AWAITING_SECOND_CODE:
            raise InvalidTransition(self.state, ConfirmationState.COMPLETED)

        step = self.verifier.matched_step(code, self.secret, at)
        if step is None:
            self.error = INVALID_CODE_MESSAGE
            return None
        if self.first_step is None or step <= self.first_step:
            self.error = STALE_CODE_MESSAGE
            return None

        pending = self.pending
        result = await self.executor(pending, fields)

        self._move(ConfirmationState.COMPLETED)
        self.error = None
        self._clear()
        return result

    def cancel(self) -> None:
        """Abandon the flow, discarding the staged action and its secret"""
        self._move(ConfirmationState.CANCELLED)
        self.error = None
        self._clear()
