"""
Two-step confirmation state machine tests
"""
import pyotp
import pytest

from app.services.two_step import (
    ActionType,
    ConfirmationState,
    InvalidTransition,
    PendingAction,
    STALE_CODE_MESSAGE,
    INVALID_CODE_MESSAGE,
    TwoStepConfirmation,
)
from tests.conftest import FROZEN_NOW, wrong_code

T0 = FROZEN_NOW
T1 = FROZEN_NOW + 30


class RecordingExecutor:
    """Stands in for the admin action executor and counts calls"""

    def __init__(self):
        self.calls = []

    async def __call__(self, pending, fields):
        self.calls.append((pending, fields))
        return {"target": pending.target_id, "fields": fields}


@pytest.fixture
def executor():
    return RecordingExecutor()


@pytest.fixture
def machine(totp, executor):
    return TwoStepConfirmation(verifier=totp, executor=executor)


def stage(machine, action_type=ActionType.EDIT, target="r123@example.com"):
    return machine.begin(PendingAction(action_type, target, {"email": target}), identity_label="root@ventureflow.io")


class TestHappyPath:

    @pytest.mark.asyncio
    async def test_edit_completes_after_two_codes(self, machine, executor, totp):
        issued = stage(machine)
        assert machine.state == ConfirmationState.SECRET_ISSUED

        assert machine.submit_first_code(totp.code_at(issued.secret, T0), at=T0)
        assert machine.state == ConfirmationState.AWAITING_SECOND_CODE

        result = await machine.submit_second_code(
            totp.code_at(issued.secret, T1), {"company_name": "Acme"}, at=T1
        )

        assert machine.state == ConfirmationState.COMPLETED
        assert result == {"target": "r123@example.com", "fields": {"company_name": "Acme"}}
        assert len(executor.calls) == 1
        assert executor.calls[0][0].action_type == ActionType.EDIT

    @pytest.mark.asyncio
    async def test_completion_clears_ephemeral_state(self, machine, totp):
        issued = stage(machine)
        machine.submit_first_code(totp.code_at(issued.secret, T0), at=T0)
        await machine.submit_second_code(totp.code_at(issued.secret, T1), at=T1)

        assert machine.secret is None
        assert machine.pending is None
        assert machine.first_step is None
        assert machine.is_terminal

    @pytest.mark.asyncio
    async def test_second_code_may_be_checked_a_window_later(self, machine, totp):
        """Code #2 arriving while the clock has moved on still lands in the later step"""
        issued = stage(machine)
        machine.submit_first_code(totp.code_at(issued.secret, T0), at=T0)

        await machine.submit_second_code(totp.code_at(issued.secret, T1), at=T1 + 20)

        assert machine.state == ConfirmationState.COMPLETED


class TestRejectedCodes:

    def test_wrong_first_code_stays_in_secret_issued(self, machine, executor, totp):
        issued = stage(machine)

        assert not machine.submit_first_code(wrong_code(totp, issued.secret), at=T0)

        assert machine.state == ConfirmationState.SECRET_ISSUED
        assert machine.error == INVALID_CODE_MESSAGE
        assert executor.calls == []

    def test_first_code_can_be_retried(self, machine, totp):
        issued = stage(machine)
        machine.submit_first_code(wrong_code(totp, issued.secret), at=T0)

        assert machine.submit_first_code(totp.code_at(issued.secret, T0), at=T0)
        assert machine.error is None

    def test_code_from_another_secret_rejected(self, machine, totp):
        stage(machine)
        other = pyotp.random_base32()
        code = totp.code_at(other, T0)
        if totp.verify(code, machine.secret, at=T0):
            pytest.skip("code collision")

        assert not machine.submit_first_code(code, at=T0)

    @pytest.mark.asyncio
    async def test_reused_first_code_is_stale(self, machine, executor, totp):
        issued = stage(machine)
        code = totp.code_at(issued.secret, T0)
        machine.submit_first_code(code, at=T0)

        result = await machine.submit_second_code(code, at=T0)

        assert result is None
        assert machine.error == STALE_CODE_MESSAGE
        assert machine.state == ConfirmationState.AWAITING_SECOND_CODE
        assert executor.calls == []

    @pytest.mark.asyncio
    async def test_earlier_window_code_is_stale(self, machine, executor, totp):
        issued = stage(machine)
        machine.submit_first_code(totp.code_at(issued.secret, T1), at=T1)

        result = await machine.submit_second_code(totp.code_at(issued.secret, T0), at=T1)

        assert result is None
        assert machine.error == STALE_CODE_MESSAGE
        assert executor.calls == []

    @pytest.mark.asyncio
    async def test_wrong_second_code_keeps_waiting(self, machine, executor, totp):
        issued = stage(machine)
        machine.submit_first_code(totp.code_at(issued.secret, T0), at=T0)

        result = await machine.submit_second_code(wrong_code(totp, issued.secret, at=T1), at=T1)

        assert result is None
        assert machine.error == INVALID_CODE_MESSAGE
        assert machine.state == ConfirmationState.AWAITING_SECOND_CODE
        assert executor.calls == []

        await machine.submit_second_code(totp.code_at(issued.secret, T1), at=T1)
        assert machine.state == ConfirmationState.COMPLETED
        assert len(executor.calls) == 1


class TestTransitions:

    @pytest.mark.asyncio
    async def test_second_code_before_first_is_refused(self, machine, executor, totp):
        issued = stage(machine)

        with pytest.raises(InvalidTransition):
            await machine.submit_second_code(totp.code_at(issued.secret, T1), at=T1)
        assert executor.calls == []

    def test_first_code_requires_issued_secret(self, machine):
        with pytest.raises(InvalidTransition):
            machine.submit_first_code("123456", at=T0)

    @pytest.mark.asyncio
    async def test_executor_runs_only_once(self, machine, executor, totp):
        issued = stage(machine)
        machine.submit_first_code(totp.code_at(issued.secret, T0), at=T0)
        await machine.submit_second_code(totp.code_at(issued.secret, T1), at=T1)

        with pytest.raises(InvalidTransition):
            await machine.submit_second_code(totp.code_at(issued.secret, T1), at=T1)
        assert len(executor.calls) == 1

    def test_cannot_begin_twice(self, machine):
        stage(machine)
        with pytest.raises(InvalidTransition):
            stage(machine)


class TestCancel:

    def test_cancel_after_secret_issued(self, machine, executor):
        stage(machine)
        machine.cancel()

        assert machine.state == ConfirmationState.CANCELLED
        assert machine.secret is None
        assert machine.pending is None
        assert executor.calls == []

    @pytest.mark.asyncio
    async def test_cancel_while_awaiting_second_code(self, machine, executor, totp):
        issued = stage(machine, ActionType.DELETE)
        machine.submit_first_code(totp.code_at(issued.secret, T0), at=T0)

        machine.cancel()

        assert machine.state == ConfirmationState.CANCELLED
        with pytest.raises(InvalidTransition):
            await machine.submit_second_code(totp.code_at(issued.secret, T1), at=T1)
        assert executor.calls == []

    def test_cancel_is_final(self, machine):
        stage(machine)
        machine.cancel()

        with pytest.raises(InvalidTransition):
            machine.cancel()
