"""Tests for transaction creation."""

import asyncio

import pytest

from commission_feed.transactions.clients.base import (
    APIConnectionError,
    APIResponseError,
)
from commission_feed.transactions.errors import (
    FALLBACK_ERROR_MESSAGE,
    AmountValidationError,
)
from commission_feed.transactions.models import CreationState
from commission_feed.transactions.submitter import (
    AMOUNT_NOT_NUMERIC,
    AMOUNT_REQUIRED,
    AMOUNT_TOO_LOW,
    CreationSubmitter,
    validate_amount,
)
from commission_feed.transactions.trigger import RefreshTrigger, TriggerSource
from tests.fixtures.fake_clients import ScriptedTransactionClient, make_tx


class TestValidateAmount:
    """Tests for local amount validation."""

    @pytest.mark.parametrize(
        "value, message",
        [
            (None, AMOUNT_REQUIRED),
            ("", AMOUNT_REQUIRED),
            ("   ", AMOUNT_REQUIRED),
            ("abc", AMOUNT_NOT_NUMERIC),
            (True, AMOUNT_NOT_NUMERIC),
            (float("nan"), AMOUNT_NOT_NUMERIC),
            ("inf", AMOUNT_NOT_NUMERIC),
            ([100], AMOUNT_NOT_NUMERIC),
            (0, AMOUNT_TOO_LOW),
            (0.5, AMOUNT_TOO_LOW),
            (-20, AMOUNT_TOO_LOW),
        ],
    )
    def test_rejects(self, value, message):
        """Test amounts that fail validation."""
        with pytest.raises(AmountValidationError) as exc_info:
            validate_amount(value)
        assert exc_info.value.field_errors == {"amount": message}

    @pytest.mark.parametrize("value, expected", [(1, 1.0), ("250.75", 250.75), (100, 100.0)])
    def test_accepts(self, value, expected):
        """Test amounts that pass validation."""
        assert validate_amount(value) == expected


@pytest.mark.asyncio
class TestCreationSubmitter:
    """Tests for the submission state machine."""

    async def test_zero_amount_makes_no_call_and_keeps_state(self):
        """Test that a zero amount makes no call."""
        client = ScriptedTransactionClient()
        submitter = CreationSubmitter(client, RefreshTrigger())

        with pytest.raises(AmountValidationError) as exc_info:
            await submitter.submit(0)

        assert "amount" in exc_info.value.field_errors
        assert client.create_calls == []
        assert submitter.state == CreationState()

    async def test_validation_failure_leaves_previous_outcome(self):
        """Test that validation failure keeps the last outcome."""
        client = ScriptedTransactionClient(created=make_tx(5, "2025-01-10T10:00:00Z"))
        submitter = CreationSubmitter(client, RefreshTrigger())
        await submitter.submit(100)

        with pytest.raises(AmountValidationError):
            await submitter.submit("abc")

        assert submitter.state.message == "Transaccion #5 registrada"
        assert submitter.state.pending is False

    async def test_success_sets_message_clears_draft_and_refreshes(self):
        """Test a successful submission."""
        created = make_tx(5, "2025-01-10T10:00:00Z", amount=100)
        client = ScriptedTransactionClient(created=created)
        trigger = RefreshTrigger(interval_seconds=60)
        trigger.activate()
        events = trigger.events()
        await asyncio.wait_for(events.__anext__(), 1.0)  # initial periodic tick
        submitter = CreationSubmitter(client, trigger)
        submitter.draft_amount = "100"

        state = await submitter.submit()

        assert client.create_calls == [100.0]
        assert state == CreationState(pending=False, message="Transaccion #5 registrada")
        assert submitter.draft_amount is None
        refresh = await asyncio.wait_for(events.__anext__(), 1.0)
        assert refresh.source == TriggerSource.MANUAL
        assert refresh.reason == "created:5"
        trigger.deactivate()

    async def test_success_with_inactive_feed_drops_refresh(self):
        """Test a successful submission with no active feed."""
        client = ScriptedTransactionClient(created=make_tx(8, "2025-01-10T10:00:00Z"))
        trigger = RefreshTrigger()
        submitter = CreationSubmitter(client, trigger)

        state = await submitter.submit(50)

        assert state.message == "Transaccion #8 registrada"
        assert trigger.active is False

    async def test_pending_only_during_the_call(self):
        """Test that pending is set only during the call."""
        client = ScriptedTransactionClient(created=make_tx(1, "2025-01-10T10:00:00Z"))
        submitter = CreationSubmitter(client, RefreshTrigger())
        seen = []
        client.on_create = lambda amount: seen.append(submitter.state)

        await submitter.submit(10)

        assert seen == [CreationState(pending=True)]
        assert submitter.state.pending is False

    async def test_pending_reset_on_failure(self):
        """Test that pending is cleared after a failure."""
        client = ScriptedTransactionClient(create_error=APIConnectionError("refused"))
        submitter = CreationSubmitter(client, RefreshTrigger())
        seen = []
        client.on_create = lambda amount: seen.append(submitter.state.pending)

        state = await submitter.submit(10)

        assert seen == [True]
        assert state.pending is False
        assert state.error == FALLBACK_ERROR_MESSAGE
        assert state.message is None

    async def test_failure_keeps_draft_and_skips_refresh(self):
        """Test that a failure keeps the draft and requests no refresh."""
        client = ScriptedTransactionClient(create_error=APIResponseError(500, "oops"))
        trigger = RefreshTrigger(interval_seconds=60)
        trigger.activate()
        events = trigger.events()
        await asyncio.wait_for(events.__anext__(), 1.0)
        submitter = CreationSubmitter(client, trigger)
        submitter.draft_amount = 300

        state = await submitter.submit()

        assert state.error == FALLBACK_ERROR_MESSAGE
        assert submitter.draft_amount == 300
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(events.__anext__(), 0.05)
        trigger.deactivate()

    async def test_new_attempt_clears_previous_outcome(self):
        """Test that a new attempt clears message and error."""
        client = ScriptedTransactionClient(create_error=APIConnectionError("refused"))
        submitter = CreationSubmitter(client, RefreshTrigger())
        await submitter.submit(10)
        seen = []
        client.create_error = None
        client.on_create = lambda amount: seen.append(submitter.state)

        state = await submitter.submit(20)

        assert seen == [CreationState(pending=True)]
        assert state.error is None
        assert state.message == "Transaccion #2 registrada"
