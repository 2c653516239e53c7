"""
Creation submitter.

Validates an amount, registers it with the commission service and asks
the feed for an immediate refresh once the server confirms it.
"""

import math
from dataclasses import replace
from typing import Any

import structlog

from commission_feed.transactions.clients.base import BaseTransactionClient
from commission_feed.transactions.errors import (
    AmountValidationError,
    CreationError,
    describe_error,
    wrap_error,
)
from commission_feed.transactions.models import CreationState
from commission_feed.transactions.trigger import RefreshTrigger

logger = structlog.get_logger()

MIN_AMOUNT = 1
AMOUNT_REQUIRED = "El monto es obligatorio"
AMOUNT_NOT_NUMERIC = "El monto debe ser numerico"
AMOUNT_TOO_LOW = f"El monto minimo es {MIN_AMOUNT}"


def validate_amount(value: Any) -> float:
    """
    Parse a user-supplied amount.

    Raises:
        AmountValidationError: If the amount is missing, not a finite
            number, or below the minimum
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise AmountValidationError({"amount": AMOUNT_REQUIRED})
    if isinstance(value, bool):
        raise AmountValidationError({"amount": AMOUNT_NOT_NUMERIC})

    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise AmountValidationError({"amount": AMOUNT_NOT_NUMERIC})

    if not math.isfinite(amount):
        raise AmountValidationError({"amount": AMOUNT_NOT_NUMERIC})
    if amount < MIN_AMOUNT:
        raise AmountValidationError({"amount": AMOUNT_TOO_LOW})
    return amount


class CreationSubmitter:
    """
    Owns Creation State and the draft amount typed by the user.

    Invalid amounts are rejected with :class:`AmountValidationError` before
    any state changes. Server failures end up in ``state.error`` and are
    never raised.
    """

    def __init__(self, client: BaseTransactionClient, trigger: RefreshTrigger):
        self.client = client
        self.trigger = trigger
        self.draft_amount: Any = None
        self._state = CreationState()

    @property
    def state(self) -> CreationState:
        return self._state

    async def submit(self, amount: Any = None) -> CreationState:
        """
        Submit ``amount``, or the draft amount when none is given.

        Returns:
            Creation State after the attempt
        """
        if amount is None:
            amount = self.draft_amount
        try:
            value = validate_amount(amount)
        except AmountValidationError as e:
            logger.info("creation.rejected", field_errors=e.field_errors)
            raise

        self._state = CreationState(pending=True)
        logger.info("creation.started", amount=value)
        try:
            created = await self.client.create_transaction(value)
            self._state = replace(
                self._state, message=f"Transaccion #{created.id} registrada"
            )
            self.draft_amount = None
            self.trigger.request_refresh(reason=f"created:{created.id}")
            logger.info("creation.succeeded", transaction_id=created.id)
        except Exception as e:
            error = wrap_error(e, CreationError)
            self._state = replace(self._state, error=describe_error(error))
            logger.warning(
                "creation.failed",
                amount=value,
                error=str(e),
                error_type=type(e).__name__,
            )
        finally:
            self._state = replace(self._state, pending=False)
        return self._state
