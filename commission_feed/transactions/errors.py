"""
Feed and creation error taxonomy.

Fetch and creation failures never leave their owning component: they are
converted into state through :func:`describe_error`. Only local amount
validation is raised to the caller.
"""

from typing import Dict, Optional

FALLBACK_ERROR_MESSAGE = "No fue posible contactar con el servicio de comisiones"


class FeedError(Exception):
    """Base exception for the transaction feed."""

    def __init__(self, message: str = "", user_message: Optional[str] = None):
        super().__init__(message)
        self.user_message = user_message


class FetchError(FeedError):
    """Listing transactions failed."""

    pass


class CreationError(FeedError):
    """Registering a transaction failed."""

    pass


class AmountValidationError(ValueError):
    """
    Raised before any network call when the amount cannot be submitted.

    ``field_errors`` maps each field requiring correction to its message.
    """

    def __init__(self, field_errors: Dict[str, str]):
        super().__init__("; ".join(f"{k}: {v}" for k, v in field_errors.items()))
        self.field_errors = field_errors


def wrap_error(exc: Exception, error_cls: type) -> FeedError:
    """Wrap ``exc`` in ``error_cls``, carrying over any user-facing message."""
    if isinstance(exc, error_cls):
        return exc
    wrapped = error_cls(str(exc), user_message=getattr(exc, "user_message", None))
    wrapped.__cause__ = exc
    return wrapped


def describe_error(exc: BaseException) -> str:
    """
    Human-readable message for a failure.

    Prefers the user-facing message the failure carries; anything else,
    transport errors included, gets the fixed fallback.
    """
    message = getattr(exc, "user_message", None)
    if isinstance(message, str) and message.strip():
        return message
    return FALLBACK_ERROR_MESSAGE
