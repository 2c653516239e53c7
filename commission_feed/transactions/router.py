"""
Transaction feed API routes.

Exposes the live feed state, manual refresh, transaction creation and
metrics over HTTP.
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from commission_feed.transactions.errors import AmountValidationError
from commission_feed.transactions.feed import TransactionFeed, get_feed

logger = structlog.get_logger()

router = APIRouter(prefix="/feed", tags=["feed"])


class FeedStateResponse(BaseModel):
    """Response for the feed state endpoint."""

    active: bool
    subscribers: int
    state: Optional[Dict[str, Any]]


class RefreshResponse(BaseModel):
    """Response for a manual refresh request."""

    accepted: bool
    message: str


class CreateTransactionRequest(BaseModel):
    """Body of a creation request; the amount is validated by the submitter."""

    amount: Any = Field(default=None, description="Amount to register")


class MetricsResponse(BaseModel):
    """Response for metrics endpoint."""

    aggregate: Dict[str, Any]
    success_rate: float
    recent_cycles: list[Dict[str, Any]]


@router.get("", response_model=FeedStateResponse)
async def get_feed_state(feed: TransactionFeed = Depends(get_feed)):
    """Latest Feed State, or null before the first cycle has started."""
    latest = feed.cache.latest
    return FeedStateResponse(
        active=feed.cache.active,
        subscribers=feed.cache.subscriber_count,
        state=latest.to_dict() if latest else None,
    )


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def refresh_feed(feed: TransactionFeed = Depends(get_feed)):
    """
    Request an immediate refresh.

    The request is dropped when the feed has no observers.
    """
    accepted = feed.refresh_now()
    message = "Refresh scheduled" if accepted else "Feed is not active; refresh dropped"
    return RefreshResponse(accepted=accepted, message=message)


@router.post("/transactions")
async def create_transaction(
    body: CreateTransactionRequest, feed: TransactionFeed = Depends(get_feed)
):
    """
    Register a transaction with the commission service.

    Returns 422 with per-field messages when the amount is rejected
    locally, 201 with the Creation State when the service accepted it,
    and 502 with the Creation State when the service call failed.
    """
    try:
        state = await feed.submit(body.amount)
    except AmountValidationError as e:
        return JSONResponse(
            status_code=422,
            content={"message": "Solicitud invalida", "errors": e.field_errors},
        )

    code = status.HTTP_502_BAD_GATEWAY if state.error else status.HTTP_201_CREATED
    return JSONResponse(status_code=code, content=state.to_dict())


@router.get("/metrics", response_model=MetricsResponse)
async def get_metrics(feed: TransactionFeed = Depends(get_feed)):
    """Aggregate fetch-cycle metrics and recent history."""
    return feed.metrics.to_dict()
