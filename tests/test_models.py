"""Tests for transaction models and snapshot ordering."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from commission_feed.transactions.models import (
    CreationState,
    FeedState,
    Transaction,
    sort_snapshot,
)
from tests.fixtures.fake_clients import make_tx


class TestTransaction:
    """Tests for the wire model."""

    def test_parses_service_payload(self):
        """Test parsing a transaction from service JSON."""
        tx = Transaction.model_validate(
            {"id": 5, "amount": 100, "commission": 1.5, "executedAt": "2025-01-10T10:00:00Z"}
        )

        assert tx.id == 5
        assert tx.amount == 100.0
        assert tx.commission == 1.5
        assert tx.executed_at == datetime(2025, 1, 10, 10, 0, tzinfo=timezone.utc)

    def test_local_timestamp_is_read_as_utc(self):
        """Test that timestamps without offset are read as UTC."""
        """The service emits date-times without an offset."""
        tx = make_tx(1, "2025-01-10T10:00:00.123")
        assert tx.executed_at.tzinfo is not None
        assert tx.executed_at == datetime(2025, 1, 10, 10, 0, 0, 123000, tzinfo=timezone.utc)

    def test_missing_field_is_rejected(self):
        """Test that a missing field fails validation."""
        with pytest.raises(ValidationError):
            Transaction.model_validate({"id": 1, "amount": 10, "commission": 0.2})

    def test_to_dict_uses_wire_names(self):
        """Test serialization with wire field names."""
        data = make_tx(2, "2025-01-10T10:00:00Z").to_dict()
        assert set(data) == {"id", "amount", "commission", "executedAt"}

    def test_is_immutable(self):
        """Test that transactions cannot be modified."""
        tx = make_tx(1, "2025-01-10T10:00:00Z")
        with pytest.raises(ValidationError):
            tx.amount = 5


class TestSortSnapshot:
    """Tests for snapshot ordering."""

    def test_newest_first(self, sample_transactions):
        """Test sorting newest first."""
        snapshot = sort_snapshot(sample_transactions)
        assert [tx.id for tx in snapshot] == [7, 3, 1]
        assert isinstance(snapshot, tuple)

    def test_ties_keep_server_order(self):
        """Test that equal timestamps keep server order."""
        same = "2025-01-10T10:00:00Z"
        server_order = [
            make_tx(9, same),
            make_tx(2, "2025-01-11T10:00:00Z"),
            make_tx(4, same),
            make_tx(1, same),
        ]

        snapshot = sort_snapshot(server_order)

        assert [tx.id for tx in snapshot] == [2, 9, 4, 1]

    def test_offsets_are_compared_as_instants(self):
        """Test that different offsets compare as instants."""
        earlier = make_tx(1, "2025-01-10T10:00:00+02:00")  # 08:00 UTC
        later = make_tx(2, "2025-01-10T09:00:00Z")
        assert [tx.id for tx in sort_snapshot([earlier, later])] == [2, 1]

    def test_empty(self):
        """Test sorting an empty list."""
        assert sort_snapshot([]) == ()


class TestStates:
    """Tests for feed and creation state containers."""

    def test_initial_feed_state(self):
        """Test the initial Feed State."""
        state = FeedState()
        assert state.loading is False
        assert state.error is None
        assert state.last_updated is None
        assert state.snapshot == ()

    def test_feed_state_to_dict(self, sample_transactions):
        """Test Feed State serialization."""
        updated = datetime(2025, 1, 10, 12, 0, tzinfo=timezone.utc)
        state = FeedState(
            last_updated=updated, snapshot=sort_snapshot(sample_transactions)
        )

        data = state.to_dict()

        assert data["loading"] is False
        assert data["last_updated"] == updated.isoformat()
        assert [tx["id"] for tx in data["snapshot"]] == [7, 3, 1]

    def test_creation_state_to_dict(self):
        """Test Creation State serialization."""
        state = CreationState(pending=True)
        assert state.to_dict() == {"pending": True, "message": None, "error": None}
