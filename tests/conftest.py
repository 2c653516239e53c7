import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Ensure project root is on sys.path so `import commission_feed` works when running pytest from root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from commission_feed.transactions.clients.mock_client import MockTransactionClient  # noqa: E402
from commission_feed.transactions.config import FeedConfig  # noqa: E402
from commission_feed.transactions.feed import TransactionFeed, set_feed  # noqa: E402
from commission_feed.transactions.trigger import TriggerEvent, TriggerSource  # noqa: E402
from tests.fixtures.fake_clients import ScriptedTransactionClient, make_tx  # noqa: E402


@pytest.fixture
def feed_config():
    """Configuration with a slow periodic source so only the first tick fires."""
    return FeedConfig(api_client_type="mock", poll_interval_ms=60_000)


@pytest.fixture
def sample_transactions():
    """Three transactions in server order, deliberately unsorted."""
    return [
        make_tx(1, "2025-01-10T09:00:00Z", amount=100),
        make_tx(7, "2025-01-10T11:00:00Z", amount=250),
        make_tx(3, "2025-01-10T10:00:00Z", amount=15000),
    ]


@pytest.fixture
def scripted_client(sample_transactions):
    return ScriptedTransactionClient(transactions=sample_transactions)


@pytest.fixture
def make_event():
    """Factory for trigger events with increasing sequence numbers."""
    counter = {"n": 0}

    def _make(source: TriggerSource = TriggerSource.MANUAL) -> TriggerEvent:
        counter["n"] += 1
        return TriggerEvent(
            sequence=counter["n"], source=source, fired_at=datetime.now(timezone.utc)
        )

    return _make


@pytest.fixture
def mock_client():
    """In-memory service seeded with one transaction."""
    client = MockTransactionClient(latency_ms=0)
    client.seed([500])
    return client


@pytest.fixture
def api(mock_client, feed_config):
    """HTTP client for the app, wired to a feed over ``mock_client``."""
    from fastapi.testclient import TestClient

    from commission_feed.main import app

    set_feed(TransactionFeed(client=mock_client, config=feed_config))
    with TestClient(app) as client:
        yield client
    set_feed(None)
