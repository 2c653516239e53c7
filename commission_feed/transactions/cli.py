"""
Transaction feed CLI commands.

Provides a command-line interface for listing, creating and watching
transactions of the commission service.
"""

import asyncio
import sys
from typing import Optional

import structlog

from commission_feed.core.config import get_settings
from commission_feed.core.logging import configure_logging
from commission_feed.transactions.errors import AmountValidationError
from commission_feed.transactions.feed import TransactionFeed
from commission_feed.transactions.models import FeedState

logger = structlog.get_logger()


def print_state(state: FeedState):
    """Pretty print a Feed State."""
    updated = state.last_updated.isoformat() if state.last_updated else "Never"
    print(f"\n=== Transactions (updated: {updated}) ===")
    if state.loading:
        print("Loading...")
    if state.error:
        print(f"Error: {state.error}")
    if not state.snapshot:
        print("No transactions.")
        return

    print(f"{'ID':>6}  {'Amount':>14}  {'Commission':>12}  Executed at")
    for tx in state.snapshot:
        print(
            f"{tx.id:>6}  {tx.amount:>14,.2f}  {tx.commission:>12,.2f}  "
            f"{tx.executed_at.isoformat()}"
        )


def print_metrics(metrics: dict):
    """Pretty print fetch-cycle metrics."""
    print("\n=== Feed Metrics ===\n")
    agg = metrics["aggregate"]
    print(f"Total Cycles: {agg['total_cycles']}")
    print(f"Successful: {agg['successful_cycles']}")
    print(f"Failed: {agg['failed_cycles']}")
    print(f"Superseded: {agg['superseded_cycles']}")
    print(f"Success Rate: {metrics['success_rate']:.1%}")
    print(f"Avg Duration: {agg['avg_duration_seconds']:.2f}s")
    print()


async def list_command(feed: TransactionFeed) -> int:
    """Run a single fetch cycle and print it."""
    state = await feed.loader.load(feed.trigger.next_event(reason="cli"))
    print_state(state)
    print_metrics(feed.metrics.to_dict())
    return 1 if state.error else 0


async def create_command(feed: TransactionFeed, amount: str) -> int:
    """Register one transaction."""
    try:
        state = await feed.submit(amount)
    except AmountValidationError as e:
        for field, message in e.field_errors.items():
            print(f"Invalid {field}: {message}")
        return 2

    if state.error:
        print(f"Error: {state.error}")
        return 1
    print(state.message)
    return 0


async def metrics_command(feed: TransactionFeed, cycles: Optional[str] = None) -> int:
    """Run one or more fetch cycles and print their metrics."""
    count = int(cycles) if cycles else 1
    for _ in range(count):
        await feed.loader.load(feed.trigger.next_event(reason="cli"))
    print_metrics(feed.metrics.to_dict())
    return 0


async def watch_command(feed: TransactionFeed) -> int:
    """Print every Feed State until interrupted."""
    print(f"Watching transactions every {feed.config.poll_interval_ms} ms")
    print("Press Ctrl+C to stop\n")

    async with feed.subscribe() as subscription:
        async for state in subscription:
            if not state.loading:
                print_state(state)
    return 0


async def _run(command: str, argument: Optional[str]) -> int:
    feed = TransactionFeed()
    try:
        if command == "list":
            return await list_command(feed)
        if command == "create":
            return await create_command(feed, argument)
        if command == "metrics":
            return await metrics_command(feed, argument)
        return await watch_command(feed)
    finally:
        await feed.aclose()


def main() -> int:
    """Main CLI entry point."""
    if len(sys.argv) < 2 or sys.argv[1] not in ("list", "create", "watch", "metrics"):
        print("Usage: python -m commission_feed.transactions.cli <command> [options]")
        print("\nCommands:")
        print("  list              Fetch and print the transactions once")
        print("  create <amount>   Register a new transaction")
        print("  watch             Print the live feed until interrupted")
        print("  metrics [cycles]  Run fetch cycles (default 1) and show metrics")
        print("\nExamples:")
        print("  python -m commission_feed.transactions.cli list")
        print("  python -m commission_feed.transactions.cli create 2500")
        print("  python -m commission_feed.transactions.cli watch")
        print("  python -m commission_feed.transactions.cli metrics 3")
        return 1

    settings = get_settings()
    configure_logging(settings.ENV, settings.DEBUG)

    command = sys.argv[1]
    argument = sys.argv[2] if len(sys.argv) > 2 else None

    try:
        return asyncio.run(_run(command, argument))
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130
    except Exception as e:
        print(f"Error: {str(e)}")
        logger.exception("cli_error", command=command)
        return 1


if __name__ == "__main__":
    sys.exit(main())
