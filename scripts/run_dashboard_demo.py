#!/usr/bin/env python3
"""Walk an agent dashboard through a few listing actions.

Runs against the in-memory Record Store and Credit Ledger by default, or
against the Postgres backend configured by ``POSTGRES_*`` with --postgres.
Action events go to the sink named by ``EVENT_SINK``.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from listing_desk.actions import ListingActions, ListingSession, NotificationCenter
from listing_desk.config import DeskConfig
from listing_desk.generators import ListingGenerator
from listing_desk.logging import setup_logging
from listing_desk.sinks import build_sink
from listing_desk.store import InMemoryCreditLedger, InMemoryRecordStore

logger = logging.getLogger("listing_desk.demo")


async def walk_through(session: ListingSession, actions: ListingActions) -> None:
    """Reload, search, then duplicate / feature / toggle the top listing."""
    await session.reload()
    stats = session.stats()
    logger.info(
        "Loaded %d listings (%d active), %d listing / %d boosting credits",
        stats.total, stats.active, stats.listing_credits, stats.boosting_credits,
    )

    session.set_query(status="active", sort="price_high")
    visible = session.visible()
    if not visible:
        logger.warning("No active listings to work with")
        return

    top = visible[0]
    for outcome in (
        await actions.duplicate(top.id),
        await actions.feature(top.id),
        await actions.toggle_status(top.id),
    ):
        logger.info("%s -> ok=%s: %s", outcome.action, outcome.ok, outcome.message)

    for notification in actions.notifications.active():
        print(f"[{notification.level.value}] {notification.message}")


async def run(config: DeskConfig, use_postgres: bool, owner_id: str | None, seed: int) -> None:
    sink = build_sink(config)
    notifications = NotificationCenter(duration=config.notifications.duration_seconds)

    try:
        if use_postgres:
            from listing_desk.store.postgres import open_backend

            if not owner_id:
                raise SystemExit("--owner-id is required with --postgres")
            async with open_backend(config.postgres) as (store, ledger):
                session = ListingSession(store, ledger, owner_id=owner_id)
                actions = ListingActions(session, config.credits, notifications, sink)
                await walk_through(session, actions)
        else:
            generator = ListingGenerator(seed=seed)
            owner_id = owner_id or generator.fake.uuid4()
            store = InMemoryRecordStore(generator.generate_batch(12, owner_id=owner_id))
            ledger = InMemoryCreditLedger()
            ledger.set_balance(owner_id, listing_credits=10, boosting_credits=5)
            session = ListingSession(store, ledger, owner_id=owner_id)
            actions = ListingActions(session, config.credits, notifications, sink)
            await walk_through(session, actions)
    finally:
        if sink is not None:
            sink.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Run listing actions against a dashboard session")
    parser.add_argument("--postgres", action="store_true", help="Use the Postgres backend")
    parser.add_argument("--owner-id", help="Agent id (required with --postgres)")
    parser.add_argument("--seed", type=int, default=42, help="Seed for in-memory sample data")
    args = parser.parse_args()

    config = DeskConfig.from_env()
    setup_logging(level=config.log_level, format_type=config.log_format)
    asyncio.run(run(config, args.postgres, args.owner_id, args.seed))


if __name__ == "__main__":
    main()
