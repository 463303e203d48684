"""Run one MySideline sync immediately (the operator's manual trigger)."""
import argparse
import asyncio

from mysideline_sync.config import init_config
from mysideline_sync.logging_setup import setup_logging
from mysideline_sync.sync_service import MySidelineSyncService


async def main() -> None:
    parser = argparse.ArgumentParser(description="MySideline Sync - manual run")
    parser.add_argument("--config", default=None, help="Path to YAML config file")
    parser.add_argument("--mock", action="store_true", help="Use synthetic events instead of the browser")
    args = parser.parse_args()

    cfg = init_config(args.config)
    if args.mock:
        cfg.mysideline.use_mock = True
    setup_logging(cfg.log_level)

    print(f"\n[SYNC] Syncing MySideline events from {cfg.mysideline.url}...\n")
    service = MySidelineSyncService(cfg)
    outcome = await service.sync_mysideline_events(trigger="manual")

    if outcome.success:
        print(
            f"[SYNC] {outcome.events_processed} processed: {outcome.events_created} created, "
            f"{outcome.events_updated} updated, {outcome.events_skipped} skipped, "
            f"{outcome.events_failed} failed"
        )
        if outcome.message:
            print(f"[SYNC] {outcome.message}")
    else:
        print(f"[SYNC] Sync failed: {outcome.error or outcome.message}")


if __name__ == "__main__":
    asyncio.run(main())
