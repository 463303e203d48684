"""Print the sync configuration and recent SyncRun statistics."""
import argparse
import asyncio

from mysideline_sync.config import init_config
from mysideline_sync.logging_setup import setup_logging
from mysideline_sync.storage import CarnivalRepo, SyncRunRepo
from mysideline_sync.sync_service import SYNC_TYPE, MySidelineSyncService


async def main() -> None:
    parser = argparse.ArgumentParser(description="MySideline Sync - status")
    parser.add_argument("--config", default=None, help="Path to YAML config file")
    parser.add_argument("--days", type=int, default=30, help="Statistics window in days")
    args = parser.parse_args()

    cfg = init_config(args.config)
    setup_logging(cfg.log_level)

    service = MySidelineSyncService(cfg)
    status = service.get_sync_status()
    print("\n" + "=" * 60)
    print("  MySideline Sync - Status")
    print("=" * 60)
    print(f"  Enabled:     {status['enabled']}")
    for key, value in status["subcomponents"]["scraper"].items():
        print(f"  {key + ':':<16} {value}")

    last = await CarnivalRepo(cfg.database_url).find_last_synced()
    print(f"  Last synced carnival: {last.title + ' at ' + str(last.last_mysideline_sync) if last else 'never'}")

    runs = SyncRunRepo(cfg.database_url)
    ok_run = await runs.last_successful(SYNC_TYPE)
    if ok_run:
        print(
            f"  Last successful run:  #{ok_run.id} ({ok_run.events_processed} processed, "
            f"{ok_run.events_created} created) at {ok_run.completed_at}"
        )
    else:
        print("  Last successful run:  never")

    stats = await runs.stats(SYNC_TYPE, args.days)
    print(f"\n  Runs in the last {args.days} days:")
    for key, value in stats.items():
        print(f"    {key + ':':<26} {value}")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    asyncio.run(main())
