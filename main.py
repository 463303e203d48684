"""MySideline Sync
================
Run the sync service: a daily 03:00 sync plus an initial sync on start-up
when the last one is more than a day old. For a one-off run use
``run_sync.py`` instead.

Usage:
    python main.py --config configs/mysideline.yaml
"""

import argparse
import asyncio

from mysideline_sync.config import init_config
from mysideline_sync.logging_setup import setup_logging
from mysideline_sync.sync_service import MySidelineSyncService


async def main() -> None:
    parser = argparse.ArgumentParser(description="MySideline Sync")
    parser.add_argument("--config", default=None, help="Path to YAML config file")
    args = parser.parse_args()

    cfg = init_config(args.config)
    setup_logging(cfg.log_level)

    print("\n" + "=" * 60)
    print(f"  MySideline Sync - {cfg.environment}")
    print("=" * 60 + "\n")

    service = MySidelineSyncService(cfg)
    await service.initialize_scheduled_sync()
    try:
        # the scheduler task keeps running until the process is stopped
        await asyncio.Event().wait()
    finally:
        await service.shutdown()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n  MySideline Sync - stopped")
