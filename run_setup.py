"""Standalone entry point for verifying the project setup."""
import argparse
from pathlib import Path

from mysideline_sync.config import init_config
from mysideline_sync.logging_setup import setup_logging
from mysideline_sync.setup import run_setup

PROJECT_ROOT = Path(__file__).resolve().parent


def main() -> None:
    parser = argparse.ArgumentParser(description="MySideline Sync - Setup")
    parser.add_argument("--config", default=None, help="Path to YAML config file")
    args = parser.parse_args()

    cfg = init_config(args.config)
    setup_logging(cfg.log_level)

    print("\n[SETUP] Checking setup...\n")
    success = run_setup(PROJECT_ROOT, cfg)
    if success:
        print("[SETUP] Setup check passed")
    else:
        print("[SETUP] Setup reported issues but you can continue")
    print(f"Project root: {PROJECT_ROOT}")


if __name__ == "__main__":
    main()
