"""
Setup module - checks the runtime prerequisites of the sync service.
"""
import asyncio
import logging
import subprocess
import sys
from pathlib import Path

import psycopg

from .config import SyncConfig
from .errors import StoreUnavailableError
from .storage.db import apply_schema

logger = logging.getLogger(__name__)

ENV_TEMPLATE = (
    "MYSIDELINE_SYNC_ENABLED=false\n"
    "MYSIDELINE_USE_MOCK=false\n"
    "DATABASE_URL=postgresql://localhost:5432/masters\n"
)


def check_playwright() -> bool:
    """Make sure the Playwright Chromium browser is installed."""
    print("[Setup] Checking Playwright installation...")
    result = subprocess.run(
        [sys.executable, "-m", "playwright", "install", "chromium"],
        capture_output=True, text=True,
    )
    if result.returncode != 0:
        print(f"[Setup] WARNING: Playwright install issue: {result.stderr}")
        return False
    print("[Setup] Playwright Chromium browser is ready.")
    return True


def check_env_file(project_root: Path) -> bool:
    """Check that a .env file exists; write a template when it does not."""
    env_path = project_root / ".env"
    if not env_path.exists():
        print(f"[Setup] WARNING: No .env file found at {env_path}")
        env_path.write_text(ENV_TEMPLATE, encoding="utf-8")
        print(f"[Setup] Wrote a template to {env_path}, edit DATABASE_URL before running")
        return False

    content = env_path.read_text(encoding="utf-8")
    if "DATABASE_URL" not in content:
        print("[Setup] WARNING: DATABASE_URL not configured in .env file")
        return False

    print("[Setup] .env file is configured.")
    return True


def check_database(config: SyncConfig) -> bool:
    """Connect to the database and create the pipeline tables if needed."""
    print("[Setup] Checking database and schema...")
    try:
        asyncio.run(apply_schema(config.database_url))
    except (StoreUnavailableError, psycopg.Error) as exc:
        print(f"[Setup] ERROR: database not ready: {exc}")
        return False
    print("[Setup] Database schema is ready.")
    return True


def run_setup(project_root: Path, config: SyncConfig) -> bool:
    """Run all setup checks."""
    print("=" * 60)
    print("  MySideline Sync - Setup Check")
    print("=" * 60)

    config.temp_dir.mkdir(parents=True, exist_ok=True)
    print(f"[Setup] Temp directory ready: {config.temp_dir}")

    all_ok = True
    if not check_playwright():
        all_ok = False
    if not check_env_file(project_root):
        all_ok = False
    if not check_database(config):
        all_ok = False

    if all_ok:
        print("\n[Setup] All checks passed! Ready to run.")
    else:
        print("\n[Setup] Some checks failed. See warnings above.")
    print("=" * 60)
    return all_ok
