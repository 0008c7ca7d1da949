#!/usr/bin/env python3
"""
Replace the legacy dead money table on every league still using it.

The old default charged nothing for future years when a player was cut with
one year left ({"1": 0, "2": 0.5, "3": 0.75, "4": 1.0}). Leagues still on
that table are moved to the current default (25% for every bucket). Leagues
with a table that cannot be read are reported and left alone.

Usage:
    python scripts/fix_dead_money_config.py
    python scripts/fix_dead_money_config.py --dry-run
"""

import argparse
import json
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from ffcm.config import get_data_dir
from ffcm.dead_money import is_legacy_default, validate_dead_money_config
from ffcm.errors import ValidationError
from ffcm.logging_config import setup_logging
from ffcm.repository import JsonContractRepository
from ffcm.schemas import default_dead_money_config


def stored_config(path: Path):
    """Dead money table as stored in a league file, or None when unreadable."""
    with open(path) as f:
        raw = json.load(f).get("settings", {}).get("dead_money_config")
    if raw is None:
        return default_dead_money_config()
    if isinstance(raw, str):
        raw = json.loads(raw)
    try:
        config, _ = validate_dead_money_config(raw)
    except ValidationError:
        return None
    return config


def fix_leagues(data_dir: Path, dry_run: bool = False) -> int:
    """Fix every league under data_dir; return how many were (or would be) changed."""
    repository = JsonContractRepository(data_dir)
    leagues_dir = data_dir / "leagues"
    fixed = 0

    for path in sorted(leagues_dir.glob("*.json")):
        league_id = path.stem
        try:
            config = stored_config(path)
        except (OSError, json.JSONDecodeError) as e:
            print(f"  ⚠️  {league_id}: could not read ({e})")
            continue

        if config is None:
            print(f"  ⚠️  {league_id}: unreadable dead money table, left unchanged")
            continue
        if not is_legacy_default(config):
            print(f"  {league_id}: custom table, no change needed")
            continue

        fixed += 1
        if dry_run:
            print(f"  Would update {league_id} to the default table")
        else:
            repository.update_league_settings(league_id, dead_money_config=default_dead_money_config())
            print(f"  ✅ Updated {league_id}")

    return fixed


def main():
    parser = argparse.ArgumentParser(description="Replace the legacy dead money table")
    parser.add_argument("--data-dir", "-d", type=Path, default=None, help="Data directory (default: from config)")
    parser.add_argument("--dry-run", "-n", action="store_true", help="Show what would be done without making changes")
    args = parser.parse_args()

    data_dir = args.data_dir or get_data_dir()
    setup_logging(audit_log=None if args.dry_run else data_dir / "logs" / "fix_dead_money_config.log")

    print(f"Checking leagues in {data_dir / 'leagues'}")
    fixed = fix_leagues(data_dir, dry_run=args.dry_run)
    action = "would be updated" if args.dry_run else "updated"
    print(f"\n{fixed} league(s) {action}")


if __name__ == "__main__":
    main()
