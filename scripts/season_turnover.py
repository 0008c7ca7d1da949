#!/usr/bin/env python3
"""
Preview or execute the season turnover of a league.

Without --execute the script only prints what would change. With it, every
active contract is rolled into the next season in one transaction.

Usage:
    python scripts/season_turnover.py demo-league
    python scripts/season_turnover.py demo-league --execute
    python scripts/season_turnover.py demo-league --data-dir /srv/ffcm/data --execute
"""

import argparse
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from ffcm.config import get_data_dir
from ffcm.errors import ContractManagerError
from ffcm.logging_config import setup_logging
from ffcm.repository import JsonContractRepository
from ffcm.turnover import execute_turnover, preview_turnover


def print_preview(preview: dict) -> None:
    """Print a turnover preview as a table."""
    summary = preview["summary"]
    print(f"Season {summary['currentSeason']} -> {summary['newSeason']}")
    print(f"Annual increase: {preview['leagueSettings']['annualIncreasePercentage']}%")
    print()

    for change in preview["contractChanges"]:
        print(
            f"  {change['teamName']:<20} {change['playerName']:<24} "
            f"{change['currentYearsRemaining']}y -> {change['newYearsRemaining']}y  "
            f"${change['currentSalary']:>12,.2f} -> ${change['newSalary']:>12,.2f}  "
            f"{change['newStatus']}"
        )

    print()
    print(f"Contracts affected:          {summary['contractsAffected']}")
    print(f"Eligible for extension:      {summary['eligibleForExtension']}")
    print(f"Eligible for franchise tag:  {summary['eligibleForFranchiseTag']}")


def main():
    parser = argparse.ArgumentParser(description="Preview or execute a league's season turnover")
    parser.add_argument("league_id", help="League identifier (data/leagues/<league_id>.json)")
    parser.add_argument("--execute", "-x", action="store_true", help="Apply the turnover instead of previewing it")
    parser.add_argument("--data-dir", "-d", type=Path, default=None, help="Data directory (default: from config)")
    args = parser.parse_args()

    data_dir = args.data_dir or get_data_dir()
    setup_logging(audit_log=data_dir / "logs" / "turnover.log" if args.execute else None)
    repository = JsonContractRepository(data_dir)

    try:
        if args.execute:
            result = execute_turnover(repository, args.league_id, executed_by="cli")
            print(f"✅ {result['message']}")
            print(f"   New season:        {result['newSeason']}")
            print(f"   Contracts updated: {result['contractsUpdated']}")
            print(f"   Contracts expired: {result['expiredContracts']}")
        else:
            print_preview(preview_turnover(repository, args.league_id))
            print()
            print("Dry run only. Re-run with --execute to apply.")
    except ContractManagerError as e:
        print(f"❌ {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
