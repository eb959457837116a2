#!/usr/bin/env python3
"""Look up activity stats and the badge for a single testnet wallet."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from rich import box
from rich.console import Console
from rich.table import Table

from testnet_leaderboard.config import EXPLORER_API_BASE
from testnet_leaderboard.errors import LeaderboardError, user_message
from testnet_leaderboard.http_utils import ExplorerClient
from testnet_leaderboard.wallet_stats import fetch_wallet_stats

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    datefmt="%H:%M:%S",
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("address", help="Wallet address (0x followed by 40 hex characters)")
    parser.add_argument(
        "--base-url",
        default=EXPLORER_API_BASE,
        help=f"Explorer API endpoint (default: {EXPLORER_API_BASE})",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    console = Console()
    try:
        stats = fetch_wallet_stats(ExplorerClient(args.base_url), args.address)
    except LeaderboardError as exc:
        console.print(f"[red]{user_message(exc)}[/]")
        raise SystemExit(1)

    table = Table(title=stats.address, box=box.SIMPLE_HEAVY, show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Badge", stats.badge.value)
    table.add_row("Rank", f"#{stats.rank}" if stats.rank is not None else "unranked")
    table.add_row("Transactions", str(stats.tx_count))
    table.add_row("Balance", stats.balance)
    table.add_row("Total volume", stats.total_volume)
    table.add_row("Gas used", str(stats.total_gas))
    table.add_row("NFT transfers", str(stats.nft_count))
    last_activity = (
        stats.last_activity.strftime("%Y-%m-%d %H:%M UTC") if stats.last_activity else "No activity"
    )
    table.add_row("Last activity", last_activity)
    console.print(table)


if __name__ == "__main__":
    main()
