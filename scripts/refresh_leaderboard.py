#!/usr/bin/env python3
"""Build the testnet activity leaderboard and print it as a table."""

from __future__ import annotations

import argparse
import logging
import random
import sys
import threading
from dataclasses import replace
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from rich import box
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.table import Table

from testnet_leaderboard.config import DEFAULT_LEADERBOARD_CONFIG, EXPLORER_API_BASE
from testnet_leaderboard.http_utils import ExplorerClient
from testnet_leaderboard.leaderboard import build_leaderboard
from testnet_leaderboard.models import LeaderboardState
from testnet_leaderboard.ranking import to_frame
from testnet_leaderboard.scheduler import RefreshScheduler
from testnet_leaderboard.ttl_cache import TTLCache


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--base-url",
        default=EXPLORER_API_BASE,
        help=f"Explorer API endpoint (default: {EXPLORER_API_BASE})",
    )
    parser.add_argument(
        "--sample-size",
        type=int,
        default=DEFAULT_LEADERBOARD_CONFIG.sample_size,
        help="Number of addresses to enrich per pass (default: %(default)s)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed the address sampler for a reproducible sample.",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Keep running and refresh on the configured interval until interrupted.",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=DEFAULT_LEADERBOARD_CONFIG.refresh_interval_seconds,
        help="Seconds between refreshes in --watch mode (default: %(default)s)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional CSV path for the ranked leaderboard.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args()


def _build_table(state: LeaderboardState) -> Table:
    table = Table(
        title="Testnet Activity Leaderboard",
        box=box.SIMPLE_HEAVY,
        header_style="bold blue",
    )
    table.add_column("#", justify="right", style="bold")
    table.add_column("Address")
    table.add_column("Badge")
    table.add_column("Txs", justify="right")
    table.add_column("Volume", justify="right")
    table.add_column("Balance", justify="right")
    table.add_column("Score", justify="right")
    for entry in state.entries:
        table.add_row(
            str(entry.rank),
            entry.address,
            entry.badge.value,
            str(entry.tx_count),
            entry.total_volume,
            entry.balance,
            f"{entry.activity_score:.1f}",
        )
    return table


def _render(console: Console, state: LeaderboardState, output: Path | None) -> None:
    if state.error:
        console.print(f"[red]{state.error}[/] (re-run to retry)")
        return
    console.print(_build_table(state))
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        to_frame(state.entries).to_csv(output, index=False)
        console.print(f"[dim]Wrote {len(state.entries)} rows to {output}[/]")


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    console = Console()
    config = replace(
        DEFAULT_LEADERBOARD_CONFIG,
        sample_size=args.sample_size,
        refresh_interval_seconds=args.interval,
    )
    client = ExplorerClient(args.base_url)
    rng = random.Random(args.seed) if args.seed is not None else None
    cache: TTLCache = TTLCache(max_entries=1)

    progress = Progress(
        TextColumn("Enriching addresses"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
    )
    task_id = progress.add_task("enrich", total=None)

    def on_update(state: LeaderboardState) -> None:
        if state.progress.total:
            progress.update(
                task_id, completed=state.progress.processed, total=state.progress.total
            )
        if args.watch and not state.loading and (state.entries or state.error):
            _render(console, state, args.output)

    scheduler = RefreshScheduler(
        lambda callback: build_leaderboard(
            client, config=config, rng=rng, progress_callback=callback
        ),
        cache=cache,
        config=config,
        on_update=on_update,
    )

    with progress:
        if not args.watch:
            state = scheduler.refresh()
        else:
            scheduler.start()
            try:
                threading.Event().wait()
            except KeyboardInterrupt:
                console.print("\nStopping leaderboard refresh.")
            finally:
                scheduler.stop(timeout=5)
            return
    _render(console, state, args.output)
    if state.error:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
