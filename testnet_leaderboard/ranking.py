"""Sort enriched entries into the published top-N leaderboard."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace

import pandas as pd

from .models import LeaderboardEntry

DEFAULT_TOP_N = 20

LEADERBOARD_COLUMNS = [
    "rank",
    "address",
    "tx_count",
    "total_volume",
    "balance",
    "nft_count",
    "badge",
    "activity_score",
    "last_update",
]


def rank_entries(
    entries: Iterable[LeaderboardEntry], top_n: int = DEFAULT_TOP_N
) -> list[LeaderboardEntry]:
    """Return the ``top_n`` entries by activity score with ranks ``1..N``.

    Ties keep their incoming order. Entries without an address are ignored
    and only the best-scoring entry per address survives.
    """
    candidates = [entry for entry in entries if entry.address]
    ordered = sorted(candidates, key=lambda entry: entry.activity_score, reverse=True)
    ranked: list[LeaderboardEntry] = []
    seen: set[str] = set()
    for entry in ordered:
        if entry.address in seen:
            continue
        seen.add(entry.address)
        ranked.append(entry)
        if len(ranked) >= top_n:
            break
    return [replace(entry, rank=idx + 1) for idx, entry in enumerate(ranked)]


def to_frame(entries: Sequence[LeaderboardEntry]) -> pd.DataFrame:
    """Tabulate ranked entries (one row per address, ordered by rank)."""
    if not entries:
        return pd.DataFrame(columns=LEADERBOARD_COLUMNS)
    df = pd.DataFrame([entry.as_dict() for entry in entries], columns=LEADERBOARD_COLUMNS)
    return df.sort_values("rank", kind="stable").reset_index(drop=True)
