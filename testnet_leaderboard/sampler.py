"""Reduce the discovered address set to a bounded working sample."""

from __future__ import annotations

import math
import random
from collections.abc import Sequence

from .models import AddressRecord


def sample_addresses(
    addresses: Sequence[AddressRecord],
    k: int,
    *,
    rng: random.Random | None = None,
) -> list[AddressRecord]:
    """Pick ``min(k, len(addresses))`` addresses.

    The top ``k // 2`` by balance are always kept; the remaining slots are
    drawn uniformly at random from the rest so that low-balance but busy
    accounts still get a chance to appear.
    """
    if k <= 0 or not addresses:
        return []
    rng = rng or random.Random()
    ranked = sorted(addresses, key=lambda record: record.balance_wei, reverse=True)
    top_count = k // 2
    top = ranked[:top_count]
    tail = ranked[top_count:]
    draw = min(math.ceil(k / 2), len(tail))
    return top + rng.sample(tail, draw)
