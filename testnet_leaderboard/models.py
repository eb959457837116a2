"""Data records shared across the leaderboard pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Mapping

from .config import WEI_PER_NATIVE


class Badge(str, Enum):
    INACTIVE = "Inactive"
    HOLDER = "Holder"
    WHALE = "Whale"
    NFT_HUNTER = "NFT Hunter"
    POWER_USER = "Power User"
    BRIDGE_MASTER = "Bridge Master"
    ACTIVE_USER = "Active User"
    NEW_USER = "New User"


def parse_wei(raw: Any) -> int:
    """Parse a wei amount, treating missing or malformed values as zero."""
    if raw is None or isinstance(raw, bool):
        return 0
    try:
        return int(str(raw).strip())
    except ValueError:
        return 0


def wei_to_native(wei: int) -> float:
    return wei / WEI_PER_NATIVE


def format_amount(amount: float) -> str:
    return f"{amount:.4f}"


@dataclass(frozen=True)
class AddressRecord:
    address: str
    balance: str | None = None

    @property
    def balance_wei(self) -> int:
        return parse_wei(self.balance)

    @classmethod
    def from_payload(cls, item: Any) -> "AddressRecord | None":
        if not isinstance(item, Mapping):
            return None
        address = item.get("address")
        if not isinstance(address, str) or not address:
            return None
        balance = item.get("balance")
        return cls(address=address, balance=None if balance is None else str(balance))


@dataclass(frozen=True)
class TransactionRecord:
    hash: str
    value: int
    gas_used: int
    timestamp: int

    @classmethod
    def from_payload(cls, item: Any) -> "TransactionRecord | None":
        """Build a record from an explorer ``txlist`` entry, or None if invalid."""
        if not isinstance(item, Mapping):
            return None
        timestamp = item.get("timeStamp", item.get("timestamp"))
        fields = (item.get("hash"), item.get("value"), item.get("gasUsed"), timestamp)
        if not all(isinstance(value, str) for value in fields):
            return None
        try:
            return cls(
                hash=item["hash"],
                value=int(item["value"]),
                gas_used=int(item["gasUsed"]),
                timestamp=int(timestamp),
            )
        except ValueError:
            return None


@dataclass(frozen=True)
class LeaderboardEntry:
    address: str
    tx_count: int
    total_volume: str
    balance: str
    badge: Badge
    activity_score: float
    last_update: datetime
    nft_count: int = 0
    rank: int = 0

    def as_dict(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "address": self.address,
            "tx_count": self.tx_count,
            "total_volume": self.total_volume,
            "balance": self.balance,
            "nft_count": self.nft_count,
            "badge": self.badge.value,
            "activity_score": self.activity_score,
            "last_update": self.last_update,
        }


@dataclass(frozen=True)
class EnrichmentProgress:
    processed: int
    total: int

    @property
    def fraction(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.processed / self.total


ProgressCallback = Callable[[EnrichmentProgress], None]


@dataclass(frozen=True)
class WalletStats:
    address: str
    rank: int | None
    tx_count: int
    balance: str
    nft_count: int
    total_volume: str
    total_gas: int
    badge: Badge
    last_activity: datetime | None


@dataclass(frozen=True)
class LeaderboardState:
    """Snapshot published to whatever renders the leaderboard."""

    entries: tuple[LeaderboardEntry, ...] = ()
    loading: bool = False
    error: str | None = None
    progress: EnrichmentProgress = field(default_factory=lambda: EnrichmentProgress(0, 0))
    updated_at: datetime | None = None
