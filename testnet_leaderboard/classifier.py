"""Badge classification and activity scoring for explorer addresses."""

from __future__ import annotations

from .models import Badge

WHALE_MIN_TX = 500
NFT_HUNTER_MIN_NFTS = 10
POWER_USER_MIN_TX = 100
BRIDGE_MASTER_MIN_VOLUME = 100
ACTIVE_USER_MIN_TX = 10
VOLUME_SCORE_WEIGHT = 0.1


def classify(tx_count: int, balance: float, nft_count: int, total_volume: float) -> Badge:
    """Return the badge for an address; the first matching rule wins."""
    if tx_count == 0 and balance == 0:
        return Badge.INACTIVE
    if tx_count == 0 and balance > 0:
        return Badge.HOLDER
    if tx_count > WHALE_MIN_TX:
        return Badge.WHALE
    if nft_count > NFT_HUNTER_MIN_NFTS:
        return Badge.NFT_HUNTER
    if tx_count > POWER_USER_MIN_TX:
        return Badge.POWER_USER
    if total_volume > BRIDGE_MASTER_MIN_VOLUME:
        return Badge.BRIDGE_MASTER
    if tx_count >= ACTIVE_USER_MIN_TX:
        return Badge.ACTIVE_USER
    return Badge.NEW_USER


def activity_score(tx_count: int, total_volume: float) -> float:
    return tx_count + total_volume * VOLUME_SCORE_WEIGHT
