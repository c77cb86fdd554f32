from __future__ import annotations

from .schemas import AprData

DEFAULT_FALLBACK_RATE = 0.05
DAYS_PER_YEAR = 365


def compute_apr(owner_balance: int, total_stakes: int, fallback_rate: float = DEFAULT_FALLBACK_RATE) -> AprData:
    """Reward rate as the ratio of total stakes to the owner's balance.

    An owner with no balance gets the fixed ``fallback_rate`` floor.
    """
    rate = total_stakes / owner_balance if owner_balance > 0 else fallback_rate
    return AprData(
        rate=rate,
        daily_rate=rate / DAYS_PER_YEAR,
        owner_balance=owner_balance,
        total_stakes=total_stakes,
    )
