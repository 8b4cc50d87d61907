# social_service/domain/ledger.py
"""Pure ad-billing arithmetic.

Amounts are ``Decimal`` so that ``total_spent_after - total_spent_before``
equals the applied cost exactly.
"""
from dataclasses import dataclass, fields
from decimal import Decimal

MILLE = Decimal(1000)
ZERO = Decimal(0)


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 0.75 as 0.75 instead of its binary float expansion
    return Decimal(str(value))


@dataclass(frozen=True)
class RateTable:
    CPM: Decimal = ZERO
    CPC: Decimal = ZERO
    CPV: Decimal = ZERO
    CPE: Decimal = ZERO
    CPI: Decimal = ZERO
    CPA: Decimal = ZERO

    @classmethod
    def from_mapping(cls, rates: dict) -> "RateTable":
        known = {f.name for f in fields(cls)}
        return cls(
            **{
                key: to_decimal(value or 0)
                for key, value in rates.items()
                if key in known
            }
        )


@dataclass(frozen=True)
class EventCounts:
    impressions: int = 0
    clicks: int = 0
    views: int = 0
    engagements: int = 0
    installs: int = 0
    form_submits: int = 0

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{f.name} must be an integer")
            if value < 0:
                raise ValueError(f"{f.name} must not be negative")

    def items(self):
        return [(f.name, getattr(self, f.name)) for f in fields(self)]

    @property
    def total(self) -> int:
        return sum(count for _, count in self.items())


@dataclass(frozen=True)
class LedgerState:
    wallet: Decimal
    overage: Decimal
    total_spent: Decimal


def compute_cost(rates: RateTable, counts: EventCounts) -> Decimal:
    cost = (rates.CPM / MILLE) * counts.impressions
    cost += rates.CPC * counts.clicks
    cost += rates.CPV * counts.views
    cost += rates.CPE * counts.engagements
    cost += rates.CPI * counts.installs
    cost += rates.CPA * counts.form_submits
    return cost


def apply_cost(wallet, overage, total_spent, cost) -> LedgerState:
    """Deduct ``cost`` from the wallet; whatever the wallet cannot cover is overage."""
    wallet = to_decimal(wallet)
    overage = to_decimal(overage)
    total_spent = to_decimal(total_spent)
    cost = to_decimal(cost)
    if cost < 0:
        raise ValueError("cost must not be negative")

    available = max(wallet, ZERO)
    if available >= cost:
        wallet_after = available - cost
        overage_after = overage
    else:
        wallet_after = ZERO
        overage_after = overage + (cost - available)

    return LedgerState(
        wallet=wallet_after,
        overage=overage_after,
        total_spent=total_spent + cost,
    )
