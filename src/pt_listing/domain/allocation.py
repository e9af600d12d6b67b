"""Pure planning of token-lock allocation and consumption.

Both functions only compute; the settlement engine applies the plan through
the repositories inside its transaction. Orders are deterministic:
  allocation  — positions in the order given (oldest holding first)
  consumption — locks in the order given (created_at, id)
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from src.pt_common.usdt import ZERO
from src.pt_holding.domain.models import HoldingPosition
from src.pt_listing.domain.models import TokenLock


@dataclass(frozen=True)
class LockAllocation:
    holding_id: str
    tokens: Decimal


@dataclass(frozen=True)
class LockDeduction:
    lock_id: str
    holding_id: str
    tokens: Decimal
    lock_remaining: Decimal

    @property
    def empties_lock(self) -> bool:
        return self.lock_remaining == 0


def plan_lock_allocation(
    positions: Iterable[HoldingPosition], requested: Decimal
) -> tuple[list[LockAllocation], Decimal]:
    """Reserve `requested` tokens across holdings.

    Returns (allocations, shortfall); shortfall > 0 means the holdings could
    not cover the request.
    """
    allocations: list[LockAllocation] = []
    remaining = requested
    for position in positions:
        if remaining <= 0:
            break
        take = min(remaining, position.free_tokens)
        if take <= 0:
            continue
        allocations.append(LockAllocation(position.holding.id, take))
        remaining -= take
    return allocations, max(remaining, ZERO)


def plan_lock_consumption(
    locks: Iterable[TokenLock], tokens: Decimal
) -> tuple[list[LockDeduction], Decimal]:
    """Draw `tokens` from a listing's locks.

    Returns (deductions, uncovered); uncovered > 0 means the locks held less
    than the listing promised.
    """
    deductions: list[LockDeduction] = []
    remaining = tokens
    for lock in locks:
        if remaining <= 0:
            break
        take = min(remaining, lock.locked_tokens)
        if take <= 0:
            continue
        deductions.append(
            LockDeduction(
                lock_id=lock.id,
                holding_id=lock.holding_id,
                tokens=take,
                lock_remaining=lock.locked_tokens - take,
            )
        )
        remaining -= take
    return deductions, max(remaining, ZERO)
