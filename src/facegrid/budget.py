"""Cost estimation for a generation run.

Every grid cell costs one call to the generation service, so the estimate
is the worst case for a fresh run; resumed runs cost less because cells
with an existing artifact are skipped.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from facegrid.logging import get_logger

logger = get_logger("budget")

PRICE_PER_CALL_USD = 0.00098


@dataclass(frozen=True)
class CostEstimate:
    """Estimated call count and USD cost for one grid.

    Attributes:
        grid_size: Grid dimension ``N``.
        calls: Number of generation calls (``N * N``).
        price_per_call: USD per call.
        total: ``calls * price_per_call``.
    """

    grid_size: int
    calls: int
    price_per_call: float
    total: float

    @property
    def formatted(self) -> str:
        return format_usd(self.total)


def estimate_cost(
    grid_size: int, price_per_call: float = PRICE_PER_CALL_USD
) -> CostEstimate:
    """Estimate the cost of generating a full ``grid_size x grid_size`` grid."""
    if grid_size < 1:
        raise ValueError(f"grid_size must be positive, got {grid_size}")
    calls = grid_size * grid_size
    total = calls * price_per_call
    logger.debug("Estimated %d calls at $%s each: %r", calls, price_per_call, total)
    return CostEstimate(
        grid_size=grid_size,
        calls=calls,
        price_per_call=price_per_call,
        total=total,
    )


def format_usd(amount: float) -> str:
    """Format *amount* the way an en-US USD currency formatter does.

    Two decimals, comma thousands separators, and a leading minus sign for
    negative amounts (``-$1,234.50``).
    """
    quantized = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if quantized < 0 else ""
    return f"{sign}${abs(quantized):,.2f}"
