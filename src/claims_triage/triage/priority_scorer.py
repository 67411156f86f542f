"""Priority scoring for actionable claims.

    score = round(total_charges / 500 + age * 1.5)   (+100 before rounding for DENY)

Rounding is half-up toward positive infinity. Absent or non-numeric charges
and ages count as zero.
"""

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from typing import Any, Dict, Optional

from claims_triage.utils.number_parsing import parse_decimal

_HALF = Decimal("0.5")


@dataclass(frozen=True)
class ScoringConfig:
    """Constants of the priority formula."""

    # Dollars of billed charges worth one point
    charges_divisor: float = 500.0

    # Points per day of claim age
    age_weight: float = 1.5

    # Flat penalty for denied claims
    denial_penalty: float = 100.0

    # Status value that triggers the penalty (normalized, upper-case)
    denial_status: str = "DENY"

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "ScoringConfig":
        """Create config from dictionary (loaded from YAML)."""
        defaults = cls()
        return cls(
            charges_divisor=float(config.get("charges_divisor", defaults.charges_divisor)),
            age_weight=float(config.get("age_weight", defaults.age_weight)),
            denial_penalty=float(config.get("denial_penalty", defaults.denial_penalty)),
            denial_status=str(config.get("denial_status", defaults.denial_status)),
        )

    def __post_init__(self) -> None:
        if self.charges_divisor == 0:
            raise ValueError("charges_divisor must be non-zero")


def score_priority(
    total_charges: Any,
    age: Any,
    status: Optional[str],
    config: Optional[ScoringConfig] = None,
) -> int:
    """Compute the urgency score of a claim.

    Args:
        total_charges: Billed charges (number or raw cell value)
        age: Claim age in days (number or raw cell value)
        status: Normalized claim status
        config: Formula constants; defaults to ``ScoringConfig()``

    Returns:
        Integer priority score. Higher is more urgent.
    """
    config = config or ScoringConfig()

    charges = parse_decimal(total_charges) or Decimal("0")
    days = parse_decimal(age) or Decimal("0")

    value = charges / Decimal(str(config.charges_divisor)) + days * Decimal(str(config.age_weight))
    if status == config.denial_status:
        value += Decimal(str(config.denial_penalty))

    return int((value + _HALF).to_integral_value(rounding=ROUND_FLOOR))
