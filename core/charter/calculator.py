"""
Charter Incentive Calculator

Turns an acquisition price, a charter category and a renovation flag into
a concrete cashback offer under the fixed decree schedule.

The calculation is a pure function: identical inputs always yield identical
outputs, which is what lets the audit ledger replay derived figures.
Arithmetic is done in Decimal and converted to plain numbers on output.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Union

from core.charter.schedule import RENOVATION_BONUS_PCT, get_terms
from core.classification import CharterCategory, coerce_charter_category
from core.errors import InvalidInputError


Number = Union[int, float]

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class IncentiveResult:
    """
    Cashback offer for one acquisition.

    Percentages are percentage points (10 means 10%). Cashback is a whole
    number of dirhams.
    """

    acquisition_price_mad: Number
    charter_category: CharterCategory
    is_renovation: bool
    eligible: bool
    base_cashback_pct: Number
    renovation_bonus_pct: Number
    total_cashback_pct: Number
    eligible_investment_mad: Number
    estimated_cashback_mad: int
    decree_reference: str

    @property
    def charter_eligible(self) -> bool:
        return self.eligible

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for JSON output."""
        return {
            "acquisition_price_mad": self.acquisition_price_mad,
            "charter_category": self.charter_category.value,
            "is_renovation": self.is_renovation,
            "charter_eligible": self.eligible,
            "base_cashback_pct": self.base_cashback_pct,
            "renovation_bonus_pct": self.renovation_bonus_pct,
            "total_cashback_pct": self.total_cashback_pct,
            "eligible_investment_mad": self.eligible_investment_mad,
            "estimated_cashback_mad": self.estimated_cashback_mad,
            "decree_reference": self.decree_reference,
        }


def _plain(value: Decimal) -> Number:
    """Decimal to int when integral, float otherwise."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _validate_price(acquisition_price_mad: Any) -> Decimal:
    if isinstance(acquisition_price_mad, bool) or not isinstance(
        acquisition_price_mad, (int, float, Decimal)
    ):
        raise InvalidInputError(
            f"acquisition_price_mad must be a number: {acquisition_price_mad!r}"
        )
    price = Decimal(str(acquisition_price_mad)) if isinstance(acquisition_price_mad, float) else Decimal(acquisition_price_mad)
    if not price.is_finite():
        raise InvalidInputError("acquisition_price_mad must be finite")
    if price < 0:
        raise InvalidInputError("acquisition_price_mad cannot be negative")
    return price


def compute_incentive(
    acquisition_price_mad: Number,
    category: Union[CharterCategory, str],
    is_renovation: bool = False,
) -> IncentiveResult:
    """
    Compute the charter cashback offer for an acquisition.

    Args:
        acquisition_price_mad: Acquisition price in MAD, finite and >= 0
        category: Charter category (enum member or "A"/"B"/"C")
        is_renovation: Whether the project is a renovation

    Returns:
        IncentiveResult with rates, eligible investment and cashback

    Raises:
        InvalidInputError: On malformed price, category or flag
    """
    price = _validate_price(acquisition_price_mad)
    charter_category = coerce_charter_category(category)
    if not isinstance(is_renovation, bool):
        raise InvalidInputError(f"is_renovation must be a boolean: {is_renovation!r}")

    terms = get_terms(charter_category)

    # Category C below its minimum is ineligible, not an error
    eligible = terms.qualifies(price)
    if eligible:
        base_pct = terms.base_cashback_pct
        bonus_pct = RENOVATION_BONUS_PCT if is_renovation else _ZERO
    else:
        base_pct = _ZERO
        bonus_pct = _ZERO

    total_pct = min(max(base_pct + bonus_pct, _ZERO), terms.max_total_pct)
    # Bonus reported is what actually survived the cap
    bonus_pct = total_pct - base_pct if total_pct > base_pct else _ZERO

    eligible_investment = min(price, Decimal(terms.ceiling_mad))
    cashback = (eligible_investment * total_pct / _HUNDRED).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )

    return IncentiveResult(
        acquisition_price_mad=_plain(price),
        charter_category=charter_category,
        is_renovation=is_renovation,
        eligible=eligible,
        base_cashback_pct=_plain(base_pct),
        renovation_bonus_pct=_plain(bonus_pct),
        total_cashback_pct=_plain(total_pct),
        eligible_investment_mad=_plain(eligible_investment),
        estimated_cashback_mad=int(cashback),
        decree_reference=terms.decree_reference,
    )
