"""
Charter Incentive Schedule - 2026 Investment Charter

Fixed decree schedule for the three charter categories. Figures are held
as named constants so that a revision of the decree is a data change only.

Rates and ceilings are those observed on validated dossiers; thresholds,
caps and the renovation bonus must be re-checked against the published
decree text whenever it is amended.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Final, Mapping, Optional

from core.classification import CharterCategory


# =============================================================================
# Constants
# =============================================================================

# Percentage points added to the base rate for renovation projects
RENOVATION_BONUS_PCT: Final[Decimal] = Decimal("2")

CATEGORY_A_BASE_PCT: Final[Decimal] = Decimal("10")
CATEGORY_A_CEILING_MAD: Final[int] = 50_000_000
CATEGORY_A_MAX_PCT: Final[Decimal] = Decimal("12")

CATEGORY_B_BASE_PCT: Final[Decimal] = Decimal("15")
CATEGORY_B_CEILING_MAD: Final[int] = 20_000_000
CATEGORY_B_MAX_PCT: Final[Decimal] = Decimal("17")

CATEGORY_C_BASE_PCT: Final[Decimal] = Decimal("5")
CATEGORY_C_CEILING_MAD: Final[int] = 10_000_000
CATEGORY_C_MAX_PCT: Final[Decimal] = Decimal("7")
# Category C only pays when the price strictly exceeds this amount
CATEGORY_C_MINIMUM_PRICE_MAD: Final[int] = 1_500_000


# =============================================================================
# Charter Terms
# =============================================================================


@dataclass(frozen=True)
class CharterTerms:
    """Incentive terms for a single charter category."""

    category: CharterCategory
    base_cashback_pct: Decimal
    ceiling_mad: int
    max_total_pct: Decimal
    decree_reference: str
    minimum_price_mad: Optional[int] = None

    def qualifies(self, acquisition_price_mad: Decimal) -> bool:
        """Whether the base rate applies at this price."""
        if self.minimum_price_mad is None:
            return True
        return acquisition_price_mad > self.minimum_price_mad


CHARTER_SCHEDULE: Final[Mapping[CharterCategory, CharterTerms]] = MappingProxyType(
    {
        CharterCategory.A: CharterTerms(
            category=CharterCategory.A,
            base_cashback_pct=CATEGORY_A_BASE_PCT,
            ceiling_mad=CATEGORY_A_CEILING_MAD,
            max_total_pct=CATEGORY_A_MAX_PCT,
            decree_reference="Loi-cadre 03-22, Decret 2-23-1, Art. 6 (Categorie A)",
        ),
        CharterCategory.B: CharterTerms(
            category=CharterCategory.B,
            base_cashback_pct=CATEGORY_B_BASE_PCT,
            ceiling_mad=CATEGORY_B_CEILING_MAD,
            max_total_pct=CATEGORY_B_MAX_PCT,
            decree_reference="Loi-cadre 03-22, Decret 2-23-1, Art. 7 (Categorie B)",
        ),
        CharterCategory.C: CharterTerms(
            category=CharterCategory.C,
            base_cashback_pct=CATEGORY_C_BASE_PCT,
            ceiling_mad=CATEGORY_C_CEILING_MAD,
            max_total_pct=CATEGORY_C_MAX_PCT,
            decree_reference="Loi-cadre 03-22, Decret 2-23-1, Art. 8 (Categorie C)",
            minimum_price_mad=CATEGORY_C_MINIMUM_PRICE_MAD,
        ),
    }
)


def get_terms(category: CharterCategory) -> CharterTerms:
    """Get the charter terms for a category."""
    return CHARTER_SCHEDULE[category]
