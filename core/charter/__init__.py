"""
Charter Incentive Module

Decree schedule and the deterministic cashback calculator for the 2026
investment charter.
"""

from core.charter.schedule import (
    CharterTerms,
    CHARTER_SCHEDULE,
    RENOVATION_BONUS_PCT,
    CATEGORY_C_MINIMUM_PRICE_MAD,
    get_terms,
)
from core.charter.calculator import IncentiveResult, compute_incentive

__all__ = [
    # Schedule
    "CharterTerms",
    "CHARTER_SCHEDULE",
    "RENOVATION_BONUS_PCT",
    "CATEGORY_C_MINIMUM_PRICE_MAD",
    "get_terms",
    # Calculator
    "IncentiveResult",
    "compute_incentive",
]
