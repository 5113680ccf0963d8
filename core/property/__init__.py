"""
Property Module

The property aggregate (ledger plus materialised snapshot), the in-memory
registry used by the web layer, and portfolio totals.
"""

from core.property.aggregate import PropertyAggregate
from core.property.registry import (
    PropertyRegistry,
    PropertyNotFoundError,
    get_property_registry,
)
from core.property.portfolio import PortfolioSummary, summarize_portfolio

__all__ = [
    "PropertyAggregate",
    "PropertyRegistry",
    "PropertyNotFoundError",
    "get_property_registry",
    "PortfolioSummary",
    "summarize_portfolio",
]
