"""
Formatting utilities.

Presentation helpers only; the core always emits raw numbers.
"""

from typing import Optional, Union


def format_mad(amount: Optional[Union[int, float]]) -> str:
    """
    Format an amount in Moroccan dirhams.

    Args:
        amount: The amount in whole dirhams, or None.

    Returns:
        Formatted string such as "4,200,000 MAD", or "—" when unknown.
    """
    if amount is None:
        return "—"
    return f"{round(amount):,} MAD"


def format_percent(value: Optional[Union[int, float]], decimals: int = 1) -> str:
    """
    Format a number as a percentage.

    Args:
        value: The percentage value.
        decimals: Number of decimal places.

    Returns:
        Formatted percentage string.
    """
    if value is None:
        return "—"
    return f"{value:.{decimals}f}%"
