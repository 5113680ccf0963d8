"""
Reporting - command-line presentation of engine output.
"""

from .summary import render_incentive, render_property

__all__ = ["render_incentive", "render_property"]
