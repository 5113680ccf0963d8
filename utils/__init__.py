"""
Utility modules for the property engine.
"""

from .formatting import format_mad, format_percent
from .config import Config
from .logging import configure_logging

__all__ = ["format_mad", "format_percent", "Config", "configure_logging"]
