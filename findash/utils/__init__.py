"""
FinDash Utilities Package

Shared helpers used across the calculator, store and API layers.
"""

from findash.utils.decorators import singleton
from findash.utils.parsing import parse_amount, parse_date

__all__ = [
    "singleton",
    "parse_amount",
    "parse_date",
]
