"""
Record processors applied between reading and writing.
"""

from .discount_processor import DiscountProcessor

__all__ = [
    "DiscountProcessor",
]
