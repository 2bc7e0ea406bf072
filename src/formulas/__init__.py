"""
Pure ranking and share formulas used by the supply/demand comparison.

config.py retains runtime parameters and column definitions; this package
holds the arithmetic.
"""

from src.formulas.ranking import (
    classify_change,
    classify_change_series,
    dense_rank_desc,
    share_of_total,
)

__all__ = [
    "classify_change",
    "classify_change_series",
    "dense_rank_desc",
    "share_of_total",
]
