"""
Dense ranking, rank-change classification and share-of-total formulas.

All functions are pure (no I/O, no side effects).
"""

import numpy as np
import pandas as pd

from src import config


def dense_rank_desc(values):
    """Dense-rank values in descending order (largest value = rank 1).

    Tied values share a rank and the next distinct value gets the previous
    rank + 1, so ranks never skip. The rank assigned to a value does not
    depend on the order the values are given in.

    Parameters
    ----------
    values : array-like
        Finite numeric values.

    Returns
    -------
    pd.Series
        int64 ranks, aligned to the input index when a Series is given.
    """
    series = values if isinstance(values, pd.Series) else pd.Series(values)
    if series.empty:
        return pd.Series([], index=series.index, dtype="int64")
    return series.rank(method="dense", ascending=False).astype("int64")


def classify_change(demand_rank, provided_rank, threshold=None):
    """Classify the gap between a demand rank and the supply rank.

    Returns "up" when ``demand_rank - provided_rank > threshold``, otherwise
    "down". With descending ranks, "up" marks a group supplied well above
    what its demand rank would suggest.

    Parameters
    ----------
    demand_rank : int
        Rank by downloads or pageviews.
    provided_rank : int
        Rank by number of datasets provided.
    threshold : int, optional
        Defaults to config.RANK_CHANGE_THRESHOLD (1).

    Returns
    -------
    str
        "up" or "down".
    """
    if threshold is None:
        threshold = config.RANK_CHANGE_THRESHOLD
    return "up" if (demand_rank - provided_rank) > threshold else "down"


def classify_change_series(demand_ranks, provided_ranks, threshold=None):
    """Vectorised classify_change() over aligned rank Series."""
    if threshold is None:
        threshold = config.RANK_CHANGE_THRESHOLD
    delta = pd.Series(demand_ranks) - pd.Series(provided_ranks)
    return pd.Series(np.where(delta > threshold, "up", "down"),
                     index=delta.index, dtype=object)


def share_of_total(values):
    """Express each value as a percentage (0-100) of the column total.

    Nulls count as 0. When the total is 0 the share is undefined and every
    element is NaN rather than inf or 0.

    Parameters
    ----------
    values : array-like
        Non-negative numbers.

    Returns
    -------
    pd.Series
        float64 percentages.
    """
    series = values if isinstance(values, pd.Series) else pd.Series(values)
    numeric = pd.to_numeric(series, errors="coerce").astype("Float64").fillna(0).astype("float64")
    total = numeric.sum()
    if total == 0:
        return pd.Series(np.nan, index=numeric.index, dtype="float64")
    return numeric / total * 100.0
