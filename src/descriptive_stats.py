"""
Descriptive statistics over the flattened catalog record table.

Every function here is read-only: it never mutates the input DataFrame
and returns a fresh object, so repeated calls give identical results.
"""

from collections import Counter

import numpy as np
import pandas as pd

from src import config


def _normalise(value):
    return value.strip().casefold()


def _all_tags(df):
    """Flatten the per-row tag tuples into one list, in row order."""
    return [tag for tags in df["tags"] for tag in tags]


def dataset_count(df):
    """Total number of catalog records (rows)."""
    return int(len(df))


def unique_category_count(df):
    """Distinct non-null categories after case-insensitive normalisation."""
    categories = df["category"].dropna()
    return len({_normalise(c) for c in categories})


def unique_tag_count(df):
    """Distinct tags across all rows after case-insensitive normalisation."""
    return len({_normalise(t) for t in _all_tags(df)})


def missingness_report(df):
    """Count and fraction of absent values per record field.

    An empty tag tuple counts as missing for ``tags``.

    Returns
    -------
    pd.DataFrame
        Indexed by field, columns ``missing`` (int) and
        ``missing_fraction`` (float, NaN for an empty table).
    """
    total = len(df)
    missing = {}
    for col in config.RECORD_COLUMNS:
        if col == "tags":
            missing[col] = int(sum(1 for tags in df[col] if len(tags) == 0))
        else:
            missing[col] = int(df[col].isna().sum())

    report = pd.DataFrame({"missing": pd.Series(missing, dtype="int64")})
    report.index.name = "field"
    report["missing_fraction"] = (
        report["missing"] / total if total else np.nan
    )
    return report


def category_frequency(df):
    """Datasets per category with each count's share of all datasets.

    Records without a category are left out of the rows but still count
    in the share denominator.

    Returns
    -------
    pd.DataFrame
        Columns ``category``, ``count``, ``share``; descending by count,
        ties in first-encountered order.
    """
    total = len(df)
    counts = Counter(df["category"].dropna())
    rows = counts.most_common()
    freq = pd.DataFrame(rows, columns=["category", "count"])
    freq["count"] = freq["count"].astype("int64")
    freq["share"] = freq["count"] / total if total else np.nan
    return freq


def top_tags(df, n=config.TOP_TAGS_DEFAULT):
    """The n most frequent raw tag strings.

    Parameters
    ----------
    df : pd.DataFrame
        Record table.
    n : int
        Number of tags to return.

    Returns
    -------
    pd.DataFrame
        Columns ``tag`` and ``count``, descending by count with ties in
        first-encountered order.
    """
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    # Counter preserves insertion order, and most_common() sorts stably.
    rows = Counter(_all_tags(df)).most_common(n)
    out = pd.DataFrame(rows, columns=["tag", "count"])
    out["count"] = out["count"].astype("int64")
    return out


def datatype_share(df):
    """Fraction of all records per resource type.

    Records without a type are not a key but count in the denominator.

    Returns
    -------
    pd.Series
        resource_type → fraction, descending.
    """
    total = len(df)
    counts = Counter(df["resource_type"].dropna())
    shares = pd.Series(
        {rtype: count / total for rtype, count in counts.most_common()},
        dtype="float64",
    )
    shares.index.name = "resource_type"
    shares.name = "share"
    return shares


def usage_distribution(df):
    """Summary statistics of each usage count, ignoring absent values.

    Returns
    -------
    pd.DataFrame
        One row per usage column with count, mean, std, min, 25%, 50%,
        75%, max.
    """
    rows = {}
    for col in config.USAGE_COLUMNS:
        values = df[col].dropna().astype("float64")
        rows[col] = values.describe()
    out = pd.DataFrame(rows).T
    out.index.name = "metric"
    return out


def updates_by_year(df):
    """Number of datasets whose last update falls in each calendar year."""
    years = df["last_updated"].dropna().dt.year.astype("int64")
    counts = years.value_counts().sort_index()
    counts.index.name = "year"
    counts.name = "datasets"
    return counts


def summarize(df, top_n=config.TOP_TAGS_DEFAULT):
    """Bundle every descriptive statistic used by the report."""
    return {
        "dataset_count": dataset_count(df),
        "unique_category_count": unique_category_count(df),
        "unique_tag_count": unique_tag_count(df),
        "missingness": missingness_report(df),
        "category_frequency": category_frequency(df),
        "top_tags": top_tags(df, top_n),
        "datatype_share": datatype_share(df),
        "usage_distribution": usage_distribution(df),
        "updates_by_year": updates_by_year(df),
    }
