"""
Supply-versus-demand comparison of catalog groups.

Supply is the number of datasets published under a grouping key; demand
is the downloads and pageviews those datasets attract. Groups are ranked
on each metric with dense descending ranks and labelled "up"/"down" by how
far each demand rank sits from the supply rank.
"""

import pandas as pd

from src import config
from src.formulas.ranking import classify_change_series, dense_rank_desc, share_of_total
from src.logging_config import get_report_logger

log = get_report_logger(__name__)

SUPPLY_DEMAND_COLUMNS = [
    "provided",
    "downloaded",
    "viewed",
    "provided_rank",
    "download_rank",
    "view_rank",
    "change_vs_download",
    "change_vs_pageview",
]

DATATYPE_SHARE_COLUMNS = [
    "resource_type",
    "dataset_count",
    "total_downloads",
    "total_pageviews",
    "dataset_pct",
    "download_pct",
    "pageview_pct",
]


def resolve_group_column(group_by):
    """Map a grouping key ("category" or "datatype") to its record column."""
    try:
        return config.GROUP_BY_COLUMNS[group_by]
    except KeyError:
        raise ValueError(
            f"group_by must be one of {sorted(config.GROUP_BY_COLUMNS)}, got {group_by!r}"
        ) from None


def _empty_comparison(key_col):
    out = pd.DataFrame({key_col: pd.Series([], dtype=object)})
    for col in SUPPLY_DEMAND_COLUMNS:
        dtype = object if col.startswith("change_") else "int64"
        out[col] = pd.Series([], dtype=dtype)
    return out


def _group_totals(df, key_col):
    """Per-group dataset count plus summed downloads and total pageviews.

    Rows with an absent key are dropped; null usage counts add 0.
    """
    keyed = df[df[key_col].notna()]
    dropped = len(df) - len(keyed)
    if dropped:
        log.debug("Excluded %d records with no %s", dropped, key_col)

    usage = pd.DataFrame({
        key_col: keyed[key_col].astype(object),
        "downloaded": keyed["download_count"].astype("Int64").fillna(0).astype("int64"),
        "viewed": keyed["pageviews_total"].astype("Int64").fillna(0).astype("int64"),
    })
    grouped = usage.groupby(key_col, sort=False)
    totals = pd.DataFrame({
        "provided": grouped.size().astype("int64"),
        "downloaded": grouped["downloaded"].sum().astype("int64"),
        "viewed": grouped["viewed"].sum().astype("int64"),
    })
    return totals.reset_index()


def compare_supply_and_demand(df, group_by="category"):
    """Rank groups by supply and demand and classify the rank gaps.

    Parameters
    ----------
    df : pd.DataFrame
        Record table (see src.flatten.records_to_frame).
    group_by : str
        "category" or "datatype".

    Returns
    -------
    pd.DataFrame
        One row per group with the key column (``category`` or
        ``resource_type``) and SUPPLY_DEMAND_COLUMNS. Row order is not part
        of the contract; use sort_for_display() before plotting.
    """
    key_col = resolve_group_column(group_by)
    totals = _group_totals(df, key_col)
    if totals.empty:
        log.warning("No records carry a %s; comparison table is empty", key_col)
        return _empty_comparison(key_col)

    totals["provided_rank"] = dense_rank_desc(totals["provided"])
    totals["download_rank"] = dense_rank_desc(totals["downloaded"])
    totals["view_rank"] = dense_rank_desc(totals["viewed"])
    totals["change_vs_download"] = classify_change_series(
        totals["download_rank"], totals["provided_rank"])
    totals["change_vs_pageview"] = classify_change_series(
        totals["view_rank"], totals["provided_rank"])

    totals = totals.sort_values(
        ["provided", key_col], ascending=[False, True], kind="mergesort"
    ).reset_index(drop=True)
    return totals[[key_col] + SUPPLY_DEMAND_COLUMNS]


def sort_for_display(table, by="provided", ascending=False):
    """Return a copy of an aggregate table sorted on one metric."""
    return table.sort_values(by, ascending=ascending, kind="mergesort").reset_index(drop=True)


def datatype_share_comparison(df):
    """Share of datasets, downloads and pageviews held by each resource type.

    Each percentage is the type's portion of the portal-wide total of that
    metric. A metric whose portal-wide total is 0 (e.g. no downloads were
    reported at all) yields NaN for every type.

    Returns
    -------
    pd.DataFrame
        Columns DATATYPE_SHARE_COLUMNS, descending by dataset_count.
    """
    totals = _group_totals(df, "resource_type")
    if totals.empty:
        return pd.DataFrame({
            col: pd.Series([], dtype=object if col == "resource_type"
                           else "float64" if col.endswith("_pct") else "int64")
            for col in DATATYPE_SHARE_COLUMNS
        })

    out = pd.DataFrame({
        "resource_type": totals["resource_type"],
        "dataset_count": totals["provided"],
        "total_downloads": totals["downloaded"],
        "total_pageviews": totals["viewed"],
        "dataset_pct": share_of_total(totals["provided"]),
        "download_pct": share_of_total(totals["downloaded"]),
        "pageview_pct": share_of_total(totals["viewed"]),
    })
    for col in ("download_pct", "pageview_pct"):
        if out[col].isna().all():
            log.warning("Portal-wide %s total is 0; shares are undefined",
                        col.replace("_pct", ""))
    return sort_for_display(out, by="dataset_count")
