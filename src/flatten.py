"""
Flatten Socrata catalog entries into a per-dataset record table.

Every catalog entry yields exactly one DatasetRecord, however sparse the
entry is. Missing fields become None on the record and <NA>/NaT in the
DataFrame, so absence survives into the statistics.
"""

import math
from dataclasses import dataclass, fields
from typing import Optional

import numpy as np
import pandas as pd

from src import config
from src.logging_config import get_report_logger

log = get_report_logger(__name__)

_INT64_MAX = int(np.iinfo("int64").max)


@dataclass(frozen=True)
class DatasetRecord:
    """One published dataset from the catalog."""

    name: Optional[str] = None
    category: Optional[str] = None
    tags: tuple = ()
    resource_type: Optional[str] = None
    download_count: Optional[int] = None
    pageviews_last_week: Optional[int] = None
    pageviews_last_month: Optional[int] = None
    pageviews_total: Optional[int] = None
    last_updated: Optional[pd.Timestamp] = None


def _get_path(obj, *keys):
    """Follow nested dict keys, returning None when any level is missing."""
    for key in keys:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def _clean_str(value):
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _clean_count(value):
    """Coerce a usage count to a non-negative int, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        if math.isnan(number) or math.isinf(number):
            return None
        number = int(number)
    # Must fit the Int64 column.
    if number < 0 or number > _INT64_MAX:
        return None
    return number


def _clean_tags(value):
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(t for t in (_clean_str(v) for v in value) if t is not None)


def _clean_timestamp(value):
    if not isinstance(value, str) or not value.strip():
        return None
    ts = pd.to_datetime(value, utc=True, errors="coerce")
    if pd.isna(ts):
        return None
    return ts


def flatten_entry(entry):
    """Project one nested catalog entry onto a DatasetRecord.

    Parameters
    ----------
    entry : dict
        One element of the catalog ``results`` list.

    Returns
    -------
    DatasetRecord
    """
    resource = _get_path(entry, "resource") or {}
    classification = _get_path(entry, "classification") or {}
    page_views = _get_path(resource, "page_views") or {}

    return DatasetRecord(
        name=_clean_str(_get_path(resource, "name")),
        category=_clean_str(_get_path(classification, "domain_category")),
        tags=_clean_tags(_get_path(classification, "domain_tags")),
        resource_type=_clean_str(_get_path(resource, "type")),
        download_count=_clean_count(_get_path(resource, "download_count")),
        pageviews_last_week=_clean_count(_get_path(page_views, "page_views_last_week")),
        pageviews_last_month=_clean_count(_get_path(page_views, "page_views_last_month")),
        pageviews_total=_clean_count(_get_path(page_views, "page_views_total")),
        last_updated=_clean_timestamp(_get_path(resource, "updatedAt")),
    )


def flatten_catalog(document):
    """Flatten a parsed catalog document into records, preserving order.

    Accepts either the full response (a dict with ``results``) or the bare
    results list.
    """
    entries = document.get("results", []) if isinstance(document, dict) else document
    records = [flatten_entry(entry) for entry in entries]
    log.debug("Flattened %d catalog entries", len(records))
    return records


def records_to_frame(records):
    """Build the record table from DatasetRecords.

    Returns
    -------
    pd.DataFrame
        Columns config.RECORD_COLUMNS; usage counts as nullable Int64 and
        last_updated as UTC datetimes.
    """
    names = [f.name for f in fields(DatasetRecord)]
    df = pd.DataFrame(
        [[getattr(r, n) for n in names] for r in records],
        columns=names,
        dtype=object,
    )
    for col in config.USAGE_COLUMNS:
        df[col] = pd.array(df[col].tolist(), dtype="Int64")
    df["last_updated"] = pd.to_datetime(df["last_updated"], utc=True)
    return df[config.RECORD_COLUMNS]
