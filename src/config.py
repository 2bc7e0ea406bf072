"""
Centralized configuration for the open-data catalog supply/demand report.

All endpoint settings, analysis thresholds, column definitions, and output
paths are defined here. Plot styling lives in ``src.outputs.report.ReportStyle``
and is passed explicitly to the render step.
"""

import os

# ─── CATALOG API ─────────────────────────────────────────────────────────
# Socrata Discovery API. The catalog endpoint is served from
# ``api.<host>``; the portal itself is selected with ``domains=``.
CATALOG_API_HOST = "us.socrata.com"
CATALOG_API_PATH = "/api/catalog/v1"
DEFAULT_DOMAIN = "data.cityofnewyork.us"
DEFAULT_LIMIT = 10000

REQUEST_TIMEOUT_SECONDS = 60
USER_AGENT = "opendata-catalog-report/1.0"

# ─── RECORD TABLE ────────────────────────────────────────────────────────
RECORD_COLUMNS = [
    "name",
    "category",
    "tags",
    "resource_type",
    "download_count",
    "pageviews_last_week",
    "pageviews_last_month",
    "pageviews_total",
    "last_updated",
]

# Non-negative counts; nullable Int64 in the record table.
USAGE_COLUMNS = [
    "download_count",
    "pageviews_last_week",
    "pageviews_last_month",
    "pageviews_total",
]

# ─── SUPPLY / DEMAND COMPARISON ──────────────────────────────────────────
# Grouping keys accepted by compare_supply_and_demand() → record column.
GROUP_BY_COLUMNS = {
    "category": "category",
    "datatype": "resource_type",
}

# A group is labelled "up" when its demand rank trails its supply rank by
# more than this many places. Kept at 1 to match the published report.
RANK_CHANGE_THRESHOLD = 1

# ─── REPORTING ───────────────────────────────────────────────────────────
TOP_TAGS_DEFAULT = 20
PCT_DECIMALS = 2

OUTPUT_DIRS = {
    "csv": "csv",
    "report": "report",
}


def get_output_dirs(output_dir):
    """Create and return the per-run output sub-directories.

    Parameters
    ----------
    output_dir : str
        Run-level output directory.

    Returns
    -------
    dict
        Keys from OUTPUT_DIRS mapped to absolute-ish paths under output_dir.
    """
    dirs = {key: os.path.join(output_dir, sub) for key, sub in OUTPUT_DIRS.items()}
    for path in dirs.values():
        os.makedirs(path, exist_ok=True)
    return dirs
