"""
Shared fixtures for catalog report tests.

Provides a small synthetic Discovery API response and the record table
built from it, so each test module can check its logic against known
inputs without touching the network.
"""

import tempfile

import pytest

from src.flatten import DatasetRecord, flatten_catalog, records_to_frame
from src.logging_config import reset_logging


def make_entry(name, category=None, tags=None, rtype="dataset", downloads=None,
               views_total=None, views_week=None, views_month=None,
               updated="2023-05-01T12:00:00.000Z"):
    """Build one catalog ``results`` entry in the Discovery API shape."""
    resource = {"name": name, "type": rtype, "updatedAt": updated}
    if downloads is not None:
        resource["download_count"] = downloads
    page_views = {}
    if views_week is not None:
        page_views["page_views_last_week"] = views_week
    if views_month is not None:
        page_views["page_views_last_month"] = views_month
    if views_total is not None:
        page_views["page_views_total"] = views_total
    if page_views:
        resource["page_views"] = page_views

    classification = {}
    if category is not None:
        classification["domain_category"] = category
    if tags is not None:
        classification["domain_tags"] = tags
    return {"resource": resource, "classification": classification}


def make_frame(rows):
    """Record table from a list of DatasetRecord keyword dicts."""
    return records_to_frame([DatasetRecord(**row) for row in rows])


@pytest.fixture
def entry_factory():
    """The make_entry() builder, for tests that need custom entries."""
    return make_entry


@pytest.fixture
def frame_factory():
    """The make_frame() builder, for tests that need custom record tables."""
    return make_frame


@pytest.fixture
def clean_logging():
    """Reset root logging after a test that configures handlers."""
    yield
    reset_logging()


@pytest.fixture
def tmp_dir():
    """Temporary directory cleaned up after the test."""
    with tempfile.TemporaryDirectory(prefix="catalog_test_") as d:
        yield d


@pytest.fixture
def catalog_document():
    """Six catalog entries with a mix of present and missing fields."""
    return {
        "results": [
            make_entry("Motor Vehicle Collisions", "Public Safety",
                       ["traffic", "crashes"], "dataset", 300, 10, 2, 5),
            make_entry("311 Service Requests", "Social Services",
                       ["311", "complaints"], "dataset", 500, 900, 50, 200),
            make_entry("Street Trees Map", "Environment",
                       ["trees", "Traffic"], "map", 20, 40),
            make_entry("Crime Story", "Public Safety", ["crime"], "story", None, 5),
            make_entry("Uncategorised Upload", None, None, "file", 7, None,
                       updated=None),
            make_entry("Air Quality", "environment", ["air", "traffic"], "chart", 0, 0,
                       updated="2019-11-30T08:00:00.000Z"),
        ],
        "resultSetSize": 6,
        "timings": {"serviceMillis": 12, "searchMillis": [3, 4]},
    }


@pytest.fixture
def records_df(catalog_document):
    """Record table flattened from catalog_document."""
    return records_to_frame(flatten_catalog(catalog_document))


@pytest.fixture
def scenario_a_df():
    """Three categories: Public Safety 3/300/10, Environment 5/10/5,
    Transportation 1/200/400 (provided/downloaded/viewed)."""
    rows = []
    for i, (dl, pv) in enumerate([(100, 4), (100, 3), (100, 3)]):
        rows.append({"name": f"ps{i}", "category": "Public Safety",
                     "resource_type": "dataset", "download_count": dl,
                     "pageviews_total": pv})
    for i, (dl, pv) in enumerate([(2, 1), (2, 1), (2, 1), (2, 1), (2, 1)]):
        rows.append({"name": f"env{i}", "category": "Environment",
                     "resource_type": "map", "download_count": dl,
                     "pageviews_total": pv})
    rows.append({"name": "tr0", "category": "Transportation",
                 "resource_type": "chart", "download_count": 200,
                 "pageviews_total": 400})
    return make_frame(rows)


@pytest.fixture
def empty_df():
    return records_to_frame([])

