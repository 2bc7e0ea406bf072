"""
Tests for src/catalog_api.py.

The network is never touched: requests.Session is replaced with a mock
and every failure path must surface as CatalogFetchError.
"""

from unittest.mock import MagicMock

import pytest
import requests

from src.catalog_api import (
    CatalogFetchError,
    build_catalog_url,
    fetch_catalog,
    make_session,
)


def _mock_session(payload=None, status_error=None, json_error=None, get_error=None):
    session = MagicMock(spec=requests.Session)
    if get_error is not None:
        session.get.side_effect = get_error
        return session
    response = MagicMock()
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    session.get.return_value = response
    return session


class TestBuildCatalogUrl:

    def test_default_host(self):
        url = build_catalog_url("data.cityofnewyork.us", 100)
        assert url == (
            "http://api.us.socrata.com/api/catalog/v1"
            "?domains=data.cityofnewyork.us&limit=100"
        )

    def test_custom_host(self):
        url = build_catalog_url("data.cityofchicago.org", 5, host="eu.socrata.com")
        assert url.startswith("http://api.eu.socrata.com/api/catalog/v1?")
        assert "domains=data.cityofchicago.org" in url
        assert url.endswith("limit=5")

    @pytest.mark.parametrize("limit", [0, -1, 2.5, "10", True])
    def test_rejects_invalid_limit(self, limit):
        with pytest.raises(ValueError):
            build_catalog_url("data.cityofnewyork.us", limit)

    def test_rejects_empty_domain(self):
        with pytest.raises(ValueError):
            build_catalog_url("", 10)


class TestMakeSession:

    def test_user_agent_set(self):
        session = make_session(user_agent="test-agent/0.1")
        assert session.headers["User-Agent"] == "test-agent/0.1"

    def test_no_retry_adapter(self):
        """A failed request is final: the default adapter has no retries."""
        session = make_session()
        adapter = session.get_adapter("http://api.us.socrata.com")
        assert adapter.max_retries.total == 0


class TestFetchCatalog:

    def test_returns_parsed_document(self, catalog_document):
        session = _mock_session(payload=catalog_document)
        doc = fetch_catalog("data.cityofnewyork.us", 6, session=session)
        assert doc is catalog_document
        assert len(doc["results"]) == 6

    def test_single_get_with_timeout(self):
        session = _mock_session(payload={"results": []})
        fetch_catalog("data.cityofnewyork.us", 10, session=session, timeout=5)
        assert session.get.call_count == 1
        args, kwargs = session.get.call_args
        assert "domains=data.cityofnewyork.us" in args[0]
        assert kwargs["timeout"] == 5

    def test_network_error_raises(self):
        session = _mock_session(get_error=requests.exceptions.ConnectionError("down"))
        with pytest.raises(CatalogFetchError, match="down"):
            fetch_catalog("data.cityofnewyork.us", 10, session=session)

    def test_http_error_raises(self):
        session = _mock_session(
            payload={}, status_error=requests.exceptions.HTTPError("503 Server Error"),
        )
        with pytest.raises(CatalogFetchError):
            fetch_catalog("data.cityofnewyork.us", 10, session=session)

    def test_http_error_not_retried(self):
        session = _mock_session(
            payload={}, status_error=requests.exceptions.HTTPError("500"),
        )
        with pytest.raises(CatalogFetchError):
            fetch_catalog("data.cityofnewyork.us", 10, session=session)
        assert session.get.call_count == 1

    def test_malformed_json_raises(self):
        session = _mock_session(json_error=ValueError("Expecting value"))
        with pytest.raises(CatalogFetchError, match="not valid JSON"):
            fetch_catalog("data.cityofnewyork.us", 10, session=session)

    @pytest.mark.parametrize("payload", [[], {"error": "bad"}, {"results": None}])
    def test_missing_results_raises(self, payload):
        session = _mock_session(payload=payload)
        with pytest.raises(CatalogFetchError, match="results"):
            fetch_catalog("data.cityofnewyork.us", 10, session=session)

    def test_error_is_chained(self):
        cause = requests.exceptions.Timeout("timed out")
        session = _mock_session(get_error=cause)
        with pytest.raises(CatalogFetchError) as info:
            fetch_catalog("data.cityofnewyork.us", 10, session=session)
        assert info.value.__cause__ is cause
