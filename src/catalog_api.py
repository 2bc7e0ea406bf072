"""
Socrata Discovery API client for a single portal catalog fetch.

One GET per run against ``http://api.<host>/api/catalog/v1``. There is no
retry, pagination or caching: any failure raises CatalogFetchError and the
run is aborted by the caller.
"""

from urllib.parse import urlencode

import requests

from src import config
from src.logging_config import get_report_logger

log = get_report_logger(__name__)


class CatalogFetchError(RuntimeError):
    """The catalog could not be fetched or parsed."""


def make_session(user_agent: str = config.USER_AGENT) -> requests.Session:
    """Create a requests.Session carrying the report's User-Agent.

    No retry adapter is mounted: a failed request is final.
    """
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent, "Accept": "application/json"})
    return session


def build_catalog_url(domain: str, limit: int, host: str = config.CATALOG_API_HOST) -> str:
    """Return the catalog endpoint URL for *domain* with a result *limit*.

    >>> build_catalog_url("data.cityofnewyork.us", 100)
    'http://api.us.socrata.com/api/catalog/v1?domains=data.cityofnewyork.us&limit=100'
    """
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise ValueError(f"limit must be a positive integer, got {limit!r}")
    if not domain:
        raise ValueError("domain must be a non-empty string")
    query = urlencode({"domains": domain, "limit": limit})
    return f"http://api.{host}{config.CATALOG_API_PATH}?{query}"


def fetch_catalog(
    domain: str,
    limit: int = config.DEFAULT_LIMIT,
    host: str = config.CATALOG_API_HOST,
    session: requests.Session | None = None,
    timeout: float = config.REQUEST_TIMEOUT_SECONDS,
) -> dict:
    """Fetch the published-dataset catalog of one portal.

    Parameters
    ----------
    domain : str
        Portal domain, e.g. ``data.cityofnewyork.us``.
    limit : int
        Maximum number of catalog entries to request.
    host : str
        Discovery API host suffix (``api.`` is prepended).
    session : requests.Session, optional
        Defaults to a fresh make_session().
    timeout : float
        Request timeout in seconds.

    Returns
    -------
    dict
        Parsed JSON document with a ``results`` list.

    Raises
    ------
    CatalogFetchError
        On network errors, non-2xx responses, or a malformed body.
    """
    url = build_catalog_url(domain, limit, host)
    session = session or make_session()

    log.info("Fetching catalog for %s (limit=%d)", domain, limit,
             extra={"domain": domain})
    try:
        response = session.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as exc:
        log.error("Catalog request failed for %s: %s", domain, exc)
        raise CatalogFetchError(f"catalog request failed for {domain}: {exc}") from exc

    try:
        document = response.json()
    except ValueError as exc:
        raise CatalogFetchError(f"catalog response for {domain} is not valid JSON") from exc

    if not isinstance(document, dict) or not isinstance(document.get("results"), list):
        raise CatalogFetchError(
            f"catalog response for {domain} has no 'results' list"
        )

    log.info(
        "Received %d catalog entries (resultSetSize=%s)",
        len(document["results"]), document.get("resultSetSize", "?"),
    )
    return document
