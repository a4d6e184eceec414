"""Series fetcher for the Prometheus instant-query API."""
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import logging

import requests

from check_prometheus.exceptions import BackendError, TransportError
from check_prometheus.series import Sample, Series, series_identifier

logger = logging.getLogger(__name__)

QUERY_PATH = "/api/v1/query"


class CacheState(str, Enum):
    """State of a query in the per-run cache."""
    NOT_FETCHED = "not_fetched"
    FETCHED_EMPTY = "fetched_empty"
    FETCHED_WITH_DATA = "fetched_with_data"


def build_query_url(host: str) -> str:
    """Build the instant-query URL, defaulting to plain HTTP."""
    base = host.rstrip("/")
    if not base.startswith(("http://", "https://")):
        base = f"http://{base}"
    return f"{base}{QUERY_PATH}"


def _parse_sample(pair: Any) -> Optional[Sample]:
    """Parse a ``[unixSeconds, "value"]`` pair into a Sample."""
    if not isinstance(pair, (list, tuple)) or len(pair) != 2:
        return None

    timestamp, raw_value = pair
    value = float(raw_value) if raw_value is not None else None
    return Sample(value=value, timestamp=int(float(timestamp) * 1000))


class SeriesFetcher:
    """Fetches series for a query and memoizes the result for the run."""

    def __init__(
        self,
        host: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 10.0
    ):
        self.url = build_query_url(host)
        self.timeout = timeout
        self.auth: Optional[Tuple[str, str]] = None
        if username is not None and password is not None:
            self.auth = (username, password)

        # Keyed by exact query string; entries are never invalidated
        self._cache: Dict[str, Tuple[CacheState, List[Series]]] = {}

    def cache_state(self, query: str) -> CacheState:
        """Return the cache state of a query."""
        entry = self._cache.get(query)
        if entry is None:
            return CacheState.NOT_FETCHED
        return entry[0]

    def fetch(self, query: str) -> List[Series]:
        """
        Fetch the series returned by an instant query.

        Args:
            query: PromQL expression

        Returns:
            List of series, empty when the query matched nothing

        Raises:
            TransportError: The HTTP call could not complete
            BackendError: The response is not JSON or its status is not success
        """
        entry = self._cache.get(query)
        if entry is not None:
            logger.debug(f"Cache hit for query '{query}' ({entry[0].value})")
            return list(entry[1])

        payload = self._request(query)

        try:
            series = self._parse_payload(query, payload)
        except BackendError:
            self._store(query, [])
            raise

        self._store(query, series)
        return list(series)

    def _store(self, query: str, series: List[Series]):
        """Record a fetched query in the cache."""
        state = CacheState.FETCHED_WITH_DATA if series else CacheState.FETCHED_EMPTY
        self._cache[query] = (state, series)

    def _request(self, query: str) -> Any:
        """Issue the HTTP request and decode the JSON body."""
        logger.info(f"Querying {self.url} with '{query}'")

        try:
            response = requests.get(
                self.url,
                params={"query": query},
                auth=self.auth,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise TransportError(f"Request to {self.url} failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            self._store(query, [])
            raise BackendError(
                f"Backend returned a non-JSON body (HTTP {response.status_code})"
            ) from e

    def _parse_payload(self, query: str, payload: Any) -> List[Series]:
        """Convert a decoded query response into series."""
        if not isinstance(payload, dict):
            raise BackendError("Backend response is not a JSON object")

        status = payload.get("status")
        if status != "success":
            error = payload.get("error", "no error message")
            raise BackendError(f"Backend returned status '{status}': {error}")

        data = payload.get("data")
        if not isinstance(data, dict):
            raise BackendError("Backend response has no data object")

        result = data.get("result")
        if not isinstance(result, list):
            raise BackendError("Backend response has no result list")

        series: List[Series] = []
        for entry in result:
            if not isinstance(entry, dict):
                raise BackendError(f"Malformed result entry: {entry!r}")

            labels = entry.get("metric") or {}
            if not isinstance(labels, dict):
                raise BackendError(f"Malformed metric labels: {labels!r}")

            try:
                sample = _parse_sample(entry.get("value"))
            except (TypeError, ValueError) as e:
                raise BackendError(f"Malformed sample in result entry: {e}") from e

            series.append(
                Series(
                    identifier=series_identifier(labels, fallback_name=query),
                    samples=(sample,) if sample is not None else ()
                )
            )

        logger.info(f"Query '{query}' returned {len(series)} series")
        return series
