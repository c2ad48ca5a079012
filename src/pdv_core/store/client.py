"""HTTP client for the hosted store's PostgREST API.

Every remote read and write goes through :class:`RestClient`:

- one ``requests.Session`` with urllib3 ``Retry`` on connection errors and
  429/5xx answers (exponential backoff) and a default timeout;
- ``select`` pages large results with ``Range`` headers and checks an
  optional :class:`~pdv_core.store.sequencing.Ticket` between pages;
- failures surface as :class:`~pdv_core.exceptions.TransportError`.

Filters are PostgREST operator strings built with the helpers below, passed
as ``(column, expression)`` pairs so the same column can appear twice:

    >>> [("opened_at", gte("2025-01-01T00:00:00-03:00")), ("closed_at", is_null())]
    [('opened_at', 'gte.2025-01-01T00:00:00-03:00'), ('closed_at', 'is.null')]

"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from pdv_core.config import DEFAULT_RETRIES, DEFAULT_TIMEOUT, BackendConfig
from pdv_core.exceptions import TransportError
from pdv_core.store.sequencing import Ticket

logger = logging.getLogger(__name__)

RETRY_STATUSES = (429, 500, 502, 503, 504)

Filters = Sequence[tuple[str, str]]
Row = dict[str, Any]


# ------------------------------------------------------------
# Filter helpers
# ------------------------------------------------------------


def eq(value: object) -> str:
    return f"eq.{value}"


def gte(value: object) -> str:
    return f"gte.{value}"


def lt(value: object) -> str:
    return f"lt.{value}"


def neq(value: object) -> str:
    return f"neq.{value}"


def is_null() -> str:
    return "is.null"


def in_(values: Iterable[object]) -> str:
    """Membership filter; values are double-quoted so UUIDs and commas survive."""
    quoted = ",".join('"{}"'.format(str(v).replace('"', '\\"')) for v in values)
    return f"in.({quoted})"


# ------------------------------------------------------------
# Session
# ------------------------------------------------------------


def make_session(
    timeout: float = DEFAULT_TIMEOUT, retries: int = DEFAULT_RETRIES
) -> requests.Session:
    """Create a requests Session with retry logic and default timeout.

    Configures the session with:
    - Retry adapter for HTTP/HTTPS with exponential backoff
    - Default timeout for all requests
    - Retries on 429, 500, 502, 503, 504 status codes

    Writes (POST/PATCH) are not retried so a cash entry is never inserted
    twice.

    Args:
        timeout: Default timeout in seconds for all requests. Defaults to
            DEFAULT_TIMEOUT (60 seconds).
        retries: Number of retry attempts. Defaults to DEFAULT_RETRIES (3).

    Returns:
        Configured requests.Session object.

    """
    s = requests.Session()
    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        status=retries,
        backoff_factor=0.8,  # 0.8, 1.6, 3.2, ...
        status_forcelist=RETRY_STATUSES,
        allowed_methods=frozenset({"GET", "HEAD", "OPTIONS"}),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    s.mount("http://", adapter)
    s.mount("https://", adapter)
    # Default timeouts via a wrapper
    orig_request = s.request

    def timed_request(method: str, url: str, **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", timeout)
        return orig_request(method, url, **kwargs)

    s.request = timed_request  # type: ignore[method-assign,assignment]
    return s


# ------------------------------------------------------------
# Client
# ------------------------------------------------------------


class RestClient:
    """Thin PostgREST client bound to one backend.

    Example:
        >>> client = RestClient(BackendConfig.from_env())
        >>> rows = client.select("pdv_cash_registers", filters=[("closed_at", is_null())])

    """

    def __init__(self, config: BackendConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self.session = session or make_session(config.timeout, config.retries)
        self.session.headers.update(
            {
                "apikey": config.api_key,
                "Authorization": f"Bearer {config.api_key}",
                "Accept-Profile": config.schema,
                "Content-Profile": config.schema,
            }
        )

    def _url(self, path: str) -> str:
        return f"{self.config.rest_url}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = self._url(path)
        logger.debug("%s %s params=%s", method, url, kwargs.get("params"))
        try:
            resp = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        if not (200 <= resp.status_code < 300):
            raise TransportError(
                f"{method} {path} failed. HTTP {resp.status_code}: {resp.text[:400]}",
                status_code=resp.status_code,
                retryable=resp.status_code in RETRY_STATUSES,
            )
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(
                f"{method} {path} returned invalid JSON: {resp.text[:200]!r}",
                status_code=resp.status_code,
                retryable=False,
            ) from e

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Filters = (),
        order: str | None = None,
        limit: int | None = None,
        ticket: Ticket | None = None,
    ) -> list[Row]:
        """Read rows from a table, following pages until exhausted.

        Args:
            table: Table name.
            columns: PostgREST select list (embeds like ``*,pdv_operators(name)``).
            filters: ``(column, expression)`` pairs.
            order: Order expression, e.g. ``"created_at.asc"``.
            limit: Maximum number of rows; None reads every page.
            ticket: Optional ticket checked before each page.

        Returns:
            List of row dictionaries.

        Raises:
            TransportError: On connection failure, non-2xx answer or bad JSON.
            SupersededError: If ``ticket`` is cancelled between pages.

        """
        if limit is not None and limit <= 0:
            return []
        params: list[tuple[str, str]] = [("select", columns), *filters]
        if order:
            params.append(("order", order))

        page_size = self.config.page_size
        rows: list[Row] = []
        offset = 0
        while True:
            if ticket is not None:
                ticket.check()
            want = page_size if limit is None else min(page_size, limit - len(rows))
            headers = {"Range-Unit": "items", "Range": f"{offset}-{offset + want - 1}"}
            page = self._request("GET", table, params=params, headers=headers) or []
            if not isinstance(page, list):
                raise TransportError(f"GET {table} returned a non-list body", retryable=False)
            rows.extend(page)
            offset += len(page)
            if len(page) < want or (limit is not None and len(rows) >= limit):
                break

        logger.debug("Selected %d row(s) from %s", len(rows), table)
        return rows

    def insert(self, table: str, values: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> list[Row]:
        """Insert one or more rows and return them as stored."""
        body = [dict(values)] if isinstance(values, Mapping) else [dict(v) for v in values]
        result = self._request(
            "POST", table, json=body, headers={"Prefer": "return=representation"}
        )
        return result or []

    def update(self, table: str, values: Mapping[str, Any], filters: Filters) -> list[Row]:
        """Update the rows matching ``filters`` and return them as stored."""
        if not filters:
            raise ValueError("update() requires at least one filter")
        result = self._request(
            "PATCH",
            table,
            params=list(filters),
            json=dict(values),
            headers={"Prefer": "return=representation"},
        )
        return result or []
