"""Backend connection configuration for PDV Core.

This module provides a single configuration class describing how to reach
the hosted relational store (a Supabase/PostgREST endpoint).
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from pdv_core.exceptions import ConfigError

# Values shipped in .env templates; treated as "not configured".
PLACEHOLDER_VALUES = {"your_supabase_url_here", "your_supabase_anon_key_here"}

DEFAULT_TIMEZONE = "America/Sao_Paulo"
DEFAULT_TIMEOUT = 60.0
DEFAULT_RETRIES = 3
DEFAULT_PAGE_SIZE = 1000


def _env(*names: str) -> str | None:
    for name in names:
        value = os.environ.get(name)
        if value:
            return value
    return None


def _is_placeholder(value: str | None) -> bool:
    if not value:
        return True
    return value in PLACEHOLDER_VALUES or "placeholder" in value


@dataclass
class BackendConfig:
    """Everything needed to talk to the remote store.

    Attributes:
        url: Project base URL, e.g. ``https://abc.supabase.co``.
        api_key: Anonymous (or service) API key sent as ``apikey`` header.
        schema: Database schema exposed by PostgREST.
        timeout: Default timeout in seconds for every request.
        retries: Retry attempts for connection errors and 429/5xx answers.
        timezone: IANA timezone the stores operate in; report days are
            calendar days in this zone.
        page_size: Rows requested per page on large selects.

    Environment:
        PDV_SUPABASE_URL / SUPABASE_URL
        PDV_SUPABASE_KEY / SUPABASE_ANON_KEY
        PDV_TIMEOUT=60
        PDV_RETRIES=3
        PDV_TIMEZONE=America/Sao_Paulo
    """

    url: str
    api_key: str
    schema: str = "public"
    timeout: float = DEFAULT_TIMEOUT
    retries: int = DEFAULT_RETRIES
    timezone: str = DEFAULT_TIMEZONE
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if _is_placeholder(self.url) or _is_placeholder(self.api_key):
            raise ConfigError(
                "Backend URL and API key are required; set PDV_SUPABASE_URL and "
                "PDV_SUPABASE_KEY (placeholder values are rejected)."
            )
        self.url = self.url.rstrip("/")
        if self.page_size <= 0:
            raise ConfigError(f"page_size must be positive, got {self.page_size}")

    @property
    def rest_url(self) -> str:
        """Base URL of the PostgREST API."""
        return f"{self.url}/rest/v1"

    @classmethod
    def from_env(cls) -> BackendConfig:
        """Build the configuration from environment variables.

        Raises:
            ConfigError: If the URL or key are missing, or a numeric variable
                cannot be parsed.

        Examples:
            >>> os.environ["PDV_SUPABASE_URL"] = "https://abc.supabase.co"
            >>> os.environ["PDV_SUPABASE_KEY"] = "secret"
            >>> BackendConfig.from_env().rest_url
            'https://abc.supabase.co/rest/v1'

        """
        try:
            timeout = float(os.environ.get("PDV_TIMEOUT", DEFAULT_TIMEOUT))
            retries = int(os.environ.get("PDV_RETRIES", DEFAULT_RETRIES))
        except ValueError as e:
            raise ConfigError(f"Invalid PDV_TIMEOUT/PDV_RETRIES value: {e}") from e

        return cls(
            url=_env("PDV_SUPABASE_URL", "SUPABASE_URL") or "",
            api_key=_env("PDV_SUPABASE_KEY", "SUPABASE_ANON_KEY") or "",
            timeout=timeout,
            retries=retries,
            timezone=os.environ.get("PDV_TIMEZONE", DEFAULT_TIMEZONE),
        )
