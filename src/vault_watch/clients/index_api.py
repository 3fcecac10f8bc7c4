"""Client for the off-chain vault index service."""

from __future__ import annotations

import asyncio
from typing import Any

import backoff
import requests

from ..domain import VaultCatalogEntry
from ..errors import IndexApiError
from ..logger import get_logger
from ..settings import WatchSettings

logger = get_logger(__name__)


def _is_client_error(exc: Exception) -> bool:
    """4xx answers other than 429 will not change on retry."""
    response = getattr(exc, "response", None)
    status = getattr(response, "status_code", None)
    return isinstance(status, int) and 400 <= status < 500 and status != 429


class IndexApiClient:
    """Fetches the vault catalog from ``GET /vaults/all``."""

    def __init__(self, settings: WatchSettings, session: requests.Session | None = None):
        self._url = settings.vaults_endpoint
        self._request_timeout = settings.request_timeout
        self._session = session or requests.Session()

    @backoff.on_exception(
        backoff.expo,
        requests.RequestException,
        max_tries=5,
        max_time=30,
        jitter=backoff.full_jitter,
        giveup=_is_client_error,
    )
    def _get(self) -> Any:
        response = self._session.get(self._url, timeout=self._request_timeout)
        response.raise_for_status()
        return response.json()

    def fetch_catalog(self) -> list[VaultCatalogEntry]:
        """Fetch the raw catalog.

        Returns:
            The records in the order the service returned them

        Raises:
            requests.HTTPError: If the service answers with an error status
            IndexApiError: If the payload is not a JSON array
        """
        payload = self._get()
        if not isinstance(payload, list):
            raise IndexApiError(
                f"Expected a list of vaults from {self._url}, got {type(payload).__name__}"
            )
        logger.info("Fetched %d catalog records from %s", len(payload), self._url)
        return payload

    async def fetch_catalog_async(self) -> list[VaultCatalogEntry]:
        return await asyncio.to_thread(self.fetch_catalog)
