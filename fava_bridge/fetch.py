# fava_bridge/fetch.py
import logging
from typing import Dict, Mapping, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from .config import REFRESH_PATH, Settings
from .errors import UpstreamTransportError
from .schema import QueryEnvelope

logger = logging.getLogger("fava-bridge")


def _clean_params(params: Mapping[str, Optional[str]]) -> Dict[str, str]:
    """Drop absent and empty query parameters."""
    return {k: v for k, v in params.items() if v not in (None, "")}


class UpstreamFetcher:
    """
    Talks to one Fava instance. Every operation is two GETs in order:
    a refresh of a report page (body ignored) and then the real request.
    The client is shared between concurrent requests; it holds no
    per-request state.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self.settings = settings
        self.client = client

    @property
    def base_url(self) -> str:
        return self.settings.url

    async def _get(self, path: str, params: Optional[Dict[str, str]] = None) -> httpx.Response:
        url = f"{self.base_url}{path}"
        logger.debug("GET %s params=%s", url, params or {})
        try:
            r = await self.client.get(url, params=params)
            r.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Upstream request to %s failed: %s: %s", url, type(e).__name__, e)
            raise UpstreamTransportError(str(e) or type(e).__name__) from e
        return r

    async def _refresh_then_get(
        self, refresh_path: str, path: str, params: Optional[Dict[str, str]] = None
    ) -> httpx.Response:
        # The second call only makes sense once Fava has rebuilt its reports.
        await self._get(refresh_path)
        return await self._get(path, params)

    async def query_result(self, query_string: str, **filters: Optional[str]) -> QueryEnvelope:
        """
        Runs a BQL query. Returns the upstream envelope as-is; deciding what
        ``success: false`` means is left to the caller.
        """
        params = _clean_params({"query_string": query_string, **filters})
        # query_string is sent even when empty; Fava reports that itself
        params.setdefault("query_string", query_string)
        r = await self._refresh_then_get(REFRESH_PATH, "/api/query_result", params)
        try:
            return QueryEnvelope.model_validate(r.json())
        except (ValueError, ValidationError) as e:
            raise UpstreamTransportError(f"Invalid response from upstream: {e}") from e

    async def account_journal(self, account: str, **filters: Optional[str]) -> str:
        """Returns the raw HTML of the account page."""
        path = f"/account/{quote(account, safe=':')}/"
        r = await self._refresh_then_get(path, path, _clean_params(filters))
        return r.text
