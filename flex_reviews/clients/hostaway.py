from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from flex_reviews.services.exceptions import UpstreamFetchError

logger = logging.getLogger(__name__)


def extract_review_items(data: Any) -> List[Any]:
    """Accept either a bare list or a ``{"result": [...]}`` envelope."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("result"), list):
        return data["result"]
    return []


class HostawayClient:
    """Async HTTP client responsible for fetching reviews from Hostaway."""

    def __init__(
        self,
        base_url: str | None,
        *,
        account_id: str | None = None,
        api_key: str | None = None,
        timeout: float = 10.0,
        use_mock_data: bool = True,
        mock_data_path: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = str(base_url).rstrip("/") if base_url else None
        self._account_id = account_id
        self._api_key = api_key
        self._timeout = timeout
        self._mock_data_path = Path(mock_data_path) if mock_data_path else None
        self._transport = transport
        self.use_mock_data = use_mock_data or not (self._base_url and account_id and api_key)
        self._access_token: Optional[str] = None
        self._client: Optional[httpx.AsyncClient] = None
        if not self.use_mock_data:
            self._client = self._build_client()

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers={"Accept": "application/json"},
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self.use_mock_data or not self._base_url:
            raise RuntimeError("HTTP client requested while running in mock mode")
        if self._client is None:
            self._client = self._build_client()
        return self._client

    async def fetch_reviews(self) -> List[Any]:
        """Return the raw upstream review records."""
        if self.use_mock_data:
            await self.simulate_latency()
            return self._load_mock()
        token = await self._get_access_token()
        data = await self.get("/v1/reviews", headers={"Authorization": f"Bearer {token}"})
        return extract_review_items(data)

    def _load_mock(self) -> List[Any]:
        if self._mock_data_path is None:
            raise UpstreamFetchError("No mock review data configured")
        try:
            raw = json.loads(self._mock_data_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.exception("Unable to read mock reviews from %s", self._mock_data_path)
            raise UpstreamFetchError("Unable to read mock review data", cause=exc) from exc
        items = extract_review_items(raw)
        logger.info("Loaded %s mock Hostaway reviews", len(items))
        return items

    async def _get_access_token(self) -> str:
        if self._access_token:
            return self._access_token
        client = await self._ensure_client()
        try:
            response = await client.post(
                "/v1/accessTokens",
                data={
                    "grant_type": "client_credentials",
                    "client_id": self._account_id,
                    "client_secret": self._api_key,
                    "scope": "general",
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
            response.raise_for_status()
            body = response.json()
            token = body.get("access_token") if isinstance(body, dict) else None
        except httpx.HTTPStatusError as exc:
            logger.exception("Hostaway token request failed with %s", exc.response.status_code)
            raise UpstreamFetchError(
                "Hostaway rejected the access token request",
                status_code=exc.response.status_code,
                cause=exc,
            ) from exc
        except (httpx.RequestError, ValueError) as exc:
            logger.exception("Unable to obtain Hostaway access token: %s", exc)
            raise UpstreamFetchError("Unable to obtain Hostaway access token", cause=exc) from exc
        if not token:
            raise UpstreamFetchError("Hostaway token response did not include access_token")
        self._access_token = token
        return token

    async def get(
        self,
        path: str,
        params: Dict[str, Any] | None = None,
        headers: Dict[str, str] | None = None,
    ) -> Any:
        client = await self._ensure_client()
        try:
            response = await client.get(path, params=params, headers=headers)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            logger.exception("Hostaway returned error %s", exc.response.status_code)
            raise UpstreamFetchError(
                "Hostaway returned an error response",
                status_code=exc.response.status_code,
                cause=exc,
            ) from exc
        except httpx.RequestError as exc:
            logger.exception("Unable to reach Hostaway: %s", exc)
            raise UpstreamFetchError(
                "Unable to reach Hostaway", status_code=None, cause=exc
            ) from exc
        except ValueError as exc:
            logger.exception("Hostaway returned a non-JSON body for %s", path)
            raise UpstreamFetchError("Hostaway returned malformed JSON", cause=exc) from exc

    async def simulate_latency(self) -> None:
        """Allow callers to await for latency even when mocking responses."""

        await asyncio.sleep(0)
