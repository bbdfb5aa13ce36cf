"""Manifold Markets REST client - account, market lookup, bet placement."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from edgewatch.models import BetOrder, BetResponse, MarketSnapshot, User

log = structlog.get_logger(__name__)

MANIFOLD_API_BASE = "https://api.manifold.markets/v0"


class ManifoldAPIError(Exception):
    """Non-2xx response from the Manifold API."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Manifold API error {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class ManifoldClient:
    """Async client for the endpoints the bot needs. One instance is shared by all evaluation tasks."""

    def __init__(
        self,
        api_key: str,
        base_url: str = MANIFOLD_API_BASE,
        http: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._http = http or httpx.AsyncClient()

    @property
    def _auth(self) -> dict[str, str]:
        return {"Authorization": f"Key {self.api_key}"}

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        resp = await self._http.request(method, f"{self.base_url}{path}", **kwargs)
        if not resp.is_success:
            raise ManifoldAPIError(resp.status_code, resp.text)
        return resp.json()

    async def get_current_user(self) -> User:
        """GET /me - validates the API key."""
        data = await self._request("GET", "/me", headers=self._auth)
        return User.model_validate(data)

    async def get_market(self, market_id: str) -> MarketSnapshot:
        """GET /market/{id} - fresh snapshot of a market."""
        data = await self._request("GET", f"/market/{market_id}")
        return MarketSnapshot.model_validate(data)

    async def place_bet(self, order: BetOrder) -> BetResponse:
        """POST /bet. Not retried."""
        payload = order.to_payload()
        log.debug("place_bet", **payload)
        data = await self._request("POST", "/bet", headers=self._auth, json=payload)
        return BetResponse.model_validate(data)

    async def aclose(self) -> None:
        await self._http.aclose()
