"""
REST HTTP client for the GitBoss backend.
"""

from typing import Any, Optional

import httpx

from gitboss_ai.config import DEFAULT_API_BASE
from gitboss_ai.errors import APIError

USER_AGENT = "gitboss-ai-sdk/0.1.0"


class HttpClient:
    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    def _headers(self, json_body: bool = False) -> dict[str, str]:
        headers: dict[str, str] = {}
        if json_body:
            headers["Content-Type"] = "application/json"
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    @staticmethod
    def _raise_for_status(resp: httpx.Response) -> None:
        """Prefer FastAPI's ``detail`` (or ``error``) field over the bare status line."""
        if resp.status_code < 400:
            return
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and (body.get("detail") or body.get("error")):
            message = str(body.get("detail") or body.get("error"))
        else:
            message = f"HTTP {resp.status_code}: {resp.reason_phrase}"
        raise APIError(message, status_code=resp.status_code)

    async def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        clean = {k: str(v) for k, v in (params or {}).items() if v is not None}
        try:
            resp = await self._client.get(path, params=clean, headers=self._headers())
        except httpx.HTTPError as e:
            raise APIError(f"Request to {path} failed: {e}")
        self._raise_for_status(resp)
        return resp.json()

    async def post(self, path: str, body: Optional[dict[str, Any]] = None) -> Any:
        try:
            resp = await self._client.post(path, json=body, headers=self._headers(json_body=True))
        except httpx.HTTPError as e:
            raise APIError(f"Request to {path} failed: {e}")
        self._raise_for_status(resp)
        return resp.json()

    async def close(self) -> None:
        await self._client.aclose()
