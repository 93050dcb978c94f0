from __future__ import annotations

import asyncio
import logging
from typing import Any

import requests
from requests.adapters import HTTPAdapter

from src.fleet.domain.exceptions import NetworkError

logger = logging.getLogger(__name__)


class HttpClient:
    """JSON over HTTP with an explicit per-request timeout.

    ``requests`` is blocking, so every call runs in a worker thread to keep the
    event loop responsive. Transport failures, timeouts, non-2xx statuses and
    undecodable bodies all surface as ``NetworkError``.
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
        max_connections: int = 10,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(pool_connections=max_connections, pool_maxsize=max_connections)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        session.headers.update({"Accept": "application/json"})
        if headers:
            session.headers.update(headers)
        self._session = session

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout(self) -> float:
        return self._timeout

    def url_for(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self._base_url}/{path.lstrip('/')}"

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await asyncio.to_thread(self._request, "GET", path, params, None)

    async def post_json(self, path: str, body: dict[str, Any]) -> Any:
        return await asyncio.to_thread(self._request, "POST", path, None, body)

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None,
        body: dict[str, Any] | None,
    ) -> Any:
        url = self.url_for(path)
        try:
            response = self._session.request(
                method,
                url,
                params=params,
                json=body,
                timeout=self._timeout,
            )
        except requests.Timeout as exc:
            raise NetworkError(url, f"timed out after {self._timeout}s") from exc
        except requests.RequestException as exc:
            raise NetworkError(url, str(exc)) from exc

        if not response.ok:
            logger.warning(
                "HTTP request failed",
                extra={"method": method, "url": url, "status": response.status_code},
            )
            error = NetworkError(url, f"HTTP {response.status_code}", response.status_code)
            error.payload = _error_payload(response)
            raise error

        try:
            return response.json()
        except ValueError as exc:
            raise NetworkError(url, "response body is not valid JSON", response.status_code) from exc

    def close(self) -> None:
        self._session.close()


def _error_payload(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None
