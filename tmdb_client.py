"""TMDb API client used as the upstream for the caching proxy."""

from typing import Any, Optional

import httpx

from config import TMDB_BASE_URL, TMDB_IMAGE_BASE_URL, TMDB_API_TOKEN, TMDB_TIMEOUT, logger
from utils import build_upstream_headers


class UpstreamError(Exception):
    """
    The upstream call failed.

    ``status_code`` is the upstream HTTP status, or None when no response was
    received (connection error, timeout). ``body`` is the raw response text or
    the transport error message.
    """

    def __init__(self, status_code: Optional[int], body: str):
        self.status_code = status_code
        self.body = body
        if status_code is None:
            super().__init__(f"TMDb request failed: {body}")
        else:
            super().__init__(f"TMDb API Error: {status_code}")


class TMDbClient:
    """Thin async wrapper over httpx for the TMDb JSON API and image CDN."""

    def __init__(
        self,
        base_url: str = TMDB_BASE_URL,
        image_base_url: str = TMDB_IMAGE_BASE_URL,
        timeout: float = TMDB_TIMEOUT,
        default_token: Optional[str] = TMDB_API_TOKEN,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.image_base_url = image_base_url.rstrip("/")
        self.default_token = default_token
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def fetch_json(self, path: str, authorization: Optional[str] = None) -> Any:
        """
        GET a TMDb API path and decode the JSON body.

        Args:
            path: Request path including query string, e.g. "/3/movie/550?language=en-US"
            authorization: Caller's Authorization header, forwarded as-is

        Returns:
            Decoded JSON payload

        Raises:
            UpstreamError: On a non-2xx status or a transport failure
        """
        url = f"{self.base_url}{path}"
        headers = build_upstream_headers(authorization, self.default_token)

        try:
            response = await self._client.get(url, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"TMDb request failed for {path}: {e}")
            raise UpstreamError(None, str(e)) from e

        if not response.is_success:
            logger.warning(f"TMDb API Error: {response.status_code} {response.reason_phrase}")
            raise UpstreamError(response.status_code, response.text)

        return response.json()

    async def open_image(self, path: str) -> httpx.Response:
        """
        Start a streaming GET against the image CDN.

        The caller owns the returned response and must ``aclose()`` it.
        """
        request = self._client.build_request("GET", f"{self.image_base_url}{path}")
        try:
            return await self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            logger.error(f"TMDb image request failed for {path}: {e}")
            raise UpstreamError(None, str(e)) from e

    async def aclose(self) -> None:
        await self._client.aclose()
