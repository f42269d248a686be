"""HTTP client for the upstream profile/event store."""

import logging

import httpx

from profilerelay.server.config import UpstreamConfig
from profilerelay.server.errors import TransportError, UpstreamError

logger = logging.getLogger(__name__)


class UpstreamClient:
    """
    JSON:API client for the upstream store.

    Every request carries the private API key and the pinned API revision.
    Responses are returned as-is; callers decide what a status means.
    A failure to reach the store is raised as :class:`TransportError`.
    """

    def __init__(
        self,
        config: UpstreamConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            timeout=config.timeout,
            transport=transport,
            headers={
                "Authorization": f"Klaviyo-API-Key {config.api_key}",
                "revision": config.revision,
                "Accept": "application/vnd.api+json",
                "Content-Type": "application/vnd.api+json",
            },
        )

    async def request(self, method: str, path: str, json: dict) -> httpx.Response:
        """Send one request to the store. No retries."""
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            return await self.client.request(method, url, json=json)
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise TransportError(f"Could not reach upstream store: {exc}") from exc

    async def create_event(self, document: dict) -> httpx.Response:
        return await self.request("POST", "/events/", document)

    async def create_profile(self, document: dict) -> httpx.Response:
        return await self.request("POST", "/profiles/", document)

    async def update_profile(self, profile_id: str, document: dict) -> httpx.Response:
        return await self.request("PATCH", f"/profiles/{profile_id}/", document)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()


def parse_body(response: httpx.Response) -> dict | None:
    """Decode a JSON response body, tolerating empty or non-JSON bodies."""
    if not response.content:
        return None
    try:
        body = response.json()
    except ValueError:
        logger.info("Could not parse upstream response as JSON: %s", response.text)
        return None
    return body if isinstance(body, dict) else None


def resource_id(body: dict | None) -> str | None:
    """Extract ``data.id`` from a JSON:API document."""
    if not body:
        return None
    data = body.get("data")
    if isinstance(data, dict) and data.get("id"):
        return str(data["id"])
    return None


def ensure_success(response: httpx.Response, message: str) -> None:
    """Raise :class:`UpstreamError` for any non-2xx response."""
    if not response.is_success:
        raise UpstreamError(message, response.status_code, response.text)
