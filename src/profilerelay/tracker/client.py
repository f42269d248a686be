"""Profile relay tracker client for sending events and identify calls."""

import logging
from typing import Any

import httpx

from profilerelay.tracker.identity import AnonymousIdentityProvider
from profilerelay.tracker.schema import IdentifyResult

PAGE_VIEW_EVENT = "Viewed Page"


class Tracker:
    """
    Async client that tags events with the visitor's anonymous id.

    Usage:
        from profilerelay.tracker import AnonymousIdentityProvider, FileIdentityStore, Tracker

        async with Tracker(
            endpoint="https://relay.example.com",
            identity=AnonymousIdentityProvider(FileIdentityStore("identity.json")),
        ) as tracker:
            await tracker.track("Viewed Product", {"product_id": "12345", "value": 29.99})
            await tracker.identify("user@example.com", {"firstName": "Ada"})
    """

    def __init__(
        self,
        endpoint: str,
        identity: AnonymousIdentityProvider | None = None,
        timeout: float = 10.0,
        fail_silently: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the tracker.

        Args:
            endpoint: Base URL of the relay server.
            identity: Anonymous identity provider; defaults to an in-memory one.
            timeout: Request timeout in seconds.
            fail_silently: If True, log failed requests instead of raising.
            logger: Logger instance; defaults to ``logging.getLogger("profilerelay.tracker")``.
        """
        self.endpoint = endpoint.rstrip("/")
        self.identity = identity or AnonymousIdentityProvider()
        self.fail_silently = fail_silently
        self.logger = logger or logging.getLogger("profilerelay.tracker")
        self.client = httpx.AsyncClient(timeout=timeout)

    @property
    def anonymous_id(self) -> str:
        """The visitor's current anonymous id."""
        return self.identity.get_or_create()

    async def _post(self, url: str, json: dict) -> dict | None:
        """POST a JSON body and return the decoded response.

        Returns:
            The response JSON, or None if ``fail_silently`` is True and the
            request failed.
        """
        try:
            response = await self.client.request("POST", url, json=json)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as exc:
            if not self.fail_silently:
                raise
            self.logger.warning("Request to %s failed: %s", url, exc)
            return None

    async def track(
        self,
        event: str,
        properties: dict[str, Any] | None = None,
    ) -> str | None:
        """Track an event for the current visitor.

        Args:
            event: Event name (e.g., "Viewed Product").
            properties: Optional event properties.

        Returns:
            The event id reported by the relay, or None when skipped or failed.
        """
        if not event:
            self.logger.warning("track skipped: event name is required")
            return None
        data = await self._post(
            f"{self.endpoint}/track",
            json={
                "event": event,
                "properties": properties or {},
                "anonymousId": self.anonymous_id,
            },
        )
        if data is None:
            return None
        return data.get("eventId")

    async def identify(
        self,
        email: str,
        properties: dict[str, Any] | None = None,
    ) -> IdentifyResult | None:
        """Identify the current visitor by email.

        Args:
            email: Visitor's email address.
            properties: Optional profile properties (``firstName``,
                ``lastName`` and ``phone`` become profile fields).

        Returns:
            The profile id and whether an existing profile was updated,
            or None when skipped or failed.
        """
        if not email:
            self.logger.warning("identify skipped: email is required")
            return None
        data = await self._post(
            f"{self.endpoint}/identify",
            json={
                "email": email,
                "anonymousId": self.anonymous_id,
                "properties": properties or {},
            },
        )
        if data is None:
            return None
        return IdentifyResult(
            profile_id=data.get("profileId"),
            updated=bool(data.get("updated", False)),
        )

    async def track_page_view(
        self,
        url: str,
        path: str | None = None,
        title: str | None = None,
        referrer: str | None = None,
    ) -> str | None:
        """Track a "Viewed Page" event. Omitted page fields are not sent."""
        page = {"url": url, "path": path, "title": title, "referrer": referrer}
        return await self.track(
            PAGE_VIEW_EVENT,
            {key: value for key, value in page.items() if value is not None},
        )

    def reset_anonymous_id(self) -> str:
        """Start a new anonymous identity (e.g., after logout)."""
        return self.identity.reset()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "Tracker":
        """Context manager entry."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Context manager exit."""
        await self.close()
