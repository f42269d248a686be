"""Error taxonomy for relay and identify calls."""


class RelayError(Exception):
    """Base class for failures surfaced to the transport boundary."""

    kind = "RelayError"
    http_status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_response(self) -> dict:
        """Structured body for the HTTP error response."""
        return {"success": False, "error": self.kind, "message": self.message}


class ValidationError(RelayError):
    """Missing or malformed input. Raised before any upstream call."""

    kind = "ValidationError"
    http_status = 400


class UpstreamError(RelayError):
    """The upstream store answered with a failure status."""

    kind = "UpstreamError"
    http_status = 502

    def __init__(self, message: str, status_code: int, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        return f"{self.message}: {self.status_code} - {self.body}"

    def to_response(self) -> dict:
        response = super().to_response()
        response["upstreamStatus"] = self.status_code
        return response


class TransportError(RelayError):
    """The upstream store could not be reached (connect, timeout, protocol)."""

    kind = "TransportError"
    http_status = 503
