from typing import Any, Optional

import httpx


class ProviderError(Exception):
    """Base class for every failure talking to an upstream model API."""

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ProviderConfigError(ProviderError):
    """No credential configured; raised before any network call."""


class UpstreamHTTPError(ProviderError):
    def __init__(
        self, message: str, status_code: int, details: Optional[Any] = None
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code


class ResponseValidationError(ProviderError):
    """Upstream answered 2xx but the body is missing expected fields."""


class TransportError(ProviderError):
    """Network-level failure before a response was received."""


def upstream_error(response: httpx.Response, label: str = "API") -> UpstreamHTTPError:
    """Build an error from a non-2xx response, preferring the upstream message."""
    try:
        body = response.json()
    except ValueError:
        body = {"error": "Unknown error"}

    message = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            message = error.get("message")
    if not message:
        message = f"{label} error: {response.status_code}"
    return UpstreamHTTPError(message, response.status_code, details=body)
