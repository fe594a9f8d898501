from __future__ import annotations

from typing import Any, Dict, Optional


class PrestashopError(Exception):
    """Base error of the webservice client."""


class ResponseParseError(PrestashopError, ValueError):
    """Raised when a response body cannot be parsed as XML or JSON."""


class EmptyResponseError(ResponseParseError):
    """Raised when a response body is empty where content was expected."""


class WebserviceError(PrestashopError):
    """Raised when a webservice call did not succeed.

    Carries everything needed to tell which request failed and why: the HTTP
    status and reason phrase, the request method, resource path and query
    params, the store root and the server (or fallback) message.
    """

    def __init__(
        self,
        status_code: int,
        reason_phrase: str,
        method: str,
        uri: str,
        params: Optional[Dict[str, Any]],
        message: str,
        store_url: str = "",
    ) -> None:
        self.status_code = status_code
        self.reason_phrase = reason_phrase
        self.method = method
        self.uri = uri
        self.params = dict(params or {})
        self.message = message
        self.store_url = store_url
        super().__init__(
            f"{method} {uri} params={self.params} failed with HTTP {status_code} {reason_phrase}: {message}"
        )


class TransportError(PrestashopError, RuntimeError):
    """Raised when HTTP client transport fails."""


class RequestTimeoutError(TransportError):
    """Raised when HTTP request exceeds timeout."""


__all__ = [
    "PrestashopError",
    "ResponseParseError",
    "EmptyResponseError",
    "WebserviceError",
    "TransportError",
    "RequestTimeoutError",
]
