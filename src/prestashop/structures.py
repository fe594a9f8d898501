from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

METHODS = ("GET", "POST", "PUT", "DELETE")
WRITE_METHODS = ("POST", "PUT")


class RequestParams(dict):
    """Batch entry: a resource path plus its query params."""

    def __init__(self, *, path: str, params: Optional[Dict[str, Any]] = None) -> None:
        if not isinstance(path, str):
            raise TypeError("path must be str")
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise TypeError("params must be dict")
        super().__init__(path=path, params=params)


@dataclass(frozen=True)
class RequestDescriptor:
    """Immutable description of one webservice call."""

    method: str
    path: str
    params: Mapping[str, Any] = field(default_factory=dict)
    body: Optional[str] = None


def build_request(
    method: str,
    path: str,
    params: Optional[Mapping[str, Any]] = None,
    body: Optional[str] = None,
) -> RequestDescriptor:
    """Validate the call arguments and freeze them into a RequestDescriptor."""

    if not isinstance(method, str):
        raise TypeError("method must be str")
    method = method.upper()
    if method not in METHODS:
        raise ValueError(f"method must be one of {', '.join(METHODS)}")
    if not isinstance(path, str):
        raise TypeError("path must be str")
    if not path.strip("/ "):
        raise ValueError("path cannot be empty")
    if params is None:
        params = {}
    if not isinstance(params, Mapping):
        raise TypeError("params must be a mapping")
    for key in params:
        if not isinstance(key, str) or not key:
            raise ValueError("params keys must be non-empty strings")
    if method in WRITE_METHODS:
        if not isinstance(body, str):
            raise TypeError(f"{method} requires a str body")
    elif body is not None:
        raise TypeError(f"{method} does not accept a body")
    return RequestDescriptor(method=method, path=path, params=MappingProxyType(dict(params)), body=body)


@dataclass(frozen=True)
class ResponseEnvelope:
    """Status, headers and decoded body of one HTTP response."""

    status_code: int
    reason_phrase: str
    headers: Mapping[str, Tuple[str, ...]]
    body: str

    @classmethod
    def from_items(
        cls,
        status_code: int,
        reason_phrase: str,
        header_items: Iterable[Tuple[str, str]],
        body: str,
    ) -> "ResponseEnvelope":
        headers: Dict[str, Tuple[str, ...]] = {}
        for name, value in header_items:
            headers[name] = headers.get(name, ()) + (value,)
        return cls(
            status_code=int(status_code),
            reason_phrase=reason_phrase or "",
            headers=MappingProxyType(headers),
            body=body,
        )

    def header(self, name: str) -> Optional[str]:
        """Return the first value of a header, case-insensitively."""

        wanted = name.lower()
        for key, values in self.headers.items():
            if key.lower() == wanted and values:
                return values[0]
        return None


__all__ = ["RequestParams", "RequestDescriptor", "ResponseEnvelope", "build_request", "METHODS"]
