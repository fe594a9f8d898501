"""Turns a webservice HTTP response into one of four outcomes.

The webservice does not report errors consistently: a nominally successful
response may still carry an error message in its body, and failed responses
may carry an unparsable body. :func:`classify` folds all of this into
:class:`NotFound`, :class:`EmptySuccess`, :class:`Parsed` or :class:`Failure`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Dict, Optional, Union

from .exceptions import ResponseParseError, WebserviceError
from .parsing import extract_json_error, extract_xml_error, parse_json, parse_xml
from .structures import RequestDescriptor, ResponseEnvelope

logger = logging.getLogger(__name__)

XML_MEDIA_TYPE = "text/xml"
JSON_MEDIA_TYPE = "application/json"
PARSE_FAILURE_MESSAGE = "Response body could not be parsed."
UNKNOWN_MESSAGE = "UNKNOWN"


@dataclass(frozen=True)
class NotFound:
    """The requested resource does not exist."""


@dataclass(frozen=True)
class EmptySuccess:
    """The call succeeded and returned no content (e.g. DELETE)."""


@dataclass(frozen=True)
class Parsed:
    content: Any


@dataclass(frozen=True)
class Failure:
    status_code: int
    reason_phrase: str
    method: str
    uri: str
    params: Dict[str, Any] = field(default_factory=dict)
    message: str = UNKNOWN_MESSAGE
    store_url: str = ""

    def to_error(self) -> WebserviceError:
        return WebserviceError(
            self.status_code,
            self.reason_phrase,
            self.method,
            self.uri,
            self.params,
            self.message,
            store_url=self.store_url,
        )


Outcome = Union[NotFound, EmptySuccess, Parsed, Failure]


def media_type(content_type: Optional[str]) -> str:
    """Return the media type of a Content-Type header, without its parameters."""

    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def _is_zero_length(content_length: Optional[str]) -> bool:
    if content_length is None:
        return False
    try:
        return int(content_length.strip()) == 0
    except ValueError:
        return False


def _reason_phrase(response: ResponseEnvelope) -> str:
    if response.reason_phrase:
        return response.reason_phrase
    try:
        return HTTPStatus(response.status_code).phrase
    except ValueError:
        return ""


def classify(response: ResponseEnvelope, request: RequestDescriptor, store_url: str = "") -> Outcome:
    status_code = response.status_code
    if status_code == HTTPStatus.NOT_FOUND:
        return NotFound()
    if status_code == HTTPStatus.OK and _is_zero_length(response.header("Content-Length")):
        return EmptySuccess()

    content: Any = None
    message: Optional[str] = None
    kind = media_type(response.header("Content-Type"))
    try:
        if kind == XML_MEDIA_TYPE:
            content = parse_xml(response.body)
            message = extract_xml_error(content)
        elif kind == JSON_MEDIA_TYPE:
            content = parse_json(response.body)
            message = extract_json_error(content)
        else:
            content = response.body
    except ResponseParseError as exc:
        logger.debug("%s %s returned an unparsable body: %s", request.method, request.path, exc)
        message = PARSE_FAILURE_MESSAGE

    if HTTPStatus.OK <= status_code < HTTPStatus.MULTIPLE_CHOICES and message is None:
        return Parsed(content)
    return Failure(
        status_code=status_code,
        reason_phrase=_reason_phrase(response),
        method=request.method,
        uri=request.path,
        params=dict(request.params),
        message=UNKNOWN_MESSAGE if message is None else message,
        store_url=store_url,
    )


__all__ = [
    "NotFound",
    "EmptySuccess",
    "Parsed",
    "Failure",
    "Outcome",
    "classify",
    "media_type",
    "PARSE_FAILURE_MESSAGE",
    "UNKNOWN_MESSAGE",
]
