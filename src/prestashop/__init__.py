from __future__ import annotations

from .classifier import EmptySuccess, Failure, NotFound, Outcome, Parsed, classify
from .client import Prestashop
from .exceptions import (
    EmptyResponseError,
    PrestashopError,
    RequestTimeoutError,
    ResponseParseError,
    TransportError,
    WebserviceError,
)
from .parsing import clean_xml_string, extract_json_error, extract_xml_error, parse_json, parse_xml
from .stats import TransferStats
from .structures import RequestDescriptor, RequestParams, ResponseEnvelope, build_request

__all__ = [
    "Prestashop",
    "RequestParams",
    "RequestDescriptor",
    "ResponseEnvelope",
    "build_request",
    "classify",
    "Outcome",
    "NotFound",
    "EmptySuccess",
    "Parsed",
    "Failure",
    "TransferStats",
    "clean_xml_string",
    "parse_xml",
    "parse_json",
    "extract_xml_error",
    "extract_json_error",
    "PrestashopError",
    "ResponseParseError",
    "EmptyResponseError",
    "WebserviceError",
    "TransportError",
    "RequestTimeoutError",
]
