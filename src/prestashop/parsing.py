from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional, Tuple
from xml.parsers.expat import ExpatError

import xmltodict

from .exceptions import EmptyResponseError, ResponseParseError

# Allowed: tab, newline, carriage return, U+0020-U+D7FF and U+E000-U+FFFD.
_INVALID_XML_CHARS = re.compile("[^\t\n\r\u0020-\ud7ff\ue000-\ufffd]+")


def clean_xml_string(text: str) -> str:
    """Replace each run of characters not allowed in XML with a single space."""

    return _INVALID_XML_CHARS.sub(" ", text)


def _drop_namespace_declarations(path: Any, key: str, value: Any) -> Optional[Tuple[str, Any]]:
    if key == "xmlns" or key.startswith("xmlns:"):
        return None
    return key, value


def parse_xml(text: str) -> Dict[str, Any]:
    """Parse a webservice XML body and return the content of its root element.

    Attributes lose their ``@`` prefix and element text is stored under
    ``text``, so ``<prestashop><customer><id>7</id></customer></prestashop>``
    becomes ``{"customer": {"id": "7"}}``.
    """

    if not text or not text.strip():
        raise EmptyResponseError("HTTP XML response is empty")
    cleaned = clean_xml_string(text).strip()
    try:
        parsed = xmltodict.parse(
            cleaned,
            attr_prefix="",
            cdata_key="text",
            postprocessor=_drop_namespace_declarations,
        )
    except ExpatError as exc:
        raise ResponseParseError(f"HTTP XML response is not parsable: {exc}") from exc
    root = next(iter(parsed.values()), None)
    if root is None:
        return {}
    if not isinstance(root, dict):
        return {"text": root}
    return root


def parse_json(text: str) -> Any:
    if not text or not text.strip():
        raise EmptyResponseError("HTTP JSON response is empty")
    try:
        return json.loads(text)
    except ValueError as exc:
        raise ResponseParseError(f"HTTP JSON response is not parsable: {exc}") from exc


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def extract_xml_error(document: Any) -> Optional[str]:
    """Return the message at ``errors/error/message``, or None when absent."""

    node = document
    for key in ("errors", "error", "message"):
        node = _first(node)
        if not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    node = _first(node)
    if isinstance(node, dict):
        node = node.get("text")
    return "" if node is None else str(node)


def extract_json_error(document: Any) -> Optional[str]:
    """Return the message at ``errors[0].message``, or None when absent."""

    if not isinstance(document, dict):
        return None
    errors = document.get("errors")
    if not isinstance(errors, list) or not errors:
        return None
    first = errors[0]
    if not isinstance(first, dict) or "message" not in first:
        return None
    message = first["message"]
    return "" if message is None else str(message)


__all__ = [
    "clean_xml_string",
    "parse_xml",
    "parse_json",
    "extract_xml_error",
    "extract_json_error",
]
