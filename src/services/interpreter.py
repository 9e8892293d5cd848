"""Extracts the hosted image URL from an upload response.

Image hosts disagree on what they return, so known response shapes are tried
in a fixed order and the first one that matches wins. Every extractor is a
pure function of the decoded body and the upload endpoint.
"""

import json
import logging
from collections.abc import Callable
from typing import Any, NamedTuple
from urllib.parse import urljoin, urlsplit

from src.errors import ParseError

logger = logging.getLogger(__name__)


class ResponseShape(NamedTuple):
    name: str
    extract: Callable[[Any, str], str | None]


def _origin(endpoint_url: str) -> str:
    parts = urlsplit(endpoint_url)
    return f"{parts.scheme}://{parts.netloc}"


def _resolve(url: str, endpoint_url: str) -> str:
    return urljoin(_origin(endpoint_url) + "/", url)


def _string(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def _lsky_pro(payload: Any, endpoint_url: str) -> str | None:
    # {"status": true, "data": {"links": {"url": "https://..."}}}
    if not isinstance(payload, dict) or not payload.get("status"):
        return None
    data = payload.get("data")
    if not isinstance(data, dict):
        return None
    links = data.get("links")
    if not isinstance(links, dict):
        return None
    return _string(links.get("url"))


def _relative_src_list(payload: Any, endpoint_url: str) -> str | None:
    # [{"src": "/file/abc.png"}]
    if not isinstance(payload, list) or not payload:
        return None
    first = payload[0]
    if not isinstance(first, dict):
        return None
    src = _string(first.get("src"))
    return _resolve(src, endpoint_url) if src else None


def _data_url(payload: Any, endpoint_url: str) -> str | None:
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if not isinstance(data, dict):
        return None
    url = _string(data.get("url"))
    if url is None:
        return None
    if url.startswith(("http://", "https://")):
        return url
    return _resolve(url, endpoint_url)


def _top_level_url(payload: Any, endpoint_url: str) -> str | None:
    if not isinstance(payload, dict):
        return None
    return _string(payload.get("url"))


RESPONSE_SHAPES = (
    ResponseShape("lsky_pro", _lsky_pro),
    ResponseShape("relative_src_list", _relative_src_list),
    ResponseShape("data_url", _data_url),
    ResponseShape("top_level_url", _top_level_url),
)


def decode(raw_response: str) -> Any:
    try:
        return json.loads(raw_response)
    except (json.JSONDecodeError, TypeError) as e:
        raise ParseError(f"Upload response is not valid JSON: {e}") from e


def interpret(raw_response: str, endpoint_url: str) -> str | None:
    """Return the hosted image URL, or None when the response is not understood."""
    try:
        payload = decode(raw_response)
    except ParseError as e:
        logger.warning(f"{e.message}. Raw response will be returned.")
        return None

    for shape in RESPONSE_SHAPES:
        url = shape.extract(payload, endpoint_url)
        if url is not None:
            logger.info(f"Parsed '{shape.name}' response. Final URL: {url}")
            return url

    logger.warning("No known response structure matched. The raw response is available.")
    return None
