"""Turn a substituted EndpointTest into a transport-ready request."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field

import aiohttp
from multidict import CIMultiDict
from yarl import URL

from apichain._internal.errors import InvalidFieldType, RequestConstructionError
from apichain.scenario.models import EndpointTest

# RFC 9110 ``token``.
_METHOD_TOKEN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")

_JSON_CONTENT_TYPE = "application/json"

# Characters that would split or truncate a header line.
_HEADER_FORBIDDEN = re.compile(r"[\r\n\x00]")


@dataclass
class PreparedRequest:
    """A fully resolved HTTP request.

    Attributes:
        method: Upper-cased HTTP method.
        url: Absolute request URL.
        headers: Outgoing headers (case-insensitive).
        data: Request body: JSON bytes, a multipart writer, or None for no
            body at all.
        form_fields: Multipart fields as sent, kept for verbose dumps.
    """

    method: str
    url: URL
    headers: CIMultiDict[str] = field(default_factory=CIMultiDict)
    data: bytes | aiohttp.MultipartWriter | None = None
    form_fields: dict[str, str] = field(default_factory=dict)

    @property
    def is_multipart(self) -> bool:
        """True when the body is multipart form data."""
        return isinstance(self.data, aiohttp.MultipartWriter)


def build_request(endpoint: EndpointTest, *, base_url: str = "") -> PreparedRequest:
    """Build the request for an endpoint whose placeholders are resolved.

    Non-empty ``multipart_fields`` produce a ``multipart/form-data`` body
    and ``body`` is ignored. Otherwise ``body`` is sent as JSON; a ``None``
    body sends nothing while ``{}`` sends ``{}``. The endpoint's headers are
    applied last and replace generated ones (case-insensitively).

    Args:
        endpoint: Endpoint with placeholders already substituted.
        base_url: Prefix for endpoint URLs that are not absolute.

    Returns:
        The PreparedRequest.

    Raises:
        RequestConstructionError: If the method or URL is malformed, or a
            header name or value contains CR, LF or NUL.
        InvalidFieldType: If a multipart field value is not a string.
    """
    method = _build_method(endpoint.method)
    url = _build_url(endpoint.url, base_url)
    headers: CIMultiDict[str] = CIMultiDict()
    request = PreparedRequest(method=method, url=url, headers=headers)

    if endpoint.multipart_fields:
        writer = aiohttp.MultipartWriter("form-data")
        for name, value in endpoint.multipart_fields.items():
            if not isinstance(value, str):
                raise InvalidFieldType(name, value)
            part = writer.append(value)
            part.set_content_disposition("form-data", name=name)
            request.form_fields[name] = value
        headers["Content-Type"] = writer.content_type
        request.data = writer
    elif endpoint.body is not None:
        request.data = json.dumps(endpoint.body, default=str).encode("utf-8")
        headers["Content-Type"] = _JSON_CONTENT_TYPE

    for key, value in endpoint.headers.items():
        if _HEADER_FORBIDDEN.search(key) or _HEADER_FORBIDDEN.search(value):
            msg = f"header {key!r} contains a control character: {value!r}"
            raise RequestConstructionError(msg)
        headers[key] = value

    return request


def _build_method(raw: str) -> str:
    method = raw.strip()
    if not _METHOD_TOKEN.match(method):
        msg = f"invalid HTTP method: {raw!r}"
        raise RequestConstructionError(msg)
    return method.upper()


def _build_url(raw: str, base_url: str) -> URL:
    target = raw.strip()
    if not target:
        msg = "endpoint URL is empty"
        raise RequestConstructionError(msg)

    try:
        url = URL(target)
        if not url.is_absolute() and base_url:
            separator = "" if target.startswith("/") else "/"
            url = URL(f"{base_url.rstrip('/')}{separator}{target}")
    except (ValueError, TypeError) as exc:
        msg = f"invalid URL {raw!r}: {exc}"
        raise RequestConstructionError(msg) from exc

    if not url.is_absolute():
        msg = f"URL {raw!r} is relative and no base URL is configured"
        raise RequestConstructionError(msg)
    if url.scheme not in ("http", "https") or not url.host:
        msg = f"URL {raw!r} must be an http(s) URL with a host"
        raise RequestConstructionError(msg)
    return url
