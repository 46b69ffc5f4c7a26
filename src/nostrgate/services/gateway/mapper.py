"""Content mapping between HTTP requests and Nostr records.

Pure helpers used by the [Gateway][nostrgate.services.gateway.Gateway]
request handler:

* [extract_pointer()][nostrgate.services.gateway.mapper.extract_pointer]:
  host header to pointer string.
* [request_path()][nostrgate.services.gateway.mapper.request_path]:
  undecoded request path used for route matching.
* [find_route()][nostrgate.services.gateway.mapper.find_route]:
  ``["e", id, relay-hint, path]`` lookup on a root record.
* [decode_content()][nostrgate.services.gateway.mapper.decode_content]:
  forgiving base64 with a text fallback.
* [render_record()][nostrgate.services.gateway.mapper.render_record]:
  record to response, with ``["header", name, value]`` tags applied.
* [redirect_url()][nostrgate.services.gateway.mapper.redirect_url]:
  companion renderer link for records that are not site roots.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from collections.abc import Sequence
from ipaddress import ip_address
from typing import TYPE_CHECKING

from fastapi import Response

from nostrgate.nips.nip19 import encode_event_pointer


if TYPE_CHECKING:
    from fastapi import Request

    from nostrgate.models.record import Record, Tag


logger = logging.getLogger(__name__)

EVENT_HEADER = "x-nostr-event"
PUBKEY_HEADER = "x-nostr-pubkey"

_ASCII_WHITESPACE = re.compile(r"[\t\n\f\r ]+")
_BASE64_BODY = re.compile(r"[A-Za-z0-9+/]*")

# Framing headers are computed by the server from the body
_RESERVED_HEADERS = frozenset({"content-length", "transfer-encoding"})


# ---------------------------------------------------------------------------
# Request side
# ---------------------------------------------------------------------------


def _hostname(host: str) -> str:
    """Strip the port (and IPv6 brackets) from a Host header value."""
    host = host.strip().lower()
    if host.startswith("["):
        return host[1:].partition("]")[0]
    if host.count(":") == 1:
        return host.partition(":")[0]
    return host


def extract_subdomains(host: str, offset: int) -> list[str]:
    """Return the subdomain labels of *host*, nearest to the base domain first.

    The last *offset* labels form the base domain and are dropped. IP
    addresses have no subdomains.

    Examples:
        ```python
        extract_subdomains("b.a.example.com", 2)  # ['a', 'b']
        extract_subdomains("abc.localhost:3000", 1)  # ['abc']
        extract_subdomains("127.0.0.1", 2)  # []
        ```
    """
    hostname = _hostname(host)
    if not hostname:
        return []
    try:
        ip_address(hostname)
        return []
    except ValueError:
        pass
    labels = hostname.split(".")
    labels.reverse()
    return labels[offset:]


def extract_pointer(host: str, offset: int, default_pointer: str) -> str:
    """Return the pointer carried by the host, or *default_pointer* if there is none."""
    subdomains = extract_subdomains(host, offset)
    return subdomains[0] if subdomains and subdomains[0] else default_pointer


def request_path(request: Request) -> str:
    """Return the request path exactly as sent, without the query string.

    Percent-escapes are kept, so ``/a%20b`` only matches a route tag that
    holds ``/a%20b``.
    """
    raw = request.scope.get("raw_path")
    if raw:
        return raw.partition(b"?")[0].decode("latin-1")
    return request.url.path


def find_route(root: Record, path: str) -> Tag | None:
    """Return the first ``["e", id, relay-hint, path]`` tag whose path equals *path*."""
    for tag in root.iter_tags("e"):
        if len(tag) >= 4 and tag[3] == path:
            return tag
    return None


# ---------------------------------------------------------------------------
# Response side
# ---------------------------------------------------------------------------


def decode_content(content: str) -> bytes | str:
    """Decode *content* as forgiving base64, falling back to the text itself.

    ASCII whitespace is ignored and ``=`` padding is optional, as in the
    browser ``atob`` algorithm.

    Returns:
        The decoded bytes, or *content* unchanged when it is not base64.
    """
    data = _ASCII_WHITESPACE.sub("", content)
    if len(data) % 4 == 0 and data.endswith("="):
        data = data[:-2] if data.endswith("==") else data[:-1]
    if len(data) % 4 == 1 or not _BASE64_BODY.fullmatch(data):
        return content
    try:
        return base64.b64decode(data + "=" * (-len(data) % 4), validate=True)
    except binascii.Error:
        return content


def _is_valid_header(name: str, value: str) -> bool:
    if not name or name.lower() in _RESERVED_HEADERS:
        return False
    if any(c in name for c in " :\r\n") or any(c in value for c in "\r\n"):
        return False
    try:
        name.encode("latin-1")
        value.encode("latin-1")
    except UnicodeEncodeError:
        return False
    return True


def render_record(record: Record) -> Response:
    """Build the HTTP response serving *record*.

    The body is the base64-decoded content when possible
    (``application/octet-stream``), else the raw text (``text/html`` when it
    starts with ``<``, else ``text/plain``). ``["header", name, value]`` tags
    are applied afterwards, so they override the default content type; when
    a header is set twice the last tag wins.
    """
    body = decode_content(record.content)
    if isinstance(body, bytes):
        media_type = "application/octet-stream"
    elif body.lstrip().startswith("<"):
        media_type = "text/html"
    else:
        media_type = "text/plain"

    response = Response(content=body, media_type=media_type)
    response.headers[EVENT_HEADER] = record.id
    response.headers[PUBKEY_HEADER] = record.pubkey

    for tag in record.iter_tags("header"):
        if len(tag) != 3:
            continue
        _, name, value = tag
        if not _is_valid_header(name, value):
            logger.debug("header_tag_skipped record=%s name=%r", record.id, name)
            continue
        response.headers[name] = value

    return response


def redirect_url(renderer_url: str, event_id: str, relays: Sequence[str]) -> str:
    """Return the companion renderer URL for a record that is not a site root."""
    return renderer_url + encode_event_pointer(event_id, relays)
