from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from urllib.parse import unquote_plus, urlsplit, urlunsplit

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"
BLANK_URL = "about:blank"

_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")

# Schemes that are meaningless without a host
_HOST_REQUIRED_SCHEMES: frozenset[str] = frozenset(["http", "https", "ftp", "ws", "wss"])


def is_valid_url(url: object) -> bool:
    """Return True when ``url`` parses as an absolute URL.

    Browser-internal URLs such as ``about:blank`` or ``chrome://newtab`` are
    valid; bare hostnames without a scheme are not.
    """
    if not isinstance(url, str):
        return False
    candidate = url.strip()
    if not candidate:
        return False
    if any(ord(char) < 32 or ord(char) == 127 for char in candidate):
        return False

    try:
        parts = urlsplit(candidate)
        # Accessing .port validates it and raises on out-of-range values
        _ = parts.port
    except ValueError:
        return False

    if not parts.scheme or not _SCHEME_PATTERN.match(parts.scheme):
        return False

    if parts.scheme.lower() in _HOST_REQUIRED_SCHEMES:
        if not parts.hostname:
            return False
        if any(char.isspace() for char in parts.netloc):
            return False
    return True


def sanitize_url(url: object, tracking_params: Iterable[str]) -> str:
    """Strip tracking query parameters from ``url``.

    Unparseable input is returned unchanged rather than rejected. Parameter
    order and encoding of everything that is kept are preserved.
    """
    if not url or not isinstance(url, str):
        return ""
    if not is_valid_url(url):
        return url

    blocked = {name.lower() for name in tracking_params}
    if not blocked:
        return url

    parts = urlsplit(url)
    if not parts.query:
        return url

    kept: list[str] = []
    removed: list[str] = []
    for piece in parts.query.split("&"):
        key = unquote_plus(piece.split("=", 1)[0])
        if key.lower() in blocked:
            removed.append(key)
        else:
            kept.append(piece)

    if not removed:
        return url

    sanitized = urlunsplit(
        (parts.scheme, parts.netloc, parts.path, "&".join(kept), parts.fragment)
    )
    logger.debug("url_tracking_params_removed", extra={"removed": removed})
    return sanitized


def extract_domain(url: object) -> str:
    """Hostname of ``url`` or ``"unknown"``."""
    if not is_valid_url(url):
        return UNKNOWN
    hostname = urlsplit(str(url).strip()).hostname
    return hostname or ""


def extract_protocol(url: object) -> str:
    """Scheme of ``url`` with the trailing colon (``"https:"``) or ``"unknown"``."""
    if not is_valid_url(url):
        return UNKNOWN
    return f"{urlsplit(str(url).strip()).scheme.lower()}:"
