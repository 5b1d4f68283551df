from __future__ import annotations

import re
from urllib.parse import SplitResult, urlsplit, urlunsplit

from ol_link_preview_core.errors import UrlParseError

_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def parse_url(value: str) -> SplitResult:
    """
    Split `value` into its components, rejecting input no HTTP client would accept.

    The query is taken as-is, so `?ratio=50%` is accepted; a stray `%` in the host,
    path or fragment is not.
    """
    if _CONTROL_RE.search(value):
        raise UrlParseError(f"Invalid control character in URL: {value!r}")
    try:
        parsed = urlsplit(value)
        parsed.port  # noqa: B018
    except ValueError as e:
        raise UrlParseError(f"Malformed URL {value!r}: {e}") from e
    for part in (parsed.netloc, parsed.path, parsed.fragment):
        if _BAD_ESCAPE_RE.search(part):
            raise UrlParseError(f"Invalid URL escape in {value!r}")
    return parsed


def origin_of(url: str) -> tuple[str, str]:
    parsed = parse_url(url)
    host = parsed.netloc.rpartition("@")[2]
    return parsed.scheme, host


def resolve(base_scheme: str, base_host: str, candidate: str) -> str:
    """
    Make `candidate` absolute against `scheme://host`.

    Only root-relative joining is done: `img.png` and `/img.png` both land at the
    host root, and `../img.png` is not collapsed.
    """
    parsed = parse_url(candidate)
    if parsed.scheme:
        return candidate

    host = parsed.netloc or base_host
    path = parsed.path
    if not path.startswith("/"):
        path = "/" + path
    return urlunsplit((base_scheme, host, path, parsed.query, ""))
