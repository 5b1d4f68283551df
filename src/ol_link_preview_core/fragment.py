from __future__ import annotations

import re
from urllib.parse import parse_qsl, quote_plus, unquote_plus

from ol_link_preview_core.errors import UrlDecodeError
from ol_link_preview_core.urls import parse_url

ESCAPED_FRAGMENT = "_escaped_fragment_="

_FRAGMENT_RE = re.compile(r"#!(.*)")
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")

# space, '#', '%', '&', '+'
_ESCAPED_CODEPOINTS = frozenset({32, 35, 37, 38, 43})


def _query_unescape(url: str) -> str:
    if _BAD_ESCAPE_RE.search(url):
        raise UrlDecodeError(f"Invalid URL escape in {url!r}")
    try:
        return unquote_plus(url, errors="strict")
    except UnicodeDecodeError as e:
        raise UrlDecodeError(f"Cannot percent-decode {url!r}: {e}") from e


def _escape_fragment(payload: str) -> str:
    out: list[str] = [ESCAPED_FRAGMENT]
    for ch in payload:
        code = ord(ch)
        if code <= 31 or code == 127:
            continue
        if code in _ESCAPED_CODEPOINTS or code >= 127:
            out.append(quote_plus(ch))
        else:
            out.append(ch)
    return "".join(out)


def to_escaped_fragment_url(url: str) -> str:
    """
    Rewrite a hash-bang URL into its `_escaped_fragment_` equivalent.

    `https://ex.com/#!/a b` becomes `https://ex.com/?_escaped_fragment_=/a+b`. URLs
    without `#!` just get an empty `_escaped_fragment_=` parameter appended; the
    marker is appended again even when already present.

    Drop/escape decisions use the full code point, not its low byte: controls
    (0-31, 127) are dropped and every non-ASCII character is escaped as UTF-8,
    so U+0100 becomes `%C4%80` rather than being dropped as byte 0x00.
    """
    unescaped = _query_unescape(url)
    has_query = bool(parse_qsl(parse_url(url).query, keep_blank_values=True))
    sep = "&" if has_query else "?"

    m = _FRAGMENT_RE.search(unescaped)
    if m:
        rewritten = unescaped.replace(m.group(0), sep + _escape_fragment(m.group(1)), 1)
    else:
        rewritten = unescaped + sep + ESCAPED_FRAGMENT

    parse_url(rewritten)
    return rewritten
