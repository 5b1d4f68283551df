from __future__ import annotations

import codecs
import re
from collections.abc import Iterator

_SNIFF_BYTES = 1024

_CHARSET_PARAM_RE = re.compile(r"charset\s*=\s*[\"']?([\w.:-]+)", re.IGNORECASE)
_META_CHARSET_RE = re.compile(rb"<meta[^>]+charset\s*=\s*[\"']?([\w.:-]+)", re.IGNORECASE)

_BOMS = (
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)


def _known(label: str | None) -> str | None:
    if not label:
        return None
    try:
        return codecs.lookup(label).name
    except LookupError:
        return None


def detect_encoding(body: bytes, content_type: str | None) -> str:
    """
    Pick the text encoding of an HTML body.

    Order: byte-order mark, `charset` of the content type, a `<meta>` charset
    declaration near the top of the document, then UTF-8.
    """
    for bom, name in _BOMS:
        if body.startswith(bom):
            return name

    m = _CHARSET_PARAM_RE.search(content_type or "")
    enc = _known(m.group(1)) if m else None
    if enc:
        return enc

    m = _META_CHARSET_RE.search(body[:_SNIFF_BYTES])
    enc = _known(m.group(1).decode("ascii", errors="ignore")) if m else None
    # A page served as bytes cannot really be UTF-16 if its <meta> was readable as ASCII.
    if enc and not enc.startswith("utf-16"):
        return enc

    return "utf-8"


def iter_text(body: bytes, content_type: str | None, *, chunk_size: int = 8192) -> Iterator[str]:
    """
    Decode `body` lazily, `chunk_size` bytes at a time.
    """
    decoder = codecs.getincrementaldecoder(detect_encoding(body, content_type))(errors="replace")
    for start in range(0, len(body), chunk_size):
        text = decoder.decode(body[start : start + chunk_size])
        if text:
            yield text
    tail = decoder.decode(b"", final=True)
    if tail:
        yield tail
