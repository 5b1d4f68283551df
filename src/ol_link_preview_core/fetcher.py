from __future__ import annotations

import logging

import httpx

from ol_link_preview_core.config import DEFAULT_USER_AGENT
from ol_link_preview_core.errors import SizeLimitExceeded, TransportError, UrlParseError
from ol_link_preview_core.models import FetchedDocument

log = logging.getLogger(__name__)


def _declared_length(headers: httpx.Headers) -> int | None:
    raw = headers.get("content-length")
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


class Fetcher:
    """
    Thin GET (plus optional HEAD size probe) boundary over `httpx`.

    A client passed in is borrowed and never closed here; otherwise one is created
    lazily and released by `close()`.
    """

    def __init__(
        self,
        *,
        client: httpx.Client | None = None,
        timeout_s: float = 10.0,
        max_redirects: int = 10,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout_s = timeout_s
        self._max_redirects = max_redirects

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self._timeout_s,
                follow_redirects=True,
                max_redirects=self._max_redirects,
            )
        return self._client

    def close(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> Fetcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _probe_length(self, url: str, headers: dict[str, str], limit: int) -> None:
        try:
            r = self._http().head(url, headers=headers, follow_redirects=True)
        except httpx.HTTPError as e:
            # The GET decides whether the host is reachable.
            log.debug("HEAD probe for %s failed: %s", url, e)
            return
        declared = _declared_length(r.headers)
        if declared is not None and declared > limit:
            raise SizeLimitExceeded(limit=limit, size=declared)

    def fetch(
        self,
        url: str,
        *,
        user_agent: str | None = None,
        max_body_bytes: int | None = None,
    ) -> FetchedDocument:
        headers = {"User-Agent": user_agent or DEFAULT_USER_AGENT}
        limit = max_body_bytes if max_body_bytes and max_body_bytes > 0 else None

        try:
            if limit is not None:
                self._probe_length(url, headers, limit)

            with self._http().stream("GET", url, headers=headers, follow_redirects=True) as r:
                declared = _declared_length(r.headers)
                if limit is not None and declared is not None and declared > limit:
                    raise SizeLimitExceeded(limit=limit, size=declared)

                chunks: list[bytes] = []
                total = 0
                for chunk in r.iter_bytes():
                    total += len(chunk)
                    if limit is not None and total > limit:
                        raise SizeLimitExceeded(limit=limit)
                    chunks.append(chunk)

                content_type = r.headers.get("content-type")
                effective_url = str(r.url) if r.history else url
                status = r.status_code
        except httpx.InvalidURL as e:
            raise UrlParseError(f"Cannot fetch malformed URL {url!r}: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"GET {url} failed: {e}") from e

        log.debug("GET %s -> %s (%d bytes, final url %s)", url, status, total, effective_url)
        return FetchedDocument(body=b"".join(chunks), content_type=content_type, url=effective_url)
