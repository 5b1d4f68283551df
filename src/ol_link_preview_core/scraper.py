from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from ol_link_preview_core.config import DEFAULT_USER_AGENT, Settings, load_settings
from ol_link_preview_core.fetcher import Fetcher
from ol_link_preview_core.fragment import ESCAPED_FRAGMENT, to_escaped_fragment_url
from ol_link_preview_core.models import FetchedDocument, Preview, ScrapedDocument, ScrapeRequest
from ol_link_preview_core.scanner import CanonicalRedirect, Redirect, scan
from ol_link_preview_core.urls import origin_of, parse_url, resolve

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScrapeOptions:
    user_agent: str = DEFAULT_USER_AGENT
    timeout_s: float = 10.0
    max_body_bytes: int | None = None
    max_transport_redirects: int = 10

    @classmethod
    def from_settings(cls, settings: Settings) -> ScrapeOptions:
        return cls(
            user_agent=settings.user_agent,
            timeout_s=settings.timeout_s,
            max_body_bytes=settings.max_body_bytes,
            max_transport_redirects=settings.max_transport_redirects,
        )


class Scraper:
    """
    One extraction session: owns its URL, redirect budget and fetcher.

    `max_redirects` bounds in-document redirects (canonical link, `#!` fragment);
    the initial fetch does not count against it.
    """

    def __init__(
        self,
        url: str,
        max_redirects: int,
        options: ScrapeOptions | None = None,
        *,
        fetcher: Fetcher | None = None,
    ) -> None:
        parse_url(url)
        self.options = options or ScrapeOptions()
        self.request = ScrapeRequest(
            url=url,
            redirect_budget=max(max_redirects, 0),
            user_agent=self.options.user_agent or DEFAULT_USER_AGENT,
            max_body_bytes=self.options.max_body_bytes,
        )
        self._fetcher = fetcher or Fetcher(
            timeout_s=self.options.timeout_s,
            max_redirects=self.options.max_transport_redirects,
        )
        self._owns_fetcher = fetcher is None

    def close(self) -> None:
        if self._owns_fetcher:
            self._fetcher.close()

    def __enter__(self) -> Scraper:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def get_document(self) -> FetchedDocument:
        req = self.request
        if "#!" in req.url:
            req.escaped_fragment_url = to_escaped_fragment_url(req.url)
        if ESCAPED_FRAGMENT in req.url:
            req.escaped_fragment_url = req.url

        target = req.fetch_url
        doc = self._fetcher.fetch(target, user_agent=req.user_agent, max_body_bytes=req.max_body_bytes)
        if doc.url != target:
            log.debug("Transport redirected %s -> %s", target, doc.url)
            req.escaped_fragment_url = None
            req.url = doc.url
        return doc

    def _follow(self, redirect: Redirect) -> FetchedDocument:
        req = self.request
        if isinstance(redirect, CanonicalRedirect):
            scheme, host = origin_of(req.url)
            req.url = resolve(scheme, host, redirect.target)
            req.escaped_fragment_url = None
        else:
            req.escaped_fragment_url = to_escaped_fragment_url(req.url)
        req.redirect_budget -= 1
        log.debug("Following %s to %s (%d left)", type(redirect).__name__, req.fetch_url, req.redirect_budget)
        return self.get_document()

    def _run(self, doc: FetchedDocument) -> ScrapedDocument:
        result = scan(doc, self.request)
        while result.redirect is not None and self.request.redirect_budget > 0:
            doc = self._follow(result.redirect)
            result = scan(doc, self.request)
        return ScrapedDocument(document=doc, preview=result.preview)

    def parse_document(self, doc: FetchedDocument) -> Preview:
        return self._run(doc).preview

    def scrape_document(self) -> ScrapedDocument:
        return self._run(self.get_document())

    def scrape(self) -> Preview:
        return self.scrape_document().preview


def scrape(
    url: str,
    max_redirects: int,
    options: ScrapeOptions | None = None,
    *,
    client: httpx.Client | None = None,
) -> Preview:
    """
    Fetch `url` and return its link preview.

    Raises UrlParseError, UrlDecodeError, TransportError or SizeLimitExceeded;
    there is no partial result.
    """
    opts = options or ScrapeOptions()
    fetcher = None
    if client is not None:
        fetcher = Fetcher(client=client, timeout_s=opts.timeout_s, max_redirects=opts.max_transport_redirects)
    with Scraper(url, max_redirects, opts, fetcher=fetcher) as scraper:
        return scraper.scrape()


def scrape_with_settings(
    url: str,
    settings: Settings | None = None,
    *,
    client: httpx.Client | None = None,
) -> Preview:
    """
    `scrape()` with the redirect budget and options taken from `PREVIEW_*` settings.
    """
    settings = settings or load_settings()
    return scrape(url, settings.max_redirects, ScrapeOptions.from_settings(settings), client=client)
