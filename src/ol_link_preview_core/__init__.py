from ol_link_preview_core.config import Settings, load_settings
from ol_link_preview_core.errors import (
    PreviewError,
    SizeLimitExceeded,
    TransportError,
    UrlDecodeError,
    UrlParseError,
)
from ol_link_preview_core.fetcher import Fetcher
from ol_link_preview_core.fragment import ESCAPED_FRAGMENT, to_escaped_fragment_url
from ol_link_preview_core.models import FetchedDocument, Preview, ScrapedDocument, ScrapeRequest
from ol_link_preview_core.scanner import CanonicalRedirect, Decision, FragmentRedirect, ScanResult, scan
from ol_link_preview_core.scraper import ScrapeOptions, Scraper, scrape, scrape_with_settings
from ol_link_preview_core.urls import resolve

__all__ = [
    "__version__",
    "CanonicalRedirect",
    "Decision",
    "ESCAPED_FRAGMENT",
    "FetchedDocument",
    "Fetcher",
    "FragmentRedirect",
    "Preview",
    "PreviewError",
    "ScanResult",
    "ScrapeOptions",
    "ScrapeRequest",
    "ScrapedDocument",
    "Scraper",
    "Settings",
    "SizeLimitExceeded",
    "TransportError",
    "UrlDecodeError",
    "UrlParseError",
    "load_settings",
    "resolve",
    "scan",
    "scrape",
    "scrape_with_settings",
    "to_escaped_fragment_url",
]

__version__ = "0.0.0"
