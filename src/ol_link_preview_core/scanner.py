from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from typing import Union

from ol_link_preview_core.decoding import iter_text
from ol_link_preview_core.models import FetchedDocument, Preview, PreviewDraft, ScrapeRequest
from ol_link_preview_core.tokenizer import HtmlTokenizer, Token, TokenKind
from ol_link_preview_core.urls import origin_of, resolve

log = logging.getLogger(__name__)

_TAG_KINDS = frozenset({TokenKind.START_TAG, TokenKind.END_TAG, TokenKind.SELF_CLOSING_TAG})
_WS_RE = re.compile(r"\s+")


class Decision(enum.Enum):
    CANONICAL_REDIRECT = "canonical_redirect"
    FRAGMENT_REDIRECT = "fragment_redirect"
    EARLY_STOP = "early_stop"
    CONTINUE = "continue"


@dataclass(frozen=True)
class CanonicalRedirect:
    # Absolute URL of the canonical page.
    target: str


@dataclass(frozen=True)
class FragmentRedirect:
    """The session rewrites its own URL to the escaped-fragment form."""


Redirect = Union[CanonicalRedirect, FragmentRedirect]


@dataclass(frozen=True)
class ScanResult:
    preview: Preview
    redirect: Redirect | None = None


def _clean(s: str) -> str:
    return s.strip().lower()


def _is_fragment_marker(attrs: list[tuple[str, str]]) -> bool:
    name = ""
    content = ""
    for key, value in attrs:
        key = _clean(key)
        if key == "name":
            name = value
        elif key == "content":
            content = value
    return name == "fragment" and content == "!"


class _Scan:
    def __init__(self, document: FetchedDocument, request: ScrapeRequest) -> None:
        self.request = request
        self.scheme, self.host = origin_of(request.url)
        self.preview = PreviewDraft.seeded(scheme=self.scheme, host=self.host, link=request.url)
        # The link seeded from the fetched URL; og:url must not hide a canonical redirect.
        self.seed_link = request.url
        self.tokens = HtmlTokenizer(iter_text(document.body, document.content_type))

        self.head_passed = False
        self.og_image = False
        self.canonical_url: str | None = None
        self.fragment_pending = False
        self.awaiting_title = False

    def _resolve(self, candidate: str) -> str:
        return resolve(self.scheme, self.host, candidate)

    def on_link(self, token: Token) -> None:
        rel = ""
        href = ""
        for key, value in token.attrs:
            key = _clean(key)
            if key == "rel":
                rel = _clean(value)
            elif key == "href":
                href = value
        if not href:
            return
        if "icon" in rel:
            self.preview.icon = self._resolve(href)
        if rel == "canonical":
            target = self._resolve(href)
            if target != self.seed_link:
                self.canonical_url = target

    def on_meta(self, token: Token) -> None:
        if len(token.attrs) != 2:
            return
        if _is_fragment_marker(token.attrs) and self.request.escaped_fragment_url is None:
            self.fragment_pending = True

        prop = ""
        content = ""
        for key, value in token.attrs:
            key = _clean(key)
            if key in ("property", "name"):
                prop = _clean(value)
            elif key == "content":
                content = value

        p = self.preview
        if prop == "og:site_name":
            p.name = content
        elif prop == "og:title":
            if not p.title:
                p.title = content
        elif prop == "og:type":
            p.type = content
        elif prop == "og:description":
            p.description = content
        elif prop == "description":
            if not p.description:
                p.description = content
        elif prop == "og:url":
            p.link = content
        elif prop == "og:image":
            p.images = [self._resolve(content)]
            self.og_image = True

    def on_img(self, token: Token) -> None:
        if self.og_image:
            return
        for key, value in token.attrs:
            if _clean(key) == "src":
                self.preview.images.append(self._resolve(value))

    def on_token(self, kind: TokenKind, token: Token) -> None:
        if self.awaiting_title:
            self.awaiting_title = False
            if kind is TokenKind.TEXT and not self.preview.title:
                self.preview.title = _WS_RE.sub(" ", token.text).strip()
                return
        if kind not in _TAG_KINDS:
            return

        name = token.name
        if name == "head":
            if kind is TokenKind.END_TAG:
                self.head_passed = True
        elif name == "body":
            self.head_passed = True
        elif name == "link":
            self.on_link(token)
        elif name == "meta":
            self.on_meta(token)
        elif name == "title":
            if kind is TokenKind.START_TAG:
                self.awaiting_title = True
        elif name == "img":
            self.on_img(token)

    def decide(self) -> Decision:
        can_redirect = self.head_passed and self.request.redirect_budget > 0
        if self.canonical_url is not None and can_redirect:
            return Decision.CANONICAL_REDIRECT
        if self.fragment_pending and can_redirect:
            return Decision.FRAGMENT_REDIRECT
        p = self.preview
        if p.title and p.description and self.og_image and self.head_passed:
            return Decision.EARLY_STOP
        return Decision.CONTINUE

    def run(self) -> ScanResult:
        while True:
            kind = self.tokens.next()
            if kind is TokenKind.END_OF_STREAM:
                return ScanResult(preview=self.preview.freeze())
            self.on_token(kind, self.tokens.current_token())

            decision = self.decide()
            if decision is Decision.CANONICAL_REDIRECT and self.canonical_url is not None:
                log.debug("Canonical redirect %s -> %s", self.request.url, self.canonical_url)
                return ScanResult(
                    preview=self.preview.freeze(),
                    redirect=CanonicalRedirect(target=self.canonical_url),
                )
            if decision is Decision.FRAGMENT_REDIRECT:
                log.debug("Fragment redirect requested by %s", self.request.url)
                return ScanResult(preview=self.preview.freeze(), redirect=FragmentRedirect())
            if decision is Decision.EARLY_STOP:
                log.debug("Early stop on %s: title, description and og:image found", self.request.url)
                return ScanResult(preview=self.preview.freeze())


def scan(document: FetchedDocument, request: ScrapeRequest) -> ScanResult:
    """
    Single forward pass over `document`, collecting preview fields.

    Scanning ends at the first of: a canonical redirect (takes priority), a
    `<meta name="fragment" content="!">` redirect, title + description + og:image
    all present after the head, or the end of the document. Redirects are only
    signalled while `request.redirect_budget` is positive; following them is the
    caller's job. Defaults are seeded from `request.url`.
    """
    return _Scan(document, request).run()
