from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ScrapeRequest:
    """
    Mutable per-session state: the URL and redirect budget move as redirects are followed.
    """

    url: str
    redirect_budget: int
    user_agent: str
    max_body_bytes: int | None = None
    escaped_fragment_url: str | None = None

    @property
    def fetch_url(self) -> str:
        return self.escaped_fragment_url or self.url


@dataclass(frozen=True)
class FetchedDocument:
    body: bytes
    content_type: str | None
    url: str


@dataclass(frozen=True)
class Preview:
    icon: str
    name: str
    link: str
    title: str = ""
    description: str = ""
    type: str = ""
    images: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ScrapedDocument:
    document: FetchedDocument
    preview: Preview


@dataclass
class PreviewDraft:
    icon: str
    name: str
    link: str
    title: str = ""
    description: str = ""
    type: str = ""
    images: list[str] = field(default_factory=list)

    @classmethod
    def seeded(cls, *, scheme: str, host: str, link: str) -> PreviewDraft:
        return cls(icon=f"{scheme}://{host}/favicon.ico", name=host, link=link)

    def freeze(self) -> Preview:
        return Preview(
            icon=self.icon,
            name=self.name,
            link=self.link,
            title=self.title,
            description=self.description,
            type=self.type,
            images=list(self.images),
        )
