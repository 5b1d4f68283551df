from __future__ import annotations

from collections.abc import Callable, Generator

import httpx
import pytest

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingTransport(httpx.MockTransport):
    def __init__(self, handler: Handler) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    def gets(self) -> list[str]:
        return [str(r.url) for r in self.requests if r.method == "GET"]


def html_response(html: str, *, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        headers={"content-type": "text/html; charset=utf-8"},
        content=html.encode("utf-8"),
    )


def site_handler(pages: dict[str, str]) -> Handler:
    """
    Serve `pages` keyed by full URL; anything else is a 404.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        html = pages.get(str(request.url))
        if html is None:
            return html_response("<html><head><title>Not Found</title></head></html>", status_code=404)
        return html_response(html)

    return handler


@pytest.fixture()
def make_client() -> Generator[Callable[[Handler], tuple[httpx.Client, RecordingTransport]], None, None]:
    clients: list[httpx.Client] = []

    def _make(handler: Handler) -> tuple[httpx.Client, RecordingTransport]:
        transport = RecordingTransport(handler)
        client = httpx.Client(transport=transport)
        clients.append(client)
        return client, transport

    yield _make
    for c in clients:
        c.close()
