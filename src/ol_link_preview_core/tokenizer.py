from __future__ import annotations

import enum
import logging
from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from html.parser import HTMLParser

log = logging.getLogger(__name__)


class TokenKind(enum.Enum):
    START_TAG = "start_tag"
    END_TAG = "end_tag"
    SELF_CLOSING_TAG = "self_closing_tag"
    TEXT = "text"
    COMMENT = "comment"
    END_OF_STREAM = "end_of_stream"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    name: str = ""
    attrs: list[tuple[str, str]] = field(default_factory=list)
    text: str = ""


_END_OF_STREAM = Token(kind=TokenKind.END_OF_STREAM)


class _TokenCollector(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.tokens: deque[Token] = deque()

    @staticmethod
    def _attrs(attrs: list[tuple[str, str | None]]) -> list[tuple[str, str]]:
        return [(k, v or "") for k, v in attrs]

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self.tokens.append(Token(kind=TokenKind.START_TAG, name=tag, attrs=self._attrs(attrs)))

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self.tokens.append(Token(kind=TokenKind.SELF_CLOSING_TAG, name=tag, attrs=self._attrs(attrs)))

    def handle_endtag(self, tag: str) -> None:
        self.tokens.append(Token(kind=TokenKind.END_TAG, name=tag))

    def handle_data(self, data: str) -> None:
        last = self.tokens[-1] if self.tokens else None
        if last is not None and last.kind is TokenKind.TEXT:
            self.tokens[-1] = Token(kind=TokenKind.TEXT, text=last.text + data)
            return
        self.tokens.append(Token(kind=TokenKind.TEXT, text=data))

    def handle_comment(self, data: str) -> None:
        self.tokens.append(Token(kind=TokenKind.COMMENT, text=data))


class HtmlTokenizer:
    """
    Pull-style token stream over text chunks.

    Chunks are fed to the parser only when the queue runs dry, so a caller that
    stops early never parses the rest of the document. Adjacent text is coalesced
    into a single token, and parser failures end the stream.
    """

    def __init__(self, chunks: Iterable[str]) -> None:
        self._chunks = iter(chunks)
        self._parser = _TokenCollector()
        self._exhausted = False
        self._current = _END_OF_STREAM

    def _feed_more(self) -> bool:
        if self._exhausted:
            return False
        try:
            chunk = next(self._chunks, None)
            if chunk is None:
                self._exhausted = True
                self._parser.close()
            else:
                self._parser.feed(chunk)
        except Exception as e:  # noqa: BLE001
            log.debug("Tokenizer stopped on parser error: %s", e)
            self._exhausted = True
        return True

    def _ready(self) -> bool:
        tokens = self._parser.tokens
        if not tokens:
            return False
        # A trailing text token may still grow with the next chunk.
        return self._exhausted or len(tokens) > 1 or tokens[0].kind is not TokenKind.TEXT

    def next(self) -> TokenKind:
        while not self._ready():
            if not self._feed_more():
                break
        tokens = self._parser.tokens
        self._current = tokens.popleft() if tokens else _END_OF_STREAM
        return self._current.kind

    def current_token(self) -> Token:
        return self._current

    def __iter__(self) -> Iterator[Token]:
        while self.next() is not TokenKind.END_OF_STREAM:
            yield self._current
