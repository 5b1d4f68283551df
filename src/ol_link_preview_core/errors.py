from __future__ import annotations


class PreviewError(RuntimeError):
    pass


class UrlParseError(PreviewError, ValueError):
    pass


class UrlDecodeError(PreviewError, ValueError):
    pass


class TransportError(PreviewError):
    pass


class SizeLimitExceeded(PreviewError):
    def __init__(self, *, limit: int, size: int | None = None) -> None:
        self.limit = limit
        self.size = size
        if size is None:
            super().__init__(f"Response body exceeds the maximum allowed size ({limit} bytes)")
        else:
            super().__init__(f"Response body of {size} bytes exceeds the maximum allowed size ({limit} bytes)")
