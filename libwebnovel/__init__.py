"""
Access webnovel hosting sites and get their contents as uniform chapters.

    import libwebnovel

    backend = libwebnovel.new("https://www.royalroad.com/fiction/21220/mother-of-learning")
    for chapter in backend.chapters():
        save(backend.immutable_identifier(), chapter.index, str(chapter))
"""
__version__ = "0.9.2"

from .chapter import Chapter, ChapterListElement, decode, encode, html_equivalent, normalize_html
from .core_logic import Backend, BackendRegistry
from .errors import (
    ChapterEncodeError,
    ChapterParseError,
    DateParseError,
    MissingChapterInformation,
    NetworkError,
    NoMatchingBackendFound,
    ParseError,
    RateLimitExhausted,
    RequestFailed,
    UnknownChapter,
    WebnovelError,
)
from .fetch_client import FetchClient, fibonacci_backoff
from .backends import BUILTIN_BACKENDS, default_registry


def new(url: str, client=None) -> Backend:
    """Builds the backend handling ``url`` from the enabled built-in backends."""
    return default_registry(client).new(url)


__all__ = [
    "Backend",
    "BackendRegistry",
    "BUILTIN_BACKENDS",
    "Chapter",
    "ChapterListElement",
    "ChapterEncodeError",
    "ChapterParseError",
    "DateParseError",
    "FetchClient",
    "MissingChapterInformation",
    "NetworkError",
    "NoMatchingBackendFound",
    "ParseError",
    "RateLimitExhausted",
    "RequestFailed",
    "UnknownChapter",
    "WebnovelError",
    "decode",
    "default_registry",
    "encode",
    "fibonacci_backoff",
    "html_equivalent",
    "new",
    "normalize_html",
]
