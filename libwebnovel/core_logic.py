import re
import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Type

from bs4 import BeautifulSoup

from .chapter import Chapter, ChapterListElement
from .config import config_manager
from .errors import NoMatchingBackendFound, ParseError, UnknownChapter
from .fetch_client import FetchClient
from .ordering import Comparator, sort_chapters

logger = logging.getLogger(__name__)


def collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


# The "Contract" for any new website (Royal Road, FreeWebNovel, etc.)
class Backend(ABC):
    """
    Reads one webnovel from one source site.

    Subclasses declare ``key``, ``name`` and ``url_patterns`` and fetch the pages
    they need in ``_fetch_pages``. Those pages are a snapshot: an instance never
    re-fetches them, build a new instance to see updates.
    """
    key: str = ""
    name: str = ""
    url_patterns: List[str] = []
    is_enabled_by_default = True

    def __init__(self, url: str, client: Optional[FetchClient] = None):
        self.url = url
        self.client = client if client is not None else FetchClient()
        self._fetch_pages()

    def __repr__(self):
        return f"{self.__class__.__name__}(url={self.url!r})"

    @classmethod
    def match(cls, url: str) -> Optional[re.Match]:
        """Returns the match of the first url pattern found in ``url``."""
        for pattern in cls.url_patterns:
            found = re.search(pattern, url)
            if found:
                return found
        return None

    @classmethod
    def identify(cls, url: str) -> bool:
        """Returns True if this backend handles the given URL."""
        return cls.match(url) is not None

    def _get_page(self, url: str, message: str) -> BeautifulSoup:
        response = self.client.get_ok(url, message)
        return BeautifulSoup(response.text, 'html.parser')

    @staticmethod
    def _select_one(soup, selector: str, what: str):
        element = soup.select_one(selector)
        if element is None:
            raise ParseError(f"Could not find {what} ({selector})")
        return element

    @staticmethod
    def _text(element) -> str:
        """Text of ``element`` on a single line, runs of whitespace collapsed."""
        return collapse_whitespace(element.get_text(" ", strip=True))

    @abstractmethod
    def _fetch_pages(self):
        """Fetches the fiction/listing page(s) this backend reads from."""

    @abstractmethod
    def title(self) -> str:
        """Returns the title of the fiction."""

    @abstractmethod
    def authors(self) -> List[str]:
        """Returns the author(s) of the fiction."""

    @abstractmethod
    def cover_url(self) -> str:
        """Returns the URL of the cover image."""

    @abstractmethod
    def chapter_list(self) -> List[ChapterListElement]:
        """Returns every chapter shown by the listing page(s), without fetching chapter bodies."""

    @abstractmethod
    def _fetch_chapter(self, number: int) -> Chapter:
        """
        Fetches chapter ``number`` (1-based, already checked to be >= 1).

        Must raise ``UnknownChapter`` when the listing is shorter than ``number``.
        """

    @classmethod
    @abstractmethod
    def ordering_function(cls) -> Comparator:
        """Returns a comparator over chapters that never looks at ``Chapter.index``."""

    def cover(self) -> bytes:
        """Downloads the cover image and returns its raw bytes."""
        return self.client.get_bytes(self.cover_url(), f"could not get cover image of {self.url}")

    def immutable_identifier(self) -> str:
        """
        Returns a key for this fiction that survives title changes.

        Computed from the URL only: the ``id`` group of the matching url pattern,
        or its first group.
        """
        found = self.match(self.url)
        if found:
            identifier = found.groupdict().get('id')
            if identifier is None and found.re.groups:
                identifier = found.group(1)
            if identifier:
                return identifier
        raise ParseError(f"Could not find a proper identifier in {self.url}")

    def chapter(self, number: int) -> Chapter:
        """Returns chapter ``number``, counting from 1 in listing order."""
        if number < 1:
            raise UnknownChapter(number)
        logger.debug(f"Fetching chapter {number} of {self.url}")
        chapter = self._fetch_chapter(number)
        chapter.index = number
        chapter.fiction_url = self.url
        return chapter

    def chapter_count(self) -> int:
        return len(self.chapter_list())

    def chapters(self, workers: Optional[int] = None) -> List[Chapter]:
        """
        Returns every chapter, in listing order.

        Stops at the first failing chapter and raises its error; nothing is
        returned in that case. Use ``chapter(n)`` in a loop to skip failures.

        Args:
            workers: number of chapters fetched concurrently (config ``chapter_workers``).
        """
        numbers = range(1, self.chapter_count() + 1)
        if workers is None:
            workers = config_manager.get('chapter_workers', 1)
        if workers <= 1:
            return [self.chapter(number) for number in numbers]

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(self.chapter, number) for number in numbers]
            try:
                return [future.result() for future in futures]
            except Exception:
                for future in futures:
                    future.cancel()
                raise

    def sort_chapters(self, chapters: Iterable[Chapter]) -> List[Chapter]:
        return sort_chapters(chapters, self.ordering_function())


# The "Dispatcher" that picks the right backend
class BackendRegistry:
    """
    Ordered table of backend classes.

    A URL goes to the first registered backend with a matching pattern, so
    registration order decides between backends claiming the same URLs. Every
    backend built by a registry shares the registry's ``FetchClient``.
    """
    def __init__(self, client: Optional[FetchClient] = None):
        self.client = client if client is not None else FetchClient()
        self.backends: List[Type[Backend]] = []

    def register(self, backend: Type[Backend]) -> Type[Backend]:
        if self.get_backend_by_key(backend.key) is not None:
            raise ValueError(f"A backend is already registered under the key {backend.key!r}")
        self.backends.append(backend)
        return backend

    def clear(self):
        self.backends = []

    def keys(self) -> List[str]:
        return [backend.key for backend in self.backends]

    def backend_for_url(self, url: str) -> Optional[Type[Backend]]:
        for backend in self.backends:
            if backend.identify(url):
                return backend
        return None

    def get_backend_by_key(self, key: str) -> Optional[Type[Backend]]:
        for backend in self.backends:
            if backend.key == key:
                return backend
        return None

    def new(self, url: str) -> Backend:
        """
        Builds the backend handling ``url``.

        Raises:
            NoMatchingBackendFound: no registered backend claims the URL.
        """
        backend = self.backend_for_url(url)
        if backend is None:
            raise NoMatchingBackendFound(url)
        logger.info(f"Using backend {backend.key} for {url}")
        return backend(url, client=self.client)

    def new_by_key(self, key: str, url: str) -> Backend:
        backend = self.get_backend_by_key(key)
        if backend is None:
            raise NoMatchingBackendFound(url)
        return backend(url, client=self.client)
