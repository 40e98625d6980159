import logging
from urllib.parse import urljoin
from typing import List

from ..chapter import Chapter, ChapterListElement
from ..core_logic import Backend, collapse_whitespace
from ..errors import ParseError, UnknownChapter
from ..ordering import by_title_number
from .injected_text import strip_injected_text

logger = logging.getLogger(__name__)

TITLE_SELECTOR = "h1.tit"
AUTHORS_SELECTOR = "a.a1[href]"
COVER_SELECTOR = "div.pic img[src]"
CHAPTER_LIST_SELECTOR = "div.m-newest2 ul#idData li a.con[href]"
CHAPTER_TITLE_SELECTOR = "div.top span.chapter"
CHAPTER_CONTENT_SELECTOR = "div.txt div#article"


class FreeWebNovel(Backend):
    """
    Backend for https://freewebnovel.com

    The whole chapter list is on the fiction page. Chapters have no
    publication date, so they are ordered by the number in their title.
    """
    BASE_URL = "https://freewebnovel.com"
    INJECTED_TEXT_SOURCE = "freewebnovel"
    key = "freewebnovel"
    name = "FreeWebNovel"
    url_patterns = [
        r"https?://(?:www\.)?freewebnovel\.com/(?P<id>[\w-]+)\.html",
    ]

    def _fetch_pages(self):
        self.page = self._get_page(self.url, f"could not get fiction page {self.url}")

    def title(self) -> str:
        return self._text(self._select_one(self.page, TITLE_SELECTOR, "fiction title"))

    def _author_names(self) -> List[str]:
        return [
            self._text(a)
            for a in self.page.select(AUTHORS_SELECTOR)
            if a['href'].startswith(('/author/', '/authors/'))
        ]

    def authors(self) -> List[str]:
        authors = self._author_names()
        if not authors:
            raise ParseError(f"Failed to find authors in {self.url}")
        return authors

    def cover_url(self) -> str:
        cover_img = self._select_one(self.page, COVER_SELECTOR, "cover image")
        return urljoin(self.BASE_URL, cover_img['src'])

    def _chapter_links(self):
        return self.page.select(CHAPTER_LIST_SELECTOR)

    def chapter_list(self) -> List[ChapterListElement]:
        return [
            ChapterListElement(position, collapse_whitespace(link.get("title", "")) or self._text(link))
            for position, link in enumerate(self._chapter_links(), start=1)
        ]

    def chapter_count(self) -> int:
        return len(self._chapter_links())

    def _fetch_chapter(self, number: int) -> Chapter:
        links = self._chapter_links()
        if number > len(links):
            raise UnknownChapter(number)
        chapter_url = urljoin(self.BASE_URL, links[number - 1]['href'])

        page = self._get_page(chapter_url, f"failed to get chapter {number} from {chapter_url}")
        title = self._text(self._select_one(page, CHAPTER_TITLE_SELECTOR, "chapter title"))
        content_div = self._select_one(page, CHAPTER_CONTENT_SELECTOR, "chapter content")
        for tag in content_div(['script', 'style', 'ins']):
            tag.decompose()
        strip_injected_text(content_div, self.INJECTED_TEXT_SOURCE)

        chapter = Chapter(
            title=title,
            content=content_div.decode_contents(),
            chapter_url=chapter_url,
        )
        authors = self._author_names()
        if authors:
            chapter.add_metadata('authors', ", ".join(authors))
        return chapter

    @classmethod
    def ordering_function(cls):
        return by_title_number()
