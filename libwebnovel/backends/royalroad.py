import re
import logging
from urllib.parse import urljoin
from typing import List, Set

from bs4 import BeautifulSoup

from ..chapter import Chapter, ChapterListElement, parse_rfc3339
from ..core_logic import Backend
from ..errors import UnknownChapter
from ..ordering import by_published_at
from .injected_text import strip_injected_text

logger = logging.getLogger(__name__)

FICTION_TITLE_SELECTOR = "div.fic-header h1"
FICTION_AUTHORS_SELECTOR = "div.fic-header h4 span a"
COVER_SELECTOR = "img.thumbnail[src]"
CHAPTER_ROW_SELECTOR = "table#chapters tr.chapter-row"
CHAPTER_PAGE_TITLE_SELECTOR = "div.fic-header h1"
CHAPTER_PAGE_CONTENT_SELECTOR = "div.chapter-inner.chapter-content"
# Royal Road hides anti-theft sentences with randomly named classes set to display: none
HIDDEN_CLASS_RE = re.compile(r'\.([\w-]+)\s*\{[^}]*display\s*:\s*none', re.IGNORECASE)
CHAPTER_ID_RE = re.compile(r'/chapter/(\d+)')


class RoyalRoad(Backend):
    BASE_URL = "https://www.royalroad.com"
    key = "royalroad"
    name = "Royal Road"
    url_patterns = [
        r"https?://(?:www\.)?royalroad\.com/fiction/(?P<id>\d+)",
    ]

    def _fetch_pages(self):
        self.fiction_page = self._get_page(self.url, f"could not get fiction page {self.url}")

    def title(self) -> str:
        return self._text(self._select_one(self.fiction_page, FICTION_TITLE_SELECTOR, "fiction title"))

    def authors(self) -> List[str]:
        authors = [self._text(a) for a in self.fiction_page.select(FICTION_AUTHORS_SELECTOR)]
        if not authors:
            # Some pages only have plain text: "by The Author"
            author_tag = self._select_one(self.fiction_page, "div.fic-header h4", "fiction authors")
            text = self._text(author_tag)
            if text.lower().startswith('by '):
                text = text[3:].strip()
            authors = [text]
        return authors

    def cover_url(self) -> str:
        cover_img = self._select_one(self.fiction_page, COVER_SELECTOR, "cover image")
        return urljoin(self.BASE_URL, cover_img['src'])

    def _chapter_rows(self):
        return self.fiction_page.select(CHAPTER_ROW_SELECTOR)

    def chapter_list(self) -> List[ChapterListElement]:
        chapters = []
        for position, row in enumerate(self._chapter_rows(), start=1):
            link = self._select_one(row, "a[href]", "chapter link")
            chapters.append(ChapterListElement(position, self._text(link)))
        return chapters

    def _fetch_chapter(self, number: int) -> Chapter:
        rows = self._chapter_rows()
        if number > len(rows):
            raise UnknownChapter(number)
        row = rows[number - 1]
        href = self._select_one(row, "a[href]", "chapter link")['href']
        chapter_url = urljoin(self.BASE_URL, href)

        published_at = None
        time_tag = row.select_one("time[datetime]")
        if time_tag:
            published_at = parse_rfc3339(time_tag['datetime'])

        page = self._get_page(chapter_url, f"failed to get chapter {number} from {chapter_url}")
        title = self._text(self._select_one(page, CHAPTER_PAGE_TITLE_SELECTOR, "chapter title"))
        content_div = self._select_one(page, CHAPTER_PAGE_CONTENT_SELECTOR, "chapter content")
        self._clean_content(page, content_div)

        chapter = Chapter(
            title=title,
            content=content_div.decode_contents(),
            chapter_url=chapter_url,
            published_at=published_at,
        )
        chapter.add_metadata('fiction_id', self.immutable_identifier())
        chapter_id = CHAPTER_ID_RE.search(href)
        if chapter_id:
            chapter.add_metadata('chapter_id', chapter_id.group(1))
        return chapter

    @staticmethod
    def _hidden_classes(page: BeautifulSoup) -> Set[str]:
        classes = set()
        for style in page.find_all('style'):
            classes.update(HIDDEN_CLASS_RE.findall(style.get_text()))
        return classes

    def _clean_content(self, page: BeautifulSoup, content_div):
        hidden = self._hidden_classes(page)

        # Remove scripts and styles
        for tag in content_div(['script', 'style']):
            tag.decompose()

        # Remove known unwanted elements
        for tag in content_div.select('.nav-buttons, .author-note-portlet'):
            tag.decompose()

        if hidden:
            for tag in content_div.find_all(class_=lambda cls: cls in hidden):
                if tag.decomposed:
                    continue
                logger.debug(f"Dropping hidden element: {tag.get_text(strip=True)!r}")
                tag.decompose()

        strip_injected_text(content_div, self.key)

    @classmethod
    def ordering_function(cls):
        # The listing carries a publication date for every chapter
        return by_published_at()
