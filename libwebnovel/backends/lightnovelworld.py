import re
import logging
from datetime import datetime, timezone
from urllib.parse import urljoin
from typing import List

from ..chapter import Chapter, ChapterListElement
from ..core_logic import Backend, collapse_whitespace
from ..errors import DateParseError, ParseError, UnknownChapter
from ..ordering import by_title_number

logger = logging.getLogger(__name__)

TITLE_SELECTOR = "h1.novel-title"
AUTHOR_SELECTOR = "div.author a span"
COVER_SELECTOR = 'meta[property="og:image"][content]'
PAGINATION_SELECTOR = "section#chpagedlist ul.pagination li a[href]"
CHAPTER_LIST_SELECTOR = "section#chpagedlist ul.chapter-list li a[href]"
CHAPTER_TITLE_SELECTOR = "span.chapter-title"
CHAPTER_CONTENT_SELECTOR = "div#chapter-container"
CHAPTER_PUBLISHED_AT_SELECTOR = 'meta[itemprop="datePublished"][content]'
PUBLISHED_AT_FORMAT = "%Y-%m-%dT%H:%M:%S"
PAGE_NUMBER_RE = re.compile(r'[?&]page=(\d+)')


class LightNovelWorld(Backend):
    """
    Backend for https://www.lightnovelworld.com

    Reads the fiction page and every page of ``<url>/chapters`` at
    construction.
    """
    key = "lightnovelworld"
    name = "Light Novel World"
    url_patterns = [
        r"https?://(?:www\.)?lightnovelworld\.com/novel/(?P<id>[\w-]+)",
    ]

    def _fetch_pages(self):
        self.base_url = self.url.rstrip('/')
        self.main_page = self._get_page(self.url, f"could not get fiction URL {self.url}")
        chapters_url = f"{self.base_url}/chapters"
        self.chapter_list_page = self._get_page(
            chapters_url,
            f"could not get chapter page, although we could get the main fiction page. Generated chapters url: {chapters_url}",
        )
        self.listing_links = self._fetch_listing_links()

    def title(self) -> str:
        return self._text(self._select_one(self.main_page, TITLE_SELECTOR, "fiction title"))

    def authors(self) -> List[str]:
        # There can be only one author
        return [self._text(self._select_one(self.main_page, AUTHOR_SELECTOR, "fiction author"))]

    def cover_url(self) -> str:
        return self._select_one(self.main_page, COVER_SELECTOR, "cover image")['content']

    def _page_count(self) -> int:
        pages = [1]
        for link in self.chapter_list_page.select(PAGINATION_SELECTOR):
            found = PAGE_NUMBER_RE.search(link['href'])
            if found:
                pages.append(int(found.group(1)))
        return max(pages)

    def _fetch_listing_links(self) -> list:
        links = list(self.chapter_list_page.select(CHAPTER_LIST_SELECTOR))
        for page_number in range(2, self._page_count() + 1):
            page_url = f"{self.base_url}/chapters?page={page_number}"
            logger.debug(f"Fetching chapter list page {page_number} of {self.url}")
            page = self._get_page(page_url, f"could not get chapter list page {page_url}")
            links.extend(page.select(CHAPTER_LIST_SELECTOR))
        return links

    def chapter_list(self) -> List[ChapterListElement]:
        return [
            ChapterListElement(position, collapse_whitespace(link.get("title", "")) or self._text(link))
            for position, link in enumerate(self.listing_links, start=1)
        ]

    def _fetch_chapter(self, number: int) -> Chapter:
        links = self.listing_links
        if number > len(links):
            raise UnknownChapter(number)
        chapter_url = urljoin(self.base_url + '/', links[number - 1]['href'])

        page = self._get_page(chapter_url, f"failed to get chapter {number} from {chapter_url}")
        title = self._text(self._select_one(page, CHAPTER_TITLE_SELECTOR, "chapter title"))
        container = self._select_one(page, CHAPTER_CONTENT_SELECTOR, "chapter content")
        # Ads are served as paragraphs carrying a class
        paragraphs = [str(p) for p in container.find_all('p') if not p.get('class')]
        if not paragraphs:
            raise ParseError(f"No paragraph found in chapter {number} ({chapter_url})")

        published_at = None
        published_tag = page.select_one(CHAPTER_PUBLISHED_AT_SELECTOR)
        if published_tag:
            published_at = self._parse_published_at(published_tag['content'])

        return Chapter(
            title=title,
            content="\n".join(paragraphs),
            chapter_url=chapter_url,
            published_at=published_at,
        )

    @staticmethod
    def _parse_published_at(value: str) -> datetime:
        try:
            return datetime.strptime(value.strip(), PUBLISHED_AT_FORMAT).replace(tzinfo=timezone.utc)
        except ValueError as e:
            raise DateParseError(value, str(e)) from e

    @classmethod
    def ordering_function(cls):
        return by_title_number()
