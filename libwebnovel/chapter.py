"""
Canonical chapter record and its durable text format.

A chapter is written to disk as::

    <!--
    index: 1
    chapter_url: https://read.freewebnovel.me/the-guide-to-conquering-earthlings/chapter-1
    fiction_url: https://freewebnovel.com/the-guide-to-conquering-earthlings.html
    published_at: not_found
    metadata:
      authors: Ye Fei Ran, 叶斐然
    -->
    <h1 class="mainTitle">Chapter 1: 01</h1>
    <div class="content">
    <p>this is some sample content, whatever man.</p>
    </div>

Other tools read the same files, so the layout (including the two-space
indentation of metadata entries) must not change.
"""
import re
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, NamedTuple, Optional

from bs4 import BeautifulSoup

from .errors import ChapterEncodeError, ChapterParseError, DateParseError

logger = logging.getLogger(__name__)

HEADER_START = "<!--"
HEADER_END = "-->"
METADATA_START = "metadata:"
METADATA_INDENT = "  "
TITLE_PREFIX = '<h1 class="mainTitle">'
TITLE_SUFFIX = "</h1>"
CONTENT_START = '<div class="content">'
CONTENT_END = "</div>"
PUBLISHED_AT_NOT_FOUND = "not_found"

RFC3339_RE = re.compile(
    r'(\d{4})-(\d{2})-(\d{2})[Tt ](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})'
)


def normalize_html(fragment: str) -> str:
    """Parses ``fragment`` as HTML and serializes it back, so equivalent markup compares equal."""
    if not fragment:
        return ""
    return BeautifulSoup(fragment, 'html.parser').decode().strip()


def html_equivalent(first: str, second: str) -> bool:
    return normalize_html(first) == normalize_html(second)


def parse_rfc3339(value: str) -> datetime:
    """
    Parses an RFC 3339 timestamp into an aware UTC datetime.

    Fractions of any length are accepted and cut to microseconds.

    Raises:
        DateParseError: the value is not an RFC 3339 timestamp with a UTC offset.
    """
    match = RFC3339_RE.fullmatch(value.strip())
    if not match:
        raise DateParseError(value, "not an RFC 3339 timestamp with a UTC offset")
    year, month, day, hour, minute, second, fraction, offset = match.groups()
    microsecond = int((fraction or "").ljust(6, "0")[:6])
    try:
        if offset in ('Z', 'z'):
            tz = timezone.utc
        else:
            sign = -1 if offset[0] == '-' else 1
            tz = timezone(sign * timedelta(hours=int(offset[1:3]), minutes=int(offset[4:6])))
        parsed = datetime(int(year), int(month), int(day), int(hour), int(minute), int(second),
                          microsecond, tzinfo=tz)
    except ValueError as e:
        raise DateParseError(value, str(e)) from e
    return parsed.astimezone(timezone.utc)


class ChapterListElement(NamedTuple):
    """Position and title of a chapter as shown by a listing page."""
    index: int
    title: str


class Chapter:
    """
    A chapter of a webnovel.

    ``index`` is the position of the chapter in the source listing when it was
    fetched. Sources insert and delete chapters, so it is not an identity: use
    the backend's ordering function to compare chapters fetched at different
    times.
    """
    def __init__(self, index: int = 0, title: Optional[str] = None, content: str = "",
                 chapter_url: str = "", fiction_url: str = "",
                 published_at: Optional[datetime] = None,
                 metadata: Optional[Dict[str, str]] = None):
        self.index = index
        self.title = title
        self.content = content
        self.chapter_url = chapter_url
        self.fiction_url = fiction_url
        self.published_at = published_at
        self.metadata = dict(metadata) if metadata else {}

    @property
    def content(self) -> str:
        return self._content

    @content.setter
    def content(self, value: str):
        self._content = normalize_html(value)

    @property
    def published_at(self) -> Optional[datetime]:
        return self._published_at

    @published_at.setter
    def published_at(self, value: Optional[datetime]):
        if value is not None:
            # naive datetimes are taken to be UTC already
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            else:
                value = value.astimezone(timezone.utc)
        self._published_at = value

    def add_metadata(self, key: str, value: str):
        """Add a key/value pair to the chapter's metadata."""
        self.metadata[str(key)] = str(value)

    def __eq__(self, other):
        if not isinstance(other, Chapter):
            return NotImplemented
        return (
            self.index == other.index
            and self.title == other.title
            and self.chapter_url == other.chapter_url
            and self.fiction_url == other.fiction_url
            and self.published_at == other.published_at
            and self.metadata == other.metadata
            and html_equivalent(self.content, other.content)
        )

    __hash__ = None

    def __repr__(self):
        return (
            f"Chapter(index={self.index!r}, title={self.title!r}, "
            f"chapter_url={self.chapter_url!r}, fiction_url={self.fiction_url!r}, "
            f"published_at={self.published_at!r}, metadata={self.metadata!r})"
        )

    def __str__(self):
        return encode(self)

    @classmethod
    def from_string(cls, text: str) -> "Chapter":
        return decode(text)


def _check_line(field: str, value: Optional[str]):
    if value is not None and ("\n" in value or "\r" in value):
        raise ChapterEncodeError(field, value)


def encode(chapter: Chapter) -> str:
    """
    Serializes a chapter to the durable text format.

    Raises:
        ChapterEncodeError: a header field, the title or a metadata entry would
            not be read back as written.
    """
    _check_line('title', chapter.title)
    _check_line('chapter_url', chapter.chapter_url)
    _check_line('fiction_url', chapter.fiction_url)
    for key, value in chapter.metadata.items():
        _check_line('metadata key', key)
        if ':' in key or key != key.strip() or not key:
            raise ChapterEncodeError('metadata key', key, "keys cannot be empty, padded or contain ':'")
        _check_line(f'metadata value of {key}', value)
        if value != value.strip():
            raise ChapterEncodeError(f'metadata value of {key}', value, "values cannot be padded with whitespace")

    if chapter.published_at is not None:
        published_at = chapter.published_at.isoformat()
    else:
        published_at = PUBLISHED_AT_NOT_FOUND

    lines = [
        HEADER_START,
        f"index: {chapter.index}",
        f"chapter_url: {chapter.chapter_url}",
        f"fiction_url: {chapter.fiction_url}",
        f"published_at: {published_at}",
        METADATA_START,
    ]
    for key, value in chapter.metadata.items():
        lines.append(f"{METADATA_INDENT}{key}: {value}")
    lines.append(HEADER_END)
    if chapter.title is not None:
        lines.append(f"{TITLE_PREFIX}{chapter.title}{TITLE_SUFFIX}")
    lines.append(CONTENT_START)
    lines.append(chapter.content)
    lines.append(CONTENT_END)
    return "\n".join(lines)


def _required(header: Dict[str, str], key: str) -> str:
    value = header.get(key)
    if value is None:
        raise ChapterParseError(f"Invalid {key.replace('_', ' ')}: {value!r}")
    return value


def decode(text: str) -> Chapter:
    """
    Parses the durable text format back into a chapter.

    Raises:
        ChapterParseError: a required header field, the content block or a valid
            ``published_at`` is missing.
    """
    header: Dict[str, str] = {}
    metadata: Dict[str, str] = {}
    title: Optional[str] = None
    content_lines = []
    in_header = False
    in_metadata = False
    in_content = False

    for line in text.splitlines():
        if in_content:
            content_lines.append(line)
            continue
        if line.startswith(HEADER_START):
            logger.debug("found chapter data start")
            in_header = True
            continue
        if line.startswith(HEADER_END):
            logger.debug("found chapter data end")
            in_header = False
            in_metadata = False
            continue

        if in_header:
            if line.startswith(METADATA_START):
                in_metadata = True
                continue
            if in_metadata and (not line.strip() or not line.startswith(METADATA_INDENT)):
                in_metadata = False
            key, separator, value = line.strip().partition(':')
            if not separator:
                continue
            target = metadata if in_metadata else header
            target[key.strip()] = value.strip()
        elif line.startswith(TITLE_PREFIX):
            title = line[len(TITLE_PREFIX):]
            if title.endswith(TITLE_SUFFIX):
                title = title[:-len(TITLE_SUFFIX)]
        elif line.startswith(CONTENT_START):
            in_content = True
            content_lines.append(CONTENT_START)

    raw_index = _required(header, 'index')
    if not re.fullmatch(r"[0-9]+", raw_index):
        raise ChapterParseError(f"Invalid chapter index: {raw_index!r}")

    chapter_url = _required(header, 'chapter_url')
    fiction_url = _required(header, 'fiction_url')

    published_at = None
    raw_published_at = header.get('published_at', PUBLISHED_AT_NOT_FOUND)
    if raw_published_at != PUBLISHED_AT_NOT_FOUND:
        try:
            published_at = parse_rfc3339(raw_published_at)
        except DateParseError as e:
            raise ChapterParseError(f"Invalid published_at: {raw_published_at!r}") from e

    if not in_content:
        raise ChapterParseError("No content block found")
    soup = BeautifulSoup("\n".join(content_lines), 'html.parser')
    content_div = soup.find('div', class_='content')
    if content_div is None:
        raise ChapterParseError("No content block found")

    return Chapter(
        index=int(raw_index),
        title=title,
        content=content_div.decode_contents(),
        chapter_url=chapter_url,
        fiction_url=fiction_url,
        published_at=published_at,
        metadata=metadata,
    )
