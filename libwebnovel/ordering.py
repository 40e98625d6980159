"""
Comparators recovering the true order of chapters without using ``Chapter.index``.

Each returns a two-argument function suitable for ``functools.cmp_to_key``.
Chapters whose ordering attribute is missing or unparseable always sort after
the others and compare equal among themselves; comparators never raise.
"""
import re
import logging
from functools import cmp_to_key
from typing import Callable, Iterable, List, Optional

from .chapter import Chapter
from .errors import MissingChapterInformation, ParseError

logger = logging.getLogger(__name__)

Comparator = Callable[[Chapter, Chapter], int]

CHAPTER_NUMBER_PATTERN = r"Chapter (\d+)"


def chapter_number(chapter: Chapter, pattern: str = CHAPTER_NUMBER_PATTERN) -> int:
    """
    Extracts the chapter number from the chapter title.

    Raises:
        MissingChapterInformation: the chapter has no title.
        ParseError: the title does not contain a number matching ``pattern``.
    """
    if chapter.title is None:
        raise MissingChapterInformation("Chapter has no title to read a chapter number from", chapter)
    match = re.search(pattern, chapter.title)
    if not match:
        raise ParseError(f"No chapter number matching {pattern!r} in title {chapter.title!r}")
    return int(match.group(1))


def _compare_optional(first, second) -> int:
    if first is None and second is None:
        return 0
    if first is None:
        return 1
    if second is None:
        return -1
    return (first > second) - (first < second)


def by_title_number(pattern: str = CHAPTER_NUMBER_PATTERN) -> Comparator:
    """Orders chapters by the number captured by ``pattern`` in their title."""
    def number_or_none(chapter: Chapter) -> Optional[int]:
        try:
            return chapter_number(chapter, pattern)
        except (MissingChapterInformation, ParseError) as e:
            logger.debug(f"Unordered chapter, sorting it last: {e}")
            return None

    def compare(first: Chapter, second: Chapter) -> int:
        return _compare_optional(number_or_none(first), number_or_none(second))

    return compare


def by_published_at() -> Comparator:
    """Orders chapters by publication date, undated chapters last."""
    def compare(first: Chapter, second: Chapter) -> int:
        return _compare_optional(first.published_at, second.published_at)

    return compare


def sort_chapters(chapters: Iterable[Chapter], comparator: Comparator) -> List[Chapter]:
    return sorted(chapters, key=cmp_to_key(comparator))
