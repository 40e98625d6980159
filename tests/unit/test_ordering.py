import random
import unittest
from datetime import datetime, timedelta, timezone

from libwebnovel.chapter import Chapter
from libwebnovel.errors import MissingChapterInformation, ParseError
from libwebnovel.ordering import by_published_at, by_title_number, chapter_number, sort_chapters


def numbered(number, index=None):
    # index unrelated to the chapter number
    return Chapter(index=index if index is not None else 100 - number,
                   title=f"Chapter {number}: Part {number}",
                   chapter_url=f"u{number}", fiction_url="f")


class TestChapterNumber(unittest.TestCase):
    def test_parses_number_from_title(self):
        self.assertEqual(chapter_number(numbered(12)), 12)

    def test_missing_title(self):
        with self.assertRaises(MissingChapterInformation) as ctx:
            chapter_number(Chapter(index=1))
        self.assertEqual(ctx.exception.chapter.index, 1)

    def test_title_without_number(self):
        with self.assertRaises(ParseError):
            chapter_number(Chapter(index=1, title="Prologue"))

    def test_custom_pattern(self):
        chapter = Chapter(title="Ch.7 - Return")
        self.assertEqual(chapter_number(chapter, r"Ch\.(\d+)"), 7)


class TestByTitleNumber(unittest.TestCase):
    def test_sorts_shuffled_chapters(self):
        chapters = [numbered(n) for n in range(1, 31)]
        shuffled = chapters[:]
        random.Random(4).shuffle(shuffled)

        result = sort_chapters(shuffled, by_title_number())
        self.assertEqual([c.chapter_url for c in result], [c.chapter_url for c in chapters])

    def test_ignores_index(self):
        compare = by_title_number()
        self.assertLess(compare(numbered(1, index=9), numbered(2, index=1)), 0)
        self.assertEqual(compare(numbered(3, index=1), numbered(3, index=2)), 0)

    def test_unnumbered_chapters_sort_last(self):
        prologue = Chapter(title="Prologue", chapter_url="p")
        untitled = Chapter(title=None, chapter_url="n")
        chapters = [prologue, numbered(2), untitled, numbered(1)]

        result = sort_chapters(chapters, by_title_number())
        self.assertEqual([c.chapter_url for c in result[:2]], ["u1", "u2"])
        self.assertEqual({c.chapter_url for c in result[2:]}, {"p", "n"})

        compare = by_title_number()
        self.assertEqual(compare(prologue, untitled), 0)
        self.assertGreater(compare(prologue, numbered(999)), 0)


class TestByPublishedAt(unittest.TestCase):
    def test_sorts_by_date(self):
        start = datetime(2020, 1, 1, tzinfo=timezone.utc)
        chapters = [
            Chapter(index=1, title="Intermission", chapter_url=f"u{day}",
                    published_at=start + timedelta(days=day))
            for day in range(10)
        ]
        shuffled = chapters[:]
        random.Random(8).shuffle(shuffled)

        result = sort_chapters(shuffled, by_published_at())
        self.assertEqual([c.chapter_url for c in result], [c.chapter_url for c in chapters])

    def test_undated_chapters_sort_last(self):
        dated = Chapter(chapter_url="d", published_at=datetime(2020, 1, 1, tzinfo=timezone.utc))
        undated = Chapter(chapter_url="n")
        compare = by_published_at()
        self.assertGreater(compare(undated, dated), 0)
        self.assertLess(compare(dated, undated), 0)
        self.assertEqual(compare(undated, Chapter(chapter_url="m")), 0)


if __name__ == '__main__':
    unittest.main()
