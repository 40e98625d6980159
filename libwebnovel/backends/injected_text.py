"""
Curated lists of text that sources inject into chapter bodies.

The lists live in ``data/<source>.txt``, one regular expression per line,
and change whenever the sites do.
"""
import re
import logging
from functools import lru_cache
from pathlib import Path
from typing import Tuple

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"


@lru_cache(maxsize=None)
def load_patterns(source: str) -> Tuple[re.Pattern, ...]:
    path = DATA_DIR / f"{source}.txt"
    patterns = []
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            patterns.append(re.compile(line))
    logger.debug(f"Loaded {len(patterns)} injected text patterns for {source}")
    return tuple(patterns)


def is_injected(text: str, patterns) -> bool:
    text = text.strip()
    return any(pattern.fullmatch(text) for pattern in patterns)


def strip_injected_text(container, source: str, tags=('p', 'div', 'span')) -> int:
    """
    Removes every element of ``container`` whose whole text is injected text.

    Returns the number of removed elements.
    """
    patterns = load_patterns(source)
    removed = 0
    for element in container.find_all(list(tags)):
        # already gone with a removed parent
        if element.decomposed:
            continue
        if is_injected(element.get_text(" ", strip=True), patterns):
            logger.info(f"Dropping injected text from {source}: {element.get_text(strip=True)!r}")
            element.decompose()
            removed += 1
    return removed
