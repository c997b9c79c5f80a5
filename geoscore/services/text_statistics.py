# geoscore/services/text_statistics.py
"""Sentence, word, heading and list segmentation shared by the analyzers.

Every function here is pure and total: empty input gives empty lists and
zero averages.
"""
import math
import re
from typing import Iterable, List

SENTENCE_BOUNDARY = re.compile(r"[.!?]+")
HEADING_LINE = re.compile(r"^#{1,6}\s+.+$", re.MULTILINE)
LIST_ITEM_LINE = re.compile(r"^[*\-+]\s+.+$", re.MULTILINE)


def split_sentences(text: str) -> List[str]:
    return [s.strip() for s in SENTENCE_BOUNDARY.split(text or "") if s.strip()]


def split_words(text: str) -> List[str]:
    return (text or "").split()


def word_count(text: str) -> int:
    return len(split_words(text))


def find_headings(text: str) -> List[str]:
    return HEADING_LINE.findall(text or "")


def find_list_items(text: str) -> List[str]:
    return LIST_ITEM_LINE.findall(text or "")


def split_sections(text: str) -> List[str]:
    """Split text on heading lines; the text before the first heading is a section too."""
    return HEADING_LINE.split(text or "")


def query_terms(query: str) -> List[str]:
    return (query or "").lower().split()


def term_coverage(query: str, text: str) -> float:
    """Fraction of query terms occurring anywhere in text (case-insensitive)."""
    terms = query_terms(query)
    if not terms:
        return 0.0
    haystack = (text or "").lower()
    return sum(1 for term in terms if term in haystack) / len(terms)


def safe_mean(values: Iterable[float]) -> float:
    values = list(values)
    if not values:
        return 0.0
    return sum(values) / len(values)


def round_half_up(value: float, places: int = 0) -> float:
    # Python's round() is banker's rounding; scores must round .5 upwards
    factor = 10 ** places
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if places == 0 else rounded
