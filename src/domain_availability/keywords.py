"""
Keyword and TLD normalization.

Turns free-form user input into DNS-label candidates: lowercase ASCII
letters, digits and single interior hyphens.
"""

import re
from collections.abc import Iterable
from typing import TypeVar, Union

T = TypeVar("T")

_SEPARATORS = re.compile(r"[,，;；\s]+")
_DISALLOWED_RUN = re.compile(r"[^a-z0-9-]+")
_HYPHEN_RUN = re.compile(r"-{2,}")
_VALID_KEYWORD = re.compile(r"^[a-zA-Z0-9\u4e00-\u9fa5\-_ ]+$")

MAX_KEYWORD_LENGTH = 63


def unique_in_order(items: Iterable[T]) -> list[T]:
    """Drop repeated items, keeping the first occurrence of each."""
    seen: set = set()
    unique: list[T] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            unique.append(item)
    return unique


def normalize_keyword(keyword: str) -> str:
    """
    Normalize a keyword into a domain label.

    Lowercases, turns each run of whitespace or other characters outside
    ``[a-z0-9-]`` into one hyphen, collapses repeated hyphens and trims
    hyphens at both ends. ``"My Shop!!"`` becomes ``"my-shop"``; input with
    nothing usable becomes ``""``.
    """
    label = _DISALLOWED_RUN.sub("-", keyword.strip().lower())
    label = _HYPHEN_RUN.sub("-", label)
    return label.strip("-")


def normalize_tld(tld: str) -> str:
    """Trim, lowercase and strip any leading dots (``" .COM"`` -> ``"com"``)."""
    return tld.strip().lower().lstrip(".")


def split_keywords(text: str) -> list[str]:
    """Split on commas, semicolons (ASCII and full-width) and whitespace."""
    return [part for part in _SEPARATORS.split(text) if part]


def is_valid_keyword(keyword: str) -> bool:
    keyword = keyword.strip()
    if not keyword or len(keyword) > MAX_KEYWORD_LENGTH:
        return False
    return bool(_VALID_KEYWORD.match(keyword))


def process_keywords(raw: Union[str, Iterable[str]]) -> list[str]:
    """
    Clean user-supplied keywords for checking.

    Each input item is split on separators; pieces that fail
    ``is_valid_keyword`` are dropped, the rest are normalized and
    deduplicated in order of first appearance.
    """
    items = [raw] if isinstance(raw, str) else list(raw)

    pieces: list[str] = []
    for item in items:
        pieces.extend(split_keywords(item))

    normalized = (normalize_keyword(p) for p in pieces if is_valid_keyword(p))
    return unique_in_order(label for label in normalized if label)
