"""Approximate name matching for filters the Linear API cannot express."""
import re
from typing import Callable, Iterable, Optional, TypeVar

T = TypeVar("T")

_WHITESPACE = re.compile(r"\s+")
_WORD_SEPARATORS = re.compile(r"[\s\-_]+")
_ACRONYM = re.compile(r"^[a-z0-9]{2,}$")


def normalize(text: Optional[str]) -> str:
    return _WHITESPACE.sub(" ", (text or "").lower()).strip()


def filter_variants(filter_text: str) -> list[str]:
    """The normalized filter plus its spaceless, hyphenated and underscored forms."""
    cleaned = normalize(filter_text)
    return [
        cleaned,
        cleaned.replace(" ", ""),
        cleaned.replace(" ", "-"),
        cleaned.replace(" ", "_"),
    ]


def acronym_of(name: str) -> str:
    words = [word for word in _WORD_SEPARATORS.split(name) if word]
    return "".join(word[0] for word in words).lower()


def matches(
    name: Optional[str],
    filter_text: str,
    *,
    slug: Optional[str] = None,
    description: Optional[str] = None,
    fuzzy: bool = True,
) -> bool:
    """Whether a candidate's name, slug or description matches ``filter_text``.

    Strategies, first hit wins:

    1. any variant of the filter (see :func:`filter_variants`) is a substring
       of the name, slug or description;
    2. fuzzy only: the filter looks like an acronym and the first letters of
       the name's words contain it (the name needs at least as many words as
       the filter has characters);
    3. fuzzy only: the filter has several tokens and each one occurs in the
       name or the description.
    """
    cleaned = normalize(filter_text)
    if not cleaned:
        return True

    candidate_name = normalize(name)
    candidate_slug = normalize(slug)
    candidate_description = normalize(description)

    for variant in filter_variants(cleaned):
        if variant in candidate_name or variant in candidate_slug or variant in candidate_description:
            return True

    if not fuzzy:
        return False

    if _ACRONYM.match(cleaned):
        words = [word for word in _WORD_SEPARATORS.split(candidate_name) if word]
        if len(words) >= len(cleaned) and cleaned in acronym_of(candidate_name):
            return True

    tokens = cleaned.split(" ")
    if len(tokens) > 1:
        return all(token in candidate_name or token in candidate_description for token in tokens)

    return False


def filter_by_name(
    candidates: Iterable[T],
    filter_text: str,
    text_fields: Callable[[T], tuple[Optional[str], Optional[str], Optional[str]]],
    fuzzy: bool = True,
) -> list[T]:
    """Keep the candidates whose ``(name, slug, description)`` match the filter."""
    kept = []
    for candidate in candidates:
        name, slug, description = text_fields(candidate)
        if matches(name, filter_text, slug=slug, description=description, fuzzy=fuzzy):
            kept.append(candidate)
    return kept
