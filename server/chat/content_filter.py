"""
Input sanitizing and the banned-term filter.

Matching is containment over a normalized form: lowercase, everything except
[a-z0-9] removed. "H.e-L l o" normalizes to "hello", so punctuated and mixed
case spellings are caught. A term buried inside a longer innocuous word is
also caught; that over-blocking is accepted in exchange for catching
run-together obfuscations.
"""

import re
from typing import Iterable, List

_NON_ALNUM = re.compile(r'[^a-z0-9]')
_ANGLE_BRACKETS = re.compile(r'[<>]')


def sanitize_input(text: str) -> str:
    """Strip angle brackets and surrounding whitespace."""
    if not isinstance(text, str):
        return ''
    return _ANGLE_BRACKETS.sub('', text).strip()


def normalize(text: str) -> str:
    return _NON_ALNUM.sub('', text.lower())


class ContentFilter:
    """Holds the normalized banned terms."""

    def __init__(self, banned_terms: Iterable[str] = ()):
        self._terms: List[str] = []
        for term in banned_terms:
            cleaned = normalize(term)
            if cleaned and cleaned not in self._terms:
                self._terms.append(cleaned)

    def is_blocked(self, text: str) -> bool:
        cleaned = normalize(text)
        return any(term in cleaned for term in self._terms)

    def __len__(self) -> int:
        return len(self._terms)
