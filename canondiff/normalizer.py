"""Value normalization shared by every comparator."""

from __future__ import annotations

import re

from .models import ComparisonOptions

_WHITESPACE_RUN = re.compile(r'\s+')
_QUOTED = re.compile(r'"([^"]*)"')


def normalize_whitespace(value: str) -> str:
    """Collapse every whitespace run to a single space and trim."""
    return _WHITESPACE_RUN.sub(' ', value).strip()


def normalize_key(key: str, case_sensitive: bool) -> str:
    """Normalize an object key, tag or attribute name."""
    return key if case_sensitive else key.lower()


def normalize(value: str, options: ComparisonOptions) -> str:
    """
    Normalize a string according to the comparison options.

    Steps, in order:
    1. Whitespace: collapse runs inside double-quoted substrings, then
       across the whole string, and trim (only with ignore_whitespace)
    2. Case: lowercase (only when not case_sensitive)

    Quoted substrings are handled first so that a JSON string or an XML
    attribute value normalizes the same whether it is compared alone or
    as part of a whole line.
    """
    normalized = value

    if options.ignore_whitespace:
        normalized = _QUOTED.sub(
            lambda m: '"' + normalize_whitespace(m.group(1)) + '"',
            normalized
        )
        normalized = normalize_whitespace(normalized)

    if not options.case_sensitive:
        normalized = normalized.lower()

    return normalized


def normalize_word(word: str, options: ComparisonOptions) -> str:
    """Normalize a single word; words never contain whitespace."""
    return word if options.case_sensitive else word.lower()


class Normalizer:
    """Binds a set of comparison options to the normalization helpers."""

    def __init__(self, options: ComparisonOptions):
        self.options = options

    def value(self, value: str) -> str:
        return normalize(value, self.options)

    def key(self, key: str) -> str:
        return normalize_key(key, self.options.case_sensitive)

    def word(self, word: str) -> str:
        return normalize_word(word, self.options)
