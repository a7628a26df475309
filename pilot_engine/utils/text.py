"""Small text helpers shared by the rule evaluator and the heuristic analyzers."""

import re
from typing import List

STOPWORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "if", "in",
    "is", "it", "of", "on", "or", "the", "then", "this", "that", "to", "was",
    "will", "with",
})

_TOKEN_RE = re.compile(r"[a-z0-9][a-z0-9'-]*")
_SENTENCE_RE = re.compile(r"[.!?]+")


def tokenize(text: str) -> List[str]:
    """Lowercase word tokens, in order of appearance."""
    return _TOKEN_RE.findall(text.lower())


def split_sentences(text: str) -> List[str]:
    return [s for s in _SENTENCE_RE.split(text) if s.strip()]


def count_syllables(word: str) -> int:
    """Vowel-group approximation, at least one per word."""
    return max(1, len(re.findall(r"[aeiouy]+", word.lower())))
