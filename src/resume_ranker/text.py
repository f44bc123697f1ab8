"""Shared text-processing utilities.

Pure functions with no domain dependencies — safe to import from any
layer (CLI, pipeline, export, RAG).

Three tokenizers are provided because the keyword strategies and the
local vectorizer deliberately see text differently:

- :func:`alpha_tokens` — lowercase alphabetic runs of a minimum length.
- :func:`word_tokens` — split on non-word characters, keep tokens longer
  than a minimum, then strip anything that is not a letter.
- :func:`content_words` — :func:`word_tokens` with stop words removed.
"""

from __future__ import annotations

import re

MAX_SLUG_LEN = 80

STOP_WORDS: frozenset[str] = frozenset({
    # articles, conjunctions, prepositions
    "a", "an", "the", "and", "or", "but", "nor", "for", "yet", "so",
    "of", "to", "in", "on", "at", "by", "as", "into", "onto", "upon",
    "over", "under", "than", "then", "also", "both", "either", "neither",
    # pronouns and determiners
    "you", "your", "yours", "our", "ours", "we", "they", "them", "their",
    "its", "his", "her", "this", "that", "these", "those", "which", "who",
    "whom", "whose", "what", "each", "any", "all", "some", "such",
    # common filler verbs and adverbs
    "are", "was", "were", "been", "being", "has", "had", "have", "having",
    "will", "shall", "should", "would", "could", "can", "may", "might",
    "must", "does", "did", "doing", "not", "very", "more", "most",
    "with", "from", "about", "after", "before", "while", "within",
    "without", "through", "between", "where", "when", "there", "here",
    "just", "only", "well", "other", "etc",
    # job-posting filler
    "looking", "seeking", "join", "ideal", "role", "position", "candidate",
    "candidates", "opportunity", "required", "preferred", "plus",
})

_ALPHA_RUN = re.compile(r"[a-z]+")
_NON_WORD = re.compile(r"\W+")
_NON_ALPHA = re.compile(r"[^a-z]")


def alpha_tokens(text: str, *, min_len: int = 3) -> list[str]:
    """Return lowercase alphabetic runs of at least *min_len* letters.

    >>> alpha_tokens("React/Node.js dev, 5 yrs")
    ['react', 'node', 'dev', 'yrs']
    """
    return [t for t in _ALPHA_RUN.findall(text.lower()) if len(t) >= min_len]


def word_tokens(text: str, *, min_len: int = 3) -> list[str]:
    """Split on non-word characters and keep cleaned tokens.

    A token must be at least *min_len* characters *before* cleaning; digits
    and underscores are then stripped, and tokens left empty are dropped.
    """
    tokens: list[str] = []
    for raw in _NON_WORD.split(text.lower()):
        if len(raw) < min_len:
            continue
        cleaned = _NON_ALPHA.sub("", raw)
        if cleaned:
            tokens.append(cleaned)
    return tokens


def content_words(text: str, *, min_len: int = 4) -> list[str]:
    """Return :func:`word_tokens` of at least *min_len* with stop words removed."""
    return [
        t for t in word_tokens(text, min_len=min_len)
        if len(t) >= min_len and t not in STOP_WORDS
    ]


def dedupe(tokens: list[str]) -> list[str]:
    """Drop repeated tokens, keeping first-encounter order."""
    return list(dict.fromkeys(tokens))


def slugify(text: str, *, max_len: int = MAX_SLUG_LEN) -> str:
    """Convert *text* to a filesystem-safe slug.

    Lowercases, strips non-alphanumeric characters (except hyphens),
    collapses whitespace/underscores to single hyphens, and truncates
    to *max_len* characters.

    >>> slugify("Senior Staff Engineer — Platform (Remote)")
    'senior-staff-engineer-platform-remote'
    """
    slug = text.lower()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = slug.strip("-")
    return slug[:max_len]
