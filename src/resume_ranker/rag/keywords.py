"""Job-relevant keyword extraction with a ranked fallback chain.

Keywords serve two purposes: a short list shown next to each candidate
("why did this resume match?") and a longer list that feeds the keyword
score.  Both come from the same extractor, requested at different caps.

Strategies, tried in order from the configured one until a strategy
yields a non-empty result:

1. **advanced** — alphabetic runs (≥ 3 letters) with stop words removed
   from both texts; candidate tokens that also occur in the job text are
   ranked by how often the candidate uses them.
2. **simple** — alphabetic runs (≥ 3 letters), no stop-word removal;
   the intersection in candidate order.
3. **basic** — split on non-word characters, cleaned, longer than three
   letters, stop words removed; the intersection in candidate order.

A strategy that raises is logged and skipped.  :meth:`KeywordExtractor.extract`
never raises; exhausting the chain yields ``[]``.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum

from resume_ranker.text import STOP_WORDS, alpha_tokens, content_words, dedupe

logger = logging.getLogger(__name__)


class KeywordStrategy(StrEnum):
    """Keyword extraction strategies, in fallback order."""

    ADVANCED = "advanced"
    SIMPLE = "simple"
    BASIC = "basic"


_CHAIN: tuple[KeywordStrategy, ...] = tuple(KeywordStrategy)


@dataclass
class KeywordMatch:
    """Outcome of one extraction: the keywords and how they were found."""

    keywords: list[str] = field(default_factory=list)
    strategy: KeywordStrategy | None = None
    failures: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def advanced_keywords(query_text: str, candidate_text: str, top_n: int) -> list[str]:
    """Candidate tokens shared with the job text, most frequent first."""
    query_set = {t for t in alpha_tokens(query_text) if t not in STOP_WORDS}
    candidate_tokens = [t for t in alpha_tokens(candidate_text) if t not in STOP_WORDS]

    counts = Counter(t for t in candidate_tokens if t in query_set)
    # Counter keeps first-encounter order, so the stable sort breaks
    # frequency ties by position in the candidate text.
    ranked = sorted(counts, key=lambda t: counts[t], reverse=True)
    return ranked[:top_n]


def simple_keywords(query_text: str, candidate_text: str, top_n: int) -> list[str]:
    """Shared alphabetic tokens in candidate order, stop words kept."""
    query_set = set(alpha_tokens(query_text))
    shared = [t for t in alpha_tokens(candidate_text) if t in query_set]
    return dedupe(shared)[:top_n]


def basic_keywords(query_text: str, candidate_text: str, top_n: int) -> list[str]:
    """Shared content words (longer than three letters) in candidate order."""
    query_set = set(content_words(query_text))
    shared = [t for t in content_words(candidate_text) if t in query_set]
    return dedupe(shared)[:top_n]


_STRATEGIES = {
    KeywordStrategy.ADVANCED: advanced_keywords,
    KeywordStrategy.SIMPLE: simple_keywords,
    KeywordStrategy.BASIC: basic_keywords,
}


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------


class KeywordExtractor:
    """Runs the strategy chain starting at *strategy*.

    The extractor holds no per-call state, so one instance may be shared
    by concurrently scored candidates.
    """

    def __init__(self, strategy: KeywordStrategy = KeywordStrategy.ADVANCED) -> None:
        self.strategy = KeywordStrategy(strategy)

    def extract(self, query_text: str, candidate_text: str, top_n: int = 8) -> list[str]:
        """Return at most *top_n* keywords from *candidate_text* relevant to *query_text*."""
        return self.match(query_text, candidate_text, top_n).keywords

    def match(self, query_text: str, candidate_text: str, top_n: int = 8) -> KeywordMatch:
        """Like :meth:`extract`, but also reports which strategy answered."""
        result = KeywordMatch()
        if not _usable(query_text) or not _usable(candidate_text):
            return result
        if not isinstance(top_n, int) or top_n <= 0:
            return result

        start = _CHAIN.index(self.strategy)
        for strategy in _CHAIN[start:]:
            try:
                keywords = _STRATEGIES[strategy](query_text, candidate_text, top_n)
            except Exception as exc:
                logger.warning(
                    "Keyword strategy '%s' failed, falling through: %s",
                    strategy.value,
                    exc,
                )
                result.failures.append(f"{strategy.value}: {exc}")
                continue
            if keywords:
                result.keywords = keywords[:top_n]
                result.strategy = strategy
                return result

        return result


def _usable(text: object) -> bool:
    return isinstance(text, str) and bool(text.strip())
