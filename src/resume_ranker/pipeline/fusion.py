"""Score fusion: semantic similarity + keyword overlap → one 0–100 score.

    semantic = round(similarity × 100)
    keyword  = min(100, round(100 × |matched| / max(1, |job words|)))
    fused    = max(min_score, min(100, round(semantic × w_s + keyword × w_k)))

``job words`` are the distinct content words of the job description
(longer than three letters, stop words removed).  ``matched`` comes from
the configured keyword strategy at ``keyword_score_limit``, which is
independent of the shorter list shown to the operator.

The floor keeps a weak-but-valid match from reading as a broken result.
When the job text is missing the keyword term is near meaningless, so
the weights fall back to 0.9 / 0.1.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from resume_ranker.config import ScoringConfig
from resume_ranker.rag.keywords import KeywordExtractor, KeywordStrategy
from resume_ranker.text import content_words, dedupe

_NO_QUERY_WEIGHTS = (0.9, 0.1)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def clamp_score(value: int) -> int:
    return max(0, min(100, value))


@dataclass(frozen=True)
class FusedScore:
    """All score components for one candidate."""

    similarity: float
    semantic_score: int
    keyword_score: int
    fused_score: int
    matched_keywords: list[str]
    keyword_strategy: KeywordStrategy | None = None


class ScoreFusion:
    """Combines semantic and keyword signals using a :class:`ScoringConfig`."""

    def __init__(
        self,
        config: ScoringConfig | None = None,
        extractor: KeywordExtractor | None = None,
    ) -> None:
        self.config = config or ScoringConfig()
        self.extractor = extractor or KeywordExtractor(self.config.keyword_strategy)

    def semantic_score(self, similarity: float) -> int:
        return clamp_score(round_half_up(similarity * 100))

    @staticmethod
    def job_words(query_text: str) -> list[str]:
        """Distinct job-description content words, in order of appearance."""
        if not isinstance(query_text, str):
            return []
        return dedupe(content_words(query_text))

    def keyword_score(self, query_text: str, candidate_text: str) -> int:
        """Share of job words the candidate covers, as 0–100."""
        matched = self.extractor.extract(
            query_text, candidate_text, self.config.keyword_score_limit
        )
        total = max(1, len(self.job_words(query_text)))
        return min(100, round_half_up(100 * len(matched) / total))

    def weights(self, query_text: str | None) -> tuple[float, float]:
        """Return ``(semantic_weight, keyword_weight)`` for this query."""
        if not isinstance(query_text, str) or not query_text.strip():
            return _NO_QUERY_WEIGHTS
        return self.config.semantic_weight, self.config.keyword_weight

    def fuse(self, semantic: int, keyword: int, query_text: str | None) -> int:
        """Weighted combination of the two scores, floor-enforced."""
        w_semantic, w_keyword = self.weights(query_text)
        fused = clamp_score(round_half_up(semantic * w_semantic + keyword * w_keyword))
        return max(fused, self.config.min_score)

    def score(self, similarity: float, query_text: str, candidate_text: str) -> FusedScore:
        """Compute every component for one candidate.

        Exceptions propagate; the ranker isolates them per candidate.
        """
        semantic = self.semantic_score(similarity)
        keyword = self.keyword_score(query_text, candidate_text)
        display = self.extractor.match(
            query_text, candidate_text, self.config.keyword_display_limit
        )
        return FusedScore(
            similarity=similarity,
            semantic_score=semantic,
            keyword_score=keyword,
            fused_score=self.fuse(semantic, keyword, query_text),
            matched_keywords=display.keywords,
            keyword_strategy=display.strategy,
        )
