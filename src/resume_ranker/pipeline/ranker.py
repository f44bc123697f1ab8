"""Score fusion over a batch, degradation, and final ranking.

The Ranker is the bridge between per-candidate scoring and the ordered
list the operator reviews.  It performs four operations in sequence:

1. **Partition** — candidates with both a vector and text are *valid*;
   candidates whose text was read but whose vectorization failed or
   timed out are *failed*; anything else is *invalid* and cannot be
   evaluated.

2. **Scoring** — each valid candidate gets semantic, keyword and fused
   scores (see :mod:`resume_ranker.pipeline.fusion`).  A candidate whose
   scoring raises, and every failed candidate, is kept at the configured
   floor with a ``SCORING_ERROR`` annotation; the rest of the batch is
   unaffected.

3. **Degradation** — invalid candidates get ``degraded_score``, which is
   below the floor, so "could not be evaluated" always ranks under
   "evaluated as a weak match".

4. **Ordering** — a stable sort by fused score (ties keep input order)
   followed by 1-based contiguous ranks.

No candidate is ever dropped and :meth:`Ranker.rank` never raises.  If
something fails outside the per-candidate boundary, every input still
gets a ``BATCH_ERROR`` record, ranked in input order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from resume_ranker.config import ScoringConfig
from resume_ranker.errors import ActionableError, DegradationReason
from resume_ranker.pipeline.fusion import ScoreFusion
from resume_ranker.pipeline.ingest import CandidateDocument, CandidateStatus
from resume_ranker.rag.similarity import cosine_similarity

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from resume_ranker.rag.keywords import KeywordStrategy

logger = logging.getLogger(__name__)


@dataclass
class RankedResult:
    """One candidate's scores, keywords, and final rank."""

    name: str
    semantic_score: int = 0
    keyword_score: int = 0
    fused_score: int = 0
    matched_keywords: list[str] = field(default_factory=list)
    rank: int = 0
    status: CandidateStatus = CandidateStatus.PROCESSED
    error: str | None = None
    similarity: float = 0.0
    degradation: DegradationReason | None = None
    keyword_strategy: KeywordStrategy | None = None

    @property
    def degraded(self) -> bool:
        return self.degradation is not None

    def score_explanation(self) -> str:
        """Human-readable score breakdown for export output."""
        parts = [
            f"Semantic: {self.semantic_score}",
            f"Keyword: {self.keyword_score}",
        ]
        if self.degradation is not None:
            parts.append(f"DEGRADED ({self.degradation.value}): {self.error}")
        return " | ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Presentation dict — ``None`` values are excluded."""
        result: dict[str, Any] = {
            "name": self.name,
            "rank": self.rank,
            "fused_score": self.fused_score,
            "semantic_score": self.semantic_score,
            "keyword_score": self.keyword_score,
            "similarity": round(self.similarity, 4),
            "matched_keywords": list(self.matched_keywords),
            "status": self.status.value,
        }
        if self.error is not None:
            result["error"] = self.error
        if self.degradation is not None:
            result["degradation"] = self.degradation.value
        if self.keyword_strategy is not None:
            result["keyword_strategy"] = self.keyword_strategy.value
        return result


@dataclass
class RankSummary:
    """Statistics from a ranking run, used in export summaries."""

    total: int = 0
    scored: int = 0
    degraded_invalid: int = 0
    degraded_error: int = 0

    @property
    def degraded(self) -> int:
        return self.degraded_invalid + self.degraded_error


def summarize(results: Iterable[RankedResult]) -> RankSummary:
    """Count how each result reached its rank."""
    summary = RankSummary()
    for r in results:
        summary.total += 1
        if r.degradation is None:
            summary.scored += 1
        elif r.degradation is DegradationReason.INVALID_INPUT:
            summary.degraded_invalid += 1
        else:
            summary.degraded_error += 1
    return summary


class Ranker:
    """Scores a batch of candidates against one job and orders them."""

    def __init__(
        self,
        config: ScoringConfig | None = None,
        fusion: ScoreFusion | None = None,
    ) -> None:
        self.config = config or ScoringConfig()
        self.fusion = fusion or ScoreFusion(self.config)

    def rank(
        self,
        query_vector: Sequence[float] | None,
        query_text: str | None,
        candidates: Iterable[CandidateDocument],
    ) -> list[RankedResult]:
        """Return one :class:`RankedResult` per candidate, best first.

        Args:
            query_vector: The job description's vector.
            query_text: The job description text (used for keywords).
            candidates: Documents from the extraction stage.

        Returns:
            Results sorted by ``fused_score`` descending with ranks
            ``1..N``.  An empty batch gives ``[]``.
        """
        try:
            batch = list(candidates)
        except Exception:
            logger.exception("Candidate batch is not iterable — nothing to rank")
            return []
        if not batch:
            return []

        try:
            return self._rank(query_vector, query_text, batch)
        except Exception as exc:
            logger.exception("Ranking failed for the whole batch, degrading all candidates")
            return self._degrade_batch(batch, exc)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _rank(
        self,
        query_vector: Sequence[float] | None,
        query_text: str | None,
        batch: list[CandidateDocument],
    ) -> list[RankedResult]:
        # Step 1: Partition, remembering input positions for tie-breaks
        valid: list[tuple[int, CandidateDocument]] = []
        failed: list[tuple[int, CandidateDocument]] = []
        invalid: list[tuple[int, CandidateDocument]] = []
        for index, doc in enumerate(batch):
            if _is_valid(doc):
                valid.append((index, doc))
            elif _vectorize_failed(doc):
                failed.append((index, doc))
            else:
                invalid.append((index, doc))

        # Step 2: Score valid candidates independently; vectorization
        # failures take the same floor record as a scoring error
        records: list[tuple[int, RankedResult]] = [
            (index, self._score_one(query_vector, query_text, doc)) for index, doc in valid
        ]
        records.extend(
            (index, self._scoring_failure(doc, doc.error or "vectorization failed"))
            for index, doc in failed
        )

        # Step 3: Fixed degraded record for each invalid candidate
        records.extend((index, self._degrade_invalid(doc)) for index, doc in invalid)

        # Steps 4–6: Stable order, then contiguous ranks
        records.sort(key=lambda pair: (-pair[1].fused_score, pair[0]))
        ranked = [result for _index, result in records]
        for position, result in enumerate(ranked, start=1):
            result.rank = position

        summary = summarize(ranked)
        logger.info(
            "Ranked %d candidates: %d scored, %d invalid, %d scoring errors",
            summary.total,
            summary.scored,
            summary.degraded_invalid,
            summary.degraded_error,
        )
        return ranked

    def _score_one(
        self,
        query_vector: Sequence[float] | None,
        query_text: str | None,
        doc: CandidateDocument,
    ) -> RankedResult:
        """Score one candidate, isolating any failure to this record."""
        try:
            similarity = cosine_similarity(query_vector, doc.vector)
            scores = self.fusion.score(similarity, query_text or "", doc.text)
        except Exception as exc:
            err = ActionableError.scoring(doc.name, str(exc) or type(exc).__name__)
            logger.warning(err.error)
            return self._scoring_failure(doc, err.error)

        return RankedResult(
            name=doc.name,
            semantic_score=scores.semantic_score,
            keyword_score=scores.keyword_score,
            fused_score=scores.fused_score,
            matched_keywords=scores.matched_keywords,
            status=doc.status,
            error=doc.error,
            similarity=scores.similarity,
            keyword_strategy=scores.keyword_strategy,
        )

    def _scoring_failure(self, doc: CandidateDocument, message: str) -> RankedResult:
        """Floor record for a candidate that failed while being scored."""
        return RankedResult(
            name=doc.name,
            fused_score=self.config.min_score,
            status=doc.status,
            error=message,
            similarity=0.0,
            degradation=DegradationReason.SCORING_ERROR,
        )

    def _degrade_invalid(self, doc: CandidateDocument) -> RankedResult:
        """Fixed low record for a candidate that cannot be evaluated."""
        name = getattr(doc, "name", None) or "unknown"
        reason = getattr(doc, "error", None) or _missing_what(doc)
        logger.warning("Candidate '%s' cannot be evaluated: %s", name, reason)
        return RankedResult(
            name=name,
            fused_score=self.config.degraded_score,
            status=getattr(doc, "status", CandidateStatus.FAILED),
            error=reason,
            degradation=DegradationReason.INVALID_INPUT,
        )

    def _degrade_batch(self, batch: list[Any], exc: Exception) -> list[RankedResult]:
        """One minimal record per input, ranked in input order."""
        message = f"Batch ranking failed: {exc}"
        results: list[RankedResult] = []
        for position, doc in enumerate(batch, start=1):
            results.append(RankedResult(
                name=str(getattr(doc, "name", None) or f"candidate-{position}"),
                fused_score=self.config.degraded_score,
                rank=position,
                status=CandidateStatus.FAILED,
                error=message,
                degradation=DegradationReason.BATCH_ERROR,
            ))
        return results


def _is_valid(doc: CandidateDocument) -> bool:
    """A candidate needs both a non-empty vector and non-empty text."""
    vector = getattr(doc, "vector", None)
    text = getattr(doc, "text", None)
    return bool(vector) and isinstance(text, str) and bool(text.strip())


def _vectorize_failed(doc: CandidateDocument) -> bool:
    """Text was read but the provider failed or timed out on it."""
    text = getattr(doc, "text", None)
    return (
        bool(getattr(doc, "vectorize_failed", False))
        and isinstance(text, str)
        and bool(text.strip())
    )


def _missing_what(doc: CandidateDocument) -> str:
    has_vector = bool(getattr(doc, "vector", None))
    text = getattr(doc, "text", None)
    has_text = isinstance(text, str) and bool(text.strip())
    if not has_vector and not has_text:
        return "missing vector and text"
    if not has_vector:
        return "missing vector"
    return "missing text"
