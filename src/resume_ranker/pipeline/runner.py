"""Pipeline runner — orchestrates ingest → vectorize → rank.

The RankingRunner is the request-scoped orchestrator:

1. Validate the job description and batch size (fail fast, before any
   vectorization work)
2. Vectorize the job description
3. Vectorize every candidate concurrently — each task settles on its
   own, a failure marks only that document as ``FAILED``
4. Wait for all tasks (the barrier), then hand the documents to the
   :class:`~resume_ranker.pipeline.ranker.Ranker`

The vector provider is chosen by the caller and injected; the runner
never selects a backend itself.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from resume_ranker.errors import ActionableError
from resume_ranker.logging import logger
from resume_ranker.pipeline.ingest import (
    CandidateDocument,
    CandidateStatus,
    read_document,
    vectorize_document,
)
from resume_ranker.pipeline.ranker import RankedResult, Ranker, RankSummary, summarize

if TYPE_CHECKING:
    from collections.abc import Sequence

    from resume_ranker.config import ScoringConfig
    from resume_ranker.rag.vectorizer import VectorProvider

MIN_JOB_CHARS = 10
MAX_JOB_CHARS = 10_000
MAX_CANDIDATES = 50


@dataclass
class RunResult:
    """Results from a ranking run, consumed by exporters and CLI."""

    job_description: str
    ranked: list[RankedResult] = field(default_factory=list)
    summary: RankSummary = field(default_factory=RankSummary)
    processing_ms: float = 0.0
    query_dimensions: int = 0

    @property
    def successful(self) -> int:
        return sum(1 for r in self.ranked if r.status is CandidateStatus.PROCESSED)

    @property
    def failed(self) -> int:
        return len(self.ranked) - self.successful


class RankingRunner:
    """Ranks a batch of resumes against one job description."""

    def __init__(
        self,
        provider: VectorProvider,
        scoring: ScoringConfig | None = None,
        *,
        ranker: Ranker | None = None,
        vectorize_timeout: float | None = None,
        max_candidates: int = MAX_CANDIDATES,
    ) -> None:
        self._provider = provider
        self._ranker = ranker or Ranker(scoring)
        self._vectorize_timeout = vectorize_timeout
        self._max_candidates = max_candidates

    async def run(
        self,
        job_description: str,
        candidates: Sequence[CandidateDocument],
    ) -> RunResult:
        """Vectorize and rank *candidates* against *job_description*.

        Raises :class:`~resume_ranker.errors.ActionableError` (VALIDATION)
        only for request-level problems: a job description outside the
        accepted length, or too many candidates.  Everything per-candidate
        is reported on the results instead.
        """
        start = time.perf_counter()
        job_text = self._validate_job(job_description)
        if len(candidates) > self._max_candidates:
            raise ActionableError.validation(
                field_name="candidates",
                reason=f"{len(candidates)} documents — at most {self._max_candidates} per batch",
                suggestion="Split the resumes into smaller batches",
            )

        # Step 1: Vectorize the job description
        query_vector = await self._provider.vectorize(job_text)
        logger.info("Job description vectorized (%d dims)", len(query_vector))

        # Step 2: Fan out candidate vectorization; gather is the barrier
        documents = await asyncio.gather(*[
            vectorize_document(doc, self._provider, timeout=self._vectorize_timeout)
            for doc in candidates
        ])

        # Step 3: Rank
        ranked = self._ranker.rank(query_vector, job_text, documents)
        elapsed = (time.perf_counter() - start) * 1000

        result = RunResult(
            job_description=job_text,
            ranked=ranked,
            summary=summarize(ranked),
            processing_ms=elapsed,
            query_dimensions=len(query_vector),
        )
        logger.info(
            "Processed %d/%d resumes successfully in %.0fms",
            result.successful,
            len(ranked),
            elapsed,
        )
        return result

    async def run_files(
        self,
        job_description: str,
        paths: Sequence[str | Path],
    ) -> RunResult:
        """Read plain-text resumes from *paths* and rank them."""
        documents = [read_document(p) for p in paths]
        return await self.run(job_description, documents)

    @staticmethod
    def _validate_job(job_description: str) -> str:
        text = job_description.strip() if isinstance(job_description, str) else ""
        if not text:
            raise ActionableError.validation(
                field_name="job_description",
                reason="is empty",
                suggestion="Provide the job description text to rank against",
            )
        if not MIN_JOB_CHARS <= len(text) <= MAX_JOB_CHARS:
            raise ActionableError.validation(
                field_name="job_description",
                reason=(
                    f"is {len(text)} characters — must be between "
                    f"{MIN_JOB_CHARS} and {MAX_JOB_CHARS}"
                ),
            )
        return text
