"""Global test configuration — shared fixtures and stub providers.

This conftest provides:

1. **StubProvider** — an in-memory :class:`VectorProvider` with scripted
   vectors, failures and delays.  It also records how many calls were in
   flight at once so concurrency can be asserted without timing.

2. **Document factories** — ``make_document`` builds realistic
   :class:`CandidateDocument` records; ``failed_document`` builds the
   ``FAILED`` records the extraction stage emits.

3. **Real collaborators** — ``local_vectorizer`` and ``ranker`` are real
   instances; only the Ollama network boundary is ever mocked.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from resume_ranker.config import ScoringConfig
from resume_ranker.errors import ActionableError
from resume_ranker.pipeline.ingest import CandidateDocument
from resume_ranker.pipeline.ranker import Ranker
from resume_ranker.rag.vectorizer import LocalVectorizer

if TYPE_CHECKING:
    from collections.abc import Callable

# Canonical job description used across test files.
JOB_TEXT = "Looking for a senior Python developer with Django, Docker and AWS experience"

QUERY_VECTOR: list[float] = [1.0, 0.0]


class StubProvider:
    """Scripted vector provider for runner and ingest tests."""

    service = "stub"

    def __init__(
        self,
        vectors: dict[str, list[float]] | None = None,
        *,
        default: list[float] | None = None,
        fail_on: dict[str, Exception] | None = None,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.vectors = vectors or {}
        self.default = default if default is not None else [0.5, 0.5]
        self.fail_on = fail_on or {}
        self.delays = delays or {}
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def vectorize(self, text: str) -> list[float]:
        if not text.strip():
            raise ActionableError.empty_text(self.service)
        self.calls.append(text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(text, 0.01))
            if text in self.fail_on:
                raise self.fail_on[text]
            return list(self.vectors.get(text, self.default))
        finally:
            self.in_flight -= 1


@pytest.fixture
def make_document() -> Callable[..., CandidateDocument]:
    """Factory fixture — returns a callable that builds a processed document.

    Usage::

        doc = make_document("alice.txt", "python developer", [1.0, 0.0])
    """

    def _factory(
        name: str = "resume.txt",
        text: str = "Senior Python developer, Django and Docker on AWS",
        vector: list[float] | None = None,
    ) -> CandidateDocument:
        return CandidateDocument(
            name=name,
            text=text,
            vector=vector if vector is not None else [1.0, 0.0],
            size=len(text.encode()),
            processing_ms=12.5,
        )

    return _factory


@pytest.fixture
def failed_document() -> Callable[..., CandidateDocument]:
    """Factory fixture — a document the extraction stage could not read."""

    def _factory(name: str = "broken.pdf", error: str = "PDF parsing failed") -> CandidateDocument:
        return CandidateDocument.failed(name, error, size=2048)

    return _factory


@pytest.fixture
def local_vectorizer() -> LocalVectorizer:
    return LocalVectorizer()


@pytest.fixture
def scoring_config() -> ScoringConfig:
    return ScoringConfig()


@pytest.fixture
def ranker(scoring_config: ScoringConfig) -> Ranker:
    return Ranker(scoring_config)
