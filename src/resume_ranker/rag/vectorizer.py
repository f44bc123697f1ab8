"""Vector providers: the protocol and the local term-weighting vectorizer.

A :class:`VectorProvider` turns text into a fixed-format vector.  The
ranking pipeline only depends on this protocol; which implementation is
active is decided once at startup (see
:func:`resume_ranker.rag.embedder.build_vector_provider`).

:class:`LocalVectorizer` needs no network and is fully deterministic.  It
counts occurrences of a closed vocabulary of skill terms, dampens the
counts logarithmically, and L2-normalizes.  It is also the fallback the
remote provider substitutes when the remote backend cannot answer.
"""

from __future__ import annotations

import math
from typing import Protocol, runtime_checkable

from resume_ranker.errors import ActionableError
from resume_ranker.text import word_tokens


@runtime_checkable
class VectorProvider(Protocol):
    """Anything that can turn text into a vector.

    Implementations raise :class:`~resume_ranker.errors.EmptyTextError`
    for empty or whitespace-only text and must return a vector for any
    other input.
    """

    async def vectorize(self, text: str) -> list[float]: ...


# Grouped skill vocabulary.  Order matters: it fixes the vector layout.
SKILL_TERMS: dict[str, tuple[str, ...]] = {
    "technical": (
        "programming", "development", "coding", "software", "technical",
        "engineering", "react", "node", "javascript", "python", "java",
        "html", "css", "sql", "database", "api", "rest", "graphql",
        "microservices", "aws", "azure", "cloud", "docker", "kubernetes",
        "git", "devops", "testing", "agile", "scrum",
    ),
    "business": (
        "management", "leadership", "strategy", "planning", "analysis",
        "analytics", "marketing", "sales", "finance", "budget", "revenue",
        "growth", "business", "stakeholder", "client", "customer",
        "project", "portfolio",
    ),
    "creative": (
        "design", "creative", "graphic", "visual", "brand", "content",
        "writing", "copy", "social", "media", "video", "photo",
        "illustration",
    ),
    "hr": (
        "recruitment", "hiring", "talent", "onboarding", "training",
        "performance", "compensation", "benefits", "employee", "workforce",
        "culture", "diversity", "inclusion",
    ),
    "soft_skills": (
        "communication", "teamwork", "collaboration", "adaptability",
        "organization", "creativity", "innovation", "negotiation",
        "presentation",
    ),
    "tools": (
        "excel", "word", "powerpoint", "office", "google", "suite", "slack",
        "teams", "jira", "trello", "asana", "salesforce", "hubspot", "sap",
        "oracle",
    ),
}


def _build_vocabulary(groups: dict[str, tuple[str, ...]]) -> tuple[str, ...]:
    """Flatten *groups* into one term list, first occurrence wins."""
    seen: dict[str, None] = {}
    for terms in groups.values():
        for term in terms:
            seen.setdefault(term, None)
    return tuple(seen)


class LocalVectorizer:
    """Deterministic term-frequency vectorizer over a closed vocabulary.

    Each dimension corresponds to one vocabulary term.  A term seen
    ``n > 0`` times contributes ``1 + ln(n)``; the vector is then
    L2-normalized.  Text sharing no vocabulary yields an all-zero vector,
    which is valid (the similarity engine treats it as "no similarity").
    """

    service = "local"

    def __init__(self, vocabulary: tuple[str, ...] | None = None) -> None:
        self.vocabulary = vocabulary or _build_vocabulary(SKILL_TERMS)
        self._index = {term: i for i, term in enumerate(self.vocabulary)}

    @property
    def dimensions(self) -> int:
        return len(self.vocabulary)

    async def vectorize(self, text: str) -> list[float]:
        """Return the normalized term vector for *text*."""
        return self.encode(text)

    def encode(self, text: str) -> list[float]:
        """Synchronous form of :meth:`vectorize`."""
        if not isinstance(text, str) or not text.strip():
            raise ActionableError.empty_text(self.service)

        counts = [0] * self.dimensions
        for token in word_tokens(text):
            i = self._index.get(token)
            if i is not None:
                counts[i] += 1

        vector = [1.0 + math.log(c) if c > 0 else 0.0 for c in counts]
        magnitude = math.sqrt(sum(v * v for v in vector))
        if magnitude > 0:
            return [v / magnitude for v in vector]
        return vector
