"""Candidate documents and the extraction stage that produces them.

A :class:`CandidateDocument` is built once per request and never
mutated afterwards; the ranker only reads it.  Text presence is never
ambiguous: a document whose text could not be obtained carries
``status=FAILED`` and a non-empty ``error``.  A document whose text was
read but whose vector could not be produced also has
``vectorize_failed=True``; the ranker scores it as a per-candidate
failure rather than as unusable input.

Only plain-text resumes are read here.  Converting PDFs or other binary
formats to text belongs to a separate extraction service.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, replace
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from resume_ranker.errors import ActionableError
from resume_ranker.logging import logger

if TYPE_CHECKING:
    from resume_ranker.rag.vectorizer import VectorProvider

TEXT_SUFFIXES = frozenset({".txt", ".md", ".text"})

# Resume text beyond this is not stored on the document.
MAX_TEXT_CHARS = 5_000

# Files larger than this are rejected without being read.
MAX_FILE_BYTES = 5 * 1024 * 1024


class CandidateStatus(StrEnum):
    PROCESSED = "processed"
    FAILED = "failed"


@dataclass(frozen=True)
class CandidateDocument:
    """One resume as handed to the ranking engine."""

    name: str
    text: str = ""
    vector: list[float] | None = None
    size: int = 0
    processing_ms: float = 0.0
    status: CandidateStatus = CandidateStatus.PROCESSED
    error: str | None = None
    vectorize_failed: bool = False

    @classmethod
    def failed(cls, name: str, error: str, *, size: int = 0) -> CandidateDocument:
        """A document whose text or vector could not be produced."""
        return cls(name=name, size=size, status=CandidateStatus.FAILED, error=error)


def read_document(path: str | Path) -> CandidateDocument:
    """Read a plain-text resume from *path*.

    Never raises for per-file problems; unsupported, unreadable, oversized
    or empty files come back as ``FAILED`` documents.  The returned
    document has no vector yet.
    """
    filepath = Path(path)
    name = filepath.name

    if filepath.suffix.lower() not in TEXT_SUFFIXES:
        return CandidateDocument.failed(
            name, f"Unsupported file type '{filepath.suffix or '(none)'}' — convert to text first"
        )

    try:
        size = filepath.stat().st_size
        if size > MAX_FILE_BYTES:
            return CandidateDocument.failed(
                name, f"File is {size} bytes, limit is {MAX_FILE_BYTES}", size=size
            )
        text = filepath.read_text(encoding="utf-8", errors="replace").strip()
    except OSError as exc:
        logger.warning("Could not read %s: %s", filepath, exc)
        return CandidateDocument.failed(name, f"Could not read file: {exc}")

    if not text:
        return CandidateDocument.failed(name, f"No text extracted from {name}", size=size)

    return CandidateDocument(name=name, text=text[:MAX_TEXT_CHARS], size=size)


async def vectorize_document(
    document: CandidateDocument,
    provider: VectorProvider,
    *,
    timeout: float | None = None,
) -> CandidateDocument:
    """Return a copy of *document* with its vector and processing time.

    Failed documents pass through untouched.  A provider error or a
    timeout turns the copy into a ``FAILED`` document with the error
    recorded and ``vectorize_failed`` set; it is never raised.
    """
    if document.status is CandidateStatus.FAILED:
        return document

    start = time.perf_counter()
    try:
        vector = await _vectorize(provider, document.text, timeout)
    except TimeoutError:
        elapsed = (time.perf_counter() - start) * 1000
        logger.warning("Vectorizing %s timed out after %.0fms", document.name, elapsed)
        return replace(
            document,
            processing_ms=elapsed,
            status=CandidateStatus.FAILED,
            error=f"Vectorization timed out after {timeout}s",
            vectorize_failed=True,
        )
    except Exception as exc:
        elapsed = (time.perf_counter() - start) * 1000
        err = ActionableError.from_exception(exc, "vectorizer", "vectorize")
        logger.warning("Vectorizing %s failed: %s", document.name, err.error)
        return replace(
            document,
            processing_ms=elapsed,
            status=CandidateStatus.FAILED,
            error=err.error,
            vectorize_failed=True,
        )

    elapsed = (time.perf_counter() - start) * 1000
    logger.debug("Vectorized %s in %.0fms (%d dims)", document.name, elapsed, len(vector))
    return replace(document, vector=vector, processing_ms=elapsed)


async def _vectorize(provider: VectorProvider, text: str, timeout: float | None) -> list[float]:
    if timeout is None:
        return await provider.vectorize(text)
    return await asyncio.wait_for(provider.vectorize(text), timeout=timeout)
