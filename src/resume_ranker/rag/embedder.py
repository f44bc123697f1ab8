"""Ollama-backed semantic vector provider with transparent local fallback.

Wraps the ``ollama`` Python SDK's :class:`AsyncClient` to provide:

- **Embedding**: text → float vector via ``nomic-embed-text``
- **Dimension normalization**: vectors are truncated or padded to a fixed
  ``target_dimensions`` so every text the provider answers for has the
  same layout
- **Retry with backoff**: transient 5xx errors and connection failures
  are retried up to ``max_retries`` times before giving up
- **Fallback**: when the remote backend cannot produce a usable vector
  for any reason, the :class:`LocalVectorizer` answers instead.  Callers
  never see the failure; it is logged as an actionable warning.
- **Health check**: verify Ollama + the model are available (CLI only)

:func:`build_vector_provider` selects the backend once from settings.
"""

from __future__ import annotations

import asyncio
import math
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from resume_ranker.config import EmbeddingConfig

import ollama as ollama_sdk

from resume_ranker.errors import ActionableError
from resume_ranker.logging import logger
from resume_ranker.rag.vectorizer import LocalVectorizer, VectorProvider

_T = TypeVar("_T")

# Status codes that warrant a retry (server overloaded / temporary failure)
_RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}

# nomic-embed-text has an 8192-token window; formatted resume text can
# tokenise at close to one char per token.
_MAX_EMBED_CHARS = 8_000

# Keep the head (summary, current role) and the tail (skills section).
_HEAD_RATIO = 0.6
_TRUNCATION_MARKER = "\n[…]\n"

# Domain midpoint used to pad short vectors.  Zero padding would pull
# every padded pair toward dissimilarity.
NEUTRAL_PAD = 0.5


def normalize_dimensions(
    vector: list[float],
    target: int,
    *,
    pad_value: float = NEUTRAL_PAD,
) -> list[float]:
    """Truncate or pad *vector* to exactly *target* components.

    An empty vector becomes an all-neutral vector.
    """
    if len(vector) >= target:
        return list(vector[:target])
    return list(vector) + [pad_value] * (target - len(vector))


class OllamaVectorProvider:
    """Semantic vectors from Ollama, degrading to local vectors on failure.

    Usage::

        provider = OllamaVectorProvider(
            base_url="http://localhost:11434",
            embed_model="nomic-embed-text",
        )
        vec = await provider.vectorize("some text")  # → list[float], never fails
    """

    service = "Ollama"

    def __init__(
        self,
        base_url: str,
        embed_model: str,
        *,
        target_dimensions: int = 768,
        max_retries: int = 3,
        base_delay: float = 1.0,
        timeout: float | None = 30.0,
        fallback: LocalVectorizer | None = None,
    ) -> None:
        self.base_url = base_url
        self.embed_model = embed_model
        self.target_dimensions = target_dimensions
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.fallback = fallback or LocalVectorizer()
        self._client = ollama_sdk.AsyncClient(host=base_url or None, timeout=timeout)

    # -- Public API ----------------------------------------------------------

    async def vectorize(self, text: str) -> list[float]:
        """Return a vector for *text*.

        Raises :class:`~resume_ranker.errors.EmptyTextError` for empty or
        whitespace-only text.  Any other failure is absorbed: the local
        vectorizer's output for the same text is returned instead.
        """
        cleaned = text.strip() if isinstance(text, str) else ""
        if not cleaned:
            raise ActionableError.empty_text(self.service)

        try:
            return await self.embed(cleaned)
        except Exception as exc:
            err = ActionableError.from_exception(exc, self.service, "embed")
            logger.warning(
                "Remote embedding unavailable (%s), using local vectorizer: %s",
                err.error_type.value,
                err.error,
            )
            return self.fallback.encode(cleaned)

    async def embed(self, text: str) -> list[float]:
        """Return the remote embedding for *text*, normalized to ``target_dimensions``.

        Unlike :meth:`vectorize` this raises
        :class:`~resume_ranker.errors.ActionableError` on failure.

        Text longer than ``_MAX_EMBED_CHARS`` is truncated using a
        **head + tail** strategy to avoid exceeding the model's context
        window.
        """
        if not self.base_url or not self.embed_model:
            raise ActionableError.config(
                field_name="embedding.base_url" if not self.base_url else "embedding.embed_model",
                reason="remote embedding backend is not configured",
            )

        cleaned = text.strip()
        if len(cleaned) > _MAX_EMBED_CHARS:
            logger.debug(
                "Truncating embed input from %d to %d chars (head+tail)",
                len(cleaned),
                _MAX_EMBED_CHARS,
            )
            budget = _MAX_EMBED_CHARS - len(_TRUNCATION_MARKER)
            head_len = int(budget * _HEAD_RATIO)
            tail_len = budget - head_len
            cleaned = cleaned[:head_len] + _TRUNCATION_MARKER + cleaned[-tail_len:]

        async def _call() -> list[float]:
            response = await self._client.embed(model=self.embed_model, input=cleaned)
            return self._parse_embedding(response)

        raw = await self._with_retry(_call)
        return normalize_dimensions(raw, self.target_dimensions)

    async def health_check(self) -> None:
        """Verify Ollama is reachable and the configured model is available.

        Raises :class:`~resume_ranker.errors.ActionableError`:
          - CONNECTION if Ollama is unreachable
          - EMBEDDING if the model is not pulled
        """
        try:
            response = await self._client.list()
        except (ConnectionError, OSError) as exc:
            raise ActionableError.connection(
                service=self.service,
                url=self.base_url,
                raw_error=str(exc),
            ) from None

        available = {m.model for m in response.models if m.model}
        # Ollama model names may include a :latest suffix
        available_all = available | {name.split(":")[0] for name in available}

        model_base = self.embed_model.split(":")[0]
        if self.embed_model not in available_all and model_base not in available_all:
            raise ActionableError.embedding(
                model=self.embed_model,
                raw_error=f"Model '{self.embed_model}' is not pulled in Ollama",
                suggestion=f"Run: ollama pull {self.embed_model}",
            )

        logger.info("Ollama health check passed — %s available", self.embed_model)

    # -- Internals -----------------------------------------------------------

    def _parse_embedding(self, response: object) -> list[float]:
        """Pull the first embedding out of an SDK response and validate it."""
        embeddings = getattr(response, "embeddings", None)
        if not embeddings:
            raise ActionableError.parse(
                source=self.service,
                detail="embed response",
                raw_error="response contained no embeddings",
            )
        try:
            vector = [float(v) for v in embeddings[0]]
        except (TypeError, ValueError) as exc:
            raise ActionableError.parse(
                source=self.service,
                detail="embed response",
                raw_error=f"non-numeric embedding: {exc}",
            ) from None
        if not vector or not all(math.isfinite(v) for v in vector):
            raise ActionableError.parse(
                source=self.service,
                detail="embed response",
                raw_error="embedding is empty or contains non-finite values",
            )
        return vector

    async def _with_retry(self, fn: Callable[[], Awaitable[_T]]) -> _T:
        """Call *fn* with exponential backoff on retryable errors.

        Non-retryable errors (e.g. 404 model not found) fail immediately.
        After ``max_retries`` attempts, raises an EMBEDDING error.
        """
        last_error: Exception | None = None

        for attempt in range(1, self.max_retries + 1):
            try:
                return await fn()
            except ollama_sdk.ResponseError as exc:
                last_error = exc
                if exc.status_code not in _RETRYABLE_STATUS_CODES:
                    raise ActionableError.embedding(
                        model=self.embed_model,
                        raw_error=str(exc),
                    ) from None

                delay = self.base_delay * (2 ** (attempt - 1))
                logger.warning(
                    "Ollama embed attempt %d/%d failed (status %d), retrying in %.1fs: %s",
                    attempt,
                    self.max_retries,
                    exc.status_code,
                    delay,
                    exc,
                )
                await asyncio.sleep(delay)
            except (ConnectionError, OSError) as exc:
                last_error = exc
                delay = self.base_delay * (2 ** (attempt - 1))
                logger.warning(
                    "Ollama embed attempt %d/%d connection failed, retrying in %.1fs: %s",
                    attempt,
                    self.max_retries,
                    delay,
                    exc,
                )
                await asyncio.sleep(delay)

        raise ActionableError.embedding(
            model=self.embed_model,
            raw_error=f"Failed after {self.max_retries} attempts: {last_error}",
            suggestion="Ollama may be overloaded — check resources and retry",
        )


def build_vector_provider(config: EmbeddingConfig) -> VectorProvider:
    """Select the vector backend once, from configuration.

    The returned provider is passed explicitly into the runner; nothing
    downstream inspects the environment to pick a backend.
    """
    if config.backend == "ollama":
        logger.info(
            "Using Ollama vectors (%s @ %s, %d dims)",
            config.embed_model,
            config.base_url,
            config.target_dimensions,
        )
        return OllamaVectorProvider(
            base_url=config.base_url,
            embed_model=config.embed_model,
            target_dimensions=config.target_dimensions,
            max_retries=config.max_retries,
            timeout=config.timeout,
        )
    logger.info("Using local term-frequency vectors")
    return LocalVectorizer()
