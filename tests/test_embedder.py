"""Ollama vector provider tests — embedding, fallback, retry, health check.

Maps to BDD specs from TestOllamaConnectivity plus provider-specific
behaviour: dimension normalization, local fallback, backend selection.

All tests mock ollama.AsyncClient so no live Ollama is required.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from resume_ranker.config import EmbeddingConfig
from resume_ranker.errors import ActionableError, EmptyTextError, ErrorType
from resume_ranker.rag.embedder import (
    NEUTRAL_PAD,
    OllamaVectorProvider,
    build_vector_provider,
    normalize_dimensions,
)
from resume_ranker.rag.vectorizer import LocalVectorizer

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

FAKE_EMBEDDING = [0.1, 0.2, 0.3, 0.4, 0.5]
BASE_URL = "http://localhost:11434"
EMBED_MODEL = "nomic-embed-text"


def _mock_embed_response(embeddings: list[list[float]]) -> MagicMock:
    """Create a mock EmbedResponse with the given embeddings."""
    resp = MagicMock()
    resp.embeddings = embeddings
    return resp


def _mock_list_response(model_names: list[str]) -> MagicMock:
    """Create a mock ListResponse with the given model names."""
    models = []
    for name in model_names:
        m = MagicMock()
        m.model = name
        models.append(m)
    resp = MagicMock()
    resp.models = models
    return resp


@pytest.fixture
def provider() -> OllamaVectorProvider:
    """A provider with five target dimensions and no retry delay."""
    return OllamaVectorProvider(
        base_url=BASE_URL,
        embed_model=EMBED_MODEL,
        target_dimensions=5,
        base_delay=0.0,
    )


# ---------------------------------------------------------------------------
# TestEmbedding
# ---------------------------------------------------------------------------


class TestEmbedding:
    """REQUIREMENT: Text is embedded into a fixed-length vector via Ollama.

    WHO: The ranking runner vectorizing the job description and each resume
    WHAT: A text string is sent to Ollama's embed endpoint with the
          configured model; the returned floats are truncated or padded
          to target_dimensions; leading/trailing whitespace is stripped
    WHY: Vectors of different lengths are not comparable, and the wrong
         model would silently corrupt every similarity score
    """

    async def test_embed_returns_float_vector(self, provider: OllamaVectorProvider) -> None:
        """Embedding a text string returns a list of floats."""
        with patch.object(provider, "_client") as mock_client:
            mock_client.embed = AsyncMock(return_value=_mock_embed_response([FAKE_EMBEDDING]))
            result = await provider.embed("Senior Python developer")
            assert result == FAKE_EMBEDDING
            assert all(isinstance(v, float) for v in result)

    async def test_embed_uses_configured_model(self, provider: OllamaVectorProvider) -> None:
        """The embed call passes the configured embed_model and stripped text."""
        with patch.object(provider, "_client") as mock_client:
            mock_client.embed = AsyncMock(return_value=_mock_embed_response([FAKE_EMBEDDING]))
            await provider.embed("  padded text  ")
            mock_client.embed.assert_called_once_with(model=EMBED_MODEL, input="padded text")

    async def test_short_vector_is_padded_with_neutral_value(
        self, provider: OllamaVectorProvider
    ) -> None:
        """A backend vector shorter than target_dimensions is padded with 0.5."""
        with patch.object(provider, "_client") as mock_client:
            mock_client.embed = AsyncMock(return_value=_mock_embed_response([[0.9, 0.1]]))
            result = await provider.embed("short")
            assert result == [0.9, 0.1, NEUTRAL_PAD, NEUTRAL_PAD, NEUTRAL_PAD]

    async def test_long_vector_is_truncated(self, provider: OllamaVectorProvider) -> None:
        """A backend vector longer than target_dimensions keeps its prefix."""
        with patch.object(provider, "_client") as mock_client:
            mock_client.embed = AsyncMock(
                return_value=_mock_embed_response([[float(i) for i in range(1, 9)]])
            )
            result = await provider.embed("long")
            assert result == [1.0, 2.0, 3.0, 4.0, 5.0]

    async def test_oversized_text_is_truncated_head_and_tail(
        self, provider: OllamaVectorProvider
    ) -> None:
        """Text past the model window keeps its beginning and its end."""
        text = "H" * 6000 + "M" * 6000 + "T" * 6000
        with patch.object(provider, "_client") as mock_client:
            mock_client.embed = AsyncMock(return_value=_mock_embed_response([FAKE_EMBEDDING]))
            await provider.embed(text)
            sent = mock_client.embed.call_args.kwargs["input"]
            assert len(sent) == 8000
            assert sent.startswith("H")
            assert sent.endswith("T")
            assert "[…]" in sent

    @pytest.mark.parametrize(
        "embeddings",
        [[], [[]], [["a", "b"]], [[float("nan"), 0.1]]],
    )
    async def test_unusable_response_raises_parse_error(
        self, provider: OllamaVectorProvider, embeddings: list[list[object]]
    ) -> None:
        """Empty, non-numeric, or non-finite embeddings are rejected."""
        with patch.object(provider, "_client") as mock_client:
            mock_client.embed = AsyncMock(return_value=_mock_embed_response(embeddings))  # type: ignore[arg-type]
            with pytest.raises(ActionableError) as exc_info:
                await provider.embed("bad payload")
            assert exc_info.value.error_type == ErrorType.PARSE

    async def test_missing_model_raises_config_error(self) -> None:
        """An unconfigured model name is a CONFIG error, not a network call."""
        provider = OllamaVectorProvider(base_url=BASE_URL, embed_model="")
        with pytest.raises(ActionableError) as exc_info:
            await provider.embed("text")
        assert exc_info.value.error_type == ErrorType.CONFIG
        assert "embed_model" in exc_info.value.error


# ---------------------------------------------------------------------------
# TestFallback
# ---------------------------------------------------------------------------


class TestFallback:
    """REQUIREMENT: Remote failures fall back to the local vectorizer transparently.

    WHO: The ranking runner, which must always receive a vector for
         non-empty text
    WHAT: Any failure of the remote call (connection, bad payload,
          exhausted retries) returns the local vectorizer's vector for
          the same text; empty text still raises EmptyTextError
    WHY: A flaky embedding service must not turn a whole batch into
         failures when a deterministic local answer is available
    """

    async def test_vectorize_returns_remote_vector_when_available(
        self, provider: OllamaVectorProvider
    ) -> None:
        """A healthy backend's vector is returned as-is."""
        with patch.object(provider, "_client") as mock_client:
            mock_client.embed = AsyncMock(return_value=_mock_embed_response([FAKE_EMBEDDING]))
            assert await provider.vectorize("Python developer") == FAKE_EMBEDDING

    async def test_connection_failure_uses_local_vector(
        self, provider: OllamaVectorProvider
    ) -> None:
        """An unreachable backend yields exactly the local vectorizer's output."""
        with patch.object(provider, "_client") as mock_client:
            mock_client.embed = AsyncMock(side_effect=ConnectionError("connection refused"))
            result = await provider.vectorize("Python developer with Docker")
        assert result == LocalVectorizer().encode("Python developer with Docker")

    async def test_bad_payload_uses_local_vector(self, provider: OllamaVectorProvider) -> None:
        """A malformed response falls back rather than raising."""
        with patch.object(provider, "_client") as mock_client:
            mock_client.embed = AsyncMock(return_value=_mock_embed_response([]))
            result = await provider.vectorize("aws kubernetes")
        assert result == provider.fallback.encode("aws kubernetes")

    async def test_fallback_is_logged_as_warning(
        self, provider: OllamaVectorProvider, caplog: pytest.LogCaptureFixture
    ) -> None:
        """The operator sees why the remote backend was bypassed."""
        with patch.object(provider, "_client") as mock_client:
            mock_client.embed = AsyncMock(side_effect=RuntimeError("kaboom"))
            with caplog.at_level("WARNING", logger="resume-ranker"):
                await provider.vectorize("python")
        assert "Remote embedding unavailable" in caplog.text

    @pytest.mark.parametrize("text", ["", "   "])
    async def test_empty_text_still_raises(self, provider: OllamaVectorProvider, text: str) -> None:
        """Empty text is refused before any remote call or fallback."""
        with patch.object(provider, "_client") as mock_client:
            mock_client.embed = AsyncMock(return_value=_mock_embed_response([FAKE_EMBEDDING]))
            with pytest.raises(EmptyTextError):
                await provider.vectorize(text)
            mock_client.embed.assert_not_called()


# ---------------------------------------------------------------------------
# TestHealthCheck
# ---------------------------------------------------------------------------


class TestHealthCheck:
    """REQUIREMENT: Ollama unavailability is detected before a ranking run.

    WHO: The operator running ``resume-ranker health``
    WHAT: The health check verifies Ollama is reachable and the configured
          embed model is available; distinct errors for "not running"
          vs "model not pulled"; a ":latest" tag matches the bare name
    WHY: Without the check, a misconfigured backend would only show up as
         silent fallback to local vectors
    """

    async def test_health_check_passes_when_model_available(
        self, provider: OllamaVectorProvider
    ) -> None:
        """Health check succeeds when the embed model is listed."""
        with patch.object(provider, "_client") as mock_client:
            mock_client.list = AsyncMock(return_value=_mock_list_response([EMBED_MODEL]))
            await provider.health_check()  # Should not raise

    async def test_latest_tag_matches_bare_model_name(
        self, provider: OllamaVectorProvider
    ) -> None:
        """'nomic-embed-text:latest' satisfies a configured 'nomic-embed-text'."""
        with patch.object(provider, "_client") as mock_client:
            mock_client.list = AsyncMock(
                return_value=_mock_list_response([f"{EMBED_MODEL}:latest"])
            )
            await provider.health_check()  # Should not raise

    async def test_unreachable_ollama_raises_connection_error(
        self, provider: OllamaVectorProvider
    ) -> None:
        """An unreachable Ollama endpoint raises a CONNECTION error naming the URL."""
        with patch.object(provider, "_client") as mock_client:
            mock_client.list = AsyncMock(side_effect=ConnectionError("could not connect"))
            with pytest.raises(ActionableError) as exc_info:
                await provider.health_check()
            assert exc_info.value.error_type == ErrorType.CONNECTION
            assert BASE_URL in exc_info.value.error

    async def test_missing_embed_model_raises_embedding_error(
        self, provider: OllamaVectorProvider
    ) -> None:
        """A missing embed model raises an EMBEDDING error naming the model."""
        with patch.object(provider, "_client") as mock_client:
            mock_client.list = AsyncMock(return_value=_mock_list_response(["mistral:7b"]))
            with pytest.raises(ActionableError) as exc_info:
                await provider.health_check()
            assert exc_info.value.error_type == ErrorType.EMBEDDING
            assert EMBED_MODEL in exc_info.value.error


# ---------------------------------------------------------------------------
# TestRetryLogic
# ---------------------------------------------------------------------------


class TestRetryLogic:
    """REQUIREMENT: Transient Ollama failures are retried with backoff.

    WHO: The embed call behind every remote vector
    WHAT: Transient server errors and connection failures trigger
          exponential backoff retries; after max retries, a clear
          EMBEDDING error is raised; non-retryable errors fail at once
    WHY: Ollama can be slow under load, and one busy response should not
         push a resume onto the fallback vectorizer
    """

    async def test_transient_error_is_retried(self, provider: OllamaVectorProvider) -> None:
        """A transient error on the first call is retried and succeeds on the second."""
        from ollama import ResponseError

        with patch.object(provider, "_client") as mock_client:
            mock_client.embed = AsyncMock(
                side_effect=[
                    ResponseError("server busy", status_code=503),
                    _mock_embed_response([FAKE_EMBEDDING]),
                ]
            )
            result = await provider.embed("retry me")
            assert result == FAKE_EMBEDDING
            assert mock_client.embed.call_count == 2

    async def test_connection_error_is_retried(self, provider: OllamaVectorProvider) -> None:
        """A dropped connection is retried like a 5xx."""
        with patch.object(provider, "_client") as mock_client:
            mock_client.embed = AsyncMock(
                side_effect=[
                    ConnectionError("reset by peer"),
                    _mock_embed_response([FAKE_EMBEDDING]),
                ]
            )
            assert await provider.embed("retry me") == FAKE_EMBEDDING

    async def test_max_retries_exhausted_raises_embedding_error(
        self, provider: OllamaVectorProvider
    ) -> None:
        """After exhausting retries, a persistent error raises an EMBEDDING error."""
        from ollama import ResponseError

        with patch.object(provider, "_client") as mock_client:
            mock_client.embed = AsyncMock(
                side_effect=ResponseError("server busy", status_code=503)
            )
            with pytest.raises(ActionableError) as exc_info:
                await provider.embed("fail forever")
            assert exc_info.value.error_type == ErrorType.EMBEDDING
            assert mock_client.embed.call_count == provider.max_retries

    async def test_non_retryable_error_fails_immediately(
        self, provider: OllamaVectorProvider
    ) -> None:
        """A non-retryable error (e.g., model not found) fails without retrying."""
        from ollama import ResponseError

        with patch.object(provider, "_client") as mock_client:
            mock_client.embed = AsyncMock(
                side_effect=ResponseError("model 'fake' not found", status_code=404)
            )
            with pytest.raises(ActionableError) as exc_info:
                await provider.embed("bad model")
            assert exc_info.value.error_type == ErrorType.EMBEDDING
            assert mock_client.embed.call_count == 1


# ---------------------------------------------------------------------------
# TestNormalizeDimensions / TestBackendSelection
# ---------------------------------------------------------------------------


class TestNormalizeDimensions:
    """REQUIREMENT: Vectors are forced to exactly the target length.

    WHO: The Ollama provider before returning any vector
    WHAT: Longer vectors keep their prefix; shorter ones are padded with
          the neutral value; an empty vector becomes all-neutral
    WHY: Cosine similarity over mismatched layouts would compare unrelated
         components
    """

    def test_exact_length_is_unchanged(self) -> None:
        assert normalize_dimensions([0.1, 0.2], 2) == [0.1, 0.2]

    def test_empty_vector_becomes_neutral(self) -> None:
        assert normalize_dimensions([], 3) == [NEUTRAL_PAD] * 3

    def test_custom_pad_value(self) -> None:
        assert normalize_dimensions([1.0], 3, pad_value=0.0) == [1.0, 0.0, 0.0]


class TestBackendSelection:
    """REQUIREMENT: The vector backend is chosen once, from configuration.

    WHO: The CLI wiring the runner
    WHAT: backend = "ollama" yields an OllamaVectorProvider carrying the
          configured URL, model, and dimensions; anything else yields the
          local vectorizer
    WHY: Nothing downstream should inspect the environment to pick a backend
    """

    def test_local_backend_builds_local_vectorizer(self) -> None:
        assert isinstance(build_vector_provider(EmbeddingConfig()), LocalVectorizer)

    def test_ollama_backend_builds_remote_provider(self) -> None:
        config = EmbeddingConfig(
            backend="ollama",
            base_url="http://gpu-box:11434",
            embed_model="mxbai-embed-large",
            target_dimensions=1024,
            max_retries=5,
        )
        provider = build_vector_provider(config)
        assert isinstance(provider, OllamaVectorProvider)
        assert provider.base_url == "http://gpu-box:11434"
        assert provider.embed_model == "mxbai-embed-large"
        assert provider.target_dimensions == 1024
        assert provider.max_retries == 5
