"""Configuration loading and validation.

Loads ``settings.toml`` and validates all fields at startup, before any
documents are read or the embedding backend is contacted.

Every section and every key is optional: an unspecified option falls
back to its default independently of the others, so a file containing
only ``[scoring] min_score = 15`` is a legal configuration.

The validated config is exposed as a :class:`Settings` dataclass with
typed fields for each section: ``scoring``, ``embedding`` and ``output``.
"""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from resume_ranker.errors import ActionableError
from resume_ranker.rag.keywords import KeywordStrategy

# ---------------------------------------------------------------------------
# Config dataclasses
# ---------------------------------------------------------------------------

BACKENDS = ("local", "ollama")
EXPORT_FORMATS = ("markdown", "csv", "json")


@dataclass
class ScoringConfig:
    """Fusion weights, score floor, and keyword settings from ``[scoring]``."""

    semantic_weight: float = 0.7
    keyword_weight: float = 0.3
    min_score: int = 10
    degraded_score: int = 5
    keyword_strategy: KeywordStrategy = KeywordStrategy.ADVANCED
    keyword_display_limit: int = 8
    keyword_score_limit: int = 20

    def __post_init__(self) -> None:
        self.validate()

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> ScoringConfig:
        """Build a validated config from a partial mapping of options.

        Unknown keys are ignored; missing keys take their defaults.
        """
        defaults = cls()
        try:
            return cls(
                semantic_weight=float(data.get("semantic_weight", defaults.semantic_weight)),  # type: ignore[arg-type]
                keyword_weight=float(data.get("keyword_weight", defaults.keyword_weight)),  # type: ignore[arg-type]
                min_score=int(data.get("min_score", defaults.min_score)),  # type: ignore[call-overload]
                degraded_score=int(data.get("degraded_score", defaults.degraded_score)),  # type: ignore[call-overload]
                keyword_strategy=_parse_strategy(
                    data.get("keyword_strategy", defaults.keyword_strategy)
                ),
                keyword_display_limit=int(
                    data.get("keyword_display_limit", defaults.keyword_display_limit)  # type: ignore[call-overload]
                ),
                keyword_score_limit=int(
                    data.get("keyword_score_limit", defaults.keyword_score_limit)  # type: ignore[call-overload]
                ),
            )
        except (TypeError, ValueError) as exc:
            raise ActionableError.validation(
                field_name="scoring",
                reason=f"non-numeric value: {exc}",
                suggestion="Use plain numbers for [scoring] weights, scores and limits",
            ) from None

    def validate(self) -> None:
        """Raise a VALIDATION error if any option is out of range."""
        for weight_name in ("semantic_weight", "keyword_weight"):
            value = getattr(self, weight_name)
            if not 0.0 <= value <= 1.0:
                raise ActionableError.validation(
                    field_name=f"scoring.{weight_name}",
                    reason=f"is {value} — must be between 0.0 and 1.0",
                    suggestion=f"Set [scoring].{weight_name} to a value between 0.0 and 1.0",
                )

        if not 0 < self.min_score <= 100:
            raise ActionableError.validation(
                field_name="scoring.min_score",
                reason=f"is {self.min_score} — must be between 1 and 100",
            )

        if not 0 <= self.degraded_score < self.min_score:
            raise ActionableError.validation(
                field_name="scoring.degraded_score",
                reason=(
                    f"is {self.degraded_score} — must be >= 0 and below "
                    f"min_score ({self.min_score})"
                ),
                suggestion="Degraded candidates must rank below every scored candidate",
            )

        for limit_name in ("keyword_display_limit", "keyword_score_limit"):
            value = getattr(self, limit_name)
            if value <= 0:
                raise ActionableError.validation(
                    field_name=f"scoring.{limit_name}",
                    reason=f"is {value} — must be > 0",
                )


@dataclass
class EmbeddingConfig:
    """Vector backend selection from ``[embedding]``."""

    backend: str = "local"
    base_url: str = "http://localhost:11434"
    embed_model: str = "nomic-embed-text"
    target_dimensions: int = 768
    max_retries: int = 3
    timeout: float = 30.0


@dataclass
class OutputConfig:
    """Output settings from ``[output]``."""

    default_format: str = "markdown"
    output_dir: str = "./output"
    log_dir: str = "./data/logs"


@dataclass
class Settings:
    """Top-level validated configuration."""

    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


# ---------------------------------------------------------------------------
# Default settings path
# ---------------------------------------------------------------------------

DEFAULT_SETTINGS_PATH = Path("config/settings.toml")


# ---------------------------------------------------------------------------
# Loading and validation
# ---------------------------------------------------------------------------


def load_settings(path: str | Path = DEFAULT_SETTINGS_PATH) -> Settings:
    """Load and validate settings from a TOML file.

    Raises :class:`~resume_ranker.errors.ActionableError`:
      - CONFIG if the file is missing
      - VALIDATION if field values are out of range
      - PARSE if the TOML is malformed

    Returns a fully validated :class:`Settings` instance.
    """
    filepath = Path(path)
    if not filepath.exists():
        raise ActionableError.config(
            field_name="settings_path",
            reason=f"Settings file not found: {filepath}",
            suggestion=f"Create {filepath} or copy from config/settings.toml",
        )

    raw_text = filepath.read_text(encoding="utf-8")
    try:
        data = tomllib.loads(raw_text)
    except tomllib.TOMLDecodeError as exc:
        raise ActionableError.parse(
            source="settings",
            detail="TOML syntax",
            raw_error=str(exc),
            suggestion=f"Fix TOML syntax in {filepath}",
        ) from None

    return _validate(data)


def _validate(data: dict[str, object]) -> Settings:
    """Validate raw TOML data and return a Settings instance."""

    # -- scoring section -----------------------------------------------------
    scoring = ScoringConfig.from_mapping(_section(data, "scoring"))

    # -- embedding section ---------------------------------------------------
    embedding_data = _section(data, "embedding")

    backend = str(embedding_data.get("backend", "local")).lower()
    if backend not in BACKENDS:
        raise ActionableError.validation(
            field_name="embedding.backend",
            reason=f"'{backend}' is not one of {', '.join(BACKENDS)}",
            suggestion="Set [embedding].backend to 'local' or 'ollama'",
        )

    base_url = str(embedding_data.get("base_url", "http://localhost:11434"))
    if not base_url.startswith(("http://", "https://")):
        raise ActionableError.validation(
            field_name="embedding.base_url",
            reason=f"'{base_url}' is missing a scheme (http:// or https://)",
            suggestion="Set [embedding].base_url to a URL starting with http:// or https://",
        )

    embedding = EmbeddingConfig(
        backend=backend,
        base_url=base_url,
        embed_model=str(embedding_data.get("embed_model", "nomic-embed-text")),
        target_dimensions=int(embedding_data.get("target_dimensions", 768)),  # type: ignore[call-overload]
        max_retries=int(embedding_data.get("max_retries", 3)),  # type: ignore[call-overload]
        timeout=float(embedding_data.get("timeout", 30.0)),  # type: ignore[arg-type]
    )

    for name in ("target_dimensions", "max_retries"):
        if getattr(embedding, name) < 1:
            raise ActionableError.validation(
                field_name=f"embedding.{name}",
                reason=f"is {getattr(embedding, name)} — must be >= 1",
            )
    if embedding.timeout <= 0:
        raise ActionableError.validation(
            field_name="embedding.timeout",
            reason=f"is {embedding.timeout} — must be > 0",
        )

    # -- output section ------------------------------------------------------
    output_data = _section(data, "output")

    output = OutputConfig(
        default_format=str(output_data.get("default_format", "markdown")),
        output_dir=str(output_data.get("output_dir", "./output")),
        log_dir=str(output_data.get("log_dir", "./data/logs")),
    )
    if output.default_format not in EXPORT_FORMATS:
        raise ActionableError.validation(
            field_name="output.default_format",
            reason=f"'{output.default_format}' is not one of {', '.join(EXPORT_FORMATS)}",
        )

    return Settings(scoring=scoring, embedding=embedding, output=output)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _section(data: dict[str, object], name: str) -> dict[str, object]:
    """Return an optional top-level section, or an empty dict."""
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ActionableError.config(
            field_name=name,
            reason=f"[{name}] must be a table, not {type(section).__name__}",
            suggestion=f"Define [{name}] as a TOML table",
        )
    return section


def _parse_strategy(value: object) -> KeywordStrategy:
    """Coerce a strategy name to :class:`KeywordStrategy`."""
    try:
        return KeywordStrategy(str(value).lower())
    except ValueError:
        choices = ", ".join(s.value for s in KeywordStrategy)
        raise ActionableError.validation(
            field_name="scoring.keyword_strategy",
            reason=f"'{value}' is not one of {choices}",
            suggestion=f"Set [scoring].keyword_strategy to one of: {choices}",
        ) from None
