"""CLI command handlers for the resume ranker.

Each public handler corresponds to a CLI subcommand and encapsulates
the wiring, orchestration, and output for that command.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from resume_ranker.config import (
    BACKENDS,
    DEFAULT_SETTINGS_PATH,
    EXPORT_FORMATS,
    Settings,
    load_settings,
)
from resume_ranker.errors import ActionableError


def resolve_settings(path: str | None) -> Settings:
    """Load settings from *path*, or the default file if it exists.

    An explicitly named file must exist; a missing default file means
    "use the built-in defaults".
    """
    if path is not None:
        return load_settings(path)
    if DEFAULT_SETTINGS_PATH.exists():
        return load_settings(DEFAULT_SETTINGS_PATH)
    return Settings()


def read_job_text(args: argparse.Namespace) -> str:
    """Return the job description from ``--job-text`` or the ``--job`` file."""
    if args.job_text is not None:
        return str(args.job_text)
    job_path = Path(args.job)
    if not job_path.exists():
        print(f"Error: Job description file not found: {job_path}")
        sys.exit(1)
    return job_path.read_text(encoding="utf-8")


def handle_rank(args: argparse.Namespace) -> None:
    """Rank resumes against a job description and export the results."""
    from resume_ranker.export import EXPORTERS, FILE_SUFFIXES
    from resume_ranker.logging import configure_file_logging, remove_file_logging
    from resume_ranker.pipeline.runner import RankingRunner
    from resume_ranker.rag.embedder import build_vector_provider
    from resume_ranker.text import slugify

    settings = resolve_settings(args.settings)
    if args.backend:
        settings.embedding.backend = args.backend

    job_text = read_job_text(args)
    stem = slugify(job_text.strip().splitlines()[0]) if job_text.strip() else ""
    stem = stem or "ranking"

    file_handler = (
        configure_file_logging(settings.output.log_dir, run_label=stem) if args.log_file else None
    )
    try:
        provider = build_vector_provider(settings.embedding)
        runner = RankingRunner(provider, settings.scoring)
        result = asyncio.run(runner.run_files(job_text, args.resumes))
    finally:
        if file_handler is not None:
            remove_file_logging(file_handler)

    # Print summary
    print(f"\n{'=' * 60}")
    print(" Ranking Summary")
    print(f"{'=' * 60}")
    print(f" Resumes:         {result.summary.total}")
    print(f" Scored:          {result.summary.scored}")
    print(f" Not evaluated:   {result.summary.degraded_invalid}")
    print(f" Scoring errors:  {result.summary.degraded_error}")
    print(f" Processing time: {result.processing_ms:.0f} ms")
    print(f"{'=' * 60}\n")

    shown = result.ranked[: args.top] if args.top else result.ranked
    for r in shown:
        print(f"{r.rank}. [{r.fused_score:>3}] {r.name}")
        print(f"   {r.score_explanation()}")
        if r.matched_keywords:
            print(f"   Keywords: {', '.join(r.matched_keywords)}")
        print()

    fmt = args.format or settings.output.default_format
    if args.output:
        output_path = Path(args.output)
    else:
        output_path = Path(settings.output.output_dir) / f"{stem}{FILE_SUFFIXES[fmt]}"
    output_path.parent.mkdir(parents=True, exist_ok=True)

    EXPORTERS[fmt]().export(result, str(output_path))
    print(f"Exported {fmt:<8} → {output_path}")


def handle_health(args: argparse.Namespace) -> None:
    """Check that the configured Ollama backend and model are available."""
    from resume_ranker.rag.embedder import OllamaVectorProvider

    settings = resolve_settings(args.settings)
    if settings.embedding.backend != "ollama":
        print("Backend is 'local' — no remote service to check.")
        return

    provider = OllamaVectorProvider(
        base_url=settings.embedding.base_url,
        embed_model=settings.embedding.embed_model,
        target_dimensions=settings.embedding.target_dimensions,
        timeout=settings.embedding.timeout,
    )
    asyncio.run(provider.health_check())
    print(f"Ollama is reachable at {settings.embedding.base_url}")
    print(f"Model '{settings.embedding.embed_model}' is available")


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="resume-ranker",
        description="Rank resumes against a job description by semantic and keyword relevance",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # -- rank ----------------------------------------------------------------
    rank_p = sub.add_parser("rank", help="Rank resumes against a job description")
    job = rank_p.add_mutually_exclusive_group(required=True)
    job.add_argument("--job", type=str, help="Path to the job description text file")
    job.add_argument("--job-text", type=str, help="Job description text")
    rank_p.add_argument("resumes", nargs="+", help="Plain-text resume files (.txt, .md)")
    rank_p.add_argument(
        "--format",
        choices=list(EXPORT_FORMATS),
        default=None,
        help="Output format (default: [output].default_format)",
    )
    rank_p.add_argument("--output", type=str, default=None, help="Output file path")
    rank_p.add_argument("--settings", type=str, default=None, help="Path to settings.toml")
    rank_p.add_argument(
        "--backend",
        choices=list(BACKENDS),
        default=None,
        help="Override [embedding].backend",
    )
    rank_p.add_argument(
        "--top",
        type=int,
        default=None,
        metavar="N",
        help="Print only the top N candidates (the export always has all)",
    )
    rank_p.add_argument(
        "--log-file",
        action="store_true",
        help="Also write a timestamped log file under [output].log_dir",
    )

    # -- health --------------------------------------------------------------
    health_p = sub.add_parser("health", help="Check the Ollama embedding backend")
    health_p.add_argument("--settings", type=str, default=None, help="Path to settings.toml")

    return parser


_HANDLERS = {
    "rank": handle_rank,
    "health": handle_health,
}


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        _HANDLERS[args.command](args)
    except ActionableError as exc:
        print(f"Error: {exc.error}")
        if exc.suggestion:
            print(f"  Suggestion: {exc.suggestion}")
        sys.exit(1)
