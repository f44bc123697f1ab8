"""CLI entry point for the resume ranker."""

from __future__ import annotations

from resume_ranker.cli import main

if __name__ == "__main__":
    main()
