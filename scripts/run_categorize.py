"""
Run domain categorization from CLI.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from dataclasses import asdict, replace
from typing import Sequence

from categorizer.config import (
    PipelineSettings,
    get_completion_settings,
    get_extraction_settings,
    get_pipeline_settings,
)
from categorizer.loading.domain_loader import LoadError
from categorizer.pipeline.controller import PipelineController
from llm_classification.adapter import MockCompletionAdapter


def _configure_logging() -> None:
    """
    Configure root logging once for the CLI process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Categorize domains with a completion service.")
    parser.add_argument("--source", dest="source_path", default=None, help="Domain source (CSV or one domain per line).")
    parser.add_argument("--domain-column", dest="domain_column", default=None, help="CSV column holding the domain.")
    parser.add_argument("--success-path", dest="success_path", default=None)
    parser.add_argument("--failure-path", dest="failure_path", default=None)
    parser.add_argument("--review-path", dest="review_path", default=None)
    parser.add_argument("--max-in-flight", dest="max_in_flight", type=int, default=None)
    parser.add_argument("--limit", dest="limit", type=int, default=None, help="Process at most N pending domains.")
    parser.add_argument("--seed", dest="seed", type=int, default=None, help="Shuffle seed for reproducible runs.")
    parser.add_argument("--no-shuffle", dest="no_shuffle", action="store_true", help="Keep sorted domain order.")
    parser.add_argument("--mock-llm", dest="mock_llm", action="store_true", help="Answer every domain with a fixed label.")
    return parser


def _apply_overrides(settings: PipelineSettings, args: argparse.Namespace) -> PipelineSettings:
    overrides = {
        name: getattr(args, name)
        for name in (
            "source_path",
            "domain_column",
            "success_path",
            "failure_path",
            "review_path",
            "max_in_flight",
            "limit",
            "seed",
        )
        if getattr(args, name) is not None
    }
    if "max_in_flight" in overrides:
        overrides["max_in_flight"] = max(1, overrides["max_in_flight"])
    if args.no_shuffle:
        overrides["shuffle"] = False
    return replace(settings, **overrides)


def main(argv: Sequence[str] | None = None) -> int:
    _configure_logging()
    args = _build_parser().parse_args(argv)

    pipeline_settings = _apply_overrides(get_pipeline_settings(), args)
    controller = PipelineController.from_settings(
        pipeline=pipeline_settings,
        extraction=get_extraction_settings(),
        completion=get_completion_settings(),
        adapter=MockCompletionAdapter() if args.mock_llm else None,
    )

    try:
        summary = controller.run()
    except LoadError as exc:
        logging.getLogger(__name__).error("Domain source unusable: %s", exc)
        return 1

    print(json.dumps(asdict(summary), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
