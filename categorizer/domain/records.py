"""
categorizer/domain/records.py

Domain models for classification results and run summaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DomainRecord:
    """
    One successfully categorized domain, written once to the success log.
    """

    domain: str
    category: str


@dataclass(frozen=True)
class ReviewRecord:
    """
    A domain whose completion looked like a non-answer.
    """

    domain: str
    response: str
    reason: str


@dataclass(frozen=True)
class SinkStats:
    """
    Counters reported by one append-only sink after it drains.
    """

    name: str
    written: int
    write_errors: int


@dataclass(frozen=True)
class PipelineRunSummary:
    """
    Summary for one pipeline run.
    """

    total_domains: int
    already_done: int
    dispatched: int
    succeeded: int
    failed: int
    needs_review: int
    write_errors: int
    peak_in_flight: int
    elapsed_seconds: float
    failures_by_code: dict[str, int] = field(default_factory=dict)
