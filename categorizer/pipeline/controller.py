"""
Pipeline controller: load, skip finished domains, fan out workers, drain sinks.

Run phases:

    Init      load the domain set and the finished-domain set from the
              success log, start the sink consumers
    Dispatch  iterate the shuffled domain set, skip finished domains,
              submit one worker per remaining domain
    Throttle  the bounded pool blocks dispatch while every slot is busy
    Drain     wait for all workers, then close the sinks so they flush

Per-domain failures never escape a worker: each is logged and turned
into exactly one sink write.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from collections import Counter
from dataclasses import asdict, dataclass

from categorizer.config import CompletionSettings, ExtractionSettings, PipelineSettings
from categorizer.domain.records import DomainRecord, PipelineRunSummary, ReviewRecord
from categorizer.failure_codes import COMPLETION_FAILED, FETCH_FAILED, PARSE_FAILED, WORKER_CRASHED
from categorizer.loading.domain_loader import DomainSetLoader
from categorizer.logging_utils import log_event
from categorizer.pipeline.worker_pool import BoundedWorkerPool
from categorizer.scraping.extractor import ContentExtractor, FetchError, ParseError
from categorizer.sinks.result_sink import ResultSink, load_completed_domains
from llm_classification.adapter import BaseCompletionAdapter
from llm_classification.classifier import DomainClassifier
from llm_classification.errors import CompletionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Route:
    kind: str
    record: DomainRecord | ReviewRecord | None = None
    failure_code: str | None = None


class _RunCounters:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.succeeded = 0
        self.needs_review = 0
        self.failures_by_code: Counter[str] = Counter()

    def count(self, route: _Route) -> None:
        with self._lock:
            if route.kind == "success":
                self.succeeded += 1
            elif route.kind == "review":
                self.needs_review += 1
            else:
                self.failures_by_code[route.failure_code or WORKER_CRASHED] += 1

    @property
    def failed(self) -> int:
        with self._lock:
            return sum(self.failures_by_code.values())


class PipelineController:
    """
    Orchestrates one resumable classification run.
    """

    def __init__(
        self,
        *,
        settings: PipelineSettings,
        loader: DomainSetLoader,
        extractor: ContentExtractor,
        classifier: DomainClassifier,
        rng: random.Random | None = None,
    ) -> None:
        self._settings = settings
        self._loader = loader
        self._extractor = extractor
        self._classifier = classifier
        self._rng = rng or random.Random(settings.seed)

    @classmethod
    def from_settings(
        cls,
        *,
        pipeline: PipelineSettings,
        extraction: ExtractionSettings,
        completion: CompletionSettings,
        adapter: BaseCompletionAdapter | None = None,
    ) -> "PipelineController":
        return cls(
            settings=pipeline,
            loader=DomainSetLoader(
                source_path=pipeline.source_path,
                domain_column=pipeline.domain_column,
            ),
            extractor=ContentExtractor(settings=extraction),
            classifier=DomainClassifier.from_settings(completion, adapter=adapter),
        )

    def run(self) -> PipelineRunSummary:
        """
        Execute Init, Dispatch and Drain; raises LoadError only for an unusable source.
        """

        started = time.monotonic()
        domain_set = self._loader.load()
        completed = load_completed_domains(self._settings.success_path)
        log_event(
            logger,
            logging.INFO,
            "resume_state_loaded",
            success_path=self._settings.success_path,
            completed_domains=len(completed),
        )

        pending = [domain for domain in domain_set if domain not in completed]
        already_done = len(domain_set) - len(pending)
        if self._settings.shuffle:
            self._rng.shuffle(pending)
        if self._settings.limit is not None:
            pending = pending[: max(0, self._settings.limit)]

        counters = _RunCounters()
        sink = ResultSink(
            success_path=self._settings.success_path,
            failure_path=self._settings.failure_path,
            review_path=self._settings.review_path,
            capacity=self._settings.channel_capacity,
        )
        log_event(
            logger,
            logging.INFO,
            "dispatch_started",
            total_domains=len(domain_set),
            already_done=already_done,
            pending=len(pending),
            max_in_flight=self._settings.max_in_flight,
        )

        with sink:
            with BoundedWorkerPool(max_in_flight=self._settings.max_in_flight) as pool:
                for domain in pending:
                    pool.submit(self._process_domain, domain, sink, counters)
            peak_in_flight = pool.peak_in_flight
            dispatched = pool.submitted
        sink_stats = sink.close()

        summary = PipelineRunSummary(
            total_domains=len(domain_set),
            already_done=already_done,
            dispatched=dispatched,
            succeeded=counters.succeeded,
            failed=counters.failed,
            needs_review=counters.needs_review,
            write_errors=sum(stats.write_errors for stats in sink_stats),
            peak_in_flight=peak_in_flight,
            elapsed_seconds=round(time.monotonic() - started, 3),
            failures_by_code=dict(counters.failures_by_code),
        )
        log_event(logger, logging.INFO, "pipeline_finished", **asdict(summary))
        return summary

    def _process_domain(self, domain: str, sink: ResultSink, counters: _RunCounters) -> None:
        route = self._route_domain(domain)
        counters.count(route)
        if route.kind == "success" and isinstance(route.record, DomainRecord):
            sink.report_success(route.record)
        elif route.kind == "review" and isinstance(route.record, ReviewRecord):
            sink.report_review(route.record)
        else:
            sink.report_failure(domain)

    def _route_domain(self, domain: str) -> _Route:
        try:
            extraction = self._extractor.extract(domain)
        except FetchError as exc:
            return self._failure(domain, FETCH_FAILED, "domain_fetch_failed", exc)
        except ParseError as exc:
            return self._failure(domain, PARSE_FAILED, "domain_parse_failed", exc)
        except Exception as exc:
            return self._failure(domain, WORKER_CRASHED, "domain_worker_crashed", exc)

        try:
            outcome = self._classifier.classify(domain, extraction.context)
        except CompletionError as exc:
            return self._failure(domain, COMPLETION_FAILED, "domain_completion_failed", exc)
        except Exception as exc:
            return self._failure(domain, WORKER_CRASHED, "domain_worker_crashed", exc)

        if not outcome.is_label:
            log_event(
                logger,
                logging.WARNING,
                "domain_non_answer",
                domain=domain,
                reason=outcome.reason,
                response=outcome.raw_response[:200],
            )
            return _Route(
                kind="review",
                record=ReviewRecord(
                    domain=domain,
                    response=outcome.raw_response,
                    reason=outcome.reason or "unknown",
                ),
            )

        log_event(
            logger,
            logging.INFO,
            "domain_categorized",
            domain=domain,
            category=outcome.label,
            attempts=outcome.attempts,
        )
        return _Route(kind="success", record=DomainRecord(domain=domain, category=outcome.label))

    @staticmethod
    def _failure(domain: str, code: str, event: str, exc: Exception) -> _Route:
        level = logging.ERROR if code == WORKER_CRASHED else logging.WARNING
        log_event(logger, level, event, domain=domain, failure_code=code, error=exc)
        return _Route(kind="failure", failure_code=code)
