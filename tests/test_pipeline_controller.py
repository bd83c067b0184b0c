"""
tests/test_pipeline_controller.py

Pytest tests for the end-to-end pipeline with fake extraction and completion.

Coverage
--------
- End-to-end scenario: mixed-case duplicates, one fetch failure, one label
- Partial failure isolation across failure kinds
- Non-answers routed to the review log, not the success log
- Idempotent resumption and exact (not substring) skip matching
- Bounded in-flight workers during dispatch
- LoadError aborts the run
"""

from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest

from categorizer.config import PipelineSettings
from categorizer.failure_codes import COMPLETION_FAILED, FETCH_FAILED, PARSE_FAILED, WORKER_CRASHED
from categorizer.loading.domain_loader import DomainSetLoader, LoadError
from categorizer.pipeline.controller import PipelineController
from categorizer.scraping.extractor import ExtractionResult, FetchError, ParseError
from llm_classification.adapter import BaseCompletionAdapter
from llm_classification.classifier import DomainClassifier
from llm_classification.errors import CompletionError


class FakeExtractor:
    """Maps domains to keyword tuples or exceptions and tracks concurrency."""

    def __init__(self, pages: dict[str, object], delay: float = 0.0) -> None:
        self._pages = pages
        self._delay = delay
        self._lock = threading.Lock()
        self.calls: list[str] = []
        self.active = 0
        self.peak = 0

    def extract(self, domain: str) -> ExtractionResult:
        with self._lock:
            self.calls.append(domain)
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            if self._delay:
                time.sleep(self._delay)
            page = self._pages.get(domain, ("generic", "website"))
            if isinstance(page, Exception):
                raise page
            return ExtractionResult(domain=domain, keywords=tuple(page))  # type: ignore[arg-type]
        finally:
            with self._lock:
                self.active -= 1


class DomainAnswerAdapter(BaseCompletionAdapter):
    """Answers by looking up the domain named in the prompt."""

    def __init__(self, answers: dict[str, object], default: str = "Business") -> None:
        self._answers = answers
        self._default = default

    def complete(self, prompt: str) -> str:
        domain = prompt.split("The domain is: ", 1)[1].split(". Here are", 1)[0]
        answer = self._answers.get(domain, self._default)
        if isinstance(answer, Exception):
            raise answer
        return str(answer)


def _settings(tmp_path: Path, source: Path, **overrides: object) -> PipelineSettings:
    values: dict[str, object] = {
        "source_path": str(source),
        "success_path": str(tmp_path / "categories.csv"),
        "failure_path": str(tmp_path / "failures.txt"),
        "review_path": str(tmp_path / "review.csv"),
        "max_in_flight": 4,
        "channel_capacity": 2,
        "seed": 7,
    }
    values.update(overrides)
    return PipelineSettings(**values)  # type: ignore[arg-type]


def _controller(
    settings: PipelineSettings,
    extractor: FakeExtractor,
    adapter: BaseCompletionAdapter,
) -> PipelineController:
    return PipelineController(
        settings=settings,
        loader=DomainSetLoader(source_path=settings.source_path),
        extractor=extractor,  # type: ignore[arg-type]
        classifier=DomainClassifier(adapter=adapter),
    )


def _lines(path: str) -> list[str]:
    file_path = Path(path)
    if not file_path.exists():
        return []
    return file_path.read_text(encoding="utf-8").splitlines()


@pytest.fixture()
def source(tmp_path: Path) -> Path:
    path = tmp_path / "domains.txt"
    path.write_text("A.com\na.com \nb.org\n", encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# End-to-end
# ---------------------------------------------------------------------------


class TestEndToEnd:
    def test_fetch_failure_and_success_are_routed_to_their_files(self, tmp_path: Path, source: Path) -> None:
        settings = _settings(tmp_path, source)
        extractor = FakeExtractor(
            {
                "a.com": FetchError("a.com", "connection refused"),
                "b.org": ("hosting", "servers", "datacenter"),
            }
        )
        controller = _controller(settings, extractor, DomainAnswerAdapter({"b.org": "Hosting"}))

        summary = controller.run()

        assert sorted(extractor.calls) == ["a.com", "b.org"]
        assert _lines(settings.failure_path) == ["a.com"]
        assert _lines(settings.success_path) == ["b.org,Hosting"]
        assert summary.total_domains == 2
        assert summary.dispatched == 2
        assert summary.succeeded == 1
        assert summary.failed == 1
        assert summary.failures_by_code == {FETCH_FAILED: 1}
        assert summary.write_errors == 0

    def test_every_failure_kind_is_isolated(self, tmp_path: Path) -> None:
        source = tmp_path / "domains.txt"
        source.write_text("fetch.example\nparse.example\nllm.example\ncrash.example\nok.example\n", encoding="utf-8")
        settings = _settings(tmp_path, source)
        extractor = FakeExtractor(
            {
                "fetch.example": FetchError("fetch.example", "timeout"),
                "parse.example": ParseError("parse.example", "no usable keywords on page"),
                "crash.example": KeyError("boom"),
            }
        )
        adapter = DomainAnswerAdapter(
            {
                "llm.example": CompletionError(stage="decode", detail="bad chunk"),
                "ok.example": "Retail",
            }
        )

        summary = _controller(settings, extractor, adapter).run()

        assert _lines(settings.success_path) == ["ok.example,Retail"]
        assert sorted(_lines(settings.failure_path)) == [
            "crash.example",
            "fetch.example",
            "llm.example",
            "parse.example",
        ]
        assert summary.failures_by_code == {
            FETCH_FAILED: 1,
            PARSE_FAILED: 1,
            COMPLETION_FAILED: 1,
            WORKER_CRASHED: 1,
        }
        assert summary.succeeded == 1

    def test_non_answer_goes_to_review_log_only(self, tmp_path: Path) -> None:
        source = tmp_path / "domains.txt"
        source.write_text("chatty.example\nquiet.example\n", encoding="utf-8")
        settings = _settings(tmp_path, source)
        adapter = DomainAnswerAdapter(
            {"chatty.example": "I'm sorry, but I cannot categorize this domain.", "quiet.example": "Gaming"}
        )

        summary = _controller(settings, FakeExtractor({}), adapter).run()

        assert _lines(settings.success_path) == ["quiet.example,Gaming"]
        assert _lines(settings.failure_path) == []
        review = _lines(settings.review_path)
        assert len(review) == 1
        assert review[0].startswith("chatty.example,multi_part,")
        assert summary.needs_review == 1


# ---------------------------------------------------------------------------
# Resumption
# ---------------------------------------------------------------------------


class TestResumption:
    def test_second_run_processes_nothing_new(self, tmp_path: Path) -> None:
        source = tmp_path / "domains.txt"
        source.write_text("\n".join(f"site{i}.example" for i in range(12)) + "\n", encoding="utf-8")
        settings = _settings(tmp_path, source)

        first_extractor = FakeExtractor({})
        first = _controller(settings, first_extractor, DomainAnswerAdapter({})).run()
        after_first = sorted(_lines(settings.success_path))

        second_extractor = FakeExtractor({})
        second = _controller(settings, second_extractor, DomainAnswerAdapter({})).run()

        assert first.succeeded == 12
        assert second.dispatched == 0
        assert second.already_done == 12
        assert second_extractor.calls == []
        assert sorted(_lines(settings.success_path)) == after_first
        assert len(after_first) == 12

    def test_failed_domains_are_retried_on_next_run(self, tmp_path: Path, source: Path) -> None:
        settings = _settings(tmp_path, source)
        failing = FakeExtractor({"a.com": FetchError("a.com", "down"), "b.org": ("hosting",)})
        _controller(settings, failing, DomainAnswerAdapter({"b.org": "Hosting"})).run()

        recovered = FakeExtractor({"a.com": ("news", "articles")})
        summary = _controller(settings, recovered, DomainAnswerAdapter({"a.com": "News"})).run()

        assert recovered.calls == ["a.com"]
        assert summary.already_done == 1
        assert sorted(_lines(settings.success_path)) == ["a.com,News", "b.org,Hosting"]

    def test_run_after_abrupt_stop_retries_cut_off_domain(self, tmp_path: Path, source: Path) -> None:
        settings = _settings(tmp_path, source)
        Path(settings.success_path).write_bytes("a.com,News\nb.org,Café".encode("utf-8")[:-1])
        extractor = FakeExtractor({"b.org": ("hosting",)})

        summary = _controller(settings, extractor, DomainAnswerAdapter({"b.org": "Hosting"})).run()

        assert extractor.calls == ["b.org"]
        assert summary.already_done == 1
        assert _lines(settings.success_path) == ["a.com,News", "b.org,Hosting"]

    def test_skip_check_uses_exact_domain_match(self, tmp_path: Path) -> None:
        source = tmp_path / "domains.txt"
        source.write_text("ample.com\nexample.com\n", encoding="utf-8")
        settings = _settings(tmp_path, source)
        Path(settings.success_path).write_text("example.com,Technology\n", encoding="utf-8")
        extractor = FakeExtractor({})

        _controller(settings, extractor, DomainAnswerAdapter({})).run()

        assert extractor.calls == ["ample.com"]

    def test_limit_caps_dispatch(self, tmp_path: Path) -> None:
        source = tmp_path / "domains.txt"
        source.write_text("\n".join(f"d{i}.example" for i in range(10)) + "\n", encoding="utf-8")
        settings = _settings(tmp_path, source, limit=3)

        summary = _controller(settings, FakeExtractor({}), DomainAnswerAdapter({})).run()

        assert summary.dispatched == 3
        assert len(_lines(settings.success_path)) == 3


# ---------------------------------------------------------------------------
# Concurrency and fatal errors
# ---------------------------------------------------------------------------


def test_in_flight_workers_respect_cap(tmp_path: Path) -> None:
    source = tmp_path / "domains.txt"
    source.write_text("\n".join(f"host{i:02d}.example" for i in range(40)) + "\n", encoding="utf-8")
    settings = _settings(tmp_path, source, max_in_flight=3)
    extractor = FakeExtractor({}, delay=0.01)

    summary = _controller(settings, extractor, DomainAnswerAdapter({})).run()

    assert extractor.peak <= 3
    assert summary.peak_in_flight <= 3
    assert summary.succeeded == 40
    assert len(set(_lines(settings.success_path))) == 40


def test_shuffle_is_reproducible_with_seed(tmp_path: Path) -> None:
    source = tmp_path / "domains.txt"
    source.write_text("\n".join(f"s{i}.example" for i in range(20)) + "\n", encoding="utf-8")
    orders = []
    for run in range(2):
        run_dir = tmp_path / f"run{run}"
        run_dir.mkdir()
        settings = _settings(run_dir, source, max_in_flight=1, seed=42)
        extractor = FakeExtractor({})
        _controller(settings, extractor, DomainAnswerAdapter({})).run()
        orders.append(extractor.calls)

    assert orders[0] == orders[1]
    assert sorted(orders[0]) == sorted(f"s{i}.example" for i in range(20))


def test_unreadable_source_aborts_run(tmp_path: Path) -> None:
    settings = _settings(tmp_path, tmp_path / "missing.csv")

    with pytest.raises(LoadError):
        _controller(settings, FakeExtractor({}), DomainAnswerAdapter({})).run()
    assert not Path(settings.success_path).exists()
