"""
categorizer/config.py

Environment-driven settings for the domain categorization pipeline.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from categorizer.env import load_env_files

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64; rv:128.0) Gecko/20100101 Firefox/128.0"
)
_ALLOWED_ADAPTERS = {"ollama", "mock"}


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_optional_int_env(name: str) -> int | None:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return None
    try:
        return int(raw_value)
    except ValueError:
        return None


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class CompletionSettings:
    """
    Completion service endpoint and prompt/label behaviour.
    """

    adapter: str = "ollama"
    base_url: str = "http://localhost:11434/api/generate"
    model: str = "llama3.1"
    timeout_seconds: float = 120.0
    max_context_chars: int = 2000
    suggest_categories: bool = False
    non_answer_retries: int = 0
    max_label_words: int = 3


@dataclass(frozen=True)
class ExtractionSettings:
    """
    Website fetch and keyword ranking settings.
    """

    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = 30.0
    max_retries: int = 0
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    max_keywords: int = 100
    min_token_length: int = 4
    min_context_chars: int = 3


@dataclass(frozen=True)
class PipelineSettings:
    """
    Input/output locations and concurrency limits for one run.
    """

    source_path: str = "data/asn.csv"
    domain_column: str = "domain"
    success_path: str = "categories.csv"
    failure_path: str = "failures.txt"
    review_path: str = "review.csv"
    max_in_flight: int = 32
    channel_capacity: int = 32
    shuffle: bool = True
    seed: int | None = None
    limit: int | None = None


@lru_cache(maxsize=1)
def get_completion_settings() -> CompletionSettings:
    """
    Return cached completion service settings from environment variables.
    """

    adapter = _get_str_env("LLM_ADAPTER", "ollama").lower()
    if adapter not in _ALLOWED_ADAPTERS:
        raise RuntimeError(
            f"LLM_ADAPTER '{adapter}' is not valid. "
            f"Allowed values: {sorted(_ALLOWED_ADAPTERS)}."
        )
    return CompletionSettings(
        adapter=adapter,
        base_url=_get_str_env("LLM_BASE_URL", "http://localhost:11434/api/generate"),
        model=_get_str_env("LLM_MODEL", "llama3.1"),
        timeout_seconds=max(1.0, _get_float_env("LLM_TIMEOUT_SECONDS", 120.0)),
        max_context_chars=max(100, _get_int_env("LLM_MAX_CONTEXT_CHARS", 2000)),
        suggest_categories=_get_bool_env("LLM_SUGGEST_CATEGORIES", False),
        non_answer_retries=max(0, _get_int_env("LLM_NON_ANSWER_RETRIES", 0)),
        max_label_words=max(1, _get_int_env("LLM_MAX_LABEL_WORDS", 3)),
    )


@lru_cache(maxsize=1)
def get_extraction_settings() -> ExtractionSettings:
    """
    Return cached website extraction settings from environment variables.
    """

    return ExtractionSettings(
        user_agent=_get_str_env("SCRAPE_USER_AGENT", DEFAULT_USER_AGENT),
        timeout_seconds=max(1.0, _get_float_env("SCRAPE_TIMEOUT_SECONDS", 30.0)),
        max_retries=max(0, _get_int_env("SCRAPE_MAX_RETRIES", 0)),
        backoff_initial_seconds=max(0.1, _get_float_env("SCRAPE_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("SCRAPE_BACKOFF_MULTIPLIER", 2.0)),
        max_keywords=max(1, _get_int_env("SCRAPE_MAX_KEYWORDS", 100)),
        min_token_length=max(1, _get_int_env("SCRAPE_MIN_TOKEN_LENGTH", 4)),
        min_context_chars=max(0, _get_int_env("SCRAPE_MIN_CONTEXT_CHARS", 3)),
    )


@lru_cache(maxsize=1)
def get_pipeline_settings() -> PipelineSettings:
    """
    Return cached pipeline settings from environment variables.
    """

    return PipelineSettings(
        source_path=_get_str_env("CATEGORIZE_SOURCE_PATH", "data/asn.csv"),
        domain_column=_get_str_env("CATEGORIZE_DOMAIN_COLUMN", "domain"),
        success_path=_get_str_env("CATEGORIZE_SUCCESS_PATH", "categories.csv"),
        failure_path=_get_str_env("CATEGORIZE_FAILURE_PATH", "failures.txt"),
        review_path=_get_str_env("CATEGORIZE_REVIEW_PATH", "review.csv"),
        max_in_flight=max(1, _get_int_env("CATEGORIZE_MAX_IN_FLIGHT", 32)),
        channel_capacity=max(1, _get_int_env("CATEGORIZE_CHANNEL_CAPACITY", 32)),
        shuffle=_get_bool_env("CATEGORIZE_SHUFFLE", True),
        seed=_get_optional_int_env("CATEGORIZE_SEED"),
        limit=_get_optional_int_env("CATEGORIZE_LIMIT"),
    )
