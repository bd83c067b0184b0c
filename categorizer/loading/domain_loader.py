"""
Domain set loading: read raw domain strings, normalize and deduplicate.

Deduplication sorts the normalized values and compacts adjacent
duplicates in one pass, so repeated runs over the same input produce the
same ordering.
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from categorizer.logging_utils import log_event

logger = logging.getLogger(__name__)

_FORBIDDEN_CHARS = (",", "/")


class LoadError(RuntimeError):
    """
    Raised when the domain source is unreadable or structurally unusable.
    """


def normalize_domain(raw: str) -> str:
    return raw.strip().lower()


def is_plausible_domain(value: str) -> bool:
    if not value:
        return False
    if any(char.isspace() for char in value):
        return False
    return not any(char in value for char in _FORBIDDEN_CHARS)


def compact_sorted(values: Iterable[str]) -> list[str]:
    """
    Sort lexicographically and drop consecutive duplicates.
    """

    compacted: list[str] = []
    for value in sorted(values):
        if compacted and compacted[-1] == value:
            continue
        compacted.append(value)
    return compacted


class DomainSet:
    """
    Ordered, duplicate-free collection of normalized domains.
    """

    def __init__(self, domains: Iterable[str]) -> None:
        self._domains = tuple(domains)

    @classmethod
    def from_raw(cls, values: Iterable[str]) -> "DomainSet":
        normalized = (normalize_domain(value) for value in values)
        return cls(compact_sorted(value for value in normalized if is_plausible_domain(value)))

    def __iter__(self) -> Iterator[str]:
        return iter(self._domains)

    def __len__(self) -> int:
        return len(self._domains)

    def __contains__(self, value: object) -> bool:
        return value in self._domains

    def as_list(self) -> list[str]:
        return list(self._domains)


class DomainSetLoader:
    """
    Loads a DomainSet from a CSV file (one domain column) or a plain list.

    Files with a `.csv` suffix are read through `csv.DictReader` and the
    configured column is extracted; anything else is treated as one domain
    per line, which lets a failure log be reused as the input of a retry run.
    """

    def __init__(self, *, source_path: str | Path, domain_column: str = "domain") -> None:
        self._source_path = Path(source_path)
        self._domain_column = domain_column

    def load(self) -> DomainSet:
        if self._source_path.suffix.lower() == ".csv":
            raw_values = self._read_csv_column()
        else:
            raw_values = self._read_lines()

        domain_set = DomainSet.from_raw(raw_values)
        log_event(
            logger,
            logging.INFO,
            "domains_loaded",
            source=str(self._source_path),
            raw_rows=len(raw_values),
            unique_domains=len(domain_set),
        )
        return domain_set

    def _read_csv_column(self) -> list[str]:
        values: list[str] = []
        try:
            with self._source_path.open("r", encoding="utf-8", newline="") as handle:
                reader = csv.DictReader(handle)
                fieldnames = reader.fieldnames or []
                if self._domain_column not in fieldnames:
                    raise LoadError(
                        f"Column '{self._domain_column}' not found in {self._source_path}. "
                        f"Available columns: {fieldnames}."
                    )
                for row in reader:
                    value = row.get(self._domain_column)
                    if not isinstance(value, str):
                        continue
                    values.append(value)
        except OSError as exc:
            raise LoadError(f"Cannot read domain source {self._source_path}: {exc}") from exc
        except (csv.Error, UnicodeDecodeError) as exc:
            raise LoadError(f"Malformed domain source {self._source_path}: {exc}") from exc
        return values

    def _read_lines(self) -> list[str]:
        try:
            text = self._source_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise LoadError(f"Cannot read domain source {self._source_path}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise LoadError(f"Malformed domain source {self._source_path}: {exc}") from exc
        return text.splitlines()
