"""
tests/test_domain_loader.py

Pytest unit tests for domain normalization, deduplication and loading.

Coverage
--------
- normalize_domain idempotence
- Sort-then-compact deduplication property
- CSV source with the ASN column layout
- Plain one-domain-per-line source (failure log reuse)
- Malformed rows skipped, unusable sources raise LoadError
"""

from __future__ import annotations

from pathlib import Path

import pytest

from categorizer.loading.domain_loader import (
    DomainSet,
    DomainSetLoader,
    LoadError,
    compact_sorted,
    normalize_domain,
)

ASN_HEADER = "start_ip,end_ip,asn,name,domain\n"


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Normalization and dedup
# ---------------------------------------------------------------------------


class TestNormalization:
    @pytest.mark.parametrize("raw", ["Example.COM", "  example.com  ", "\texample.com\n", "example.com"])
    def test_normalize_is_idempotent(self, raw: str) -> None:
        once = normalize_domain(raw)
        assert normalize_domain(once) == once
        assert once == "example.com"

    def test_compact_sorted_drops_adjacent_duplicates(self) -> None:
        assert compact_sorted(["b", "a", "b", "a", "c"]) == ["a", "b", "c"]

    @pytest.mark.parametrize(
        "values",
        [
            [],
            ["A.com", "a.com ", "b.org"],
            ["x.net", "X.NET", "x.net", "y.net", " Y.net"],
            ["zeta.io", "alpha.io", "mid.io", "alpha.io"],
        ],
    )
    def test_dedup_contains_each_normalized_domain_once(self, values: list[str]) -> None:
        domain_set = DomainSet.from_raw(values)
        result = domain_set.as_list()

        expected = {normalize_domain(value) for value in values}
        assert len(result) == len(set(result))
        assert set(result) == expected
        assert len(result) <= len(values)
        assert result == sorted(result)

    def test_empty_and_implausible_entries_are_discarded(self) -> None:
        domain_set = DomainSet.from_raw(["", "   ", "two words.com", "a,b.com", "http://x.com/", "ok.com"])
        assert domain_set.as_list() == ["ok.com"]


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class TestDomainSetLoader:
    def test_csv_source_yields_deduplicated_domains(self, tmp_path: Path) -> None:
        source = _write(
            tmp_path / "asn.csv",
            ASN_HEADER
            + "1.0.0.0,1.0.0.255,AS13335,Cloudflare,A.com\n"
            + "1.0.1.0,1.0.1.255,AS13335,Cloudflare,\"a.com \"\n"
            + "2.0.0.0,2.0.0.255,AS3215,Orange,b.org\n",
        )

        domain_set = DomainSetLoader(source_path=source).load()

        assert domain_set.as_list() == ["a.com", "b.org"]

    def test_short_and_empty_rows_are_skipped(self, tmp_path: Path) -> None:
        source = _write(
            tmp_path / "asn.csv",
            ASN_HEADER
            + "1.0.0.0,1.0.0.255\n"
            + "1.0.1.0,1.0.1.255,AS1,Empty,\n"
            + "2.0.0.0,2.0.0.255,AS3215,Orange,orange.fr\n",
        )

        domain_set = DomainSetLoader(source_path=source).load()

        assert domain_set.as_list() == ["orange.fr"]

    def test_custom_domain_column(self, tmp_path: Path) -> None:
        source = _write(tmp_path / "sites.csv", "host,owner\nexample.com,ACME\n")

        domain_set = DomainSetLoader(source_path=source, domain_column="host").load()

        assert "example.com" in domain_set
        assert len(domain_set) == 1

    def test_line_source_reads_one_domain_per_line(self, tmp_path: Path) -> None:
        source = _write(tmp_path / "failures.txt", "b.org\n\nA.com\na.com\n")

        domain_set = DomainSetLoader(source_path=source).load()

        assert list(domain_set) == ["a.com", "b.org"]

    def test_missing_file_raises_load_error(self, tmp_path: Path) -> None:
        with pytest.raises(LoadError):
            DomainSetLoader(source_path=tmp_path / "missing.csv").load()

    def test_missing_domain_column_raises_load_error(self, tmp_path: Path) -> None:
        source = _write(tmp_path / "asn.csv", "start_ip,end_ip,asn,name\n1.0.0.0,1.0.0.255,AS1,X\n")

        with pytest.raises(LoadError, match="domain"):
            DomainSetLoader(source_path=source).load()

    def test_repeated_loads_produce_identical_ordering(self, tmp_path: Path) -> None:
        source = _write(tmp_path / "list.txt", "c.com\na.com\nb.com\nA.com\n")
        loader = DomainSetLoader(source_path=source)

        assert loader.load().as_list() == loader.load().as_list() == ["a.com", "b.com", "c.com"]
