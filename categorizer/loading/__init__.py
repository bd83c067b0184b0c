"""
Domain source loading exports.
"""

from categorizer.loading.domain_loader import (
    DomainSet,
    DomainSetLoader,
    LoadError,
    compact_sorted,
    normalize_domain,
)

__all__ = [
    "DomainSet",
    "DomainSetLoader",
    "LoadError",
    "compact_sorted",
    "normalize_domain",
]
