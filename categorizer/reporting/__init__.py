"""
Reporting exports.
"""

from categorizer.reporting.category_counts import count_categories, write_category_counts

__all__ = ["count_categories", "write_category_counts"]
