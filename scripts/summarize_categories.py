"""
Write per-category domain counts for a finished success log.
"""

from __future__ import annotations

import argparse

from categorizer.reporting.category_counts import write_category_counts


def main() -> int:
    parser = argparse.ArgumentParser(description="Count domains per category.")
    parser.add_argument("--success-path", dest="success_path", default="categories.csv")
    parser.add_argument("--output", dest="output_path", default="category-count.csv")
    args = parser.parse_args()

    counts = write_category_counts(args.success_path, args.output_path)
    print(counts.to_string(index=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
