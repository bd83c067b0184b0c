"""
Per-category domain counts over the success log.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from categorizer.logging_utils import log_event

logger = logging.getLogger(__name__)

SUCCESS_COLUMNS = ["domain", "category"]


def load_success_log(success_path: str | Path) -> pd.DataFrame:
    """
    Read the header-less `domain,category` log into a DataFrame.

    Rows without a category are dropped.
    """

    try:
        frame = pd.read_csv(
            success_path,
            header=None,
            names=SUCCESS_COLUMNS,
            usecols=[0, 1],
            dtype=str,
            skip_blank_lines=True,
            on_bad_lines="skip",
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame(columns=SUCCESS_COLUMNS, dtype=str)
    frame = frame.dropna(subset=["category"])
    frame["domain"] = frame["domain"].str.strip().str.lower()
    frame["category"] = frame["category"].str.strip()
    return frame[frame["category"] != ""]


def count_categories(success_path: str | Path) -> pd.DataFrame:
    """
    Return `category`, `domain_count` sorted by count descending, then category.
    """

    frame = load_success_log(success_path)
    counts = (
        frame.groupby("category")["domain"]
        .nunique()
        .reset_index(name="domain_count")
        .sort_values(["domain_count", "category"], ascending=[False, True], kind="stable")
        .reset_index(drop=True)
    )
    return counts


def write_category_counts(success_path: str | Path, output_path: str | Path) -> pd.DataFrame:
    counts = count_categories(success_path)
    counts.to_csv(output_path, index=False)
    log_event(
        logger,
        logging.INFO,
        "category_counts_written",
        success_path=str(success_path),
        output_path=str(output_path),
        categories=len(counts),
    )
    return counts
