"""
Website content extraction exports.
"""

from categorizer.scraping.extractor import (
    ContentExtractor,
    ExtractionError,
    ExtractionResult,
    FetchError,
    ParseError,
)
from categorizer.scraping.ranking import rank_keywords, tokenize

__all__ = [
    "ContentExtractor",
    "ExtractionError",
    "ExtractionResult",
    "FetchError",
    "ParseError",
    "rank_keywords",
    "tokenize",
]
