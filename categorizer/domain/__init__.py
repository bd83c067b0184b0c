"""
categorizer/domain package marker.
"""

from categorizer.domain.records import DomainRecord, PipelineRunSummary, ReviewRecord, SinkStats

__all__ = [
    "DomainRecord",
    "PipelineRunSummary",
    "ReviewRecord",
    "SinkStats",
]
