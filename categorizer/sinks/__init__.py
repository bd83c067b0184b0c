"""
Result sink exports.
"""

from categorizer.sinks.result_sink import (
    AppendOnlySink,
    ResultSink,
    SinkWriteError,
    load_completed_domains,
)

__all__ = ["AppendOnlySink", "ResultSink", "SinkWriteError", "load_completed_domains"]
