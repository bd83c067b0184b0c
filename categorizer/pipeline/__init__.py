"""
Pipeline orchestration exports.
"""

from categorizer.pipeline.controller import PipelineController
from categorizer.pipeline.worker_pool import BoundedWorkerPool

__all__ = ["BoundedWorkerPool", "PipelineController"]
