"""
Processing pipeline: decode and suppress model output, and drive the frame loop.
"""

from .engine import DetectionPipeline, PipelineEngine, PipelineStats

__all__ = [
    "DetectionPipeline",
    "PipelineEngine",
    "PipelineStats",
]
