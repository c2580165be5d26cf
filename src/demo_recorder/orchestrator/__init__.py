"""End-to-end generation pipeline."""

from .pipeline import DemoPipeline, PipelineResult, OutputCheck

__all__ = ["DemoPipeline", "PipelineResult", "OutputCheck"]
