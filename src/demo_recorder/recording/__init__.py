"""Scripted walkthrough and take recording."""

from .scenes import Scene, DEMO_SCENES
from .recorder import DemoRecorder, RecordingResult

__all__ = ["Scene", "DEMO_SCENES", "DemoRecorder", "RecordingResult"]
