"""Core recorder components."""

from .config import ConfigLoader, DemoConfig
from .errors import (
    DemoError,
    ConfigError,
    BrowserError,
    RecordingError,
    PrerequisiteError,
    EncodingError,
    PipelineError,
    SeedingError,
)

__all__ = [
    "ConfigLoader",
    "DemoConfig",
    "DemoError",
    "ConfigError",
    "BrowserError",
    "RecordingError",
    "PrerequisiteError",
    "EncodingError",
    "PipelineError",
    "SeedingError",
]
