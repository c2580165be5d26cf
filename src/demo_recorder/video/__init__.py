"""ffmpeg post-processing of the raw take."""

from .ffmpeg import FFmpeg, format_time
from .compiler import DemoCompiler, CompileResult

__all__ = ["FFmpeg", "format_time", "DemoCompiler", "CompileResult"]
