"""
Demo Compiler - Turns the raw take into web-ready assets.

Steps:
1. Validate the raw recording
2. Encode web-optimized MP4 (H.264, faststart)
3. Mix in background music when present
4. Encode WebM (VP9/Opus)
5. Extract a poster frame
6. Clean up temporary files
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import structlog

from ..core.config import DemoConfig
from ..core.errors import EncodingError, PrerequisiteError
from .ffmpeg import FFmpeg, file_size_mb, format_time

logger = structlog.get_logger()


@dataclass
class CompileResult:
    """Files produced by a compile run."""
    mp4_path: Path
    webm_path: Optional[Path] = None
    poster_path: Optional[Path] = None
    duration_seconds: float = 0
    audio_added: bool = False


class DemoCompiler:
    """Post-processes the raw recording with ffmpeg."""

    def __init__(self, config: DemoConfig, ffmpeg: Optional[FFmpeg] = None):
        self.config = config
        self.settings = config.compile
        self.ffmpeg = ffmpeg or FFmpeg()

        out = config.output_path
        self.output_dir = out
        self.input_file = config.raw_video_path
        self.audio_file = out / self.settings.audio_file
        self.mp4_path = out / self.settings.output_mp4
        self.webm_path = out / self.settings.output_webm
        self.poster_path = out / self.settings.poster_file
        self.temp_audio_path = out / self.settings.temp_audio_file

    # -- argument builders --------------------------------------------------

    def title_filter(self) -> Optional[str]:
        """drawtext filter for the title overlay, None when disabled."""
        overlay = self.settings.title_overlay
        if not overlay.enabled:
            return None
        text = overlay.text.replace("\\", "\\\\").replace("'", "\\'").replace(":", "\\:")
        return (
            f"drawtext=text='{text}'"
            f":fontsize={overlay.font_size}"
            f":fontcolor={overlay.font_color}"
            f":x={overlay.x}:y={overlay.y}"
            f":enable='between(t,0,{overlay.duration:g})'"
        )

    def mp4_args(self) -> list[str]:
        args = [
            "-y",
            "-i", str(self.input_file),
            "-c:v", "libx264",
            "-preset", self.settings.mp4_preset,
            "-crf", str(self.settings.mp4_crf),
            "-movflags", "+faststart",
            "-r", str(self.settings.framerate),
        ]
        title = self.title_filter()
        if title:
            args += ["-vf", title]
        args.append(str(self.mp4_path))
        return args

    def audio_filter(self, duration: float) -> str:
        """Fade music in at the start and out before the video ends."""
        fade_out_start = max(0.0, duration - self.settings.audio_fade_out)
        return (
            f"afade=t=in:d={self.settings.audio_fade_in:g},"
            f"afade=t=out:st={fade_out_start:g}:d={self.settings.audio_fade_out:g}"
        )

    def audio_args(self, duration: float) -> list[str]:
        return [
            "-y",
            "-i", str(self.mp4_path),
            "-i", str(self.audio_file),
            "-filter_complex", f"[1:a]{self.audio_filter(duration)}[audio]",
            "-map", "0:v",
            "-map", "[audio]",
            "-c:v", "copy",
            "-c:a", "aac",
            "-b:a", self.settings.audio_bitrate,
            "-shortest",
            str(self.temp_audio_path),
        ]

    def webm_args(self) -> list[str]:
        return [
            "-y",
            "-i", str(self.mp4_path),
            "-c:v", "libvpx-vp9",
            "-crf", str(self.settings.webm_crf),
            "-b:v", "0",
            "-c:a", "libopus",
            "-b:a", self.settings.audio_bitrate,
            str(self.webm_path),
        ]

    def poster_args(self) -> list[str]:
        return [
            "-y",
            "-i", str(self.mp4_path),
            "-ss", self.settings.poster_timestamp,
            "-vframes", "1",
            "-q:v", "2",
            str(self.poster_path),
        ]

    # -- steps --------------------------------------------------------------

    def validate_input(self) -> float:
        """Check the raw take exists and report its duration and size."""
        if not self.input_file.exists():
            raise EncodingError(
                f"Input file not found: {self.input_file}. "
                "Run `demo-record` first to create the raw recording.",
                step="validate",
            )

        duration = self.ffmpeg.probe_duration(self.input_file)
        logger.info(
            "input_validated",
            input=self.input_file.name,
            duration=format_time(duration),
            seconds=round(duration, 1),
            size_mb=round(file_size_mb(self.input_file), 2),
        )
        return duration

    def encode_mp4(self) -> Path:
        if not self.ffmpeg.run(self.mp4_args(), "MP4 encoding"):
            raise EncodingError("MP4 encoding failed", step="mp4")
        logger.info(
            "mp4_encoded",
            output=self.settings.output_mp4,
            size_mb=round(file_size_mb(self.mp4_path), 2),
        )
        return self.mp4_path

    def add_background_music(self) -> bool:
        """
        Mix background music into the MP4 in place.

        Returns:
            True if music was added. A missing track or failed mix keeps
            the silent MP4.
        """
        if not self.audio_file.exists():
            logger.info("background_music_skipped", expected=str(self.audio_file))
            return False

        duration = self.ffmpeg.probe_duration(self.mp4_path)
        if not self.ffmpeg.run(self.audio_args(duration), "Audio mixing"):
            return False

        self.temp_audio_path.replace(self.mp4_path)
        logger.info("background_music_added")
        return True

    def encode_webm(self) -> Optional[Path]:
        if not self.ffmpeg.run(self.webm_args(), "WebM encoding"):
            return None
        logger.info(
            "webm_encoded",
            output=self.settings.output_webm,
            size_mb=round(file_size_mb(self.webm_path), 2),
        )
        return self.webm_path

    def extract_poster(self) -> Optional[Path]:
        if not self.ffmpeg.run(self.poster_args(), "Poster extraction"):
            return None
        logger.info(
            "poster_extracted",
            output=self.settings.poster_file,
            size_kb=round(self.poster_path.stat().st_size / 1024, 1),
        )
        return self.poster_path

    def cleanup(self) -> None:
        """Remove temporary files."""
        for path in (self.temp_audio_path,):
            if path.exists():
                try:
                    path.unlink()
                    logger.info("temp_file_removed", file=path.name)
                except OSError as e:
                    logger.warning("temp_file_remove_failed", file=path.name, error=str(e))

    def compile(self) -> CompileResult:
        """
        Run every compilation step.

        Raises:
            PrerequisiteError: ffmpeg is not installed
            EncodingError: Missing input or failed MP4 encode
        """
        if not self.ffmpeg.available():
            raise PrerequisiteError(["ffmpeg is not installed. Install with: brew install ffmpeg"])
        logger.info("ffmpeg_found", version=self.ffmpeg.version())

        self.output_dir.mkdir(parents=True, exist_ok=True)

        try:
            self.validate_input()
            result = CompileResult(mp4_path=self.encode_mp4())
            result.audio_added = self.add_background_music()
            result.webm_path = self.encode_webm()
            result.poster_path = self.extract_poster()
        finally:
            self.cleanup()

        result.duration_seconds = self.ffmpeg.probe_duration(self.mp4_path)
        logger.info(
            "compilation_complete",
            video=str(self.mp4_path),
            duration=format_time(result.duration_seconds),
            size_mb=round(file_size_mb(self.mp4_path), 2),
            webm=str(result.webm_path) if result.webm_path else None,
            poster=str(result.poster_path) if result.poster_path else None,
        )
        if not result.audio_added:
            logger.info(
                "no_background_music",
                hint=f"Place an MP3 at {self.audio_file} and re-run demo-compile",
            )
        return result
