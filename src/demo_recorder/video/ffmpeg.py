"""Thin ffmpeg/ffprobe wrappers."""

import shutil
import subprocess
from pathlib import Path
from typing import Optional, Union
import structlog

logger = structlog.get_logger()

PathLike = Union[str, Path]


def format_time(seconds: float) -> str:
    """Format seconds as HH:MM:SS.mmm."""
    seconds = max(0.0, float(seconds))
    hrs = int(seconds // 3600)
    mins = int((seconds % 3600) // 60)
    secs = seconds % 60
    return f"{hrs:02d}:{mins:02d}:{secs:06.3f}"


def file_size_mb(path: PathLike) -> float:
    return Path(path).stat().st_size / (1024 * 1024)


class FFmpeg:
    """Runs ffmpeg and ffprobe as subprocesses."""

    def __init__(self, binary: str = "ffmpeg", probe_binary: str = "ffprobe"):
        self.binary = binary
        self.probe_binary = probe_binary

    def available(self) -> bool:
        """Check if ffmpeg is installed and runs."""
        if not shutil.which(self.binary):
            return False
        try:
            subprocess.run(
                [self.binary, "-version"],
                capture_output=True,
                check=True,
            )
            return True
        except (OSError, subprocess.CalledProcessError):
            return False

    def run(self, args: list[str], description: str) -> bool:
        """
        Run ffmpeg with the given arguments.

        Returns:
            True on exit status 0. Failures are logged, not raised.
        """
        logger.info("ffmpeg_running", step=description)
        try:
            subprocess.run(
                [self.binary, *args],
                capture_output=True,
                text=True,
                check=True,
            )
            return True
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip().splitlines()
            logger.error(
                "ffmpeg_failed",
                step=description,
                exit_code=e.returncode,
                stderr=stderr[-1] if stderr else None,
            )
            return False
        except OSError as e:
            logger.error("ffmpeg_failed", step=description, error=str(e))
            return False

    def probe_duration(self, path: PathLike) -> float:
        """Duration of a media file in seconds, 0 when it cannot be read."""
        try:
            completed = subprocess.run(
                [
                    self.probe_binary,
                    "-v", "error",
                    "-show_entries", "format=duration",
                    "-of", "default=noprint_wrappers=1:nokey=1",
                    str(path),
                ],
                capture_output=True,
                text=True,
                check=True,
            )
            return float(completed.stdout.strip())
        except (OSError, subprocess.CalledProcessError, ValueError) as e:
            logger.error("duration_probe_failed", path=str(path), error=str(e))
            return 0.0

    def version(self) -> Optional[str]:
        try:
            completed = subprocess.run(
                [self.binary, "-version"], capture_output=True, text=True, check=True
            )
        except (OSError, subprocess.CalledProcessError):
            return None
        first_line = completed.stdout.splitlines()[:1]
        return first_line[0] if first_line else None
