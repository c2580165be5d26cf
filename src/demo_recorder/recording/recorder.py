"""
Demo Recorder - Runs the walkthrough as one continuous take.

A single browser context is used throughout so the video flows
naturally; trimming happens later in the compile stage.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional
import structlog

from ..browser.context import BrowserContext
from ..browser.manager import BrowserManager
from ..core.config import DemoConfig
from ..core.errors import RecordingError
from .scenes import DEMO_SCENES, Scene

logger = structlog.get_logger()


@dataclass
class RecordingResult:
    """Outcome of a recording run."""
    video_path: Optional[Path] = None
    size_mb: float = 0
    scenes_completed: list[int] = field(default_factory=list)
    skipped_steps: int = 0
    duration_seconds: float = 0


def default_browser_factory(config: DemoConfig) -> BrowserManager:
    """Build the recording browser session from config."""
    return BrowserManager(
        video_dir=str(config.output_path),
        headless=config.browser.headless,
        slow_mo=config.browser.slow_mo,
        viewport_width=config.viewport.width,
        viewport_height=config.viewport.height,
        user_agent=config.browser.user_agent,
    )


class DemoRecorder:
    """
    Records the demo video.

    Lifecycle:
    - Clear the previous raw take
    - Open browser session with video recording
    - Run scenes in order
    - Always close the session, then move the video to its fixed path
    """

    def __init__(
        self,
        config: DemoConfig,
        scenes: Optional[list[Scene]] = None,
        browser_factory: Callable[[DemoConfig], BrowserManager] = default_browser_factory,
    ):
        self.config = config
        self.scenes = scenes if scenes is not None else DEMO_SCENES
        self._browser_factory = browser_factory

    def prepare_output(self) -> Path:
        """Ensure the output directory exists and remove any stale take."""
        output_path = self.config.raw_video_path
        output_path.parent.mkdir(parents=True, exist_ok=True)
        if output_path.exists():
            output_path.unlink()
            logger.info("previous_recording_removed", path=str(output_path))
        return output_path

    async def record(self) -> RecordingResult:
        """
        Record every scene into a single video.

        Raises:
            RecordingError: A scene failed beyond the best-effort helpers.
                The browser is closed and the partial video kept first.
        """
        viewport = self.config.viewport
        output_path = self.prepare_output()
        logger.info(
            "recording_started",
            output=str(output_path),
            resolution=f"{viewport.width}x{viewport.height}",
            scenes=len(self.scenes),
        )

        result = RecordingResult()
        start_time = time.monotonic()
        browser = self._browser_factory(self.config)
        ui: Optional[BrowserContext] = None
        current: Optional[Scene] = None

        try:
            await browser.initialize()
            ui = BrowserContext(browser.page, self.config)

            for scene in self.scenes:
                current = scene
                logger.info("scene_started", scene=scene.number, title=scene.title)
                await scene.run(ui)
                result.scenes_completed.append(scene.number)

            logger.info("recording_complete", scenes=len(result.scenes_completed))

        except Exception as e:
            scene_number = current.number if current else None
            logger.error(
                "recording_failed",
                scene=scene_number,
                title=current.title if current else None,
                error=str(e),
            )
            raise RecordingError(
                f"Recording failed: {e}", scene=scene_number
            ) from e

        finally:
            temp_path = await browser.video_path()
            await browser.shutdown()

            result.video_path = BrowserManager.finalize_video(temp_path, output_path)
            if result.video_path:
                result.size_mb = result.video_path.stat().st_size / (1024 * 1024)
            if ui:
                result.skipped_steps = ui.failure_count
            result.duration_seconds = round(time.monotonic() - start_time, 1)

            logger.info(
                "recording_saved",
                output=str(result.video_path) if result.video_path else None,
                size_mb=round(result.size_mb, 2),
                skipped_steps=result.skipped_steps,
                next_step="demo-compile",
            )

        return result
