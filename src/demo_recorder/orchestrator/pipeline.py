"""
Demo Pipeline - One entry point for the complete demo video.

Coordinates: prerequisites -> dev server -> demo data -> record -> compile -> validate

Every stage runs in-process; the dev server is the only child process.
"""

import asyncio
import os
import shutil
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import httpx
import structlog

from ..core.config import DemoConfig
from ..core.errors import PipelineError, PrerequisiteError
from ..recording.recorder import DemoRecorder
from ..seeding.seeder import DemoDataSeeder
from ..video.compiler import DemoCompiler

logger = structlog.get_logger()


@dataclass
class OutputCheck:
    """Validation outcome for one expected output file."""
    filename: str
    status: str  # ok, missing, too_small
    size_mb: float = 0


@dataclass
class PipelineResult:
    """Summary of a full generation run."""
    checks: list[OutputCheck] = field(default_factory=list)
    elapsed_minutes: float = 0

    @property
    def all_present(self) -> bool:
        return all(check.status != "missing" for check in self.checks)


class DemoPipeline:
    """
    Runs every stage needed to produce the demo assets.

    Features:
    - Collects all prerequisite issues before failing
    - Reuses a running dev server or starts and later stops its own
    - Size sanity checks on the final files
    """

    def __init__(
        self,
        config: DemoConfig,
        environ: Optional[dict[str, str]] = None,
        recorder: Optional[DemoRecorder] = None,
        compiler: Optional[DemoCompiler] = None,
        seeder: Optional[DemoDataSeeder] = None,
    ):
        self.config = config
        self.settings = config.generate
        self._environ = environ if environ is not None else os.environ
        self.recorder = recorder or DemoRecorder(config)
        self.compiler = compiler or DemoCompiler(config)
        self.seeder = seeder or DemoDataSeeder(config, environ=self._environ)
        self._dev_server: Optional[asyncio.subprocess.Process] = None

    @property
    def project_root(self) -> Path:
        return Path(self.config.project_root).resolve()

    def expected_outputs(self) -> list[str]:
        c = self.config.compile
        return [c.output_mp4, c.output_webm, c.poster_file]

    # -- step 1 -------------------------------------------------------------

    def check_prerequisites(self) -> None:
        """
        Verify tools and environment, and create output dirs.

        Raises:
            PrerequisiteError: With every issue found, not just the first
        """
        issues: list[str] = []

        for tool in self.settings.required_tools:
            if shutil.which(tool):
                logger.info("prerequisite_ok", check=tool)
            else:
                issues.append(f"{tool} is not installed. Install with: brew install ffmpeg")

        missing_env = [v for v in self.settings.required_env_vars if not self._environ.get(v)]
        for env_var in missing_env:
            issues.append(f"Missing environment variable: {env_var}")
        if not missing_env:
            logger.info("prerequisite_ok", check="environment")

        output_dir = self.config.output_path
        for directory in (output_dir, output_dir / "segments", output_dir / "audio"):
            directory.mkdir(parents=True, exist_ok=True)
        if not self.compiler.audio_file.exists():
            logger.info("background_music_slot", place_mp3_at=str(self.compiler.audio_file))

        if issues:
            raise PrerequisiteError(issues)

    # -- step 2 -------------------------------------------------------------

    async def check_dev_server(self) -> bool:
        """True if the app answers 200 or 304 at the base URL."""
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.dev_server_probe_timeout_seconds
            ) as client:
                response = await client.get(self.config.base_url)
                return response.status_code in (200, 304)
        except httpx.HTTPError:
            return False

    async def wait_for_dev_server(self) -> bool:
        """Poll until the dev server answers or the start timeout passes."""
        deadline = time.monotonic() + self.settings.dev_server_start_timeout_seconds
        while time.monotonic() < deadline:
            if await self.check_dev_server():
                return True
            await asyncio.sleep(self.settings.dev_server_check_interval_seconds)
        return False

    async def ensure_dev_server(self) -> None:
        if await self.check_dev_server():
            logger.info("dev_server_running", url=self.config.base_url)
            return

        logger.info("dev_server_starting", command=" ".join(self.settings.dev_server_command))
        self._dev_server = await asyncio.create_subprocess_exec(
            *self.settings.dev_server_command,
            cwd=str(self.project_root),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )

        if not await self.wait_for_dev_server():
            await self.stop_dev_server()
            raise PipelineError(
                "Dev server did not start within timeout. Start it manually: npm run dev",
                stage="dev_server",
            )
        logger.info("dev_server_started", url=self.config.base_url)

    async def stop_dev_server(self) -> None:
        """Terminate the dev server if this pipeline started it."""
        process, self._dev_server = self._dev_server, None
        if process is None or process.returncode is not None:
            return

        logger.info("dev_server_stopping", pid=process.pid)
        try:
            process.terminate()
            await asyncio.wait_for(process.wait(), timeout=10)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
        except ProcessLookupError:
            pass

    # -- step 3 -------------------------------------------------------------

    async def run_setup(self) -> None:
        """Seed the demo account and dataset."""
        logger.info("stage_started", stage="setup")
        await self.seeder.seed()

    # -- step 4 -------------------------------------------------------------

    def validate_outputs(self) -> list[OutputCheck]:
        """Check each expected file exists and meets its minimum size."""
        checks = []
        for filename in self.expected_outputs():
            path = self.config.output_path / filename
            if not path.exists():
                checks.append(OutputCheck(filename, "missing"))
                logger.error("output_missing", file=filename)
                continue

            size_mb = path.stat().st_size / (1024 * 1024)
            minimum = self.settings.min_output_sizes_mb.get(path.suffix, 0)
            if size_mb < minimum:
                checks.append(OutputCheck(filename, "too_small", round(size_mb, 2)))
                logger.warning("output_too_small", file=filename, size_mb=round(size_mb, 2), minimum_mb=minimum)
            else:
                checks.append(OutputCheck(filename, "ok", round(size_mb, 2)))
                logger.info("output_ok", file=filename, size_mb=round(size_mb, 2))
        return checks

    # -- pipeline -----------------------------------------------------------

    async def run(self) -> PipelineResult:
        """
        Generate the complete demo video.

        Raises:
            PrerequisiteError: Environment not ready
            PipelineError: A stage failed or an output is missing
        """
        start_time = time.monotonic()
        logger.info("generation_started", output_dir=str(self.config.output_path))

        self.check_prerequisites()
        await self.ensure_dev_server()

        try:
            await self.run_setup()

            logger.info("stage_started", stage="record")
            await self.recorder.record()

            logger.info("stage_started", stage="compile")
            await asyncio.to_thread(self.compiler.compile)

            logger.info("stage_started", stage="validate")
            result = PipelineResult(checks=self.validate_outputs())
        finally:
            await self.stop_dev_server()

        result.elapsed_minutes = round((time.monotonic() - start_time) / 60, 1)
        if not result.all_present:
            missing = [c.filename for c in result.checks if c.status == "missing"]
            raise PipelineError(f"Missing outputs: {', '.join(missing)}", stage="validate")

        with_warnings = any(c.status != "ok" for c in result.checks)
        logger.info(
            "generation_complete",
            warnings=with_warnings,
            elapsed_minutes=result.elapsed_minutes,
            outputs=[str(self.config.output_path / f) for f in self.expected_outputs()],
        )
        return result
