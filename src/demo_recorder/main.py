"""
Entry points for the demo recorder.

demo-setup     seed the demo account and dataset
demo-record    record the raw take
demo-compile   post-process it with ffmpeg
demo-generate  run the whole pipeline
"""

import asyncio
import logging
import os
import sys
from typing import Awaitable, Callable

import structlog
from dotenv import load_dotenv

from .core.config import ConfigLoader, DemoConfig


def configure_logging() -> None:
    """Configure structured logging."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if os.getenv("LOG_FORMAT") == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger()


async def setup(config: DemoConfig) -> None:
    from .seeding.seeder import DemoDataSeeder
    await DemoDataSeeder(config).seed()


async def record(config: DemoConfig) -> None:
    from .recording.recorder import DemoRecorder
    await DemoRecorder(config).record()


async def compile_video(config: DemoConfig) -> None:
    from .video.compiler import DemoCompiler
    await asyncio.to_thread(DemoCompiler(config).compile)


async def generate(config: DemoConfig) -> None:
    from .orchestrator.pipeline import DemoPipeline
    await DemoPipeline(config).run()


STAGES: dict[str, Callable[[DemoConfig], Awaitable[None]]] = {
    "setup": setup,
    "record": record,
    "compile": compile_video,
    "generate": generate,
}


def run_stage(stage: str) -> int:
    """
    Load config and run one stage.

    Returns:
        Process exit status (0 on success, 1 on any failure)
    """
    load_dotenv()
    configure_logging()

    try:
        config = ConfigLoader().load()
        logger.info("stage_starting", stage=stage, config_hash=config.config_hash())
        asyncio.run(STAGES[stage](config))
    except KeyboardInterrupt:
        logger.warning("stage_interrupted", stage=stage)
        return 1
    except Exception:
        logger.exception("stage_failed", stage=stage)
        return 1

    logger.info("stage_finished", stage=stage)
    return 0


def setup_main() -> None:
    sys.exit(run_stage("setup"))


def record_main() -> None:
    sys.exit(run_stage("record"))


def compile_main() -> None:
    sys.exit(run_stage("compile"))


def generate_main() -> None:
    sys.exit(run_stage("generate"))


def main() -> None:
    """python -m demo_recorder.main [setup|record|compile|generate]"""
    stage = sys.argv[1] if len(sys.argv) > 1 else "record"
    if stage not in STAGES:
        print(f"Unknown stage: {stage}. Choose from: {', '.join(STAGES)}", file=sys.stderr)
        sys.exit(2)
    sys.exit(run_stage(stage))


if __name__ == "__main__":
    main()
