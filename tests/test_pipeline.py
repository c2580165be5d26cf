"""Tests for the end-to-end generation pipeline."""

import os
import sys
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from demo_recorder.core.config import DemoConfig, GenerateConfig
from demo_recorder.core.errors import PipelineError, PrerequisiteError, SeedingError
from demo_recorder.orchestrator import pipeline as pipeline_module
from demo_recorder.orchestrator.pipeline import DemoPipeline


FULL_ENV = {
    "SUPABASE_URL": "http://127.0.0.1:54321",
    "SUPABASE_SERVICE_ROLE_KEY": "service-role-key",
}


@pytest.fixture
def config(tmp_path):
    return DemoConfig(
        project_root=str(tmp_path),
        output_dir="demo",
        generate=GenerateConfig(
            dev_server_check_interval_seconds=0.01,
            dev_server_start_timeout_seconds=0.05,
            min_output_sizes_mb={".mp4": 0.002, ".webm": 0.002, ".jpg": 0.0005},
        ),
    )


def write_outputs(config, sizes):
    config.output_path.mkdir(parents=True, exist_ok=True)
    for name, size in sizes.items():
        (config.output_path / name).write_bytes(b"\x00" * size)


class TestPrerequisites:
    """Test environment checks."""

    def test_collects_every_issue(self, config, monkeypatch):
        """All problems are reported together."""
        monkeypatch.setattr(pipeline_module.shutil, "which", lambda name: None)
        pipeline = DemoPipeline(config, environ={})

        with pytest.raises(PrerequisiteError) as exc_info:
            pipeline.check_prerequisites()

        issues = exc_info.value.issues
        assert len(issues) == 4
        assert any("ffmpeg" in i for i in issues)
        assert any("ffprobe" in i for i in issues)
        assert "Missing environment variable: SUPABASE_URL" in issues
        assert "Missing environment variable: SUPABASE_SERVICE_ROLE_KEY" in issues

    def test_ready_environment_creates_directories(self, config, monkeypatch):
        monkeypatch.setattr(pipeline_module.shutil, "which", lambda name: f"/usr/bin/{name}")
        pipeline = DemoPipeline(config, environ=FULL_ENV)

        pipeline.check_prerequisites()

        assert (config.output_path / "segments").is_dir()
        assert (config.output_path / "audio").is_dir()


class TestDevServer:
    """Test dev server probing and startup."""

    @pytest.fixture
    def mock_transport(self, monkeypatch):
        """Route the pipeline's httpx client through a handler."""
        state = {"handler": lambda request: httpx.Response(200)}
        real_client = httpx.AsyncClient

        def client_factory(**kwargs):
            transport = httpx.MockTransport(lambda request: state["handler"](request))
            return real_client(transport=transport, **kwargs)

        monkeypatch.setattr(pipeline_module.httpx, "AsyncClient", client_factory)
        return state

    @pytest.mark.asyncio
    async def test_check_dev_server_statuses(self, config, mock_transport):
        pipeline = DemoPipeline(config, environ=FULL_ENV)

        mock_transport["handler"] = lambda request: httpx.Response(200)
        assert await pipeline.check_dev_server() is True

        mock_transport["handler"] = lambda request: httpx.Response(304)
        assert await pipeline.check_dev_server() is True

        mock_transport["handler"] = lambda request: httpx.Response(502)
        assert await pipeline.check_dev_server() is False

    @pytest.mark.asyncio
    async def test_check_dev_server_connection_refused(self, config, mock_transport):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        mock_transport["handler"] = refuse
        pipeline = DemoPipeline(config, environ=FULL_ENV)

        assert await pipeline.check_dev_server() is False

    @pytest.mark.asyncio
    async def test_wait_for_dev_server_becomes_ready(self, config):
        pipeline = DemoPipeline(
            config.model_copy(update={"generate": GenerateConfig(
                dev_server_check_interval_seconds=0.01,
                dev_server_start_timeout_seconds=5,
            )}),
            environ=FULL_ENV,
        )
        pipeline.check_dev_server = AsyncMock(side_effect=[False, False, True])

        assert await pipeline.wait_for_dev_server() is True
        assert pipeline.check_dev_server.await_count == 3

    @pytest.mark.asyncio
    async def test_wait_for_dev_server_times_out(self, config):
        pipeline = DemoPipeline(config, environ=FULL_ENV)
        pipeline.check_dev_server = AsyncMock(return_value=False)

        assert await pipeline.wait_for_dev_server() is False

    @pytest.mark.asyncio
    async def test_running_server_is_reused(self, config, monkeypatch):
        spawn = AsyncMock()
        monkeypatch.setattr(pipeline_module.asyncio, "create_subprocess_exec", spawn)
        pipeline = DemoPipeline(config, environ=FULL_ENV)
        pipeline.check_dev_server = AsyncMock(return_value=True)

        await pipeline.ensure_dev_server()

        spawn.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_server_that_never_starts_is_stopped(self, config, monkeypatch):
        process = MagicMock(returncode=None, pid=4242)
        process.wait = AsyncMock(return_value=0)
        monkeypatch.setattr(
            pipeline_module.asyncio, "create_subprocess_exec", AsyncMock(return_value=process)
        )
        pipeline = DemoPipeline(config, environ=FULL_ENV)
        pipeline.check_dev_server = AsyncMock(return_value=False)

        with pytest.raises(PipelineError) as exc_info:
            await pipeline.ensure_dev_server()

        assert exc_info.value.context["stage"] == "dev_server"
        process.terminate.assert_called_once()


class TestSetupAndValidation:
    """Test the setup stage and output checks."""

    @pytest.mark.asyncio
    async def test_setup_seeds_in_process(self, config):
        seeder = MagicMock()
        seeder.seed = AsyncMock()
        pipeline = DemoPipeline(config, environ=FULL_ENV, seeder=seeder)

        await pipeline.run_setup()

        seeder.seed.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_setup_failure_propagates(self, config):
        seeder = MagicMock()
        seeder.seed = AsyncMock(side_effect=SeedingError(
            "POST /rest/v1/clients returned 409: duplicate key", table="clients", status_code=409,
        ))
        pipeline = DemoPipeline(config, environ=FULL_ENV, seeder=seeder)

        with pytest.raises(SeedingError) as exc_info:
            await pipeline.run_setup()

        assert exc_info.value.context["table"] == "clients"

    def test_validate_outputs(self, config):
        """Missing fails, undersized warns, the rest pass."""
        write_outputs(config, {"data-hub-demo.webm": 100, "demo-poster.jpg": 4096})

        checks = {c.filename: c.status for c in DemoPipeline(config).validate_outputs()}

        assert checks == {
            "data-hub-demo.mp4": "missing",
            "data-hub-demo.webm": "too_small",
            "demo-poster.jpg": "ok",
        }


class TestPipelineRun:
    """Test stage sequencing."""

    def make_pipeline(self, config, order):
        recorder = MagicMock()
        recorder.record = AsyncMock(side_effect=lambda: order.append("record"))
        compiler = MagicMock()

        def compile_outputs():
            order.append("compile")
            write_outputs(config, {
                "data-hub-demo.mp4": 4096, "data-hub-demo.webm": 4096, "demo-poster.jpg": 1024,
            })

        compiler.compile.side_effect = compile_outputs
        pipeline = DemoPipeline(config, environ=FULL_ENV, recorder=recorder, compiler=compiler)
        pipeline.check_prerequisites = MagicMock(side_effect=lambda: order.append("prerequisites"))
        pipeline.ensure_dev_server = AsyncMock(side_effect=lambda: order.append("dev_server"))
        pipeline.run_setup = AsyncMock(side_effect=lambda: order.append("setup"))
        pipeline.stop_dev_server = AsyncMock(side_effect=lambda: order.append("stop_dev_server"))
        return pipeline

    @pytest.mark.asyncio
    async def test_stages_run_in_order(self, config):
        order = []
        pipeline = self.make_pipeline(config, order)

        result = await pipeline.run()

        assert order == [
            "prerequisites", "dev_server", "setup", "record", "compile", "stop_dev_server",
        ]
        assert result.all_present
        assert all(c.status == "ok" for c in result.checks)

    @pytest.mark.asyncio
    async def test_dev_server_stopped_when_stage_fails(self, config):
        order = []
        pipeline = self.make_pipeline(config, order)
        pipeline.run_setup.side_effect = PipelineError("setup failed", stage="setup", exit_code=1)

        with pytest.raises(PipelineError):
            await pipeline.run()

        assert order[-1] == "stop_dev_server"
        assert "record" not in order

    @pytest.mark.asyncio
    async def test_missing_output_fails_run(self, config):
        order = []
        pipeline = self.make_pipeline(config, order)
        pipeline.compiler.compile.side_effect = lambda: write_outputs(
            config, {"data-hub-demo.mp4": 4096}
        )

        with pytest.raises(PipelineError) as exc_info:
            await pipeline.run()

        assert exc_info.value.context["stage"] == "validate"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
