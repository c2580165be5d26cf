"""Tests for the command-line entry points."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from demo_recorder import main as main_module
from demo_recorder.core.errors import RecordingError


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """No stray .env or DEMO_* settings leak into the stage."""
    monkeypatch.chdir(tmp_path)
    for name in ("DEMO_CONFIG_PATH", "DEMO_BASE_URL", "DEMO_OUTPUT_DIR", "LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)


class TestRunStage:
    """Test exit statuses."""

    def test_success_exits_zero(self, monkeypatch):
        seen = []

        async def stage(config):
            seen.append(config.base_url)

        monkeypatch.setitem(main_module.STAGES, "record", stage)

        assert main_module.run_stage("record") == 0
        assert seen == ["http://localhost:5173"]

    def test_failure_exits_non_zero(self, monkeypatch):
        async def stage(config):
            raise RecordingError("Recording failed: login redirect timed out", scene=2)

        monkeypatch.setitem(main_module.STAGES, "record", stage)

        assert main_module.run_stage("record") == 1

    def test_bad_config_exits_non_zero(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DEMO_CONFIG_PATH", str(tmp_path / "missing.yaml"))

        assert main_module.run_stage("record") == 1

    def test_unknown_stage(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["demo_recorder.main", "publish"])

        with pytest.raises(SystemExit) as exc_info:
            main_module.main()

        assert exc_info.value.code == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
