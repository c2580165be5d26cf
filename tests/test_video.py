"""Tests for ffmpeg post-processing."""

import os
import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from demo_recorder.core.config import DemoConfig
from demo_recorder.core.errors import EncodingError, PrerequisiteError
from demo_recorder.video import ffmpeg as ffmpeg_module
from demo_recorder.video.compiler import DemoCompiler
from demo_recorder.video.ffmpeg import FFmpeg, format_time


class FakeFFmpeg:
    """Records invocations and writes the output file of each run."""

    def __init__(self, available=True, fail_on=(), duration=120.0):
        self._available = available
        self.fail_on = set(fail_on)
        self.duration = duration
        self.runs: list[tuple[str, list[str]]] = []

    def available(self):
        return self._available

    def version(self):
        return "ffmpeg version 6.1"

    def run(self, args, description):
        self.runs.append((description, args))
        if description in self.fail_on:
            return False
        Path(args[-1]).write_bytes(b"\x00" * 2048)
        return True

    def probe_duration(self, path):
        return self.duration


class TestFormatTime:
    """Test HH:MM:SS.mmm formatting."""

    def test_zero(self):
        assert format_time(0) == "00:00:00.000"

    def test_hours_minutes_seconds(self):
        assert format_time(3725.5) == "01:02:05.500"

    def test_sub_second_precision(self):
        assert format_time(90.1234) == "00:01:30.123"


class TestFFmpeg:
    """Test the subprocess wrapper."""

    def test_probe_duration(self, monkeypatch):
        completed = subprocess.CompletedProcess(args=[], returncode=0, stdout="152.48\n")
        run = MagicMock(return_value=completed)
        monkeypatch.setattr(ffmpeg_module.subprocess, "run", run)

        assert FFmpeg().probe_duration("raw-demo.webm") == pytest.approx(152.48)
        assert run.call_args.args[0][0] == "ffprobe"
        assert run.call_args.args[0][-1] == "raw-demo.webm"

    def test_probe_duration_failure_returns_zero(self, monkeypatch):
        run = MagicMock(side_effect=subprocess.CalledProcessError(1, "ffprobe"))
        monkeypatch.setattr(ffmpeg_module.subprocess, "run", run)

        assert FFmpeg().probe_duration("missing.webm") == 0.0

    def test_run_reports_failure(self, monkeypatch):
        error = subprocess.CalledProcessError(1, "ffmpeg", stderr="Unknown encoder 'libx264'\n")
        monkeypatch.setattr(ffmpeg_module.subprocess, "run", MagicMock(side_effect=error))

        assert FFmpeg().run(["-i", "in.webm", "out.mp4"], "MP4 encoding") is False

    def test_available_requires_binary_on_path(self, monkeypatch):
        monkeypatch.setattr(ffmpeg_module.shutil, "which", lambda name: None)

        assert FFmpeg().available() is False


class TestDemoCompiler:
    """Test compile steps."""

    @pytest.fixture
    def config(self, tmp_path):
        return DemoConfig(project_root=str(tmp_path), output_dir="demo")

    @pytest.fixture
    def raw_take(self, config):
        config.output_path.mkdir(parents=True)
        config.raw_video_path.write_bytes(b"\x1a\x45\xdf\xa3" * 512)
        return config.raw_video_path

    def test_mp4_args(self, config):
        args = DemoCompiler(config, FakeFFmpeg()).mp4_args()

        assert args[:3] == ["-y", "-i", str(config.raw_video_path)]
        assert args[args.index("-c:v") + 1] == "libx264"
        assert args[args.index("-preset") + 1] == "slow"
        assert args[args.index("-crf") + 1] == "22"
        assert args[args.index("-movflags") + 1] == "+faststart"
        assert args[args.index("-r") + 1] == "30"
        assert "-vf" not in args
        assert args[-1].endswith("data-hub-demo.mp4")

    def test_title_overlay(self, config):
        config.compile.title_overlay.enabled = True
        args = DemoCompiler(config, FakeFFmpeg()).mp4_args()

        vf = args[args.index("-vf") + 1]
        assert vf.startswith("drawtext=text='Data Hub'")
        assert "fontcolor=gold" in vf
        assert "enable='between(t,0,5)'" in vf

    def test_audio_filter(self, config):
        compiler = DemoCompiler(config, FakeFFmpeg())

        assert compiler.audio_filter(120) == "afade=t=in:d=2,afade=t=out:st=117:d=3"
        assert compiler.audio_filter(1) == "afade=t=in:d=2,afade=t=out:st=0:d=3"

    def test_webm_and_poster_args(self, config):
        compiler = DemoCompiler(config, FakeFFmpeg())

        webm = compiler.webm_args()
        assert webm[webm.index("-c:v") + 1] == "libvpx-vp9"
        assert webm[webm.index("-c:a") + 1] == "libopus"

        poster = compiler.poster_args()
        assert poster[poster.index("-ss") + 1] == "00:01:30"
        assert poster[-1].endswith("demo-poster.jpg")

    def test_compile_without_music(self, config, raw_take):
        """No background track: MP4, WebM and poster, no mixing."""
        fake = FakeFFmpeg()
        result = DemoCompiler(config, fake).compile()

        assert [d for d, _ in fake.runs] == ["MP4 encoding", "WebM encoding", "Poster extraction"]
        assert not result.audio_added
        assert result.mp4_path.exists()
        assert result.webm_path.exists()
        assert result.poster_path.exists()
        assert result.duration_seconds == 120.0

    def test_compile_with_music(self, config, raw_take):
        """Background track is mixed in and replaces the silent MP4."""
        audio = config.output_path / "audio" / "background.mp3"
        audio.parent.mkdir()
        audio.write_bytes(b"ID3")

        fake = FakeFFmpeg()
        compiler = DemoCompiler(config, fake)
        result = compiler.compile()

        assert [d for d, _ in fake.runs] == [
            "MP4 encoding", "Audio mixing", "WebM encoding", "Poster extraction",
        ]
        assert result.audio_added
        assert not compiler.temp_audio_path.exists()

    def test_failed_music_mix_keeps_silent_mp4(self, config, raw_take):
        audio = config.output_path / "audio" / "background.mp3"
        audio.parent.mkdir()
        audio.write_bytes(b"ID3")

        result = DemoCompiler(config, FakeFFmpeg(fail_on={"Audio mixing"})).compile()

        assert not result.audio_added
        assert result.mp4_path.exists()

    def test_optional_outputs_may_fail(self, config, raw_take):
        fake = FakeFFmpeg(fail_on={"WebM encoding", "Poster extraction"})
        result = DemoCompiler(config, fake).compile()

        assert result.webm_path is None
        assert result.poster_path is None

    def test_missing_input(self, config):
        with pytest.raises(EncodingError) as exc_info:
            DemoCompiler(config, FakeFFmpeg()).compile()

        assert exc_info.value.context["step"] == "validate"

    def test_mp4_failure_is_fatal_and_cleans_up(self, config, raw_take):
        compiler = DemoCompiler(config, FakeFFmpeg(fail_on={"MP4 encoding"}))
        compiler.temp_audio_path.write_bytes(b"leftover")

        with pytest.raises(EncodingError):
            compiler.compile()

        assert not compiler.temp_audio_path.exists()

    def test_ffmpeg_not_installed(self, config, raw_take):
        with pytest.raises(PrerequisiteError) as exc_info:
            DemoCompiler(config, FakeFFmpeg(available=False)).compile()

        assert "ffmpeg" in exc_info.value.issues[0]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
