"""Configuration loading and validation."""

import os
import json
import hashlib
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError


class ViewportConfig(BaseModel):
    """Recording resolution (also the browser viewport)."""
    width: int = Field(default=1280, ge=320, le=3840)
    height: int = Field(default=720, ge=240, le=2160)

    def as_dict(self) -> dict[str, int]:
        return {"width": self.width, "height": self.height}


class CredentialsConfig(BaseModel):
    """Demo account - must match the seeded demo data."""
    email: str = Field(default="demo@datahub.local")
    password: str = Field(default="demodemo123")


class DelayConfig(BaseModel):
    """Demo pacing in milliseconds."""
    instant: int = Field(default=100, ge=0)
    short: int = Field(default=500, ge=0)
    medium: int = Field(default=1500, ge=0)
    long: int = Field(default=2500, ge=0)
    very_long: int = Field(default=4000, ge=0)
    dramatic: int = Field(default=6000, ge=0)


class TimeoutConfig(BaseModel):
    """Per-action Playwright timeouts in milliseconds."""
    element: int = Field(default=5000, ge=100)
    presence: int = Field(default=3000, ge=100)
    short_presence: int = Field(default=2000, ge=100)
    fallback_presence: int = Field(default=1000, ge=100)
    loading_hidden: int = Field(default=8000, ge=100)
    login_redirect: int = Field(default=15000, ge=1000)
    onboarding_overlay: int = Field(default=8000, ge=100)
    overlay_hidden: int = Field(default=5000, ge=100)


class TypingConfig(BaseModel):
    """Per-keystroke delays in milliseconds."""
    default_delay: int = Field(default=60, ge=0)
    email_delay: int = Field(default=80, ge=0)
    password_delay: int = Field(default=60, ge=0)


class HighlightConfig(BaseModel):
    """Gold glow shown on an element before it is clicked."""
    color: str = Field(default="#FFD700")
    glow: str = Field(default="rgba(255, 215, 0, 0.6)")
    duration_ms: int = Field(default=800, ge=0)
    pre_click_pause_ms: int = Field(default=400, ge=0)


class BrowserConfig(BaseModel):
    """Chromium launch settings."""
    headless: bool = Field(default=False)
    slow_mo: int = Field(default=30, ge=0)
    user_agent: str = Field(
        default="Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"
    )


class TitleOverlayConfig(BaseModel):
    """Optional drawtext title burned into the first seconds of the MP4."""
    enabled: bool = Field(default=False)
    text: str = Field(default="Data Hub")
    font_size: int = Field(default=24, ge=6)
    font_color: str = Field(default="gold")
    x: int = Field(default=40, ge=0)
    y: int = Field(default=40, ge=0)
    duration: float = Field(default=5, gt=0)


class CompileConfig(BaseModel):
    """ffmpeg post-processing settings."""
    output_mp4: str = Field(default="data-hub-demo.mp4")
    output_webm: str = Field(default="data-hub-demo.webm")
    poster_file: str = Field(default="demo-poster.jpg")
    audio_file: str = Field(default="audio/background.mp3")
    temp_audio_file: str = Field(default="temp_with_audio.mp4")
    framerate: int = Field(default=30, ge=1, le=120)
    mp4_preset: str = Field(default="slow")
    mp4_crf: int = Field(default=22, ge=0, le=51)
    webm_crf: int = Field(default=30, ge=0, le=63)
    audio_bitrate: str = Field(default="128k")
    audio_fade_in: float = Field(default=2, ge=0)
    audio_fade_out: float = Field(default=3, ge=0)
    poster_timestamp: str = Field(default="00:01:30")
    title_overlay: TitleOverlayConfig = Field(default_factory=TitleOverlayConfig)


class SeedConfig(BaseModel):
    """Demo dataset seeding through the Supabase admin API."""
    display_name: str = Field(default="Demo User")
    request_timeout_seconds: float = Field(default=30, gt=0)
    user_page_size: int = Field(default=1000, ge=1)


class GenerateConfig(BaseModel):
    """End-to-end pipeline settings."""
    dev_server_start_timeout_seconds: float = Field(default=30, gt=0)
    dev_server_check_interval_seconds: float = Field(default=1, gt=0)
    dev_server_probe_timeout_seconds: float = Field(default=2, gt=0)
    dev_server_command: list[str] = Field(default_factory=lambda: ["npm", "run", "dev"])
    required_env_vars: list[str] = Field(
        default_factory=lambda: ["SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY"]
    )
    required_tools: list[str] = Field(default_factory=lambda: ["ffmpeg", "ffprobe"])
    # Minimum size in MB per output suffix
    min_output_sizes_mb: dict[str, float] = Field(
        default_factory=lambda: {".mp4": 5.0, ".webm": 3.0, ".jpg": 0.05}
    )


class DemoConfig(BaseModel):
    """Main recorder configuration."""
    name: str = Field(default="data-hub-demo")

    project_root: str = Field(default=".")
    output_dir: str = Field(default="client/public/assets/demo")
    output_file: str = Field(default="raw-demo.webm")
    base_url: str = Field(default="http://localhost:5173")
    onboarding_storage_key: str = Field(default="datahub_onboarding_complete")
    onboarding_version: str = Field(default="1")

    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    delays: DelayConfig = Field(default_factory=DelayConfig)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    typing: TypingConfig = Field(default_factory=TypingConfig)
    highlight: HighlightConfig = Field(default_factory=HighlightConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    seed: SeedConfig = Field(default_factory=SeedConfig)
    compile: CompileConfig = Field(default_factory=CompileConfig)
    generate: GenerateConfig = Field(default_factory=GenerateConfig)

    @property
    def output_path(self) -> Path:
        """Absolute output directory."""
        path = Path(self.output_dir)
        if not path.is_absolute():
            path = Path(self.project_root) / path
        return path.resolve()

    @property
    def raw_video_path(self) -> Path:
        return self.output_path / self.output_file

    def url(self, path: str = "") -> str:
        """Join an app route onto the base URL."""
        if not path:
            return self.base_url
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def config_hash(self) -> str:
        """Generate hash of config for change detection."""
        return hashlib.sha256(
            self.model_dump_json().encode()
        ).hexdigest()[:16]


# Environment variable -> dotted config field
ENV_OVERRIDES: dict[str, str] = {
    "DEMO_BASE_URL": "base_url",
    "DEMO_EMAIL": "credentials.email",
    "DEMO_PASSWORD": "credentials.password",
    "DEMO_OUTPUT_DIR": "output_dir",
    "DEMO_PROJECT_ROOT": "project_root",
    "DEMO_HEADLESS": "browser.headless",
}


class ConfigLoader:
    """Loads YAML/JSON configuration and applies environment overrides."""

    def __init__(self, environ: Optional[dict[str, str]] = None):
        self._environ = environ if environ is not None else os.environ

    def load(self, path: Optional[str] = None) -> DemoConfig:
        """
        Load the recorder configuration.

        Args:
            path: Optional YAML/JSON file. Defaults to DEMO_CONFIG_PATH,
                and to built-in defaults when neither is set.
        """
        path = path or self._environ.get("DEMO_CONFIG_PATH")
        data: dict[str, Any] = self._load_file(Path(path)) if path else {}

        for env_name, field_path in ENV_OVERRIDES.items():
            value = self._environ.get(env_name)
            if value is not None and value != "":
                self._set_dotted(data, field_path, value)

        try:
            return DemoConfig(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid demo config: {e}", config_path=path)

    def _load_file(self, path: Path) -> dict[str, Any]:
        """Load YAML or JSON file."""
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}", config_path=str(path))

        content = path.read_text()
        try:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(content) or {}
            elif path.suffix == ".json":
                data = json.loads(content)
            else:
                raise ConfigError(
                    f"Unsupported config format: {path.suffix}",
                    config_path=str(path)
                )
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML: {e}", config_path=str(path))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON: {e}", config_path=str(path))

        if not isinstance(data, dict):
            raise ConfigError("Config root must be a mapping", config_path=str(path))
        return data

    @staticmethod
    def _set_dotted(data: dict[str, Any], field_path: str, value: Any) -> None:
        """Set a nested key, creating intermediate mappings."""
        *parents, leaf = field_path.split(".")
        target = data
        for key in parents:
            child = target.get(key)
            if child is None:
                # An empty YAML section (`credentials:`) loads as None
                child = target[key] = {}
            elif not isinstance(child, dict):
                raise ConfigError(
                    f"Cannot override {field_path}: '{key}' is not a mapping"
                )
            target = child
        target[leaf] = value
