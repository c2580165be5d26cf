"""Demo recorder error definitions."""

import hashlib
from typing import Optional, Any
from enum import Enum


class ErrorSeverity(Enum):
    """Error severity levels for classification."""
    LOW = "low"           # Cosmetic, the take is still usable
    MEDIUM = "medium"     # A scene or step was skipped
    HIGH = "high"         # Stage aborted, re-run required
    CRITICAL = "critical" # Environment broken, nothing can run


class ErrorCategory(Enum):
    """Error categories for routing and reporting."""
    TRANSIENT = "transient"       # Timeout, slow render - may pass on re-run
    PERMANENT = "permanent"       # Bad config, missing selector
    EXTERNAL = "external"         # Dev server, ffmpeg, seeding command
    ENVIRONMENT = "environment"   # Missing tools or variables
    VALIDATION = "validation"     # Output file checks


class DemoError(Exception):
    """Base exception for all demo recorder errors."""

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.TRANSIENT,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.severity = severity
        self.category = category
        self.context = context or {}

    def fingerprint(self) -> str:
        """Generate error fingerprint for log deduplication."""
        components = [
            self.__class__.__name__,
            self.category.value,
            str(self.context.get("scene", "")),
            str(self.context.get("selector", "")),
        ]
        return hashlib.sha256(":".join(components).encode()).hexdigest()[:16]

    def to_dict(self) -> dict[str, Any]:
        """Serialize error for structured logging."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "context": self.context,
            "fingerprint": self.fingerprint(),
        }


class ConfigError(DemoError):
    """Configuration loading or validation error."""

    def __init__(self, message: str, config_path: Optional[str] = None, **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        kwargs.setdefault("category", ErrorCategory.PERMANENT)
        super().__init__(message, **kwargs)
        self.context["config_path"] = config_path


class BrowserError(DemoError):
    """Browser automation error."""

    def __init__(
        self,
        message: str,
        selector: Optional[str] = None,
        url: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.context["selector"] = selector
        self.context["url"] = url


class RecordingError(DemoError):
    """A scene failed in a way the take cannot recover from."""

    def __init__(self, message: str, scene: Optional[int] = None, **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        super().__init__(message, **kwargs)
        self.context["scene"] = scene


class PrerequisiteError(DemoError):
    """One or more required tools, variables or files are missing."""

    def __init__(self, issues: list[str], **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.CRITICAL)
        kwargs.setdefault("category", ErrorCategory.ENVIRONMENT)
        super().__init__(
            f"{len(issues)} prerequisite check(s) failed", **kwargs
        )
        self.issues = list(issues)
        self.context["issues"] = self.issues


class EncodingError(DemoError):
    """ffmpeg step failure."""

    def __init__(self, message: str, step: Optional[str] = None, **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        kwargs.setdefault("category", ErrorCategory.EXTERNAL)
        super().__init__(message, **kwargs)
        self.context["step"] = step


class PipelineError(DemoError):
    """A generation stage exited unsuccessfully."""

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        exit_code: Optional[int] = None,
        **kwargs
    ):
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        kwargs.setdefault("category", ErrorCategory.EXTERNAL)
        super().__init__(message, **kwargs)
        self.context["stage"] = stage
        self.context["exit_code"] = exit_code


class SeedingError(DemoError):
    """Supabase admin or REST request failed while seeding demo data."""

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        kwargs.setdefault("category", ErrorCategory.EXTERNAL)
        super().__init__(message, **kwargs)
        self.context["table"] = table
        self.context["status_code"] = status_code
