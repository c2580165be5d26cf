"""Browser automation module using Playwright."""

from .manager import BrowserManager
from .context import BrowserContext, ActionResult

__all__ = ["BrowserManager", "BrowserContext", "ActionResult"]
