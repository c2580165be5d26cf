"""
Demo scenes - the scripted walkthrough, in recording order.

Each scene drives the shared page through one feature of the app.
Selectors are tied to the demo build of Data Hub and the seeded
"Acme Marketing Co." dataset.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable
import structlog

from playwright.async_api import Error as PlaywrightError

from ..browser.context import BrowserContext
from ..core.errors import BrowserError

logger = structlog.get_logger()


EMAIL_INPUT = '#email, input[type="email"], input[name="email"]'
PASSWORD_INPUT = '#password, input[type="password"], input[name="password"]'
SUBMIT_BUTTON = 'button[type="submit"]'

ONBOARDING_OVERLAY = '[class*="overlay_"]'
ONBOARDING_CONTENT = '[class*="container_"]'
NEXT_BUTTON = 'button:has-text("Next")'
FINISH_BUTTON = 'button:has-text("Next"), button:has-text("Complete"), button:has-text("Get Started")'
DISMISS_BUTTON = 'button:has-text("Cancel"), button:has-text("Skip")'
CANCEL_BUTTON = 'button:has-text("Cancel")'

CLIENT_CARD = 'a[href*="/dashboard/clients/"]'
ADD_SOURCE_BUTTON = 'button:has-text("Add Source")'
ADD_REPORT_BUTTON = 'button:has-text("Add Report")'
WAREHOUSE_CARD = '[class*="warehouse"], [class*="card"]'
REPORT_CARD = '[class*="report"], [class*="card"]'


def tab(label: str) -> str:
    """Selector for a client-detail tab by its label."""
    return f'[role="tab"]:has-text("{label}")'


SceneFn = Callable[[BrowserContext], Awaitable[None]]


@dataclass(frozen=True)
class Scene:
    """One titled segment of the take."""
    number: int
    title: str
    run: SceneFn


async def _cancel_wizard(ui: BrowserContext) -> None:
    """Close an open wizard via its Cancel button, if shown."""
    if await ui.is_visible(CANCEL_BUTTON, ui.timeouts.short_presence):
        await ui.click(CANCEL_BUTTON, delay=ui.delays.medium)


async def _scroll_onboarding_content(ui: BrowserContext) -> None:
    if await ui.is_visible_now(ONBOARDING_CONTENT):
        await ui.smooth_scroll(ONBOARDING_CONTENT, 200)


async def landing(ui: BrowserContext) -> None:
    """Hero section, a peek at the features, back to top."""
    d = ui.delays
    await ui.navigate()
    await ui.wait_for_content_ready()
    await ui.pause(d.dramatic)

    await ui.smooth_scroll(None, 400)
    await ui.pause(d.long)

    await ui.scroll_to_top()


async def login(ui: BrowserContext) -> None:
    """Type the demo credentials and land on the dashboard."""
    d = ui.delays
    typing = ui.config.typing
    creds = ui.config.credentials

    await ui.navigate("/login")
    await ui.wait_for_content_ready()
    await ui.pause(d.long)

    await ui.type_text(EMAIL_INPUT, creds.email, type_delay=typing.email_delay)
    await ui.pause(d.short)

    await ui.type_text(PASSWORD_INPUT, creds.password, type_delay=typing.password_delay)
    await ui.pause(d.medium)

    await ui.highlight_and_click(SUBMIT_BUTTON)

    # Everything after this needs a session, so a failed login ends the take
    await ui.wait_for_url("**/dashboard")
    await ui.wait_for_content_ready()
    logger.info("logged_in", email=creds.email)


async def onboarding(ui: BrowserContext) -> None:
    """
    Full walkthrough of the three-step onboarding wizard.

    The completion flag is cleared first so the wizard shows even for a
    reused demo account. If the wizard misbehaves it is dismissed and the
    take continues; either way the flag is set again at the end.
    """
    d = ui.delays
    key = ui.config.onboarding_storage_key

    await ui.remove_local_storage(key)
    await ui.reload()
    await ui.wait_for_content_ready()

    try:
        await ui.wait_for(ONBOARDING_OVERLAY, timeout=ui.timeouts.onboarding_overlay)
        logger.info("onboarding_detected")

        logger.info("onboarding_step", step=1, title="Welcome")
        await ui.pause(d.dramatic)
        await _scroll_onboarding_content(ui)
        await ui.highlight_and_click(NEXT_BUTTON)
        await ui.pause(d.long)

        logger.info("onboarding_step", step=2, title="How It Works")
        await ui.pause(d.dramatic)
        await _scroll_onboarding_content(ui)
        await ui.highlight_and_click(NEXT_BUTTON)
        await ui.pause(d.long)

        logger.info("onboarding_step", step=3, title="Get Started")
        await ui.pause(d.dramatic)
        await ui.highlight_and_click(FINISH_BUTTON)
        await ui.pause(d.long)

        await ui.wait_for(ONBOARDING_OVERLAY, state="hidden", timeout=ui.timeouts.overlay_hidden)
        logger.info("onboarding_completed")
    except (BrowserError, PlaywrightError) as e:
        logger.warning("onboarding_issue", error=str(e))
        if await ui.is_visible(DISMISS_BUTTON, ui.timeouts.fallback_presence):
            await ui.click(DISMISS_BUTTON, delay=d.medium)

    await ui.set_local_storage(key, ui.config.onboarding_version)


async def dashboard(ui: BrowserContext) -> None:
    """Dashboard overview, then into the demo client."""
    d = ui.delays
    await ui.wait_for_content_ready()
    await ui.pause(d.dramatic)

    if await ui.is_visible(CLIENT_CARD):
        await ui.hover(CLIENT_CARD, delay=d.medium)
        await ui.highlight_and_click(CLIENT_CARD)
        await ui.wait_for_content_ready()
        await ui.pause(d.long)


async def data_sources(ui: BrowserContext) -> None:
    """Connected sources, plus a glimpse of the Add Source wizard."""
    d = ui.delays
    await ui.highlight_and_click(tab("Data Sources"))
    await ui.wait_for_content_ready()
    await ui.pause(d.long)
    await ui.pause(d.medium)

    if await ui.is_visible(ADD_SOURCE_BUTTON):
        await ui.highlight_and_click(ADD_SOURCE_BUTTON)
        await ui.pause(d.long)
        # Platform selection
        await ui.pause(d.dramatic)
        await _cancel_wizard(ui)


async def data_warehouse(ui: BrowserContext) -> None:
    d = ui.delays
    await ui.highlight_and_click(tab("Data Warehouse"))
    await ui.wait_for_content_ready()
    await ui.pause(d.dramatic)

    if await ui.is_visible(WAREHOUSE_CARD):
        await ui.click(WAREHOUSE_CARD, delay=d.long)
        await ui.press("Escape", delay=d.medium)


async def reports(ui: BrowserContext) -> None:
    """Report detail, then a glimpse of the Add Report wizard."""
    d = ui.delays
    await ui.highlight_and_click(tab("Reports"))
    await ui.wait_for_content_ready()
    await ui.pause(d.long)

    if await ui.is_visible(REPORT_CARD):
        await ui.click(REPORT_CARD, delay=d.long)
        await ui.press("Escape", delay=d.short)

    if await ui.is_visible(ADD_REPORT_BUTTON):
        await ui.highlight_and_click(ADD_REPORT_BUTTON)
        await ui.pause(d.long)
        # Visualization options
        await ui.pause(d.dramatic)
        await _cancel_wizard(ui)


async def data_lineage(ui: BrowserContext) -> None:
    await ui.highlight_and_click(tab("Data Lineage"))
    await ui.wait_for_content_ready()
    await ui.pause(ui.delays.dramatic)


async def outro(ui: BrowserContext) -> None:
    """Return to the dashboard and hold for the closing frames."""
    d = ui.delays
    await ui.navigate("/dashboard")
    await ui.wait_for_content_ready()
    await ui.pause(d.dramatic)
    await ui.pause(d.long)


DEMO_SCENES: list[Scene] = [
    Scene(1, "Landing Page", landing),
    Scene(2, "Login", login),
    Scene(3, "Onboarding Wizard", onboarding),
    Scene(4, "Dashboard", dashboard),
    Scene(5, "Data Sources", data_sources),
    Scene(6, "Data Warehouse", data_warehouse),
    Scene(7, "Reports", reports),
    Scene(8, "Data Lineage", data_lineage),
    Scene(9, "Outro", outro),
]
