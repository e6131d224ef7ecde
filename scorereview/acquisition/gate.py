"""Dismissal of confirmation interstitials on score download pages.

Some archives show an "I understand" step (copyright notice, disclaimer)
before the real download link appears. This is a one-shot, best-effort
click: a missing button is the normal case, not an error.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = logging.getLogger(__name__)

GATE_SETTLE_MS = 1000


async def dismiss_gate(
    page: "Page",
    labels: tuple[str, ...] = ("I understand",),
    timeout: float = 5.0,
) -> bool:
    """Click the first visible confirmation control matching one of the labels.

    Args:
        page: Playwright page showing the source page
        labels: Visible texts that identify the confirmation control
        timeout: Seconds to wait for the control to appear

    Returns:
        True if a control was clicked, False if none showed up
    """
    from playwright.async_api import Error as PlaywrightError

    selector = "button, a, input[type=submit]"
    for label in labels:
        control = page.locator(selector, has_text=label).first
        try:
            await control.wait_for(state="visible", timeout=timeout * 1000)
        except PlaywrightError:
            logger.debug(f"No '{label}' control within {timeout}s")
            continue

        try:
            await control.click()
        except PlaywrightError as e:
            logger.warning(f"Found '{label}' control but click failed: {e}")
            return False

        logger.info(f"Dismissed '{label}' interstitial")
        await page.wait_for_timeout(GATE_SETTLE_MS)
        return True

    return False
