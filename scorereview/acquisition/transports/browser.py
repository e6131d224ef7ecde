"""Headless browser transport using Playwright.

Used for archives that need script execution or show an interstitial before
the download link. Each transport owns one Chromium process for the length
of one acquisition run; close() must run on every exit path or processes
leak under repeated failures.
"""

import asyncio
import logging
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from ..config import AcquisitionConfig
from ..detector import is_pdf_content_type
from ..errors import DownloadError, FetchError
from ..gate import dismiss_gate
from ..locator import PdfLocator
from ..types import FetchedPage, PdfPayload, TransportKind
from .base import Transport, build_payload

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Page, Playwright

logger = logging.getLogger(__name__)

BROWSER_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
    "--disable-setuid-sandbox",
]

# Visible anchors pointing at a PDF, in the rendered DOM
PDF_ANCHOR_SELECTOR = 'a[href*=".pdf"]'


class BrowserTransport(Transport):
    """Drive a headless Chromium page through fetch, gate, link polling and download.

    The browser is launched lazily on the first fetch.
    """

    kind = TransportKind.BROWSER

    def __init__(self, config: AcquisitionConfig):
        self._config = config
        self._timeout_ms = int(config.navigation_timeout * 1000)
        self._playwright: "Playwright | None" = None
        self._browser: "Browser | None" = None
        self._context: "BrowserContext | None" = None
        self._page: "Page | None" = None

    @property
    def interactive(self) -> bool:
        return True

    async def _get_page(self) -> "Page":
        """Get or create the page (lazy browser launch)."""
        if self._page is None:
            from playwright.async_api import async_playwright

            logger.debug("Launching Chromium for PDF acquisition")
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self._config.headless,
                args=BROWSER_ARGS,
            )
            self._context = await self._browser.new_context(
                user_agent=self._config.user_agent,
                viewport={"width": 1280, "height": 800},
                accept_downloads=True,
                ignore_https_errors=True,
            )
            self._page = await self._context.new_page()
            self._page.on(
                "response",
                lambda response: logger.debug(
                    f"Page response {response.status} {response.url}"
                ),
            )
            logger.info("Chromium started")
        return self._page

    async def _add_cookies(self, url: str) -> None:
        if self._config.cookies and self._context is not None:
            await self._context.add_cookies(
                [
                    {"name": name, "value": value, "url": url}
                    for name, value in self._config.cookies.items()
                ]
            )

    async def fetch(self, url: str) -> FetchedPage:
        from playwright.async_api import Error as PlaywrightError
        from playwright.async_api import TimeoutError as PlaywrightTimeoutError

        page = await self._get_page()
        await self._add_cookies(url)

        logger.debug(f"Navigating to {url}")
        try:
            response = await page.goto(url, timeout=self._timeout_ms, wait_until="domcontentloaded")
        except PlaywrightTimeoutError as e:
            raise FetchError(f"Timeout loading source page: {e}", url=url, reason="timeout") from e
        except PlaywrightError as e:
            if "Download is starting" in str(e):
                # Served as an attachment: the source URL is the PDF itself
                content = await self._capture_download(page, url)
                return FetchedPage(
                    url=url, status=200, content_type="application/pdf", body=content
                )
            raise FetchError(f"Navigation failed: {e}", url=url, reason="network") from e

        if response is None:
            raise FetchError("No response from source page", url=url, reason="network")

        if not response.ok:
            raise FetchError(
                f"Source page returned HTTP {response.status}",
                url=url,
                reason="non_2xx",
                status=response.status,
                details={"statusText": response.status_text},
            )

        content_type = response.headers.get("content-type", "")
        if is_pdf_content_type(content_type):
            body = await response.body()
            logger.debug(f"Source served a PDF directly ({len(body)} bytes)")
            return FetchedPage(url=response.url, status=response.status, content_type=content_type, body=body)

        # Let async page behaviour settle before reading the DOM
        try:
            await page.wait_for_load_state("networkidle", timeout=self._timeout_ms // 2)
        except PlaywrightTimeoutError:
            logger.debug("networkidle timeout, proceeding with current content")

        html = await page.content()
        return FetchedPage(
            url=page.url,
            status=response.status,
            content_type=content_type,
            body=html.encode("utf-8"),
        )

    async def _capture_download(self, page: "Page", url: str) -> bytes:
        """Re-navigate with expect_download and read the saved file."""
        from playwright.async_api import Error as PlaywrightError

        download_path: str | None = None
        try:
            async with page.expect_download(timeout=self._timeout_ms) as download_info:
                try:
                    await page.goto(url, timeout=self._timeout_ms)
                except PlaywrightError:
                    # Navigation "fails" once the download starts
                    pass
            download = await download_info.value

            with tempfile.NamedTemporaryFile(delete=False, suffix=".pdf") as tmp:
                download_path = tmp.name
            await download.save_as(download_path)
            content = Path(download_path).read_bytes()
            logger.debug(f"Captured download {download.suggested_filename}: {len(content)} bytes")
            return content
        except PlaywrightError as e:
            raise FetchError(f"Download capture failed: {e}", url=url, reason="network") from e
        finally:
            if download_path:
                Path(download_path).unlink(missing_ok=True)

    async def dismiss_gate(self, labels: tuple[str, ...], timeout: float) -> bool:
        page = await self._get_page()
        return await dismiss_gate(page, labels=labels, timeout=timeout)

    async def poll_for_link(
        self,
        locator: PdfLocator,
        attempts: int,
        interval: float,
    ) -> str | None:
        from playwright.async_api import Error as PlaywrightError

        page = await self._get_page()
        for attempt in range(1, attempts + 1):
            logger.debug(f"Download link check {attempt}/{attempts}")
            try:
                candidate = locator.find(await page.content(), base_url=page.url)
                if candidate is None:
                    anchor = page.locator(PDF_ANCHOR_SELECTOR).first
                    if await anchor.count() and await anchor.is_visible():
                        candidate = await anchor.evaluate("el => el.href")
            except PlaywrightError as e:
                # Page may be mid-navigation after the gate click
                logger.debug(f"DOM not readable yet: {e}")
                candidate = None

            if candidate:
                logger.info(f"Download link found on attempt {attempt}: {candidate}")
                return candidate
            await asyncio.sleep(interval)

        return None

    async def download(self, url: str) -> PdfPayload:
        from playwright.async_api import Error as PlaywrightError

        await self._get_page()
        assert self._context is not None

        # Requests through the context share cookies set by the gate click
        logger.debug(f"Downloading PDF via browser context: {url}")
        try:
            response = await self._context.request.get(url, timeout=self._timeout_ms)
            body = await response.body()
        except PlaywrightError as e:
            raise DownloadError(f"Browser download failed: {e}", url=url) from e

        if not response.ok:
            raise DownloadError(
                f"HTTP error downloading PDF: {response.status}",
                url=url,
                details={"status": response.status},
            )

        return build_payload(response.url, response.headers.get("content-type"), body)

    async def close(self) -> None:
        """Close page, context and browser, then stop Playwright."""
        for name in ("_page", "_context", "_browser"):
            handle = getattr(self, name)
            if handle is not None:
                try:
                    await handle.close()
                except Exception as e:
                    logger.warning(f"Error closing {name.strip('_')}: {e}")
                setattr(self, name, None)

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping Playwright: {e}")
            self._playwright = None
            logger.debug("Chromium closed")
