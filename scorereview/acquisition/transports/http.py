"""Plain HTTP transport using httpx."""

import logging

import httpx

from ..config import AcquisitionConfig
from ..errors import DownloadError, FetchError
from ..types import FetchedPage, PdfPayload, TransportKind
from .base import Transport, build_payload

logger = logging.getLogger(__name__)


class HttpTransport(Transport):
    """Fetch pages and PDFs with a single httpx client.

    Fast and cheap, but cannot run page scripts or click through
    interstitials. Links must be present in the served HTML.
    """

    kind = TransportKind.HTTP

    def __init__(
        self,
        config: AcquisitionConfig,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the transport.

        Args:
            config: Acquisition configuration (timeouts, user agent, cookies)
            http_transport: Optional httpx transport (e.g. httpx.MockTransport)
        """
        self._config = config
        self._client = httpx.AsyncClient(
            timeout=config.navigation_timeout,
            follow_redirects=True,
            headers={"User-Agent": config.user_agent},
            cookies=config.cookies or None,
            transport=http_transport,
        )

    async def fetch(self, url: str) -> FetchedPage:
        logger.debug(f"GET {url}")
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as e:
            raise FetchError(f"Timeout fetching source page: {e}", url=url, reason="timeout") from e
        except httpx.HTTPError as e:
            raise FetchError(f"Network error fetching source page: {e}", url=url, reason="network") from e

        if not response.is_success:
            raise FetchError(
                f"Source page returned HTTP {response.status_code}",
                url=url,
                reason="non_2xx",
                status=response.status_code,
                details={"statusText": response.reason_phrase},
            )

        page = FetchedPage(
            url=str(response.url),
            status=response.status_code,
            content_type=response.headers.get("content-type", ""),
            body=response.content,
        )
        logger.debug(
            f"Fetched {page.url}: {page.status} {page.content_type} ({len(page.body)} bytes)"
        )
        return page

    async def download(self, url: str) -> PdfPayload:
        logger.debug(f"Downloading PDF from {url}")
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as e:
            raise DownloadError(f"Timeout downloading PDF: {e}", url=url) from e
        except httpx.HTTPError as e:
            raise DownloadError(f"Failed to download PDF: {e}", url=url) from e

        if not response.is_success:
            raise DownloadError(
                f"HTTP error downloading PDF: {response.status_code}",
                url=url,
                details={"status": response.status_code},
            )

        return build_payload(
            str(response.url),
            response.headers.get("content-type"),
            response.content,
        )

    async def close(self) -> None:
        if not self._client.is_closed:
            await self._client.aclose()
