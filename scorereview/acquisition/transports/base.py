"""Transport interface shared by the HTTP and browser backends.

A transport is the Fetcher and Downloader of one acquisition run. It is
created per run and closed in the pipeline's finally block.
"""

import logging
from abc import ABC, abstractmethod

from ..detector import is_pdf_url, looks_like_pdf
from ..errors import DownloadError
from ..locator import PdfLocator
from ..types import FetchedPage, PdfPayload, TransportKind

logger = logging.getLogger(__name__)


def build_payload(url: str, content_type: str | None, content: bytes) -> PdfPayload:
    """Validate a downloaded body and wrap it as a PdfPayload.

    Raises:
        DownloadError: reason=empty_body if nothing was returned,
            reason=non_pdf_content_type if the response is not a PDF
    """
    if not content:
        raise DownloadError("Downloaded PDF is empty", url=url, reason="empty_body")

    if not looks_like_pdf(url, content_type, content):
        raise DownloadError(
            f"Expected a PDF but got '{content_type or 'unknown'}'",
            url=url,
            reason="non_pdf_content_type",
            details={"contentType": content_type, "isPdfUrl": is_pdf_url(url)},
        )

    return PdfPayload(content=content, content_type="application/pdf", source_url=url)


class Transport(ABC):
    """Fetches source pages and downloads located PDFs."""

    kind: TransportKind

    @property
    def interactive(self) -> bool:
        """Whether the transport drives a live page (gate clicks, DOM polling)."""
        return False

    @abstractmethod
    async def fetch(self, url: str) -> FetchedPage:
        """Request the source page.

        Raises:
            FetchError: On timeout, network failure or non-2xx status
        """

    @abstractmethod
    async def download(self, url: str) -> PdfPayload:
        """Retrieve a located PDF into memory.

        Raises:
            DownloadError: On transport failure, empty body or non-PDF content
        """

    async def dismiss_gate(self, labels: tuple[str, ...], timeout: float) -> bool:
        """Click through a confirmation interstitial. Non-interactive: no-op."""
        return False

    async def poll_for_link(
        self,
        locator: PdfLocator,
        attempts: int,
        interval: float,
    ) -> str | None:
        """Search the live page for a link that appears late. Non-interactive: None."""
        return None

    async def close(self) -> None:
        """Release network and process resources. Must be idempotent."""

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
