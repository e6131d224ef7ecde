"""Acquisition orchestrator: fetch -> locate -> download -> republish.

State machine (strictly forward, errored reachable from anywhere):

    idle -> fetching -> direct_pdf ------------------------> downloading -> uploading -> done
                     -> locating_link -> (gate_check) ----->

On a transport that drives a live page, gate_check clicks through any
interstitial before a link is searched for, then polls the rendered DOM.
Other transports scan the fetched source once with the ordered matchers.

One timeout covers everything from fetching to uploading. The transport is
closed in a finally block on every exit path.

Example usage:
    from scorereview.acquisition import acquire_and_republish

    result = await acquire_and_republish(
        "https://imslp.org/wiki/Special:ImagefromIndex/12345",
        "bach-bwv846",
    )
    if result.success:
        print(result.public_url)
"""

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Optional

from pydantic import ValidationError

from .config import AcquisitionConfig, get_acquisition_config
from .detector import looks_like_pdf
from .errors import AcquisitionError, AcquisitionTimeoutError, NotFoundError
from .locator import PAGE_EXCERPT_CHARS, PdfLocator
from .republisher import S3Republisher
from .transports import Transport, build_payload, create_transport
from .types import AcquisitionRequest, AcquisitionResult, PipelineState

logger = logging.getLogger(__name__)

_STATE_ORDER = [
    PipelineState.IDLE,
    PipelineState.FETCHING,
    PipelineState.DIRECT_PDF,
    PipelineState.LOCATING_LINK,
    PipelineState.GATE_CHECK,
    PipelineState.DOWNLOADING,
    PipelineState.UPLOADING,
    PipelineState.DONE,
]


class _StateTracker:
    """Records visited states and rejects backward transitions."""

    def __init__(self, source_url: str):
        self.source_url = source_url
        self.state = PipelineState.IDLE
        self.visited: list[PipelineState] = [PipelineState.IDLE]

    def enter(self, state: PipelineState) -> None:
        if self.state == PipelineState.ERRORED:
            raise RuntimeError("Acquisition already errored")
        if state != PipelineState.ERRORED and _STATE_ORDER.index(state) <= _STATE_ORDER.index(self.state):
            raise RuntimeError(f"Illegal transition {self.state.value} -> {state.value}")
        logger.debug(f"[{self.source_url}] {self.state.value} -> {state.value}")
        self.state = state
        self.visited.append(state)


class AcquisitionPipeline:
    """Best-effort PDF acquisition and republication.

    Usage:
        pipeline = AcquisitionPipeline()
        result = await pipeline.run(AcquisitionRequest(
            source_url="https://example.org/score", destination_key="bach-bwv846"
        ))
    """

    def __init__(
        self,
        config: Optional[AcquisitionConfig] = None,
        transport_factory: Optional[Callable[[AcquisitionConfig], Transport]] = None,
        republisher: Optional[S3Republisher] = None,
        locator: Optional[PdfLocator] = None,
    ):
        """Initialize the pipeline.

        Args:
            config: Acquisition settings (defaults from environment)
            transport_factory: Builds a fresh transport per run
                (default: chosen by config.transport)
            republisher: S3 uploader (default: built from config)
            locator: PDF link locator (default: built-in matchers)
        """
        self.config = config or get_acquisition_config()
        self._transport_factory = transport_factory or create_transport
        self._republisher = republisher
        self.locator = locator or PdfLocator()

    @property
    def republisher(self) -> S3Republisher:
        if self._republisher is None:
            self._republisher = S3Republisher.from_config(self.config)
        return self._republisher

    async def run(self, request: AcquisitionRequest) -> AcquisitionResult:
        """Run one acquisition to completion. Never raises for pipeline failures.

        Returns:
            AcquisitionResult with the public URL, or structured error details
        """
        start = time.monotonic()
        tracker = _StateTracker(request.source_url)
        transport: Transport | None = None

        logger.info(
            f"PDF acquisition started: {request.source_url} -> {request.destination_key} "
            f"(transport={self.config.transport.value}, timeout={self.config.timeout}s)"
        )

        try:
            transport = self._transport_factory(self.config)
            url = await asyncio.wait_for(
                self._execute(request, transport, tracker),
                timeout=self.config.timeout,
            )
            tracker.enter(PipelineState.DONE)
            logger.info(
                f"PDF acquisition completed in {_elapsed_ms(start)}ms: {url}"
            )
            return AcquisitionResult.ok(url, states=tracker.visited)

        except asyncio.TimeoutError:
            error = AcquisitionTimeoutError(
                f"PDF acquisition exceeded {self.config.timeout}s",
                url=request.source_url,
                stage=tracker.state.value,
                timeout=self.config.timeout,
            )
            return self._fail(error.to_details(), tracker, start)

        except AcquisitionError as e:
            return self._fail(e.to_details(), tracker, start)

        except Exception as e:
            logger.exception(f"Unexpected error during PDF acquisition: {e}")
            details = {
                "message": str(e) or "Unknown error",
                "type": type(e).__name__,
                "stage": tracker.state.value,
                "url": request.source_url,
            }
            return self._fail(details, tracker, start)

        finally:
            if transport is not None:
                try:
                    await transport.close()
                except Exception as e:
                    logger.warning(f"Error releasing transport: {e}")

    def _fail(self, details: dict, tracker: _StateTracker, start: float) -> AcquisitionResult:
        details = {**details, "duration": _elapsed_ms(start)}
        tracker.enter(PipelineState.ERRORED)
        logger.error(f"PDF acquisition failed: {details}")
        return AcquisitionResult.failed(details, states=tracker.visited)

    async def _execute(
        self,
        request: AcquisitionRequest,
        transport: Transport,
        tracker: _StateTracker,
    ) -> str:
        tracker.enter(PipelineState.FETCHING)
        page = await transport.fetch(request.source_url)
        logger.debug(f"Response content type: {page.content_type or 'unknown'}")

        if looks_like_pdf(page.url, page.content_type, page.body):
            tracker.enter(PipelineState.DIRECT_PDF)
            logger.info("Source served a PDF directly, skipping link location")
            tracker.enter(PipelineState.DOWNLOADING)
            payload = build_payload(page.url, page.content_type, page.body)
        else:
            tracker.enter(PipelineState.LOCATING_LINK)
            source = page.text

            if transport.interactive:
                # The interstitial hides the real link; pre-gate anchors are not trusted
                tracker.enter(PipelineState.GATE_CHECK)
                await transport.dismiss_gate(self.config.gate_labels, self.config.gate_timeout)
                pdf_url = await transport.poll_for_link(
                    self.locator,
                    attempts=self.config.link_attempts,
                    interval=self.config.link_poll_interval,
                )
            else:
                pdf_url = self.locator.find(source, base_url=page.url)

            if pdf_url is None:
                raise NotFoundError(
                    "Could not find a PDF download link",
                    url=page.url,
                    details={
                        "pageLength": len(source),
                        "pageExcerpt": source[:PAGE_EXCERPT_CHARS],
                    },
                )

            logger.info(f"Extracted PDF URL: {pdf_url}")
            tracker.enter(PipelineState.DOWNLOADING)
            payload = await transport.download(pdf_url)

        logger.info(f"PDF downloaded ({payload.size} bytes)")
        tracker.enter(PipelineState.UPLOADING)
        return await self.republisher.publish(payload, request.destination_key)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


async def acquire_and_republish(
    source_url: str,
    slug: str,
    config: Optional[AcquisitionConfig] = None,
    pipeline: Optional[AcquisitionPipeline] = None,
) -> AcquisitionResult:
    """Fetch the score PDF behind ``source_url`` and republish it as ``{slug}.pdf``.

    Args:
        source_url: Page believed to contain or link to the PDF
        slug: Destination key stem
        config: Acquisition settings (ignored when ``pipeline`` is given)
        pipeline: Pre-built pipeline to run the request on

    Returns:
        AcquisitionResult; failures are reported, never raised
    """
    try:
        request = AcquisitionRequest(source_url=source_url, destination_key=slug)
    except ValidationError as e:
        logger.warning(f"Rejected acquisition request ({source_url!r}, {slug!r})")
        return AcquisitionResult.failed(
            {
                "message": "Missing required parameters",
                "type": "ValidationError",
                "errors": e.errors(include_url=False, include_context=False),
            }
        )

    pipeline = pipeline or AcquisitionPipeline(config)
    return await pipeline.run(request)
