"""FastAPI application for the score review back end.

Run with:
    uvicorn scorereview.api.app:app --port 8000
"""

import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from ..acquisition import (
    AcquisitionPipeline,
    DownloadError,
    FetchError,
    HttpTransport,
    NotFoundError,
    PdfLocator,
    Transport,
    acquire_and_republish,
    get_acquisition_config,
)
from ..acquisition.detector import looks_like_pdf
from ..acquisition.transports import build_payload
from ..acquisition.types import PdfPayload
from ..config import configure_logging
from ..logging import logging_run
from ..review import ApprovalService, ReviewStatus
from ..stores import (
    RecordNotFoundError,
    SanityStore,
    SheetsStore,
    SheetWriteQueue,
    StoreError,
    get_sheet_write_queue,
    slug_value,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    logger.info("Score review API started")
    yield
    await get_sheet_write_queue().close()
    if _sanity is not None:
        await _sanity.close()


app = FastAPI(
    title="Score Review API",
    description="Score PDF republication, edition review and sheet export",
    version="1.0.0",
    lifespan=lifespan,
)


# Request Models
class ProcessPdfRequest(BaseModel):
    """Request to republish a score PDF."""

    scoreUrl: str = Field(default="", description="Page containing or linking to the PDF")
    slug: str = Field(default="", description="Destination key stem")


class EditionUpdateRequest(BaseModel):
    """Review decision and/or field edits for one edition."""

    editionId: str = ""
    status: Optional[ReviewStatus] = None
    rejectionReason: Optional[str] = None
    reviewedAt: Optional[str] = None
    editor: Optional[str] = None
    publisher: Optional[str] = None
    copyright: Optional[str] = None
    url: Optional[str] = None

    def field_edits(self) -> dict[str, Any]:
        return self.model_dump(
            include={"editor", "publisher", "copyright", "url"}, exclude_none=True
        )


class SheetsRequest(BaseModel):
    """Spreadsheet sync action."""

    action: str = ""
    data: Optional[dict[str, Any]] = None


class HealthResponse(BaseModel):
    status: str


# Dependencies
_pipeline: Optional[AcquisitionPipeline] = None
_sanity: Optional[SanityStore] = None
_sheets: Optional[SheetsStore] = None


def get_pipeline() -> AcquisitionPipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = AcquisitionPipeline()
    return _pipeline


def get_sanity_store() -> SanityStore:
    global _sanity
    if _sanity is None:
        _sanity = SanityStore()
    return _sanity


def get_sheets_store() -> SheetsStore:
    global _sheets
    if _sheets is None:
        _sheets = SheetsStore()
    return _sheets


def get_write_queue() -> SheetWriteQueue:
    return get_sheet_write_queue()


async def get_proxy_transport() -> AsyncIterator[Transport]:
    """Per-request HTTP transport for /proxy, closed after the response."""
    transport = HttpTransport(get_acquisition_config())
    try:
        yield transport
    finally:
        await transport.close()


def get_approval_service(
    pipeline: AcquisitionPipeline = Depends(get_pipeline),
    sanity: SanityStore = Depends(get_sanity_store),
    sheets: SheetsStore = Depends(get_sheets_store),
    queue: SheetWriteQueue = Depends(get_write_queue),
) -> ApprovalService:
    async def acquire(source_url: str, slug: str):
        return await acquire_and_republish(source_url, slug, pipeline=pipeline)

    return ApprovalService(sanity, sheets, queue=queue, acquire=acquire)


# Middleware and handlers
@app.middleware("http")
async def _logging_run_per_request(request: Request, call_next):
    run_id = f"{request.method} {request.url.path} {uuid.uuid4().hex[:8]}"
    with logging_run(run_id):
        logger.debug(f"Request started: {run_id}")
        return await call_next(request)


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request",
            "details": jsonable_encoder(exc.errors()),
        },
    )


def _error(status_code: int, error: str, details: Any = None) -> JSONResponse:
    content: dict[str, Any] = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


# Endpoints
@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok")


@app.post("/process-pdf")
async def process_pdf(
    request: ProcessPdfRequest,
    pipeline: AcquisitionPipeline = Depends(get_pipeline),
) -> JSONResponse:
    """Acquire the score PDF behind scoreUrl and republish it under slug."""
    if not request.scoreUrl.strip() or not request.slug.strip():
        return _error(400, "Missing required parameters")

    result = await acquire_and_republish(request.scoreUrl, request.slug, pipeline=pipeline)
    return JSONResponse(
        status_code=200 if result.success else 500,
        content=result.to_response(),
    )


async def _resolve_pdf(transport: Transport, locator: PdfLocator, url: str) -> PdfPayload:
    page = await transport.fetch(url)
    if looks_like_pdf(page.url, page.content_type, page.body):
        return build_payload(page.url, page.content_type, page.body)
    pdf_url = locator.locate(page.text, page.url)
    logger.info(f"Proxy: found PDF URL {pdf_url}")
    return await transport.download(pdf_url)


@app.get("/proxy")
async def proxy(
    url: Optional[str] = Query(default=None),
    transport: Transport = Depends(get_proxy_transport),
) -> Response:
    """Stream a PDF inline, locating it first when url is an HTML page."""
    if not url:
        return _error(400, "URL parameter is required")

    try:
        payload = await _resolve_pdf(transport, PdfLocator(), url)
    except FetchError as e:
        logger.warning(f"Proxy fetch failed for {url}: {e.message}")
        return _error(e.status or 502, "Failed to fetch from URL", e.to_details())
    except NotFoundError as e:
        logger.warning(f"Proxy found no PDF link in {url}")
        return _error(404, "No PDF link found", e.to_details())
    except DownloadError as e:
        logger.warning(f"Proxy download failed for {url}: {e.message}")
        if e.reason == "transport_error":
            return _error(e.details.get("status", 502), "Failed to fetch PDF", e.to_details())
        return _error(400, "Invalid content type", e.to_details())

    return Response(
        content=payload.content,
        media_type="application/pdf",
        headers={"Content-Disposition": "inline"},
    )


@app.patch("/editions")
async def update_edition(
    request: EditionUpdateRequest,
    service: ApprovalService = Depends(get_approval_service),
) -> JSONResponse:
    """Apply a review decision; approvals republish the PDF and export to the sheet."""
    if not request.editionId:
        return _error(400, "Missing required parameters")

    try:
        document = await service.update_edition(
            request.editionId,
            status=request.status,
            rejection_reason=request.rejectionReason,
            reviewed_at=request.reviewedAt,
            fields=request.field_edits(),
        )
    except RecordNotFoundError as e:
        return _error(404, "Failed to update edition", e.message)
    except StoreError as e:
        logger.error(f"Error updating edition {request.editionId}: {e.message}")
        return _error(500, "Failed to update edition", e.message)

    return JSONResponse(content=document)


_SHEET_ACTIONS = {
    "add_piece": "Failed to add piece to sheet",
    "add_edition": "Failed to add edition to sheet",
    "remove_edition": "Failed to remove edition from sheet",
    "cleanup_pieces": "Failed to clean up duplicate pieces",
}


@app.post("/sheets")
async def sheets_action(
    request: SheetsRequest,
    sheets: SheetsStore = Depends(get_sheets_store),
    queue: SheetWriteQueue = Depends(get_write_queue),
) -> JSONResponse:
    """Run one spreadsheet action through the single-writer queue."""
    if not request.action or request.data is None:
        return _error(400, "Missing required fields: action and data")
    if request.action not in _SHEET_ACTIONS:
        return _error(400, "Invalid action")

    data = request.data
    try:
        await queue.submit(sheets.ensure_sheets)
        if request.action == "add_piece":
            await queue.submit(sheets.add_piece, data)
        elif request.action == "add_edition":
            await queue.submit(sheets.add_edition, data)
        elif request.action == "remove_edition":
            edition_slug = slug_value(data.get("slug"))
            if not edition_slug:
                raise ValueError("Invalid edition data: missing slug")
            await queue.submit(sheets.remove_edition, edition_slug)
        else:
            await queue.submit(sheets.cleanup_duplicate_pieces)
    except ValueError as e:
        return _error(400, _SHEET_ACTIONS[request.action], str(e))
    except StoreError as e:
        logger.error(f"Sheets action {request.action} failed: {e.message}")
        return _error(500, _SHEET_ACTIONS[request.action], e.message)

    logger.info(f"Sheets action {request.action} completed")
    return JSONResponse(content={"success": True})
