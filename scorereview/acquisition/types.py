"""Value objects passed between acquisition pipeline stages."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

FAILURE_MESSAGE = "Failed to process PDF"


class TransportKind(str, Enum):
    """How source pages are fetched."""

    HTTP = "http"  # Plain httpx requests, regex link scraping
    BROWSER = "browser"  # Headless Chromium via Playwright


class PipelineState(str, Enum):
    """Orchestrator states, in the order they are entered."""

    IDLE = "idle"
    FETCHING = "fetching"
    DIRECT_PDF = "direct_pdf"
    LOCATING_LINK = "locating_link"
    GATE_CHECK = "gate_check"
    DOWNLOADING = "downloading"
    UPLOADING = "uploading"
    DONE = "done"
    ERRORED = "errored"


class AcquisitionRequest(BaseModel):
    """One request to fetch a score PDF and republish it under a slug."""

    source_url: str
    destination_key: str

    @field_validator("source_url", "destination_key")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class AcquisitionResult(BaseModel):
    """Outcome of one acquisition: a public URL or a structured error."""

    success: bool
    public_url: Optional[str] = None
    error: Optional[str] = None
    error_detail: Optional[dict[str, Any]] = None
    states: list[PipelineState] = Field(default_factory=list)  # Visited states

    @model_validator(mode="after")
    def _check_exclusive(self) -> "AcquisitionResult":
        if self.success and (not self.public_url or self.error_detail is not None):
            raise ValueError("successful result needs public_url and no error_detail")
        if not self.success and (self.public_url or self.error_detail is None):
            raise ValueError("failed result needs error_detail and no public_url")
        return self

    @classmethod
    def ok(cls, public_url: str, states: list[PipelineState] | None = None) -> "AcquisitionResult":
        return cls(success=True, public_url=public_url, states=states or [])

    @classmethod
    def failed(
        cls,
        details: dict[str, Any],
        states: list[PipelineState] | None = None,
    ) -> "AcquisitionResult":
        return cls(
            success=False,
            error=FAILURE_MESSAGE,
            error_detail=details,
            states=states or [],
        )

    def to_response(self) -> dict[str, Any]:
        """Wire shape used by the HTTP API."""
        if self.success:
            return {"success": True, "url": self.public_url}
        return {"success": False, "error": self.error, "details": self.error_detail}


class PdfPayload(BaseModel):
    """Downloaded PDF bytes, held in memory until uploaded."""

    content: bytes
    content_type: str = "application/pdf"
    source_url: str

    @property
    def size(self) -> int:
        return len(self.content)


class FetchedPage(BaseModel):
    """Response to the first request for a source page."""

    url: str  # Final URL after redirects
    status: int
    content_type: str = ""
    body: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")
