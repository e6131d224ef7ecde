"""Best-effort score PDF acquisition and republication.

Usage:
    from scorereview.acquisition import acquire_and_republish

    result = await acquire_and_republish(score_url, "bach-bwv846")
    print(result.to_response())  # {"success": True, "url": "https://..."}
"""

from .config import AcquisitionConfig, get_acquisition_config
from .errors import (
    AcquisitionError,
    AcquisitionTimeoutError,
    DownloadError,
    FetchError,
    NotFoundError,
    UploadError,
)
from .locator import DEFAULT_MATCHERS, LinkMatcher, PdfLocator
from .pipeline import AcquisitionPipeline, acquire_and_republish
from .republisher import S3Republisher
from .transports import BrowserTransport, HttpTransport, Transport, create_transport
from .types import (
    AcquisitionRequest,
    AcquisitionResult,
    FetchedPage,
    PdfPayload,
    PipelineState,
    TransportKind,
)

__all__ = [
    # Main entry points
    "acquire_and_republish",
    "AcquisitionPipeline",
    "AcquisitionConfig",
    "get_acquisition_config",
    # Types
    "AcquisitionRequest",
    "AcquisitionResult",
    "FetchedPage",
    "PdfPayload",
    "PipelineState",
    "TransportKind",
    # Components
    "PdfLocator",
    "LinkMatcher",
    "DEFAULT_MATCHERS",
    "S3Republisher",
    "Transport",
    "HttpTransport",
    "BrowserTransport",
    "create_transport",
    # Errors
    "AcquisitionError",
    "FetchError",
    "NotFoundError",
    "DownloadError",
    "UploadError",
    "AcquisitionTimeoutError",
]
