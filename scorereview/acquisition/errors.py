"""Exceptions raised by the PDF acquisition pipeline.

Every error is terminal for one acquisition attempt; none are retried.
"""

from typing import Any


class AcquisitionError(Exception):
    """Base acquisition exception."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        stage: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.url = url
        self.stage = stage
        self.details = details or {}
        super().__init__(message)

    def to_details(self) -> dict[str, Any]:
        """Diagnostic payload returned to callers alongside a failed result."""
        data: dict[str, Any] = {
            "message": self.message,
            "type": type(self).__name__,
        }
        if self.stage:
            data["stage"] = self.stage
        if self.url:
            data["url"] = self.url
        data.update(self.details)
        return data


class FetchError(AcquisitionError):
    """Source page could not be fetched (timeout, network, non-2xx)."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        reason: str = "network",
        status: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.reason = reason
        self.status = status
        extra = {"reason": reason}
        if status is not None:
            extra["status"] = status
        extra.update(details or {})
        super().__init__(message, url=url, stage="fetching", details=extra)


class NotFoundError(AcquisitionError):
    """No PDF link matched any known pattern."""

    def __init__(self, message: str, url: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(message, url=url, stage="locating_link", details=details)


class DownloadError(AcquisitionError):
    """Located PDF could not be retrieved or is not a PDF."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        reason: str = "transport_error",
        details: dict[str, Any] | None = None,
    ):
        self.reason = reason
        extra = {"reason": reason}
        extra.update(details or {})
        super().__init__(message, url=url, stage="downloading", details=extra)


class UploadError(AcquisitionError):
    """Object storage write failed or timed out."""

    def __init__(
        self,
        message: str,
        key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.key = key
        extra = {"key": key} if key else {}
        extra.update(details or {})
        super().__init__(message, stage="uploading", details=extra)


class AcquisitionTimeoutError(AcquisitionError):
    """End-to-end acquisition budget exceeded."""

    def __init__(self, message: str, url: str | None = None, stage: str | None = None, timeout: float | None = None):
        self.timeout = timeout
        details: dict[str, Any] = {"reason": "timeout"}
        if timeout is not None:
            details["timeout"] = timeout
        super().__init__(message, url=url, stage=stage, details=details)
