"""
Approval and rejection of editions.

Approving an edition republishes its score PDF, writes the review fields
back to Sanity, and queues the spreadsheet export. Acquisition failures never
block an approval: the edition keeps its original URL.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from ..acquisition import AcquisitionResult, acquire_and_republish
from ..stores import (
    RecordNotFoundError,
    SanityStore,
    SheetsStore,
    SheetWriteQueue,
    get_sheet_write_queue,
    slug_value,
)
from .slugs import make_slug

logger = logging.getLogger(__name__)

Acquire = Callable[[str, str], Awaitable[AcquisitionResult]]


class ReviewStatus(str, Enum):
    """Review state of an edition."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def destination_slug(edition: dict[str, Any]) -> Optional[str]:
    """Key stem for the republished PDF: edition slug, else composer + title."""
    slug = slug_value(edition.get("slug"))
    if slug:
        return slug
    piece = edition.get("piece") or {}
    derived = make_slug(piece.get("composer") or "", piece.get("piece_title") or "")
    return derived or None


class ApprovalService:
    """Review workflow over Sanity, the acquisition pipeline and the sheet export.

    Example:
        service = ApprovalService(SanityStore(), SheetsStore())
        document = await service.update_edition("edition-1", status="approved")
    """

    def __init__(
        self,
        sanity: SanityStore,
        sheets: SheetsStore,
        queue: Optional[SheetWriteQueue] = None,
        acquire: Acquire = acquire_and_republish,
        republish: bool = True,
    ):
        self.sanity = sanity
        self.sheets = sheets
        self.queue = queue or get_sheet_write_queue()
        self._acquire = acquire
        self.republish = republish

    async def update_edition(
        self,
        edition_id: str,
        status: Optional[ReviewStatus] = None,
        rejection_reason: Optional[str] = None,
        reviewed_at: Optional[str] = None,
        fields: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Apply a review decision and/or field edits, returning the updated document.

        Raises:
            RecordNotFoundError: Edition does not exist
            StoreError: Sanity rejected the update
        """
        updates: dict[str, Any] = dict(fields or {})
        status = ReviewStatus(status) if status is not None else None

        if status is not None:
            updates["status"] = status.value
        if rejection_reason:
            updates["rejectionReason"] = rejection_reason
        if reviewed_at:
            updates["reviewedAt"] = reviewed_at
        elif status in (ReviewStatus.APPROVED, ReviewStatus.REJECTED):
            updates["reviewedAt"] = datetime.now(timezone.utc).isoformat()

        if status == ReviewStatus.APPROVED:
            return await self._approve(edition_id, updates)

        edition_slug = None
        if status == ReviewStatus.REJECTED:
            edition_slug = await self.sanity.get_edition_slug(edition_id)

        document = await self.sanity.patch(edition_id, updates)
        logger.info(f"Edition {edition_id} updated: {sorted(updates)}")

        if status == ReviewStatus.REJECTED:
            if edition_slug:
                self.queue.submit_nowait(self.sheets.remove_edition, edition_slug)
            else:
                logger.warning(f"Edition {edition_id} has no slug, sheet row left in place")
        return document

    async def _approve(self, edition_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        edition = await self.sanity.get_edition(edition_id)
        if not edition:
            raise RecordNotFoundError("sanity", edition_id)

        source_url = updates.get("url") or edition.get("url")
        if self.republish and source_url:
            public_url = await self._republish(edition_id, source_url, edition)
            if public_url:
                updates["url"] = public_url
                updates["originalUrl"] = source_url

        document = await self.sanity.patch(edition_id, updates)
        logger.info(f"Edition {edition_id} approved (url={updates.get('url', source_url)})")

        edition = {**edition, **{k: v for k, v in updates.items() if k in edition}}
        self.queue.submit_nowait(self.sheets.add_edition, edition)
        return document

    async def _republish(
        self, edition_id: str, source_url: str, edition: dict[str, Any]
    ) -> Optional[str]:
        slug = destination_slug(edition)
        if not slug:
            logger.warning(f"Edition {edition_id} has no slug, keeping original URL")
            return None

        result = await self._acquire(source_url, slug)
        if result.success:
            return result.public_url

        logger.warning(
            f"PDF republication failed for {edition_id}, keeping original URL: "
            f"{(result.error_detail or {}).get('message')}"
        )
        return None
