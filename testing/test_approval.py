"""Tests for the approval workflow with fake Sanity, Sheets and acquisition."""

import pytest

from scorereview.acquisition import AcquisitionResult
from scorereview.review import ApprovalService, ReviewStatus, destination_slug, make_slug
from scorereview.stores import (
    EDITION_HEADERS,
    EDITIONS_SHEET,
    RecordNotFoundError,
    SanityConfig,
    SanityStore,
    SheetsConfig,
    SheetsStore,
    SheetWriteQueue,
)
from testing.utils import FakeSanityApi, FakeSheetsService

SOURCE_URL = "https://scores.example.org/wiki/BWV846"
REPUBLISHED = "https://tonebase-emails.s3.us-east-1.amazonaws.com/scores/bach-bwv846-henle.pdf"


class FakeAcquire:
    def __init__(self, result: AcquisitionResult):
        self.result = result
        self.calls: list[tuple[str, str]] = []

    async def __call__(self, source_url: str, slug: str) -> AcquisitionResult:
        self.calls.append((source_url, slug))
        return self.result


@pytest.fixture
def edition() -> dict:
    return {
        "_id": "edition-1",
        "_type": "edition",
        "slug": {"current": "bach-bwv846-henle"},
        "editor": "Heinemann",
        "publisher": "Henle",
        "copyright": "Public domain",
        "url": SOURCE_URL,
        "status": "pending",
        "piece": {
            "slug": {"current": "bach-bwv846"},
            "piece_title": "Prelude in C",
            "composer": "J.S. Bach",
        },
    }


@pytest.fixture
def sanity_api(edition) -> FakeSanityApi:
    return FakeSanityApi({"edition-1": edition})


@pytest.fixture
def sheets_service() -> FakeSheetsService:
    return FakeSheetsService({EDITIONS_SHEET: [EDITION_HEADERS]})


@pytest.fixture
async def queue():
    queue = SheetWriteQueue()
    yield queue
    await queue.close()


def make_service(sanity_api, sheets_service, queue, acquire) -> ApprovalService:
    sanity = SanityStore(
        SanityConfig(project_id="p", dataset="d", token="t"), transport=sanity_api.transport()
    )
    sheets = SheetsStore(SheetsConfig("svc@example.iam", "key", "sheet-1"), service=sheets_service)
    return ApprovalService(sanity, sheets, queue=queue, acquire=acquire)


class TestSlugs:
    def test_make_slug(self):
        assert make_slug("J.S. Bach", "Prelude in C, BWV 846") == "j-s-bach-prelude-in-c-bwv-846"

    def test_make_slug_trims_hyphens(self):
        assert make_slug("", "  Étude!! ") == "tude"

    def test_destination_prefers_edition_slug(self, edition):
        assert destination_slug(edition) == "bach-bwv846-henle"

    def test_destination_falls_back_to_piece_names(self, edition):
        edition["slug"] = None
        assert destination_slug(edition) == "j-s-bach-prelude-in-c"


class TestApprove:
    async def test_republishes_and_exports(self, sanity_api, sheets_service, queue):
        acquire = FakeAcquire(AcquisitionResult.ok(REPUBLISHED))
        service = make_service(sanity_api, sheets_service, queue, acquire)

        document = await service.update_edition(
            "edition-1", status=ReviewStatus.APPROVED, reviewed_at="2024-03-01T12:00:00Z"
        )
        await queue.join()

        assert acquire.calls == [(SOURCE_URL, "bach-bwv846-henle")]
        assert document["status"] == "approved"
        assert document["url"] == REPUBLISHED
        assert document["originalUrl"] == SOURCE_URL
        assert document["reviewedAt"] == "2024-03-01T12:00:00Z"

        rows = sheets_service.rows(EDITIONS_SHEET)
        assert rows[1][:2] == ["bach-bwv846", "bach-bwv846-henle"]
        assert rows[1][5] == REPUBLISHED

    async def test_acquisition_failure_keeps_original_url(self, sanity_api, sheets_service, queue):
        acquire = FakeAcquire(AcquisitionResult.failed({"message": "No PDF link found"}))
        service = make_service(sanity_api, sheets_service, queue, acquire)

        document = await service.update_edition("edition-1", status="approved")
        await queue.join()

        assert document["status"] == "approved"
        assert document["url"] == SOURCE_URL
        assert "originalUrl" not in document
        assert "reviewedAt" in document
        assert sheets_service.rows(EDITIONS_SHEET)[1][5] == SOURCE_URL

    async def test_sheet_failure_does_not_fail_approval(self, sanity_api, queue):
        broken = FakeSheetsService({})  # no "Approved Editions" tab
        acquire = FakeAcquire(AcquisitionResult.ok(REPUBLISHED))
        service = make_service(sanity_api, broken, queue, acquire)

        document = await service.update_edition("edition-1", status=ReviewStatus.APPROVED)
        await queue.join()

        assert document["status"] == "approved"

    async def test_unknown_edition(self, sheets_service, queue):
        service = make_service(FakeSanityApi({}), sheets_service, queue, FakeAcquire(None))

        with pytest.raises(RecordNotFoundError):
            await service.update_edition("missing", status=ReviewStatus.APPROVED)


class TestRejectAndEdit:
    async def test_reject_removes_sheet_row(self, sanity_api, queue):
        sheets_service = FakeSheetsService(
            {EDITIONS_SHEET: [EDITION_HEADERS, ["bach-bwv846", "bach-bwv846-henle"]]}
        )
        acquire = FakeAcquire(AcquisitionResult.ok(REPUBLISHED))
        service = make_service(sanity_api, sheets_service, queue, acquire)

        document = await service.update_edition(
            "edition-1", status=ReviewStatus.REJECTED, rejection_reason="Poor scan"
        )
        await queue.join()

        assert document["status"] == "rejected"
        assert document["rejectionReason"] == "Poor scan"
        assert acquire.calls == []
        assert sheets_service.rows(EDITIONS_SHEET) == [EDITION_HEADERS]

    async def test_reject_without_slug_still_commits(self, edition, sheets_service, queue):
        edition.pop("slug")
        sanity_api = FakeSanityApi({"edition-1": edition})
        service = make_service(sanity_api, sheets_service, queue, FakeAcquire(None))

        document = await service.update_edition("edition-1", status=ReviewStatus.REJECTED)
        await queue.join()

        assert document["status"] == "rejected"
        assert sanity_api.documents["edition-1"]["status"] == "rejected"
        assert sheets_service.rows(EDITIONS_SHEET) == [EDITION_HEADERS]

    async def test_reject_unknown_edition(self, sheets_service, queue):
        service = make_service(FakeSanityApi({}), sheets_service, queue, FakeAcquire(None))

        with pytest.raises(RecordNotFoundError):
            await service.update_edition("missing", status=ReviewStatus.REJECTED)

    async def test_field_edit_without_status(self, sanity_api, sheets_service, queue):
        service = make_service(sanity_api, sheets_service, queue, FakeAcquire(None))

        document = await service.update_edition("edition-1", fields={"publisher": "Bärenreiter"})

        assert document["publisher"] == "Bärenreiter"
        assert document["status"] == "pending"
        assert sanity_api.mutations[0]["patch"]["set"] == {"publisher": "Bärenreiter"}
