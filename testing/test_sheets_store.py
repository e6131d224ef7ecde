"""Tests for the spreadsheet export, using an in-memory Sheets service."""

from datetime import datetime, timezone

import pytest

from scorereview.stores import (
    EDITION_HEADERS,
    EDITIONS_SHEET,
    PIECE_HEADERS,
    PIECES_SHEET,
    SheetsConfig,
    SheetsStore,
    StoreConfigError,
    edition_row,
    piece_row,
)
from scorereview.stores.sheets import column_letter, duplicate_row_indices, find_row_index
from testing.utils import FakeSheetsService

APPROVED_AT = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_edition(slug: str = "bach-bwv846-henle", url: str = "https://cdn.example/a.pdf") -> dict:
    return {
        "slug": {"current": slug},
        "editor": "Heinemann",
        "publisher": "Henle",
        "copyright": "Public domain",
        "url": url,
        "piece": {"slug": {"current": "bach-bwv846"}},
    }


def make_store(sheets: dict | None = None) -> tuple[SheetsStore, FakeSheetsService]:
    service = FakeSheetsService(sheets)
    store = SheetsStore(SheetsConfig("svc@example.iam", "key", "sheet-1"), service=service)
    return store, service


class TestRowHelpers:
    def test_column_letter(self):
        assert column_letter(len(PIECE_HEADERS)) == "F"
        assert column_letter(len(EDITION_HEADERS)) == "G"

    def test_piece_row(self):
        piece = {
            "slug": {"current": "bach-bwv846"},
            "piece_title": "Prelude in C",
            "composer": "Bach",
            "year_of_composition": 1722,
            "era": "Baroque",
        }
        assert piece_row(piece) == ["bach-bwv846", "Prelude in C", "Bach", "1722", "Baroque", ""]

    def test_piece_row_requires_slug(self):
        with pytest.raises(ValueError):
            piece_row({"piece_title": "Untitled"})

    def test_edition_row(self):
        assert edition_row(make_edition(), APPROVED_AT) == [
            "bach-bwv846",
            "bach-bwv846-henle",
            "Heinemann",
            "Henle",
            "Public domain",
            "https://cdn.example/a.pdf",
            "2024-03-01T12:00:00+00:00",
        ]

    def test_edition_row_requires_piece_slug(self):
        with pytest.raises(ValueError):
            edition_row({"slug": {"current": "x"}, "piece": {}})

    def test_find_row_index_skips_header(self):
        rows = [["Slug"], ["a"], ["b"]]
        assert find_row_index(rows, "b", 0) == 2
        assert find_row_index(rows, "Slug", 0) is None

    def test_duplicate_rows_descending(self):
        rows = [["Slug"], ["a"], ["b"], ["a"], ["b"], ["a"]]
        assert duplicate_row_indices(rows, 0) == [5, 4, 3]


class TestSheetsStore:
    def test_ensure_sheets_creates_tabs_with_headers(self):
        store, service = make_store()

        store.ensure_sheets()

        assert service.rows(PIECES_SHEET) == [PIECE_HEADERS]
        assert service.rows(EDITIONS_SHEET) == [EDITION_HEADERS]

    def test_ensure_sheet_leaves_existing_tab(self):
        store, service = make_store({PIECES_SHEET: [PIECE_HEADERS, ["a"]]})

        assert store.ensure_sheet(PIECES_SHEET, PIECE_HEADERS) is False
        assert service.rows(PIECES_SHEET) == [PIECE_HEADERS, ["a"]]

    def test_add_edition_replaces_duplicate(self):
        old = edition_row(make_edition(url="https://old.example/a.pdf"), APPROVED_AT)
        store, service = make_store({EDITIONS_SHEET: [EDITION_HEADERS, old]})

        store.add_edition(make_edition(url="https://new.example/a.pdf"), APPROVED_AT)

        rows = service.rows(EDITIONS_SHEET)
        assert len(rows) == 2
        assert rows[1][5] == "https://new.example/a.pdf"

    def test_add_piece_appends(self):
        store, service = make_store({PIECES_SHEET: [PIECE_HEADERS]})

        store.add_piece({"slug": {"current": "chopin-op10"}, "composer": "Chopin"})

        assert service.rows(PIECES_SHEET)[1][:3] == ["chopin-op10", "", "Chopin"]

    def test_remove_edition(self):
        rows = [
            EDITION_HEADERS,
            edition_row(make_edition("keep"), APPROVED_AT),
            edition_row(make_edition("drop"), APPROVED_AT),
        ]
        store, service = make_store({EDITIONS_SHEET: rows})

        assert store.remove_edition("drop") is True
        assert store.remove_edition("drop") is False
        assert [r[1] for r in service.rows(EDITIONS_SHEET)[1:]] == ["keep"]

    def test_sheet_id_zero_is_valid_and_cached(self):
        store, service = make_store({PIECES_SHEET: [PIECE_HEADERS]})

        assert store.get_sheet_id(PIECES_SHEET) == 0
        assert store.get_sheet_id(PIECES_SHEET) == 0
        assert [c for c in service.calls if c[0] == "get"] == [("get", "sheet-1")]

    def test_sheet_ids_cached_per_name(self):
        store, _ = make_store({PIECES_SHEET: [], EDITIONS_SHEET: []})
        assert store.get_sheet_id(PIECES_SHEET) != store.get_sheet_id(EDITIONS_SHEET)

    def test_cleanup_duplicate_pieces_keeps_first(self):
        rows = [PIECE_HEADERS, ["a", "first"], ["b"], ["a", "second"], ["a", "third"]]
        store, service = make_store({PIECES_SHEET: rows})

        assert store.cleanup_duplicate_pieces() == 2
        assert service.rows(PIECES_SHEET) == [PIECE_HEADERS, ["a", "first"], ["b"]]

    def test_missing_credentials(self):
        store = SheetsStore(SheetsConfig(None, None, None))
        with pytest.raises(StoreConfigError):
            store.service
