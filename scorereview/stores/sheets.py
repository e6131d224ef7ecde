"""
Google Sheets export of approved pieces and editions.

The Sheets v4 client is synchronous; callers run these methods through
SheetWriteQueue so inserts and deletes never interleave.

Row indices here are 0-based and include the header row, matching the
``deleteDimension`` request.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from googleapiclient.errors import HttpError

from .config import SheetsConfig
from .errors import StoreError
from .sanity import slug_value

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"

PIECES_SHEET = "Pieces"
EDITIONS_SHEET = "Approved Editions"

PIECE_HEADERS = ["Slug", "Piece Title", "Composer", "Year", "Era", "Summary"]
EDITION_HEADERS = [
    "Piece Slug",
    "Edition Slug",
    "Editor",
    "Publisher",
    "Copyright",
    "URL",
    "Approval Date",
]

# Key columns used to detect duplicates
PIECE_SLUG_COLUMN = 0
EDITION_SLUG_COLUMN = 1


def column_letter(count: int) -> str:
    """Letter of the last column for a row of ``count`` cells (1 -> A)."""
    return chr(ord("A") + count - 1)


def sheet_range(sheet: str, headers: list[str], header_only: bool = False) -> str:
    last = column_letter(len(headers))
    if header_only:
        return f"'{sheet}'!A1:{last}1"
    return f"'{sheet}'!A:{last}"


def piece_row(piece: dict[str, Any]) -> list[str]:
    """Row for the Pieces sheet from a piece document."""
    slug = slug_value(piece.get("slug"))
    if not slug:
        raise ValueError("Invalid piece data: missing slug")
    return [
        slug,
        piece.get("piece_title") or "",
        piece.get("composer") or "",
        str(piece.get("year_of_composition") or ""),
        piece.get("era") or "",
        piece.get("summary") or "",
    ]


def edition_row(edition: dict[str, Any], approved_at: Optional[datetime] = None) -> list[str]:
    """Row for the Approved Editions sheet from an edition with its piece."""
    edition_slug = slug_value(edition.get("slug"))
    piece = edition.get("piece") or {}
    piece_slug = slug_value(piece.get("slug"))
    if not edition_slug or not piece_slug:
        raise ValueError("Invalid edition data: missing edition or piece slug")

    approved_at = approved_at or datetime.now(timezone.utc)
    return [
        piece_slug,
        edition_slug,
        edition.get("editor") or "",
        edition.get("publisher") or "",
        edition.get("copyright") or "",
        edition.get("url") or "",
        approved_at.isoformat(),
    ]


def find_row_index(rows: list[list[str]], value: str, column: int) -> Optional[int]:
    """First data row (header skipped) whose ``column`` equals ``value``."""
    for index, row in enumerate(rows):
        if index == 0:
            continue
        if len(row) > column and row[column] == value:
            return index
    return None


def duplicate_row_indices(rows: list[list[str]], column: int) -> list[int]:
    """Data rows repeating an earlier key, in descending order for deletion."""
    seen: set[str] = set()
    duplicates = []
    for index, row in enumerate(rows[1:], start=1):
        key = row[column] if len(row) > column else ""
        if key in seen:
            duplicates.append(index)
        else:
            seen.add(key)
    return sorted(duplicates, reverse=True)


class SheetsStore:
    """
    Spreadsheet client for the Pieces and Approved Editions sheets.

    Example:
        store = SheetsStore()
        store.ensure_sheets()
        store.add_edition(edition)
    """

    def __init__(self, config: Optional[SheetsConfig] = None, service: Any = None):
        """
        Args:
            config: Service account and spreadsheet id (defaults from environment)
            service: Pre-built Sheets v4 resource (built lazily if omitted)
        """
        self.config = config or SheetsConfig()
        self._service = service
        self._sheet_ids: dict[str, int] = {}

    @property
    def spreadsheet_id(self) -> str:
        return self.config.spreadsheet_id or ""

    @property
    def service(self) -> Any:
        """Sheets v4 resource (lazy init from service account credentials)."""
        if self._service is None:
            from google.oauth2 import service_account
            from googleapiclient.discovery import build

            self.config.validate()
            credentials = service_account.Credentials.from_service_account_info(
                {
                    "type": "service_account",
                    "client_email": self.config.service_account_email,
                    "private_key": self.config.private_key.replace("\\n", "\n"),
                    "token_uri": TOKEN_URI,
                },
                scopes=SCOPES,
            )
            self._service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
            logger.info(f"Sheets client initialized for {self.config.service_account_email}")
        return self._service

    def _execute(self, request: Any, action: str) -> dict[str, Any]:
        try:
            return request.execute() or {}
        except HttpError as e:
            raise StoreError(
                f"Sheets {action} failed: {e.reason}",
                "sheets",
                {"status": e.resp.status, "action": action},
            ) from e

    # ==================== Sheet structure ====================

    def get_sheet_id(self, sheet: str) -> int:
        """Numeric id of a sheet tab, cached per name."""
        if sheet in self._sheet_ids:
            return self._sheet_ids[sheet]

        spreadsheet = self._execute(
            self.service.spreadsheets().get(spreadsheetId=self.spreadsheet_id),
            "get spreadsheet",
        )
        for entry in spreadsheet.get("sheets", []):
            properties = entry.get("properties", {})
            if properties.get("title") == sheet and properties.get("sheetId") is not None:
                self._sheet_ids[sheet] = properties["sheetId"]
                return properties["sheetId"]

        raise StoreError(f'Sheet "{sheet}" not found', "sheets", {"sheet": sheet})

    def ensure_sheet(self, sheet: str, headers: list[str]) -> bool:
        """Create the tab and header row when missing. Returns True if created."""
        spreadsheet = self._execute(
            self.service.spreadsheets().get(spreadsheetId=self.spreadsheet_id),
            "get spreadsheet",
        )
        titles = {
            entry.get("properties", {}).get("title")
            for entry in spreadsheet.get("sheets", [])
        }
        if sheet in titles:
            return False

        logger.info(f'Creating sheet "{sheet}"')
        self._execute(
            self.service.spreadsheets().batchUpdate(
                spreadsheetId=self.spreadsheet_id,
                body={"requests": [{"addSheet": {"properties": {"title": sheet}}}]},
            ),
            "add sheet",
        )
        self._execute(
            self.service.spreadsheets().values().update(
                spreadsheetId=self.spreadsheet_id,
                range=sheet_range(sheet, headers, header_only=True),
                valueInputOption="RAW",
                body={"values": [headers]},
            ),
            "write headers",
        )
        return True

    def ensure_sheets(self) -> None:
        self.ensure_sheet(PIECES_SHEET, PIECE_HEADERS)
        self.ensure_sheet(EDITIONS_SHEET, EDITION_HEADERS)

    # ==================== Rows ====================

    def read_rows(self, sheet: str, headers: list[str]) -> list[list[str]]:
        response = self._execute(
            self.service.spreadsheets().values().get(
                spreadsheetId=self.spreadsheet_id,
                range=sheet_range(sheet, headers),
            ),
            "read rows",
        )
        return response.get("values", [])

    def append_row(self, sheet: str, headers: list[str], row: list[str]) -> dict[str, Any]:
        logger.debug(f'Appending row to "{sheet}": {row}')
        return self._execute(
            self.service.spreadsheets().values().append(
                spreadsheetId=self.spreadsheet_id,
                range=sheet_range(sheet, headers),
                valueInputOption="RAW",
                body={"values": [row]},
            ),
            "append row",
        )

    def delete_row(self, sheet: str, index: int) -> None:
        """Delete one row by 0-based index (header is row 0)."""
        self._execute(
            self.service.spreadsheets().batchUpdate(
                spreadsheetId=self.spreadsheet_id,
                body={
                    "requests": [
                        {
                            "deleteDimension": {
                                "range": {
                                    "sheetId": self.get_sheet_id(sheet),
                                    "dimension": "ROWS",
                                    "startIndex": index,
                                    "endIndex": index + 1,
                                }
                            }
                        }
                    ]
                },
            ),
            "delete row",
        )
        logger.debug(f'Deleted row {index + 1} from "{sheet}"')

    def _remove_matching(self, sheet: str, headers: list[str], value: str, column: int) -> bool:
        index = find_row_index(self.read_rows(sheet, headers), value, column)
        if index is None:
            return False
        self.delete_row(sheet, index)
        return True

    # ==================== Actions ====================

    def add_piece(self, piece: dict[str, Any]) -> dict[str, Any]:
        """Replace any row with the same slug, then append the piece."""
        row = piece_row(piece)
        if self._remove_matching(PIECES_SHEET, PIECE_HEADERS, row[0], PIECE_SLUG_COLUMN):
            logger.info(f"Replaced existing piece row for {row[0]}")
        result = self.append_row(PIECES_SHEET, PIECE_HEADERS, row)
        logger.info(f"Added piece {row[0]} to sheet")
        return result

    def add_edition(self, edition: dict[str, Any], approved_at: Optional[datetime] = None) -> dict[str, Any]:
        """Replace any row with the same edition slug, then append the edition."""
        row = edition_row(edition, approved_at)
        edition_slug = row[EDITION_SLUG_COLUMN]
        if self._remove_matching(EDITIONS_SHEET, EDITION_HEADERS, edition_slug, EDITION_SLUG_COLUMN):
            logger.info(f"Replaced existing edition row for {edition_slug}")
        result = self.append_row(EDITIONS_SHEET, EDITION_HEADERS, row)
        logger.info(f"Added edition {edition_slug} to sheet")
        return result

    def remove_edition(self, edition_slug: str) -> bool:
        """Delete the edition row if present. Returns True if a row was removed."""
        removed = self._remove_matching(
            EDITIONS_SHEET, EDITION_HEADERS, edition_slug, EDITION_SLUG_COLUMN
        )
        if removed:
            logger.info(f"Removed edition {edition_slug} from sheet")
        else:
            logger.info(f"No sheet row for edition {edition_slug}, nothing removed")
        return removed

    def cleanup_duplicate_pieces(self) -> int:
        """Delete later rows repeating a piece slug. Returns the number removed."""
        duplicates = duplicate_row_indices(
            self.read_rows(PIECES_SHEET, PIECE_HEADERS), PIECE_SLUG_COLUMN
        )
        for index in duplicates:
            self.delete_row(PIECES_SHEET, index)
        if duplicates:
            logger.info(f"Removed {len(duplicates)} duplicate piece rows")
        return len(duplicates)
