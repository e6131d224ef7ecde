"""Document store and spreadsheet clients for the review workflow."""

from .config import SanityConfig, SheetsConfig
from .errors import RecordNotFoundError, StoreConfigError, StoreError
from .sanity import SanityStore, slug_value
from .sheets import (
    EDITION_HEADERS,
    EDITIONS_SHEET,
    PIECE_HEADERS,
    PIECES_SHEET,
    SheetsStore,
    edition_row,
    piece_row,
)
from .write_queue import SheetWriteQueue, get_sheet_write_queue

__all__ = [
    "SanityConfig",
    "SheetsConfig",
    "SanityStore",
    "SheetsStore",
    "SheetWriteQueue",
    "get_sheet_write_queue",
    "slug_value",
    "piece_row",
    "edition_row",
    "PIECES_SHEET",
    "EDITIONS_SHEET",
    "PIECE_HEADERS",
    "EDITION_HEADERS",
    "StoreError",
    "StoreConfigError",
    "RecordNotFoundError",
]
