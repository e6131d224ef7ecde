"""Exceptions raised by document store and spreadsheet clients."""

from typing import Any


class StoreError(Exception):
    """Base store exception."""

    def __init__(self, message: str, store: str, details: dict[str, Any] | None = None):
        self.message = message
        self.store = store
        self.details = details or {}
        super().__init__(message)


class RecordNotFoundError(StoreError):
    """Document does not exist in the store."""

    def __init__(self, store: str, record_id: str):
        super().__init__(
            f"Record '{record_id}' not found in {store}",
            store,
            {"record_id": record_id},
        )


class StoreConfigError(StoreError):
    """Required credentials or identifiers are missing."""

    def __init__(self, store: str, missing: list[str]):
        super().__init__(
            f"Missing required environment variables for {store}: {', '.join(missing)}",
            store,
            {"missing": missing},
        )
