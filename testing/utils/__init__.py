"""
Shared test doubles for the score review tests.

- fakes: in-memory Google Sheets service and Sanity HTTP API handler
"""

from .fakes import FakeSanityApi, FakeSheetsService

__all__ = ["FakeSanityApi", "FakeSheetsService"]
