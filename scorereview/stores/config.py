"""Configuration for the document store and spreadsheet clients."""

import os
from dataclasses import dataclass, field
from typing import Optional

from .errors import StoreConfigError


@dataclass
class SanityConfig:
    """Configuration for the Sanity content store.

    Environment Variables:
        SANITY_PROJECT_ID: Sanity project id (NEXT_PUBLIC_SANITY_PROJECT_ID also accepted)
        SANITY_DATASET: Dataset name (NEXT_PUBLIC_SANITY_DATASET also accepted)
        SANITY_API_TOKEN: Token with write access
        SANITY_API_VERSION: Dated API version (default: 2024-02-20)
        SANITY_TIMEOUT: Request timeout in seconds (default: 30)
    """

    project_id: Optional[str] = field(
        default_factory=lambda: os.environ.get("SANITY_PROJECT_ID")
        or os.environ.get("NEXT_PUBLIC_SANITY_PROJECT_ID")
    )
    dataset: Optional[str] = field(
        default_factory=lambda: os.environ.get("SANITY_DATASET")
        or os.environ.get("NEXT_PUBLIC_SANITY_DATASET")
    )
    token: Optional[str] = field(default_factory=lambda: os.environ.get("SANITY_API_TOKEN"))
    api_version: str = field(
        default_factory=lambda: os.environ.get("SANITY_API_VERSION", "2024-02-20")
    )
    timeout: float = field(
        default_factory=lambda: float(os.environ.get("SANITY_TIMEOUT", "30"))
    )

    @property
    def base_url(self) -> str:
        return f"https://{self.project_id}.api.sanity.io/v{self.api_version}"

    def validate(self) -> None:
        missing = [
            name
            for name, value in (
                ("SANITY_PROJECT_ID", self.project_id),
                ("SANITY_DATASET", self.dataset),
            )
            if not value
        ]
        if missing:
            raise StoreConfigError("sanity", missing)


@dataclass
class SheetsConfig:
    """Configuration for the Google Sheets export.

    Environment Variables:
        GOOGLE_SERVICE_ACCOUNT_EMAIL: Service account client email
        GOOGLE_PRIVATE_KEY: Service account private key (literal \\n allowed)
        GOOGLE_SHEET_ID: Spreadsheet id
    """

    service_account_email: Optional[str] = field(
        default_factory=lambda: os.environ.get("GOOGLE_SERVICE_ACCOUNT_EMAIL")
    )
    private_key: Optional[str] = field(
        default_factory=lambda: os.environ.get("GOOGLE_PRIVATE_KEY")
    )
    spreadsheet_id: Optional[str] = field(
        default_factory=lambda: os.environ.get("GOOGLE_SHEET_ID")
    )

    def validate(self) -> None:
        missing = [
            name
            for name, value in (
                ("GOOGLE_SERVICE_ACCOUNT_EMAIL", self.service_account_email),
                ("GOOGLE_PRIVATE_KEY", self.private_key),
                ("GOOGLE_SHEET_ID", self.spreadsheet_id),
            )
            if not value
        ]
        if missing:
            raise StoreConfigError("sheets", missing)
