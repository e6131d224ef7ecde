"""Configuration for the PDF acquisition pipeline."""

import os
from dataclasses import dataclass, field

from .types import TransportKind

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class AcquisitionConfig:
    """Configuration for fetching, locating and republishing score PDFs.

    Environment Variables:
        SCORE_S3_BUCKET: Destination bucket (default: tonebase-emails)
        SCORE_S3_REGION: Bucket region (default: us-east-1)
        SCORE_S3_PREFIX: Key prefix for republished scores
            (default: Q2_2021/Q2W4/Scores/general)
        ACQUIRE_TRANSPORT: 'browser' or 'http' (default: browser)
        ACQUIRE_TIMEOUT: End-to-end budget in seconds (default: 120)
        ACQUIRE_NAV_TIMEOUT: Per request/navigation timeout in seconds (default: 30)
        ACQUIRE_UPLOAD_TIMEOUT: S3 put timeout in seconds (default: 20)
        ACQUIRE_LINK_ATTEMPTS: DOM polls for the download link (default: 20)
        ACQUIRE_GATE_TIMEOUT: Wait for the confirmation button (default: 5)
        ACQUIRE_HEADLESS: Run the browser headless (default: true)
        ACQUIRE_USER_AGENT: User-Agent sent to source pages
    """

    # Object storage
    bucket: str = field(
        default_factory=lambda: os.environ.get("SCORE_S3_BUCKET", "tonebase-emails")
    )
    region: str = field(
        default_factory=lambda: os.environ.get("SCORE_S3_REGION", "us-east-1")
    )
    prefix: str = field(
        default_factory=lambda: os.environ.get(
            "SCORE_S3_PREFIX", "Q2_2021/Q2W4/Scores/general"
        )
    )

    # Transport selection
    transport: TransportKind = field(
        default_factory=lambda: TransportKind(
            os.environ.get("ACQUIRE_TRANSPORT", TransportKind.BROWSER.value).lower()
        )
    )

    # Timeouts (seconds)
    timeout: float = field(
        default_factory=lambda: float(os.environ.get("ACQUIRE_TIMEOUT", "120"))
    )
    navigation_timeout: float = field(
        default_factory=lambda: float(os.environ.get("ACQUIRE_NAV_TIMEOUT", "30"))
    )
    upload_timeout: float = field(
        default_factory=lambda: float(os.environ.get("ACQUIRE_UPLOAD_TIMEOUT", "20"))
    )
    gate_timeout: float = field(
        default_factory=lambda: float(os.environ.get("ACQUIRE_GATE_TIMEOUT", "5"))
    )

    # Link polling for pages that reveal the download link late
    link_attempts: int = field(
        default_factory=lambda: int(os.environ.get("ACQUIRE_LINK_ATTEMPTS", "20"))
    )
    link_poll_interval: float = 1.0

    # Browser
    headless: bool = field(default_factory=lambda: _env_bool("ACQUIRE_HEADLESS", "true"))
    user_agent: str = field(
        default_factory=lambda: os.environ.get("ACQUIRE_USER_AGENT", DEFAULT_USER_AGENT)
    )
    gate_labels: tuple[str, ...] = ("I understand",)

    # Optional cookies for authenticated sources
    cookies: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.prefix = self.prefix.strip("/")
        if isinstance(self.transport, str):
            self.transport = TransportKind(self.transport.lower())


def get_acquisition_config() -> AcquisitionConfig:
    """Get acquisition configuration from environment."""
    return AcquisitionConfig()
