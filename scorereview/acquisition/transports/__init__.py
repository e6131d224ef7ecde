"""Pluggable fetch/download backends."""

from ..config import AcquisitionConfig
from ..types import TransportKind
from .base import Transport, build_payload
from .browser import BrowserTransport
from .http import HttpTransport


def create_transport(config: AcquisitionConfig) -> Transport:
    """Build the transport selected by ``config.transport``."""
    if config.transport == TransportKind.HTTP:
        return HttpTransport(config)
    return BrowserTransport(config)


__all__ = [
    "Transport",
    "HttpTransport",
    "BrowserTransport",
    "build_payload",
    "create_transport",
]
