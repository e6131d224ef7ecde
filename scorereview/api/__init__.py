"""HTTP surface of the score review back end."""

from .app import app

__all__ = ["app"]
