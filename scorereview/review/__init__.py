"""Editorial review workflow."""

from .approval import ApprovalService, ReviewStatus, destination_slug
from .slugs import make_slug, slugify

__all__ = [
    "ApprovalService",
    "ReviewStatus",
    "destination_slug",
    "make_slug",
    "slugify",
]
