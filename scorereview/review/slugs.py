"""Slug derivation for pieces and republished score files."""

import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Lowercase, collapse non-alphanumeric runs to '-', trim hyphens."""
    return _NON_ALNUM.sub("-", text.lower()).strip("-")


def make_slug(composer: str, piece: str) -> str:
    """Slug for a piece: ``make_slug("J.S. Bach", "BWV 846") == "j-s-bach-bwv-846"``."""
    return slugify(f"{composer or ''}-{piece or ''}")
