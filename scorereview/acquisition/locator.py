"""Heuristic PDF link location in score download pages.

Score archives hide the real file behind a variety of page shapes. The
locator runs an ordered list of regex matchers over the raw page source and
returns the first hit. Order is precedence, not a search for the best link:
if a page uses a shape none of the matchers know, location fails.

Add a shape by passing a longer matcher tuple to PdfLocator; the pipeline
does not need to change.
"""

import html
import logging
import re
from dataclasses import dataclass
from urllib.parse import urljoin

from .errors import NotFoundError

logger = logging.getLogger(__name__)

PAGE_EXCERPT_CHARS = 1000


@dataclass(frozen=True)
class LinkMatcher:
    """A named regex whose first group captures a candidate PDF URL."""

    name: str
    pattern: re.Pattern[str]

    def match(self, source: str) -> str | None:
        found = self.pattern.search(source)
        if found and found.group(1):
            return found.group(1)
        return None


DEFAULT_MATCHERS: tuple[LinkMatcher, ...] = (
    # <a href="https://host/file.pdf">, absolute only
    LinkMatcher("href", re.compile(r"""href=["'](https?://[^"'\s]+\.pdf[^"']*)["']""", re.IGNORECASE)),
    # <span data-id="https://host/file.pdf">
    LinkMatcher("data-id", re.compile(r"""data-id=["'](https?://[^"']+\.pdf[^"']*)["']""", re.IGNORECASE)),
    # {"url":"https:\/\/host\/file.pdf"}
    LinkMatcher("json-url", re.compile(r'"url"\s*:\s*"(https?:(?:\\?/){2}[^"]+\.pdf[^"]*)"', re.IGNORECASE)),
    # window.location.href = "https://host/file.pdf"
    LinkMatcher(
        "script-redirect",
        re.compile(r"""window\.location\.href\s*=\s*["'](https?://[^"']+\.pdf[^"']*)["']""", re.IGNORECASE),
    ),
)


def _clean_candidate(raw: str, base_url: str | None) -> str:
    """Undo HTML/JSON escaping and resolve relative links."""
    candidate = html.unescape(raw).replace("\\/", "/")
    if base_url:
        candidate = urljoin(base_url, candidate)
    return candidate


class PdfLocator:
    """Find a PDF download link in page source using ordered matchers.

    Usage:
        locator = PdfLocator()
        pdf_url = locator.find(page_html, base_url=page_url)
    """

    def __init__(self, matchers: tuple[LinkMatcher, ...] = DEFAULT_MATCHERS):
        if not matchers:
            raise ValueError("PdfLocator needs at least one matcher")
        self.matchers = matchers

    def find(self, source: str, base_url: str | None = None) -> str | None:
        """Return the first candidate link, or None if no matcher hits.

        Args:
            source: Raw HTML (or any text) of the source page
            base_url: Page URL used to resolve relative links

        Returns:
            Absolute candidate PDF URL, or None
        """
        for matcher in self.matchers:
            raw = matcher.match(source)
            if raw:
                candidate = _clean_candidate(raw, base_url)
                logger.debug(f"PDF link found by '{matcher.name}' matcher: {candidate}")
                return candidate
        return None

    def locate(self, source: str, url: str) -> str:
        """Like find(), but raise NotFoundError when nothing matches.

        Raises:
            NotFoundError: With page length and an excerpt for diagnosis
        """
        candidate = self.find(source, base_url=url)
        if candidate is None:
            logger.warning(f"No PDF link found in page ({len(source)} chars): {url}")
            raise NotFoundError(
                "No PDF link found in source page",
                url=url,
                details={
                    "pageLength": len(source),
                    "pageExcerpt": source[:PAGE_EXCERPT_CHARS],
                    "matchers": [m.name for m in self.matchers],
                },
            )
        return candidate
