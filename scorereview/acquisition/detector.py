"""PDF detection utilities."""

PDF_CONTENT_TYPE = "application/pdf"
OCTET_STREAM = "application/octet-stream"


def is_pdf_url(url: str) -> bool:
    """Check if URL path ends in .pdf (query params and fragments ignored)."""
    clean_url = url.lower().split("?")[0].split("#")[0].rstrip("/")
    return clean_url.endswith(".pdf")


def validate_pdf_bytes(content: bytes) -> bool:
    """Check for PDF magic bytes at the start of the content."""
    return content[:4] == b"%PDF"


def is_pdf_content_type(content_type: str | None) -> bool:
    """Check if a Content-Type header declares a PDF."""
    return PDF_CONTENT_TYPE in (content_type or "").lower()


def looks_like_pdf(url: str, content_type: str | None, content: bytes = b"") -> bool:
    """Decide whether a response is a PDF.

    Accepts:
    - Content-Type application/pdf
    - application/octet-stream when the URL ends in .pdf (some mirrors do this)
    - Any body starting with %PDF

    Args:
        url: URL the response came from
        content_type: Content-Type header value
        content: Response body, if already read

    Returns:
        True if the response should be treated as a PDF
    """
    if is_pdf_content_type(content_type):
        return True
    if OCTET_STREAM in (content_type or "").lower() and is_pdf_url(url):
        return True
    return validate_pdf_bytes(content)
