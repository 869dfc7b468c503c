"""
Plain-text extraction from uploaded resume documents (PDF, DOCX, plain text).
"""
import io
import re
import logging
from typing import Optional

import docx
from PyPDF2 import PdfReader

from ...config import SOURCE_CHAR_BUDGET

logger = logging.getLogger("extraction")

PDF_TYPE = "application/pdf"
DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_TYPES = ("text/plain", "text/markdown")

_EXTENSION_TYPES = {
    ".pdf": PDF_TYPE,
    ".docx": DOCX_TYPE,
    ".txt": "text/plain",
    ".md": "text/markdown",
}

_BLANK_RUNS = re.compile(r"\n{3,}")


class ExtractionError(Exception):
    """
    An uploaded document could not be turned into text.

    reason is one of "empty", "unsupported" or "unreadable".
    """

    user_message = "Could not read file. Please paste your resume text directly."

    def __init__(self, reason: str, detail: str = ""):
        self.reason = reason
        self.detail = detail
        super().__init__(f"{reason}: {detail}" if detail else reason)


def resolve_media_type(data: bytes,
                       declared_type: Optional[str],
                       filename: Optional[str] = None) -> str:
    """
    Decide which format to parse.

    The declared type wins when it is one we support; otherwise the filename
    extension, then the leading magic bytes, are consulted.
    """
    declared = (declared_type or "").split(";")[0].strip().lower()
    if declared in (PDF_TYPE, DOCX_TYPE) or declared in TEXT_TYPES:
        return declared

    if filename:
        name = filename.lower()
        for ext, media_type in _EXTENSION_TYPES.items():
            if name.endswith(ext):
                return media_type

    if data.startswith(b"%PDF"):
        return PDF_TYPE
    if data.startswith(b"PK\x03\x04"):
        return DOCX_TYPE

    raise ExtractionError("unsupported", f"media type {declared or 'unknown'!r}")


def _extract_pdf(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    pages = []
    for page in reader.pages:
        pages.append(page.extract_text() or "")
    return "\n".join(pages)


def _extract_docx(data: bytes) -> str:
    document = docx.Document(io.BytesIO(data))
    lines = [p.text for p in document.paragraphs]
    # Resumes often keep experience blocks in tables
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                lines.append(" | ".join(cells))
    return "\n".join(lines)


def _normalize(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n").replace("\x00", "")
    text = "\n".join(line.rstrip() for line in text.split("\n"))
    return _BLANK_RUNS.sub("\n\n", text).strip()


def truncate_text(text: str, budget: int = SOURCE_CHAR_BUDGET) -> str:
    """
    Bound text to at most budget characters.

    Python strings index by code point, so the cut never splits a multibyte
    sequence; a dangling high surrogate (from lenient decoders) is dropped too.
    """
    if budget < 0:
        raise ValueError("budget must be non-negative")
    if len(text) <= budget:
        return text
    cut = text[:budget]
    if cut and "\ud800" <= cut[-1] <= "\udbff":
        cut = cut[:-1]
    return cut


def extract_text(data: bytes,
                 declared_type: Optional[str] = None,
                 filename: Optional[str] = None,
                 budget: int = SOURCE_CHAR_BUDGET) -> str:
    """
    Turn an uploaded document into a bounded plain-text excerpt.

    Args:
        data: Raw uploaded bytes
        declared_type: Content type sent by the client, if any
        filename: Original filename, used when the type is missing or generic
        budget: Maximum number of characters to return

    Returns:
        Normalized text, at most budget characters (may be empty for image-only PDFs)

    Raises:
        ExtractionError: If the buffer is empty, the format unsupported or the file corrupt
    """
    if not data:
        raise ExtractionError("empty", "no bytes uploaded")

    media_type = resolve_media_type(data, declared_type, filename)

    try:
        if media_type == PDF_TYPE:
            raw = _extract_pdf(data)
        elif media_type == DOCX_TYPE:
            raw = _extract_docx(data)
        else:
            raw = data.decode("utf-8", errors="replace")
    except Exception as e:
        logger.warning("Failed to parse %s upload (%d bytes): %s", media_type, len(data), e)
        raise ExtractionError("unreadable", f"{media_type}: {type(e).__name__}") from e

    text = truncate_text(_normalize(raw), budget)
    logger.info("Extracted %d characters from %s upload (%d bytes)", len(text), media_type, len(data))
    return text
