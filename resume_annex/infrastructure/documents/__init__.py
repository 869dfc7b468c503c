"""Document infrastructure: uploaded file to plain text."""

from .extraction import ExtractionError, extract_text, resolve_media_type, truncate_text

__all__ = ["ExtractionError", "extract_text", "resolve_media_type", "truncate_text"]
