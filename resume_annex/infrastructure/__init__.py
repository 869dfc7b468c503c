"""Infrastructure components for the Resume Annex intake engine.

This module contains low-level technical components that provide
foundational capabilities for the interview core.
"""

# Document infrastructure
from .documents import ExtractionError, extract_text, truncate_text

# LLM infrastructure
from .llm import VertexRestClient, ServiceUnavailable

# Session storage
from .data import InterviewSessionRecord, SessionStore, SessionNotFound

__all__ = [
    # Documents
    "ExtractionError", "extract_text", "truncate_text",

    # LLM client
    "VertexRestClient", "ServiceUnavailable",

    # Sessions
    "InterviewSessionRecord", "SessionStore", "SessionNotFound",
]
