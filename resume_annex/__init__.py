"""
Resume Annex: AI-powered resume intake service.

Uploads a resume, runs a short gap-closing interview over it with an LLM,
and synthesizes the final rewritten resume as HTML.
"""

__version__ = "1.0.0"

# Main entry points
from .interview.orchestrator import IntakeOrchestrator
from .interview.models import Turn, ChatOutcome, UploadResult

__all__ = ["IntakeOrchestrator", "Turn", "ChatOutcome", "UploadResult"]
