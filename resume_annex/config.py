"""
Resume Annex Configuration System
=================================

This file contains ALL configuration for the Resume Annex intake engine.
- User settings at the top (things operators might want to change)
- Internal constants at the bottom (technical defaults)

Every setting can be overridden from the environment (or a .env file)
without touching the code.
"""
import os
import json
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv
from limits import parse as parse_rate_limit


class ConfigurationError(Exception):
    """Raised when required configuration is missing or malformed."""


# =============================================================================
# USER SETTINGS - Edit these to customize the intake engine
# =============================================================================

# Generation service. Leave the project unset to run without AI endpoints.
GOOGLE_CLOUD_PROJECT = None
GOOGLE_APPLICATION_CREDENTIALS = None  # Optional: path to credentials JSON

# Interview settings
QUESTION_BUDGET = 4
SOURCE_CHAR_BUDGET = 15000
TERMINATION_TOKENS = ("no", "none", "done", "nothing")
TERMINATION_MATCH = "word"  # "word" (token boundary) or "substring"

# Closing message shown next to the generated resume, per plan tier
CLOSING_MESSAGES = {
    "core": (
        "Thank you! Your interview is complete. Your Core resume draft is ready "
        "below. Review it and download it when you're happy."
    ),
    "pro": (
        "Excellent work. Your Pro resume has been rebuilt with every answer you gave. "
        "Review it below; your cover-letter and LinkedIn tuning follow next."
    ),
    "executive": (
        "Your Executive interview is complete. Your senior-level resume has been "
        "elevated for leadership scope and impact. A strategist will review it with "
        "you in your follow-up session."
    ),
    "default": (
        "Thank you! I have everything I need. Your optimized resume is ready below."
    ),
}
DEFAULT_PLAN = "default"

# Sessions held on the server
SESSION_TTL_SECONDS = 24 * 3600

# Server
HOST = "0.0.0.0"
PORT = 8000
CORS_ORIGINS = ("*",)
RATE_LIMIT = "50 per 15 minutes"  # per client IP on /upload, /chat and /optimize; "off" disables

# Logging
LOG_FILE = "./_logs/resume_annex.log"
LOG_LEVEL = "INFO"


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

SERVICE_NAME = "Resume Annex AI"

# LLM
VERTEX_LOCATION = "us-central1"
MODEL_NAME = "gemini-2.5-flash"
LLM_TIMEOUT = 60
MAX_OUTPUT_TOKENS = 4096
CHAT_TEMPERATURE = 0.7
SYNTHESIS_TEMPERATURE = 0.2
OPTIMIZE_TEMPERATURE = 0.4

# Uploads
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
MIN_SOURCE_CHAR_BUDGET = 1000

# Request bodies
MAX_MESSAGE_CHARS = 4000  # one candidate answer or /optimize text
MAX_SEGMENT_CHARS = 32000  # one context segment or history entry, so initialContext round-trips
MAX_MESSAGES = 60
MAX_SOURCE_CHAR_BUDGET = MAX_SEGMENT_CHARS - 4000  # room for the delimiters around the source text


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass
class Config:
    """Main configuration object."""
    google_cloud_project: Optional[str] = GOOGLE_CLOUD_PROJECT
    google_application_credentials: Optional[str] = GOOGLE_APPLICATION_CREDENTIALS
    vertex_location: str = VERTEX_LOCATION
    model_name: str = MODEL_NAME
    llm_timeout: float = LLM_TIMEOUT
    max_output_tokens: int = MAX_OUTPUT_TOKENS
    question_budget: int = QUESTION_BUDGET
    source_char_budget: int = SOURCE_CHAR_BUDGET
    termination_tokens: Tuple[str, ...] = TERMINATION_TOKENS
    termination_match: str = TERMINATION_MATCH
    closing_messages: Dict[str, str] = field(default_factory=lambda: dict(CLOSING_MESSAGES))
    session_ttl_seconds: int = SESSION_TTL_SECONDS
    host: str = HOST
    port: int = PORT
    cors_origins: Tuple[str, ...] = CORS_ORIGINS
    rate_limit: Optional[str] = RATE_LIMIT
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL

    @property
    def ai_enabled(self) -> bool:
        """Whether a generation-service project is configured."""
        return bool(self.google_cloud_project)


def _env_int(name: str, default: int, minimum: int = 0, maximum: Optional[int] = None) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    if maximum is not None and value > maximum:
        raise ConfigurationError(f"{name} must be <= {maximum}, got {value}")
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    items = tuple(item.strip() for item in raw.split(",") if item.strip())
    return items or default


def _load_closing_messages() -> Dict[str, str]:
    """Built-in closing messages, overlaid with the CLOSING_MESSAGES JSON object if set."""
    messages = dict(CLOSING_MESSAGES)
    raw = os.getenv("CLOSING_MESSAGES")
    if not raw:
        return messages
    try:
        overrides = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"CLOSING_MESSAGES is not valid JSON: {e}")
    if not isinstance(overrides, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in overrides.items()
    ):
        raise ConfigurationError("CLOSING_MESSAGES must be a JSON object of plan -> message")
    messages.update({k.strip().lower(): v for k, v in overrides.items()})
    return messages


def _load_rate_limit() -> Optional[str]:
    """RATE_LIMIT in limits notation ("50 per 15 minutes"); "off" disables throttling."""
    raw = os.getenv("RATE_LIMIT")
    if raw is None or raw.strip() == "":
        return RATE_LIMIT
    if raw.strip().lower() in ("off", "none", "0"):
        return None
    try:
        parse_rate_limit(raw.strip())
    except ValueError as e:
        raise ConfigurationError(f"RATE_LIMIT is not a valid rate, got {raw!r}: {e}")
    return raw.strip()


def get_config() -> Config:
    """Load configuration from the environment (and .env, if present)."""
    load_dotenv()

    termination_match = (os.getenv("TERMINATION_MATCH") or TERMINATION_MATCH).strip().lower()
    if termination_match not in ("word", "substring"):
        raise ConfigurationError(
            f"TERMINATION_MATCH must be 'word' or 'substring', got {termination_match!r}"
        )

    tokens = tuple(t.lower() for t in _env_list("TERMINATION_TOKENS", TERMINATION_TOKENS))

    return Config(
        google_cloud_project=os.getenv("GOOGLE_CLOUD_PROJECT") or GOOGLE_CLOUD_PROJECT,
        google_application_credentials=(
            os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or GOOGLE_APPLICATION_CREDENTIALS
        ),
        vertex_location=os.getenv("VERTEX_LOCATION") or VERTEX_LOCATION,
        model_name=os.getenv("MODEL_NAME") or MODEL_NAME,
        llm_timeout=_env_float("LLM_TIMEOUT", LLM_TIMEOUT),
        max_output_tokens=_env_int("MAX_OUTPUT_TOKENS", MAX_OUTPUT_TOKENS, minimum=1),
        question_budget=_env_int("QUESTION_BUDGET", QUESTION_BUDGET, minimum=1),
        source_char_budget=_env_int(
            "SOURCE_CHAR_BUDGET", SOURCE_CHAR_BUDGET,
            minimum=MIN_SOURCE_CHAR_BUDGET, maximum=MAX_SOURCE_CHAR_BUDGET
        ),
        termination_tokens=tokens,
        termination_match=termination_match,
        closing_messages=_load_closing_messages(),
        session_ttl_seconds=_env_int("SESSION_TTL_SECONDS", SESSION_TTL_SECONDS, minimum=1),
        host=os.getenv("HOST") or HOST,
        port=_env_int("PORT", PORT, minimum=1),
        cors_origins=_env_list("CORS_ORIGINS", CORS_ORIGINS),
        rate_limit=_load_rate_limit(),
        log_file=os.getenv("LOG_FILE") or LOG_FILE,
        log_level=(os.getenv("LOG_LEVEL") or LOG_LEVEL).upper(),
    )
