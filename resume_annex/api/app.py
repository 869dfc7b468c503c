"""
Resume Annex HTTP API.

- FastAPI app built by create_app(): /health, /upload, /chat, /optimize.
- Requests/responses are validated with the pydantic schemas in api.schemas and
  handed to the IntakeOrchestrator; typed errors become short JSON {"error": ...} bodies.
"""

import logging
from typing import Optional

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .schemas import (
    ChatRequestSchema,
    ChatResponseSchema,
    ErrorResponseSchema,
    HealthResponseSchema,
    OptimizeRequestSchema,
    OptimizeResponseSchema,
    UploadResponseSchema,
)
from ..config import Config, ConfigurationError, SERVICE_NAME, MAX_UPLOAD_BYTES, RATE_LIMIT, get_config
from ..infrastructure.data import SessionNotFound
from ..infrastructure.documents import ExtractionError
from ..infrastructure.llm import ServiceUnavailable
from ..interview import IntakeOrchestrator

logger = logging.getLogger("api")

_ERROR_RESPONSES = {
    400: {"model": ErrorResponseSchema},
    404: {"model": ErrorResponseSchema},
    429: {"model": ErrorResponseSchema},
    503: {"model": ErrorResponseSchema},
}

_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(orchestrator: Optional[IntakeOrchestrator] = None,
               config: Optional[Config] = None) -> FastAPI:
    """Build the FastAPI application around an orchestrator (created from config if omitted)."""
    if config is None:
        config = orchestrator.config if orchestrator is not None else get_config()
    if orchestrator is None:
        orchestrator = IntakeOrchestrator(config)

    app = FastAPI(
        title="Resume Annex API",
        description="Upload a resume, close its gaps in a short interview, and receive the rewritten resume.",
        version="1.0.0",
    )
    app.state.orchestrator = orchestrator
    app.state.config = config

    # One limiter per app, keyed by client IP; in-memory counters are process-local
    limiter = Limiter(key_func=get_remote_address, enabled=config.rate_limit is not None)
    app.state.limiter = limiter
    ai_rate = config.rate_limit or RATE_LIMIT

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        for header, value in _SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    # --- Error translation ---

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        detail = first.get("msg", "Invalid request")
        logger.info("Rejected %s %s: %s", request.method, request.url.path, detail)
        return _error(400, f"{location}: {detail}" if location else detail)

    @app.exception_handler(RateLimitExceeded)
    async def handle_rate_limited(request: Request, exc: RateLimitExceeded):
        logger.warning("Rate limit hit by %s on %s", get_remote_address(request), request.url.path)
        return _error(429, "Too many requests from this IP, please try again later.")

    @app.exception_handler(ExtractionError)
    async def handle_extraction_error(request: Request, exc: ExtractionError):
        return _error(400, ExtractionError.user_message)

    @app.exception_handler(SessionNotFound)
    async def handle_session_not_found(request: Request, exc: SessionNotFound):
        return _error(404, "Session not found or expired. Please upload your resume again.")

    @app.exception_handler(ConfigurationError)
    async def handle_configuration_error(request: Request, exc: ConfigurationError):
        return _error(503, "AI service is not configured")

    @app.exception_handler(ServiceUnavailable)
    async def handle_service_unavailable(request: Request, exc: ServiceUnavailable):
        # SynthesisError lands here too; nothing was saved, so the client may retry
        return _error(503, "AI Service Unavailable")

    # --- Routes ---

    @app.get("/health", response_model=HealthResponseSchema, summary="Health check")
    def health():
        """Service status and event counters."""
        return HealthResponseSchema(
            status="UP",
            service=SERVICE_NAME,
            model=config.model_name,
            ai_enabled=config.ai_enabled,
            metrics=orchestrator.get_metrics(),
        )

    @app.post(
        "/upload",
        response_model=UploadResponseSchema,
        responses=_ERROR_RESPONSES,
        summary="Upload a resume and start the interview",
    )
    @limiter.limit(ai_rate)
    def upload(request: Request, file: UploadFile = File(...), plan: Optional[str] = Form(None)):
        """Extract the resume text, build the interview context and ask the first question."""
        data = file.file.read(MAX_UPLOAD_BYTES + 1)
        if len(data) > MAX_UPLOAD_BYTES:
            logger.warning("Rejected upload over %d bytes", MAX_UPLOAD_BYTES)
            return _error(413, "File too large")

        result = orchestrator.start_interview(
            data,
            declared_type=file.content_type,
            filename=file.filename,
            plan=plan,
        )
        return UploadResponseSchema(
            reply=result.reply,
            initial_context=result.context.to_payload(),
            session_id=result.session_id,
            question_count=result.question_count,
        )

    @app.post(
        "/chat",
        response_model=ChatResponseSchema,
        response_model_exclude_none=True,
        responses=_ERROR_RESPONSES,
        summary="Answer the current question",
    )
    @limiter.limit(ai_rate)
    def chat(request: Request, payload: ChatRequestSchema):
        """Evaluate the interview state and return the next question or the final resume."""
        messages = [m.model_dump() for m in payload.messages] if payload.messages is not None else None
        try:
            outcome = orchestrator.chat(
                messages=messages,
                message=payload.message,
                session_id=payload.session_id,
                question_count=payload.question_count,
                plan=payload.plan,
                initial_context=payload.initial_context,
            )
        except ValueError as e:
            return _error(400, str(e))

        return ChatResponseSchema(
            reply=outcome.reply,
            is_complete=outcome.is_complete,
            question_count=outcome.question_count,
            generated_resume=outcome.generated_resume,
        )

    @app.post(
        "/optimize",
        response_model=OptimizeResponseSchema,
        responses=_ERROR_RESPONSES,
        summary="Rewrite one resume bullet",
    )
    @limiter.limit(ai_rate)
    def optimize(request: Request, payload: OptimizeRequestSchema):
        """Single-shot rewrite; no interview state involved."""
        try:
            enhanced = orchestrator.optimize(payload.text or payload.bullet_point)
        except ValueError as e:
            return _error(400, str(e))
        return OptimizeResponseSchema(enhanced=enhanced)

    return app
