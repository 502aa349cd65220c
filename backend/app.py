"""
FastAPI application entrypoint (orchestration only).

Responsibilities:
- Load environment variables and build Settings once
- Build the process-wide policy objects (OriginPolicy, AuthGate, AIOrchestrator)
- Configure middleware (policy-driven CORS, admission pipeline)
- Register routers and the error normalization handlers

All business logic and endpoints live in dedicated modules under `src/`.
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

# Load environment variables BEFORE reading settings
load_dotenv()

from src.core.config import Settings, load_settings
from src.core.errors import ApiError, NotFound, RouteNotFound, ValidationFailed
from src.core.llm_client import LLMClient
from src.core.pipeline import AdmissionMiddleware, RequestPipeline
from src.routers import ai, auth, health, questions, sessions
from src.security.auth_gate import AuthGate
from src.security.origin_policy import OriginPolicy, PolicyCORSMiddleware
from src.services.ai_orchestrator import AIOrchestrator, TextGenerator
from src.services.storage import InMemoryStorage, StorageService


logger = logging.getLogger(__name__)


# ==================== Error normalization ====================

async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("[ERROR] %s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
    return exc.to_response()


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if any(e.get("type") == "missing" for e in errors):
        return ValidationFailed("Missing required fields").to_response()
    first = errors[0] if errors else {}
    field = ".".join(str(x) for x in first.get("loc", ()) if x != "body") or "body"
    return ValidationFailed(f"Invalid field '{field}': {first.get('msg', 'invalid value')}").to_response()


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        if request.url.path.startswith("/uploads/"):
            return NotFound("File not found").to_response()
        return RouteNotFound().to_response()
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
        headers=getattr(exc, "headers", None),
    )


# ==================== App factory ====================

def create_app(
    settings: Optional[Settings] = None,
    *,
    storage: Optional[StorageService] = None,
    llm_client: Optional[TextGenerator] = None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Configuration (defaults to `load_settings()` from the environment)
        storage: Account/session/question store (defaults to in-memory)
        llm_client: Upstream text generator (defaults to the OpenAI client)
    """
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = settings or load_settings()
    storage = storage or InMemoryStorage()
    llm_client = llm_client or LLMClient.from_settings(settings)

    origin_policy = OriginPolicy.from_settings(settings)
    pipeline = RequestPipeline(origin_policy, AuthGate.from_settings(settings, storage))

    app = FastAPI(
        title="Interview Prep API",
        description="AI-powered interview preparation backend",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.storage = storage
    app.state.pipeline = pipeline
    app.state.orchestrator = AIOrchestrator(llm_client, timeout=settings.ai_timeout_seconds)

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    # Last added runs first: CORS headers wrap every response, including rejections
    app.add_middleware(AdmissionMiddleware, pipeline=pipeline)
    app.add_middleware(PolicyCORSMiddleware, policy=origin_policy)

    # Register routers
    app.include_router(auth.router)
    app.include_router(sessions.router)
    app.include_router(questions.router)
    app.include_router(ai.router)
    app.include_router(health.router)

    os.makedirs(settings.uploads_dir, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.uploads_dir), name="uploads")

    logger.info("ALLOWED_ORIGINS: %s", list(origin_policy.allowed_origins))
    logger.info("ALLOW_VERCEL_PREVIEW: %s", origin_policy.preview_active)
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY not set; AI endpoints will answer 502")
    return app


if __name__ == "__main__":
    import uvicorn

    port = load_settings().port
    print(f"Server running on port {port} (env: {os.getenv('APP_ENV') or os.getenv('NODE_ENV') or 'development'})")

    uvicorn.run("app:create_app", factory=True, host="0.0.0.0", port=port)
