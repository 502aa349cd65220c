"""FastAPI dependencies resolving the process-wide services held on `app.state`."""
from fastapi import Depends, Request

from src.core.pipeline import Reject, RequestContext, RequestPipeline, get_request_context
from src.domain.schemas import CallerIdentity
from src.security.auth_gate import AuthGate
from src.services.ai_orchestrator import AIOrchestrator
from src.services.storage import StorageService


def get_pipeline(request: Request) -> RequestPipeline:
    return request.app.state.pipeline


def get_storage(request: Request) -> StorageService:
    return request.app.state.storage


def get_auth_gate(request: Request) -> AuthGate:
    return request.app.state.pipeline.auth


def get_orchestrator(request: Request) -> AIOrchestrator:
    return request.app.state.orchestrator


async def require_caller(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    pipeline: RequestPipeline = Depends(get_pipeline),
) -> CallerIdentity:
    """Auth gate for protected routes. Raises the gate's 401 on failure."""
    outcome = await pipeline.authorize(ctx, request.headers.get("authorization"))
    if isinstance(outcome, Reject):
        raise outcome.error
    return outcome.context.caller
