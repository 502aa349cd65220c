"""
AI generation endpoints.

Both routes require a bearer token. The JSON body parsed by the admission
pipeline is handed to the orchestrator as-is; validation happens there.
"""
from typing import List

from fastapi import APIRouter, Depends

from src.core.pipeline import RequestContext, Stage, get_request_context
from src.domain.schemas import CallerIdentity, Explanation, QAPair
from src.routers.dependencies import get_orchestrator, require_caller
from src.services.ai_orchestrator import AIOrchestrator


router = APIRouter(
    prefix="/api/ai",
    tags=["AI"],
)


@router.post(
    "/generate-questions",
    response_model=List[QAPair],
    summary="Generate interview questions",
    description="Generate question/answer pairs for a role, experience level and focus topics.",
)
async def generate_questions(
    caller: CallerIdentity = Depends(require_caller),
    ctx: RequestContext = Depends(get_request_context),
    orchestrator: AIOrchestrator = Depends(get_orchestrator),
) -> List[QAPair]:
    result = await orchestrator.generate_questions(ctx.body)
    ctx.advance(Stage.HANDLED)
    return result


@router.post(
    "/generate-explanation",
    response_model=Explanation,
    summary="Explain a concept",
    description="Generate a titled explanation of the concept behind an interview question.",
)
async def generate_explanation(
    caller: CallerIdentity = Depends(require_caller),
    ctx: RequestContext = Depends(get_request_context),
    orchestrator: AIOrchestrator = Depends(get_orchestrator),
) -> Explanation:
    result = await orchestrator.generate_explanation(ctx.body)
    ctx.advance(Stage.HANDLED)
    return result
