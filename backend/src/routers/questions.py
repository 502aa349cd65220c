from fastapi import APIRouter, Depends, status

from src.core.errors import NotFound
from src.domain.schemas import AddQuestionsRequest, CallerIdentity, UpdateNoteRequest
from src.routers.dependencies import get_storage, require_caller
from src.routers.sessions import owned_session, question_view
from src.services.storage import StorageService


router = APIRouter(
    prefix="/api/questions",
    tags=["Questions"],
)


def _owned_question(storage: StorageService, question_id: str, caller: CallerIdentity) -> dict:
    q = storage.get_question(question_id)
    if not q:
        raise NotFound("Question not found")
    sess = storage.get_session(q["session_id"])
    if not sess or sess["user_id"] != caller.subject:
        raise NotFound("Question not found")
    return q


@router.post("/add", status_code=status.HTTP_201_CREATED)
async def add_questions(
    req: AddQuestionsRequest,
    caller: CallerIdentity = Depends(require_caller),
    storage: StorageService = Depends(get_storage),
):
    owned_session(storage, req.session_id, caller)
    created = storage.add_questions(req.session_id, [q.model_dump() for q in req.questions])
    return [question_view(q) for q in created]


@router.post("/{question_id}/pin")
async def toggle_pin(
    question_id: str,
    caller: CallerIdentity = Depends(require_caller),
    storage: StorageService = Depends(get_storage),
):
    q = _owned_question(storage, question_id, caller)
    updated = storage.update_question(question_id, {"is_pinned": not q["is_pinned"]})
    return {"success": True, "question": question_view(updated)}


@router.post("/{question_id}/note")
async def update_note(
    question_id: str,
    req: UpdateNoteRequest,
    caller: CallerIdentity = Depends(require_caller),
    storage: StorageService = Depends(get_storage),
):
    _owned_question(storage, question_id, caller)
    updated = storage.update_question(question_id, {"note": req.note})
    return {"success": True, "question": question_view(updated)}
