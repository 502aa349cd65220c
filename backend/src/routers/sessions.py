"""
Interview prep sessions owned by the authenticated caller.

A session groups the Q/A pairs generated for one role/experience/topics
combination. Other callers' sessions answer 404 rather than 403.
"""
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, status

from src.core.errors import NotFound
from src.domain.schemas import CallerIdentity, CreateSessionRequest
from src.routers.dependencies import get_storage, require_caller
from src.services.storage import StorageService


router = APIRouter(
    prefix="/api/sessions",
    tags=["Sessions"],
)


def question_view(q: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "_id": q["id"],
        "session": q["session_id"],
        "question": q["question"],
        "answer": q["answer"],
        "note": q["note"],
        "isPinned": q["is_pinned"],
        "createdAt": q["created_at"].isoformat(),
        "updatedAt": q["updated_at"].isoformat(),
    }


def session_view(sess: Dict[str, Any], questions: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "_id": sess["id"],
        "user": sess["user_id"],
        "role": sess["role"],
        "experience": sess["experience"],
        "topicsToFocus": sess["topics_to_focus"],
        "description": sess["description"],
        "questions": [question_view(q) for q in questions],
        "createdAt": sess["created_at"].isoformat(),
        "updatedAt": sess["updated_at"].isoformat(),
    }


def owned_session(storage: StorageService, session_id: str, caller: CallerIdentity) -> Dict[str, Any]:
    sess = storage.get_session(session_id)
    if not sess or sess["user_id"] != caller.subject:
        raise NotFound("Session not found")
    return sess


@router.post("/create", status_code=status.HTTP_201_CREATED)
async def create_session(
    req: CreateSessionRequest,
    caller: CallerIdentity = Depends(require_caller),
    storage: StorageService = Depends(get_storage),
):
    sess = storage.create_session(caller.subject, req.model_dump(exclude={"questions"}))
    questions = storage.add_questions(sess["id"], [q.model_dump() for q in req.questions]) if req.questions else []
    sess = storage.get_session(sess["id"])
    return {"success": True, "session": session_view(sess, questions)}


@router.get("/my-sessions")
async def my_sessions(
    caller: CallerIdentity = Depends(require_caller),
    storage: StorageService = Depends(get_storage),
):
    return [session_view(s, storage.list_questions(s["id"])) for s in storage.list_sessions(caller.subject)]


@router.get("/{session_id}")
async def get_session(
    session_id: str,
    caller: CallerIdentity = Depends(require_caller),
    storage: StorageService = Depends(get_storage),
):
    sess = owned_session(storage, session_id, caller)
    # Pinned first, then newest first
    questions = sorted(
        storage.list_questions(session_id),
        key=lambda q: (not q["is_pinned"], -q["created_at"].timestamp()),
    )
    return {"success": True, "session": session_view(sess, questions)}


@router.delete("/{session_id}")
async def delete_session(
    session_id: str,
    caller: CallerIdentity = Depends(require_caller),
    storage: StorageService = Depends(get_storage),
):
    owned_session(storage, session_id, caller)
    storage.delete_session(session_id)
    return {"message": "Session deleted successfully"}
