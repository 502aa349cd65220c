from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4


def _now() -> datetime:
    return datetime.now(timezone.utc)


class StorageService:
    """Abstract storage interface for accounts, sessions and questions.

    Replace this with a DB-backed implementation without changing routers.
    Records are plain dicts; callers must not mutate what they get back.
    """

    # Accounts
    def create_user(self, name: str, email: str, password_hash: str, profile_image_url: Optional[str]) -> Dict[str, Any]:
        raise NotImplementedError

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    # Sessions
    def create_session(self, user_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def list_sessions(self, user_id: str) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def delete_session(self, session_id: str) -> bool:
        raise NotImplementedError

    # Questions
    def add_questions(self, session_id: str, questions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def get_question(self, question_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def list_questions(self, session_id: str) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def update_question(self, question_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        raise NotImplementedError


class InMemoryStorage(StorageService):
    def __init__(self) -> None:
        self.users: Dict[str, Dict[str, Any]] = {}
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.questions: Dict[str, Dict[str, Any]] = {}

    # -------- accounts --------

    def create_user(self, name: str, email: str, password_hash: str, profile_image_url: Optional[str]) -> Dict[str, Any]:
        user_id = uuid4().hex
        user = {
            "id": user_id,
            "name": name,
            "email": email.lower(),
            "password_hash": password_hash,
            "profile_image_url": profile_image_url,
            "created_at": _now(),
        }
        self.users[user_id] = user
        return dict(user)

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        user = self.users.get(user_id)
        return dict(user) if user else None

    def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        email = email.lower()
        for user in self.users.values():
            if user["email"] == email:
                return dict(user)
        return None

    # -------- sessions --------

    def create_session(self, user_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        session_id = uuid4().hex
        now = _now()
        self.sessions[session_id] = {
            "id": session_id,
            "user_id": user_id,
            "role": fields.get("role"),
            "experience": fields.get("experience"),
            "topics_to_focus": fields.get("topics_to_focus"),
            "description": fields.get("description"),
            "question_ids": [],
            "created_at": now,
            "updated_at": now,
        }
        return self._session_view(session_id)

    def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        if session_id not in self.sessions:
            return None
        return self._session_view(session_id)

    def list_sessions(self, user_id: str) -> List[Dict[str, Any]]:
        owned = [s for s in self.sessions.values() if s["user_id"] == user_id]
        owned.sort(key=lambda s: s["created_at"], reverse=True)
        return [self._session_view(s["id"]) for s in owned]

    def delete_session(self, session_id: str) -> bool:
        sess = self.sessions.pop(session_id, None)
        if sess is None:
            return False
        for qid in sess["question_ids"]:
            self.questions.pop(qid, None)
        return True

    # -------- questions --------

    def add_questions(self, session_id: str, questions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        sess = self.sessions.get(session_id)
        if sess is None:
            raise KeyError(session_id)
        created = []
        for item in questions:
            question_id = uuid4().hex
            now = _now()
            record = {
                "id": question_id,
                "session_id": session_id,
                "question": item.get("question"),
                "answer": item.get("answer", ""),
                "note": "",
                "is_pinned": False,
                "created_at": now,
                "updated_at": now,
            }
            self.questions[question_id] = record
            sess["question_ids"].append(question_id)
            created.append(dict(record))
        sess["updated_at"] = _now()
        return created

    def get_question(self, question_id: str) -> Optional[Dict[str, Any]]:
        q = self.questions.get(question_id)
        return dict(q) if q else None

    def list_questions(self, session_id: str) -> List[Dict[str, Any]]:
        sess = self.sessions.get(session_id)
        if sess is None:
            return []
        return [dict(self.questions[qid]) for qid in sess["question_ids"] if qid in self.questions]

    def update_question(self, question_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        q = self.questions.get(question_id)
        if not q:
            return None
        # only mutable fields
        for k in ("note", "is_pinned", "answer"):
            if k in patch:
                q[k] = patch[k]
        q["updated_at"] = _now()
        return dict(q)

    def _session_view(self, session_id: str) -> Dict[str, Any]:
        sess = self.sessions[session_id]
        view = {k: v for k, v in sess.items() if k != "question_ids"}
        view["question_ids"] = list(sess["question_ids"])
        return view
