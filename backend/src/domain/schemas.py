from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from typing_extensions import Annotated

from src.security.validators import validate_prompt_text


MAX_QUESTIONS = 20


def _strip_required(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError("must not be empty")
    return value


NonEmptyStr = Annotated[str, AfterValidator(_strip_required)]


# ==================== Identity ====================

class CallerIdentity(BaseModel):
    """Verified caller resolved from a bearer token. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    subject: str
    name: Optional[str] = None
    email: Optional[str] = None


# ==================== AI generation ====================

class QuestionGenerationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    role: str = Field(..., min_length=1, max_length=200)
    experience: Optional[str] = Field(None, max_length=100)
    topics_to_focus: Optional[str] = Field(None, alias="topicsToFocus", max_length=1000)
    number_of_questions: int = Field(..., alias="numberOfQuestions", gt=0, le=MAX_QUESTIONS)

    @field_validator("experience", mode="before")
    @classmethod
    def _coerce_experience(cls, value):
        # Clients send experience as a number of years or as text
        if value is None:
            return None
        return str(value)

    @field_validator("role", "topics_to_focus")
    @classmethod
    def _screen_prompt_text(cls, value):
        return validate_prompt_text(value)

    @classmethod
    def from_payload(cls, payload: dict) -> "QuestionGenerationRequest":
        """Accept the short `{topic, count}` form as well as the full field names."""
        data = dict(payload)
        if "role" not in data and "topic" in data:
            data["role"] = data.pop("topic")
        if "numberOfQuestions" not in data and "number_of_questions" not in data and "count" in data:
            data["numberOfQuestions"] = data.pop("count")
        return cls.model_validate(data)


class ExplanationRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    question: str = Field(..., min_length=1, max_length=1000)

    @field_validator("question")
    @classmethod
    def _screen_prompt_text(cls, value):
        return validate_prompt_text(value)

    @classmethod
    def from_payload(cls, payload: dict) -> "ExplanationRequest":
        data = dict(payload)
        if "question" not in data and "concept" in data:
            data["question"] = data.pop("concept")
        return cls.model_validate(data)


class QAPair(BaseModel):
    question: NonEmptyStr
    answer: NonEmptyStr


class Explanation(BaseModel):
    title: NonEmptyStr
    explanation: NonEmptyStr


# ==================== Accounts ====================

class RegisterRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=6, max_length=128)
    profile_image_url: Optional[str] = Field(None, alias="profileImageUrl")


class LoginRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., serialization_alias="_id")
    name: str
    email: str
    profile_image_url: Optional[str] = Field(None, serialization_alias="profileImageUrl")
    created_at: datetime = Field(..., serialization_alias="createdAt")


class AuthResponse(UserResponse):
    token: str


# ==================== Sessions & questions ====================

class QuestionInput(BaseModel):
    question: str = Field(..., min_length=1)
    answer: str = ""


class CreateSessionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    role: str = Field(..., min_length=1)
    experience: str = Field(..., min_length=1)
    topics_to_focus: str = Field(..., alias="topicsToFocus", min_length=1)
    description: Optional[str] = None
    questions: List[QuestionInput] = Field(default_factory=list)

    @field_validator("experience", mode="before")
    @classmethod
    def _coerce_experience(cls, value):
        return None if value is None else str(value)


class AddQuestionsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId", min_length=1)
    questions: List[QuestionInput] = Field(..., min_length=1)


class UpdateNoteRequest(BaseModel):
    note: str = ""
