"""
AI orchestration for question and explanation generation.

Flow per call: validate input -> build prompt -> one upstream call bounded by
a timeout -> strict parse of the reply -> typed result. Authentication is
already done by the time a request reaches here.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol

import openai
from pydantic import ValidationError

from src.core.errors import UpstreamFailure, UpstreamTimeout, ValidationFailed
from src.core.llm_client import LLMClientError
from src.core.prompt_templates import SYSTEM_PROMPT, build_explanation_prompt, build_questions_prompt
from src.domain.schemas import Explanation, ExplanationRequest, QAPair, QuestionGenerationRequest
from src.utils.json_utils import EXPLANATION_SCHEMA, QUESTIONS_SCHEMA, LLMOutputError, parse_llm_json


logger = logging.getLogger(__name__)

MALFORMED_UPSTREAM = "Malformed upstream response"


class TextGenerator(Protocol):
    async def generate_text(self, system_prompt: str, user_prompt: str, **kwargs: Any) -> Dict[str, Any]:
        ...


def _validation_message(error: ValidationError) -> str:
    errors = error.errors()
    if any(e.get("type") == "missing" for e in errors):
        return "Missing required fields"
    first = errors[0]
    field = ".".join(str(x) for x in first.get("loc", ())) or "body"
    return f"Invalid field '{field}': {first.get('msg', 'invalid value')}"


class AIOrchestrator:
    def __init__(self, client: TextGenerator, *, timeout: float = 30.0) -> None:
        self.client = client
        self.timeout = timeout

    async def generate_questions(self, payload: Any) -> List[QAPair]:
        """Generate interview Q/A pairs for a role.

        Args:
            payload: Parsed JSON body ({role|topic, experience?, topicsToFocus?, numberOfQuestions|count})

        Returns:
            At most `numberOfQuestions` pairs, in the order the model produced them

        Raises:
            ValidationFailed: Missing/invalid fields (no upstream call is made)
            UpstreamTimeout: The model did not answer within the timeout
            UpstreamFailure: The model call failed or its reply was unusable
        """
        req = self._validate(QuestionGenerationRequest, payload)
        prompt = build_questions_prompt(
            role=req.role,
            experience=req.experience,
            topics_to_focus=req.topics_to_focus,
            number_of_questions=req.number_of_questions,
        )
        text = await self._dispatch(prompt, operation="generate-questions")

        try:
            data = parse_llm_json(text, QUESTIONS_SCHEMA)
            pairs = [QAPair.model_validate(item) for item in data["questions"]]
        except (LLMOutputError, ValidationError) as e:
            self._log_malformed("generate-questions", e, text)
            raise UpstreamFailure(MALFORMED_UPSTREAM)

        if len(pairs) != req.number_of_questions:
            logger.warning(
                "[AI] Requested %d questions, upstream returned %d",
                req.number_of_questions,
                len(pairs),
            )
        return pairs[: req.number_of_questions]

    async def generate_explanation(self, payload: Any) -> Explanation:
        """Generate a titled explanation of the concept behind a question."""
        req = self._validate(ExplanationRequest, payload)
        text = await self._dispatch(build_explanation_prompt(req.question), operation="generate-explanation")

        try:
            data = parse_llm_json(text, EXPLANATION_SCHEMA)
            return Explanation.model_validate(data)
        except (LLMOutputError, ValidationError) as e:
            self._log_malformed("generate-explanation", e, text)
            raise UpstreamFailure(MALFORMED_UPSTREAM)

    # ==================== internals ====================

    @staticmethod
    def _validate(model, payload: Any):
        if not isinstance(payload, dict):
            raise ValidationFailed("Missing required fields")
        try:
            return model.from_payload(payload)
        except ValidationError as e:
            raise ValidationFailed(_validation_message(e))

    async def _dispatch(self, user_prompt: str, *, operation: str) -> str:
        # Single attempt; the caller decides whether to retry
        try:
            result = await asyncio.wait_for(
                self.client.generate_text(SYSTEM_PROMPT, user_prompt),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, openai.APITimeoutError):
            logger.warning("[AI] %s timed out after %.1fs", operation, self.timeout)
            raise UpstreamTimeout()
        except (openai.OpenAIError, LLMClientError) as e:
            logger.error("[AI] %s upstream error: %s", operation, e)
            raise UpstreamFailure()

        text = result.get("text") if isinstance(result, dict) else None
        if not isinstance(text, str):
            logger.error("[AI] %s upstream returned no text", operation)
            raise UpstreamFailure(MALFORMED_UPSTREAM)
        return text

    @staticmethod
    def _log_malformed(operation: str, error: Exception, text: Optional[str]) -> None:
        preview = (text or "")[:200]
        logger.error("[AI] %s malformed upstream response (%s): %r", operation, error, preview)
