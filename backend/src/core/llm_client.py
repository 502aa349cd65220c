"""
Async OpenAI-compatible client used by the AI orchestrator.

Notes:
- One attempt per call: the SDK's own retries are disabled (max_retries=0)
  because each upstream call is billed; retrying is the API caller's decision.
- The request timeout comes from Settings.ai_timeout_seconds.
- The SDK client is created on first use, so the app starts without OPENAI_API_KEY.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from openai import AsyncOpenAI

from src.core.config import Settings


logger = logging.getLogger(__name__)


class LLMClientError(RuntimeError):
    """The client could not make the call (e.g. missing credentials)."""


class LLMClient:
    def __init__(
        self,
        api_key: Optional[str],
        *,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        timeout: float = 30.0,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self._client: Optional[AsyncOpenAI] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "LLMClient":
        return cls(
            settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            timeout=settings.ai_timeout_seconds,
        )

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise LLMClientError("OPENAI_API_KEY is not configured")
            client_kwargs: Dict[str, Any] = {
                "api_key": self.api_key,
                "timeout": self.timeout,
                "max_retries": 0,
            }
            if self.base_url:
                client_kwargs["base_url"] = self.base_url
            self._client = AsyncOpenAI(**client_kwargs)
        return self._client

    async def generate_text(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        json_mode: bool = True,
    ) -> Dict[str, Any]:
        """Call the chat completion API once.

        Returns a dict with keys: text, usage, model.
        """
        used_model = model or self.model
        extra: Dict[str, Any] = {}
        if json_mode:
            extra["response_format"] = {"type": "json_object"}

        resp = await self.client.chat.completions.create(
            model=used_model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
            **extra,
        )
        text = (resp.choices[0].message.content or "").strip() if resp.choices else ""
        usage = getattr(resp, "usage", None)
        usage_dict = {
            "total_tokens": getattr(usage, "total_tokens", None),
            "prompt_tokens": getattr(usage, "prompt_tokens", None),
            "completion_tokens": getattr(usage, "completion_tokens", None),
        } if usage is not None else {}
        logger.debug("[LLM] %s returned %d chars (%s)", used_model, len(text), usage_dict)
        return {"text": text, "usage": usage_dict, "model": used_model}
