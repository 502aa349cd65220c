"""
Cross-origin access policy.

One `OriginPolicy` decides whether a declared Origin is permitted. Two layers
consume that decision:
- `PolicyCORSMiddleware` emits (or omits) the permissive CORS headers
- the admission origin gate in `src.core.pipeline` answers 403 with a JSON body

Both call `OriginPolicy.is_allowed`, so they cannot disagree.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Pattern

from fastapi.middleware.cors import CORSMiddleware
from starlette.datastructures import Headers
from starlette.responses import Response
from starlette.types import ASGIApp

from src.core.config import Settings
from src.core.errors import OriginDenied


CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization", "X-Requested-With"]


def normalize_origin(origin: str) -> str:
    return origin.strip().rstrip("/")


@dataclass(frozen=True)
class OriginDecision:
    allowed: bool
    origin: Optional[str] = None


class OriginPolicy:
    """Exact-match allow-list plus an optional preview pattern."""

    def __init__(self, allowed_origins: Iterable[str], preview_pattern: Optional[Pattern[str]] = None) -> None:
        # Tuple: the allow-list never changes after startup
        self._allowed = tuple(dict.fromkeys(normalize_origin(o) for o in allowed_origins if o and o.strip()))
        self._preview_pattern = preview_pattern

    @classmethod
    def from_settings(cls, settings: Settings) -> "OriginPolicy":
        pattern = None
        if settings.preview_enabled:
            pattern = re.compile(settings.preview_origin_pattern, re.IGNORECASE)
        return cls(settings.allowed_origins, pattern)

    @property
    def allowed_origins(self) -> tuple:
        return self._allowed

    @property
    def preview_active(self) -> bool:
        return self._preview_pattern is not None

    def evaluate(self, declared_origin: Optional[str]) -> OriginDecision:
        # No Origin header: curl, server-to-server, same-origin navigation
        if not declared_origin:
            return OriginDecision(allowed=True)

        origin = normalize_origin(declared_origin)
        if origin in self._allowed:
            return OriginDecision(allowed=True, origin=origin)
        if self._preview_pattern is not None and self._preview_pattern.fullmatch(origin):
            return OriginDecision(allowed=True, origin=origin)
        return OriginDecision(allowed=False, origin=declared_origin)

    def is_allowed(self, declared_origin: Optional[str]) -> bool:
        return self.evaluate(declared_origin).allowed


class PolicyCORSMiddleware(CORSMiddleware):
    """Starlette CORS middleware whose origin check is an `OriginPolicy`.

    A denied origin gets no Access-Control-Allow-Origin header, which the
    browser reports as a network error. A denied preflight answers with the
    same 403 JSON body as the admission origin gate.
    """

    def __init__(self, app: ASGIApp, policy: OriginPolicy) -> None:
        super().__init__(
            app,
            allow_origins=(),
            allow_methods=CORS_METHODS,
            allow_headers=CORS_HEADERS,
            allow_credentials=True,
        )
        self.policy = policy

    def is_allowed_origin(self, origin: str) -> bool:
        return self.policy.is_allowed(origin)

    def preflight_response(self, request_headers: Headers) -> Response:
        origin = request_headers["origin"]
        if not self.is_allowed_origin(origin):
            return OriginDenied(origin).to_response()
        return super().preflight_response(request_headers)
