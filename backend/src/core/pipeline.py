"""
Request admission pipeline.

Every request moves through:

    RECEIVED -> ORIGIN_CHECKED -> BODY_PARSED -> ROUTED -> (AUTH_CHECKED) -> HANDLED -> RESPONDED

and any gate may short-circuit it to REJECTED. A gate is an async callable
`(ctx) -> Continue | Reject`; `run_gates` applies gates in order and stops at
the first rejection.

The origin and body gates run in `AdmissionMiddleware` (before routing). The
auth gate runs per route through the `require_caller` dependency. The same
middleware is the terminal normalization stage for exceptions nothing else
handled.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

from fastapi import Request
from starlette.requests import ClientDisconnect
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from src.core.errors import ApiError, MalformedBody, OriginDenied, Unhandled
from src.domain.schemas import CallerIdentity
from src.security.auth_gate import AuthGate
from src.security.origin_policy import OriginPolicy


logger = logging.getLogger(__name__)


class Stage(str, Enum):
    RECEIVED = "received"
    ORIGIN_CHECKED = "origin_checked"
    BODY_PARSED = "body_parsed"
    ROUTED = "routed"
    AUTH_CHECKED = "auth_checked"
    HANDLED = "handled"
    RESPONDED = "responded"
    REJECTED = "rejected"


@dataclass
class RequestContext:
    """Per-request state. Created at entry, dropped with the response."""

    method: str
    path: str
    origin: Optional[str] = None
    content_type: str = ""
    raw_body: bytes = b""
    body: Any = None
    caller: Optional[CallerIdentity] = None
    stage: Stage = Stage.RECEIVED
    error: Optional[ApiError] = field(default=None, repr=False)

    def advance(self, stage: Stage) -> "RequestContext":
        self.stage = stage
        return self


@dataclass(frozen=True)
class Continue:
    context: RequestContext


@dataclass(frozen=True)
class Reject:
    error: ApiError


GateResult = Union[Continue, Reject]
Gate = Callable[[RequestContext], Awaitable[GateResult]]


async def run_gates(ctx: RequestContext, gates: Sequence[Gate]) -> GateResult:
    for gate in gates:
        outcome = await gate(ctx)
        if isinstance(outcome, Reject):
            ctx.error = outcome.error
            ctx.advance(Stage.REJECTED)
            return outcome
        ctx = outcome.context
    return Continue(ctx)


# ==================== Gates ====================

def origin_gate(policy: OriginPolicy) -> Gate:
    async def check_origin(ctx: RequestContext) -> GateResult:
        decision = policy.evaluate(ctx.origin)
        if not decision.allowed:
            logger.warning("[CORS] Rejected origin %s for %s %s", decision.origin, ctx.method, ctx.path)
            return Reject(OriginDenied(decision.origin or ""))
        return Continue(ctx.advance(Stage.ORIGIN_CHECKED))

    return check_origin


def _is_json(content_type: str) -> bool:
    media = content_type.split(";", 1)[0].strip().lower()
    return media == "application/json" or media.endswith("+json")


async def body_gate(ctx: RequestContext) -> GateResult:
    """Parse JSON bodies. Non-JSON and empty bodies pass with `body=None`."""
    if ctx.raw_body.strip() and _is_json(ctx.content_type):
        try:
            ctx.body = json.loads(ctx.raw_body)
        except (UnicodeDecodeError, json.JSONDecodeError):
            return Reject(MalformedBody())
    return Continue(ctx.advance(Stage.BODY_PARSED))


def auth_gate(gate: AuthGate, authorization: Optional[str]) -> Gate:
    async def check_auth(ctx: RequestContext) -> GateResult:
        try:
            ctx.caller = gate.authenticate(authorization)
        except ApiError as e:
            return Reject(e)
        return Continue(ctx.advance(Stage.AUTH_CHECKED))

    return check_auth


class RequestPipeline:
    """Holds the process-wide policy objects and sequences the gates."""

    def __init__(self, origin_policy: OriginPolicy, auth: AuthGate) -> None:
        self.origin_policy = origin_policy
        self.auth = auth
        self.admission_gates: Sequence[Gate] = (origin_gate(origin_policy), body_gate)

    async def admit(self, ctx: RequestContext) -> GateResult:
        return await run_gates(ctx, self.admission_gates)

    async def authorize(self, ctx: RequestContext, authorization: Optional[str]) -> GateResult:
        return await run_gates(ctx.advance(Stage.ROUTED), [auth_gate(self.auth, authorization)])


# ==================== ASGI integration ====================

class AdmissionMiddleware:
    """Runs the admission gates, then the app; normalizes anything that escapes.

    The body is read once here and replayed to the downstream app.
    """

    def __init__(self, app: ASGIApp, pipeline: RequestPipeline) -> None:
        self.app = app
        self.pipeline = pipeline

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        try:
            raw_body = await request.body()
        except ClientDisconnect:
            # Nobody is left to answer
            logger.info("[REQUEST] Client disconnected during %s %s", scope["method"], scope["path"])
            return
        ctx = RequestContext(
            method=request.method,
            path=request.url.path,
            origin=request.headers.get("origin"),
            content_type=request.headers.get("content-type", ""),
            raw_body=raw_body,
        )

        outcome = await self.pipeline.admit(ctx)
        if isinstance(outcome, Reject):
            await outcome.error.to_response()(scope, receive, send)
            return

        scope.setdefault("state", {})["context"] = ctx

        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": raw_body, "more_body": False}
            return await receive()

        response_started = False

        async def tracked_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, replay, tracked_send)
        except Exception:
            logger.exception("[ERROR] Unhandled error during %s %s", ctx.method, ctx.path)
            ctx.advance(Stage.REJECTED)
            if response_started:
                return
            await Unhandled().to_response()(scope, receive, send)
            return
        if ctx.stage is not Stage.REJECTED:
            ctx.advance(Stage.RESPONDED)


def get_request_context(request: Request) -> RequestContext:
    ctx = getattr(request.state, "context", None)
    if ctx is None:
        # Mounted sub-apps or tests that bypass the middleware
        ctx = RequestContext(method=request.method, path=request.url.path, origin=request.headers.get("origin"))
        request.state.context = ctx
    return ctx
