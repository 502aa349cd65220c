"""
Account endpoints: register, login, profile.

Passwords are stored as Argon2 hashes; responses carry a fresh bearer token.
Hashing runs in the threadpool so the event loop keeps serving other requests.
"""
import logging

from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool

from src.core.errors import ApiError, NotFound, ValidationFailed
from src.domain.schemas import AuthResponse, CallerIdentity, LoginRequest, RegisterRequest, UserResponse
from src.routers.dependencies import get_auth_gate, get_storage, require_caller
from src.security.auth_gate import AuthGate
from src.security.passwords import hash_password, verify_password
from src.services.storage import StorageService


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/auth",
    tags=["Auth"],
)


class InvalidLogin(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password"


def _user_response(user: dict) -> UserResponse:
    return UserResponse(
        id=user["id"],
        name=user["name"],
        email=user["email"],
        profile_image_url=user.get("profile_image_url"),
        created_at=user["created_at"],
    )


def _auth_response(user: dict, gate: AuthGate) -> AuthResponse:
    return AuthResponse(
        **_user_response(user).model_dump(),
        token=gate.issue_token(user["id"]),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    req: RegisterRequest,
    storage: StorageService = Depends(get_storage),
    gate: AuthGate = Depends(get_auth_gate),
):
    if storage.find_user_by_email(req.email):
        raise ValidationFailed("User already exists")

    password_hash = await run_in_threadpool(hash_password, req.password)
    # Re-check: another registration may have finished while hashing
    if storage.find_user_by_email(req.email):
        raise ValidationFailed("User already exists")

    user = storage.create_user(
        name=req.name,
        email=req.email,
        password_hash=password_hash,
        profile_image_url=req.profile_image_url,
    )
    logger.info("[AUTH] Registered account %s", user["id"])
    return _auth_response(user, gate)


@router.post("/login", response_model=AuthResponse)
async def login(
    req: LoginRequest,
    storage: StorageService = Depends(get_storage),
    gate: AuthGate = Depends(get_auth_gate),
):
    user = storage.find_user_by_email(req.email)
    # Same answer for unknown email and wrong password
    if not user:
        raise InvalidLogin()
    if not await run_in_threadpool(verify_password, req.password, user["password_hash"]):
        raise InvalidLogin()
    return _auth_response(user, gate)


@router.get("/profile", response_model=UserResponse)
async def profile(
    caller: CallerIdentity = Depends(require_caller),
    storage: StorageService = Depends(get_storage),
):
    user = storage.get_user(caller.subject)
    if not user:
        raise NotFound("User not found")
    return _user_response(user)
