"""
Bearer token authentication.

Tokens are HS256 JWTs carrying the account id in `sub`. Every failure is a
401 with one of two fixed messages; the decoder's reason is logged, never
returned, and a valid token for a deleted account looks the same as a
forged one.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from src.core.config import Settings
from src.core.errors import InvalidCredential, Unauthenticated
from src.domain.schemas import CallerIdentity
from src.services.storage import StorageService


logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from `Bearer <token>`, or None if absent/malformed."""
    if not authorization:
        return None
    parts = authorization.strip().split(None, 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


class AuthGate:
    def __init__(self, secret: str, accounts: StorageService, *, expires_in: int = 7 * 24 * 3600) -> None:
        if not secret:
            raise ValueError("AuthGate requires a non-empty secret")
        self._secret = secret
        self._accounts = accounts
        self._expires_in = expires_in

    @classmethod
    def from_settings(cls, settings: Settings, accounts: StorageService) -> "AuthGate":
        return cls(settings.jwt_secret, accounts, expires_in=settings.jwt_expires_in)

    def issue_token(self, subject: str, *, now: Optional[datetime] = None) -> str:
        issued = now or datetime.now(timezone.utc)
        payload = {
            "sub": subject,
            "iat": issued,
            "exp": issued + timedelta(seconds=self._expires_in),
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def authenticate(self, authorization: Optional[str]) -> CallerIdentity:
        """Resolve an Authorization header value to a CallerIdentity.

        Raises:
            Unauthenticated: No header, or not a Bearer credential
            InvalidCredential: Bad signature, expired, malformed, or unknown account
        """
        token = extract_bearer_token(authorization)
        if token is None:
            raise Unauthenticated()

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "sub"]},
            )
        except jwt.PyJWTError as e:
            logger.info("[AUTH] Token rejected: %s", type(e).__name__)
            raise InvalidCredential()

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise InvalidCredential()

        account = self._accounts.get_user(subject)
        if account is None:
            logger.info("[AUTH] Token subject has no account")
            raise InvalidCredential()

        return CallerIdentity(subject=subject, name=account.get("name"), email=account.get("email"))
