"""
Password hashing for locally registered accounts (Argon2id via argon2-cffi).

Both calls are CPU-bound; routes run them off the event loop.
"""
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError


PWD = PasswordHasher()


def hash_password(password: str) -> str:
    return PWD.hash(password)


def verify_password(password: str, stored: str) -> bool:
    """Return True if `password` matches the stored hash. Malformed hashes never match."""
    try:
        return PWD.verify(stored, password)
    except (VerificationError, InvalidHashError):
        return False
