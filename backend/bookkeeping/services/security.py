# bookkeeping/services/security.py
"""Password hashing, password policy + JWT helpers.

We use passlib pbkdf2_sha256 (pure-python) to avoid bcrypt backend issues.
JWT encode/decode uses python-jose. The signing secret and lifetimes are passed
in by the caller (taken from the app settings), nothing is read globally.

Two kinds of token are issued, told apart by the 'typ' claim: short-lived
access tokens for API calls and long-lived refresh tokens that can only be
exchanged for a new access token.
"""
import unicodedata
from datetime import datetime, timedelta, timezone
from typing import Optional, Union, Dict, Any
from passlib.context import CryptContext
from jose import jwt, JWTError

pwd_ctx = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

ALGORITHM = "HS256"
DEFAULT_EXPIRE_MINUTES = 60
DEFAULT_REFRESH_EXPIRE_MINUTES = 60 * 24 * 7

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

PASSWORD_MIN_LENGTH = 8


def hash_password(password: str) -> str:
    """Hash a plaintext password (never store plaintext)."""
    if password is None:
        raise ValueError("password cannot be None")
    return pwd_ctx.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    """Verify plain password against hashed. Returns False on any error."""
    if plain is None or hashed is None:
        return False
    try:
        return pwd_ctx.verify(plain, hashed)
    except (ValueError, TypeError):
        return False


def check_password_policy(password: str) -> str:
    """
    Raise ValueError naming every rule ``password`` breaks, else return it.
    Rules: at least 8 characters, with an uppercase letter, a lowercase
    letter, a digit and a symbol (any punctuation or symbol character).
    """
    password = password or ""
    missing = []
    if len(password) < PASSWORD_MIN_LENGTH:
        missing.append(f"at least {PASSWORD_MIN_LENGTH} characters")
    if not any(c.isupper() for c in password):
        missing.append("an uppercase letter")
    if not any(c.islower() for c in password):
        missing.append("a lowercase letter")
    if not any(c.isnumeric() for c in password):
        missing.append("a digit")
    if not any(unicodedata.category(c)[0] in ("P", "S") for c in password):
        missing.append("a symbol")
    if missing:
        raise ValueError("password needs " + ", ".join(missing))
    return password


def _encode_token(subject: Union[str, int], secret_key: str, token_type: str, lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": str(subject),
        "typ": token_type,
        "iat": int(now.timestamp()),
        "exp": int((now + lifetime).timestamp()),
    }
    return jwt.encode(payload, secret_key, algorithm=ALGORITHM)


def create_access_token(
    subject: Union[str, int],
    secret_key: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token with subject (the user id).
    - subject is stored under 'sub' as a string
    - 'typ' is "access"; 'iat' and 'exp' included (exp as int timestamp)
    """
    return _encode_token(
        subject, secret_key, ACCESS_TOKEN_TYPE, expires_delta or timedelta(minutes=DEFAULT_EXPIRE_MINUTES)
    )


def create_refresh_token(
    subject: Union[str, int],
    secret_key: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Same claims as an access token, with 'typ' "refresh" and a longer lifetime."""
    return _encode_token(
        subject, secret_key, REFRESH_TOKEN_TYPE, expires_delta or timedelta(minutes=DEFAULT_REFRESH_EXPIRE_MINUTES)
    )


def decode_token(token: str, secret_key: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT. Raises JWTError on invalid or expired tokens.
    Returns the payload dict (contains 'sub', 'typ', 'exp', etc). The caller
    checks 'typ'.
    """
    return jwt.decode(token, secret_key, algorithms=[ALGORITHM])


__all__ = [
    "hash_password",
    "verify_password",
    "check_password_policy",
    "create_access_token",
    "create_refresh_token",
    "decode_token",
    "ACCESS_TOKEN_TYPE",
    "REFRESH_TOKEN_TYPE",
    "JWTError",
]
