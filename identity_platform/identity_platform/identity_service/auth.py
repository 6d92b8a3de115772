from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

import bcrypt
import jwt

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60
BCRYPT_ROUNDS = 10


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    # Federated-only records carry no hash and must never verify
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> str:
    return hash_password("identity-service-dummy-password", rounds)


def burn_password_check(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> None:
    """
    Run a bcrypt comparison against a throwaway hash.

    Keeps sign-in timing the same whether or not the email is on record.
    """
    verify_password(plain_password or "x", _dummy_hash(rounds))


def create_access_token(
    identifier: str,
    secret: str,
    algorithm: str = ALGORITHM,
    expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES,
) -> str:
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": identifier,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_access_token(token: str, secret: str, algorithm: str = ALGORITHM) -> Dict[str, Any]:
    """
    Decode and validate a session token.

    Raises:
        jwt.InvalidTokenError: If the signature, expiry or format is invalid
    """
    return jwt.decode(token, secret, algorithms=[algorithm], options={"require": ["sub", "exp"]})
