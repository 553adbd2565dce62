from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import bcrypt
from jose import JWTError, jwt

from app.core.config import settings

ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"


class TokenValidationError(ValueError):
    pass


@dataclass(frozen=True)
class TokenMetadata:
    subject: str
    token_type: str
    jti: str
    expires_at: datetime


def hash_password(password: str) -> str:
    # bcrypt only looks at the first 72 bytes.
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def create_token(
    subject: str,
    expires_delta: timedelta,
    token_type: str,
    jti: str | None = None,
) -> str:
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": subject,
        "type": token_type,
        "jti": jti or str(uuid4()),
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + expires_delta).timestamp()),
    }
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def issue_access_token(user_id: str) -> tuple[str, TokenMetadata]:
    """Sign an access token for ``user_id`` and return it with its claims."""
    jti = str(uuid4())
    token = create_token(
        user_id,
        timedelta(minutes=settings.access_token_expire_minutes),
        ACCESS_TOKEN_TYPE,
        jti=jti,
    )
    return token, read_token(token, expected_type=ACCESS_TOKEN_TYPE)


def read_token(token: str, *, expected_type: str = ACCESS_TOKEN_TYPE) -> TokenMetadata:
    """
    Verify signature and expiry, then check the claims a session token needs.

    Raises ``TokenValidationError`` with a short reason that is safe to show
    to the caller.
    """
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise TokenValidationError("Invalid token") from exc

    if not claims.get("sub"):
        raise TokenValidationError("Invalid token subject")
    if claims.get("type") != expected_type:
        raise TokenValidationError("Invalid token type")
    if not claims.get("jti"):
        raise TokenValidationError("Invalid token id")
    if not claims.get("exp"):
        raise TokenValidationError("Invalid token expiration")

    return TokenMetadata(
        subject=str(claims["sub"]),
        token_type=str(claims["type"]),
        jti=str(claims["jti"]),
        expires_at=datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc),
    )
