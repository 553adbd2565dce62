from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.core.security import TokenMetadata, TokenValidationError, read_token
from app.models.revoked_token import RevokedToken
from app.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> TokenMetadata:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Access token required")

    try:
        metadata = read_token(credentials.credentials)
    except TokenValidationError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    revoked = db.execute(
        select(RevokedToken.jti).where(RevokedToken.jti == metadata.jti)
    ).scalar_one_or_none()
    if revoked:
        raise HTTPException(status_code=401, detail="Token has been revoked")
    return metadata


def get_current_user(
    token: TokenMetadata = Depends(get_current_token),
    db: Session = Depends(get_db),
) -> User:
    user = db.execute(select(User).where(User.id == token.subject)).scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    if user.status != "active":
        raise HTTPException(status_code=401, detail="User account is inactive")
    return user
