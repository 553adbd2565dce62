from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.api_docs import error_responses
from app.core.deps import get_db
from app.core.observability import log_event
from app.core.security import TokenMetadata, hash_password, issue_access_token, verify_password
from app.core.security_current import get_current_token, get_current_user
from app.models.revoked_token import RevokedToken
from app.models.user import User
from app.routers.users import user_out
from app.schemas.auth import ChangePasswordIn, LoginIn, LoginOut
from app.schemas.common import ApiResponse, MessageOut
from app.schemas.user import UserOut

router = APIRouter(prefix="/auth", tags=["auth"])


def _authenticate_user(db: Session, email: str, password: str) -> User:
    user = db.execute(
        select(User).where(func.lower(User.email) == email.strip().lower())
    ).scalar_one_or_none()

    if not user or not verify_password(password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if user.status != "active":
        raise HTTPException(status_code=401, detail="User account is inactive")

    return user


@router.post(
    "/login",
    response_model=ApiResponse[LoginOut],
    summary="Login with email and password",
    description="Returns a bearer access token and the authenticated user's profile.",
    responses=error_responses(400, 401, 500),
)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    user = _authenticate_user(db, payload.email, payload.password)

    token, meta = issue_access_token(user.id)
    user.last_login = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)

    log_event("auth.login", user_id=user.id)
    return ApiResponse(
        message="Login successful",
        data=LoginOut(token=token, expires_at=meta.expires_at, user=user_out(user)),
    )


@router.post(
    "/logout",
    response_model=MessageOut,
    summary="Revoke the presented access token",
    responses=error_responses(401, 500),
)
def logout(
    token: TokenMetadata = Depends(get_current_token),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    db.add(RevokedToken(jti=token.jti, user_id=user.id, expires_at=token.expires_at))
    db.commit()
    log_event("auth.logout", user_id=user.id)
    return MessageOut(message="Logged out")


@router.get(
    "/me",
    response_model=ApiResponse[UserOut],
    summary="Current user profile",
    responses=error_responses(401, 500),
)
def me(user: User = Depends(get_current_user)):
    return ApiResponse(data=user_out(user))


@router.put(
    "/change-password",
    response_model=MessageOut,
    summary="Change own password",
    responses=error_responses(400, 401, 500),
)
def change_password(
    payload: ChangePasswordIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not verify_password(payload.current_password, user.hashed_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    if payload.current_password == payload.new_password:
        raise HTTPException(status_code=400, detail="New password must be different")

    user.hashed_password = hash_password(payload.new_password)
    db.commit()
    return MessageOut(message="Password changed successfully")
