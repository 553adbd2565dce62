from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.core.api_docs import error_responses
from app.core.deps import get_db
from app.core.id_utils import generate_shortuuid
from app.core.permissions import require_admin
from app.core.security import hash_password
from app.core.security_current import get_current_user
from app.models.user import User
from app.schemas.common import ApiResponse, MessageOut
from app.schemas.user import UserCreateIn, UserOut, UserUpdateIn

router = APIRouter(prefix="/users", tags=["users"])


def user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        department=user.department,
        phone=user.phone,
        status=user.status,
        permissions=list(user.permissions or []),
        last_login=user.last_login,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def _user_or_404(db: Session, user_id: str) -> User:
    user = db.execute(select(User).where(User.id == user_id)).scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _email_taken(db: Session, email: str, *, exclude_user_id: str | None = None) -> bool:
    stmt = select(User.id).where(func.lower(User.email) == email.lower())
    if exclude_user_id:
        stmt = stmt.where(User.id != exclude_user_id)
    return db.execute(stmt).scalar_one_or_none() is not None


@router.get(
    "",
    response_model=ApiResponse[list[UserOut]],
    summary="List users",
    responses=error_responses(400, 401, 500),
)
def list_users(
    search: str | None = Query(default=None, max_length=120),
    status: str | None = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    stmt = select(User)
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(User.name).like(pattern),
                func.lower(User.email).like(pattern),
                func.lower(User.department).like(pattern),
            )
        )
    if status:
        stmt = stmt.where(User.status == status.strip().lower())

    users = db.execute(stmt.order_by(User.created_at.desc(), User.id.asc())).scalars().all()
    return ApiResponse(data=[user_out(user) for user in users])


@router.get(
    "/{user_id}",
    response_model=ApiResponse[UserOut],
    summary="Get user",
    responses=error_responses(401, 404, 500),
)
def get_user(
    user_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return ApiResponse(data=user_out(_user_or_404(db, user_id)))


@router.post(
    "",
    response_model=ApiResponse[UserOut],
    status_code=201,
    summary="Create user",
    responses=error_responses(400, 401, 403, 500),
)
def create_user(
    payload: UserCreateIn,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin()),
):
    if _email_taken(db, payload.email):
        raise HTTPException(status_code=400, detail="Email already exists")

    user = User(
        id=generate_shortuuid(),
        name=payload.name,
        email=payload.email,
        hashed_password=hash_password(payload.password),
        role=payload.role,
        department=payload.department,
        phone=payload.phone,
        status="active",
        permissions=payload.permissions,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return ApiResponse(message="User created successfully", data=user_out(user))


@router.put(
    "/{user_id}",
    response_model=ApiResponse[UserOut],
    summary="Update user",
    responses=error_responses(400, 401, 404, 500),
)
def update_user(
    user_id: str,
    payload: UserUpdateIn,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    user = _user_or_404(db, user_id)
    changes = payload.model_dump(exclude_unset=True)

    if changes.get("email") and _email_taken(db, changes["email"], exclude_user_id=user.id):
        raise HTTPException(status_code=400, detail="Email already exists")

    for field, value in changes.items():
        if value is None and field != "phone":
            continue
        setattr(user, field, value)

    db.commit()
    db.refresh(user)
    return ApiResponse(message="User updated successfully", data=user_out(user))


@router.delete(
    "/{user_id}",
    response_model=MessageOut,
    summary="Delete user",
    responses=error_responses(400, 401, 403, 404, 500),
)
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    actor: User = Depends(require_admin()),
):
    user = _user_or_404(db, user_id)
    if user.id == actor.id:
        raise HTTPException(status_code=400, detail="Cannot delete your own account")

    db.delete(user)
    db.commit()
    return MessageOut(message="User deleted successfully")
