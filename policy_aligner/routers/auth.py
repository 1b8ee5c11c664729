from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from policy_aligner.database import get_db
from policy_aligner.dependencies import get_current_user, require_admin
from policy_aligner.exceptions import PolicyAlignerError, to_http_exception
from policy_aligner.models import User
from policy_aligner.schemas import (
    LoginRequest,
    LoginResponse,
    UserRead,
    UserRegister,
    UserRoleUpdate,
    UserStatusUpdate,
)
from policy_aligner.services import user_service
from policy_aligner.services.security import create_access_token

router = APIRouter(prefix="/auth", tags=["Auth"])


def _login_response(user: User) -> LoginResponse:
    token = create_access_token(user.id, user.username, user.role)
    return LoginResponse(token=token, user=UserRead.model_validate(user))


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, db: Session = Depends(get_db)) -> User:
    try:
        user = user_service.register_user(
            db,
            username=payload.username,
            email=payload.email,
            password=payload.password,
        )
    except PolicyAlignerError as exc:
        raise to_http_exception(exc) from exc
    return user


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    try:
        user = user_service.authenticate(db, username=payload.username, password=payload.password)
    except user_service.AuthenticationError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials") from None
    except user_service.InactiveUserError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated. Please contact an administrator.",
        ) from None
    return _login_response(user)


@router.get("/me", response_model=UserRead)
def read_current_user(current_user: User = Depends(get_current_user)) -> User:
    return current_user


@router.get("/users", response_model=list[UserRead])
def list_users(
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> list[User]:
    return user_service.list_users(db)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> None:
    try:
        user_service.delete_user(db, user_id)
    except PolicyAlignerError as exc:
        raise to_http_exception(exc) from exc


@router.put("/users/{user_id}/role", response_model=UserRead)
def update_user_role(
    user_id: int,
    payload: UserRoleUpdate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> User:
    try:
        return user_service.set_user_role(db, user_id, payload.role)
    except PolicyAlignerError as exc:
        raise to_http_exception(exc) from exc


@router.put("/users/{user_id}/status", response_model=UserRead)
def update_user_status(
    user_id: int,
    payload: UserStatusUpdate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> User:
    try:
        return user_service.set_user_status(db, user_id, payload.is_active)
    except PolicyAlignerError as exc:
        raise to_http_exception(exc) from exc
