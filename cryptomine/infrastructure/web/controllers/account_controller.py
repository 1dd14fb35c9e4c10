from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, EmailStr

from cryptomine.config.settings import Settings
from cryptomine.core.entities.session import SessionContext
from cryptomine.core.entities.user import User
from cryptomine.core.errors import AppError
from cryptomine.core.use_cases.account_use_cases import register_user, sign_in, sign_out
from cryptomine.infrastructure.db.sqlite import SQLiteUserRepository
from cryptomine.infrastructure.notifications.log_notifier import RecordingNotifier
from cryptomine.infrastructure.web.dependencies import (
    ensure_session_tasks,
    get_current_user,
    get_notifier,
    get_session,
    get_settings,
    get_user_repo,
    to_http_exception,
)


router = APIRouter(prefix="", tags=["auth"])


class RegisterRequest(BaseModel):
    username: str
    email: EmailStr
    password: str
    confirm_password: str

class SignInRequest(BaseModel):
    identifier: str  # email или имя пользователя
    password: str = ""

class UserResponse(BaseModel):
    id: str
    username: str
    email: str
    display_name: Optional[str] = None
    created_at: str


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        display_name=user.display_name,
        created_at=user.created_at,
    )

@router.post("/register", response_model=UserResponse, status_code=201)
def register(
    payload: RegisterRequest,
    request: Request,
    repo: SQLiteUserRepository = Depends(get_user_repo),
    session: SessionContext = Depends(get_session),
    notifier: RecordingNotifier = Depends(get_notifier),
):
    try:
        user = register_user(
            repo,
            session,
            username=payload.username,
            email=payload.email,
            password=payload.password,
            confirm_password=payload.confirm_password,
        )
    except AppError as e:
        notifier.error(str(e))
        raise to_http_exception(e)
    ensure_session_tasks(request, session)
    notifier.success("Account created successfully!")
    return _user_response(user)

@router.post("/signin", response_model=UserResponse)
def signin(
    payload: SignInRequest,
    request: Request,
    repo: SQLiteUserRepository = Depends(get_user_repo),
    session: SessionContext = Depends(get_session),
    notifier: RecordingNotifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
):
    try:
        user = sign_in(
            repo,
            session,
            identifier=payload.identifier,
            password=payload.password,
            verify_passwords=settings.VERIFY_PASSWORDS,
        )
    except AppError as e:
        notifier.error(str(e))
        raise to_http_exception(e)
    ensure_session_tasks(request, session)
    notifier.success("Signed in successfully!")
    return _user_response(user)

@router.post("/signout", status_code=204)
def signout(
    repo: SQLiteUserRepository = Depends(get_user_repo),
    session: SessionContext = Depends(get_session),
    notifier: RecordingNotifier = Depends(get_notifier),
):
    try:
        sign_out(repo, session)
    except AppError as e:
        notifier.error(str(e))
        raise to_http_exception(e)
    notifier.success("Signed out successfully!")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.get("/me", response_model=UserResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    return _user_response(current_user)
