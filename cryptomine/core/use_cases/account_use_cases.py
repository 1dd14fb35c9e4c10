import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from passlib.context import CryptContext

from cryptomine.core.entities.session import SessionContext
from cryptomine.core.entities.user import User
from cryptomine.core.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from cryptomine.core.repositories.user_repository import UserRepository


logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)

def _require(value: Optional[str], field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field} is required")
    return value

def register_user(
    repo: UserRepository,
    session: SessionContext,
    username: str,
    email: str,
    password: str,
    confirm_password: str,
    now: Optional[datetime] = None,
) -> User:
    username = _require(username, "Username")
    email = _require(email, "Email").lower()
    if not password:
        raise ValidationError("Password is required")
    if password != confirm_password:
        raise ValidationError("Passwords do not match")

    if repo.find_conflict(username, email) is not None:
        raise ConflictError("User with this email or username already exists")

    user = User(
        id=f"user_{uuid4().hex}",
        username=username,
        email=email,
        display_name=username,
        created_at=(now or datetime.now(timezone.utc)).isoformat(),
    )
    password_hash = get_password_hash(password)

    # пользователь, пароль и сессия записываются вместе или не записываются вовсе
    with repo.atomic():
        repo.create_user(user, password_hash=password_hash)
        repo.set_current(user)

    session.bind(user)
    logger.info("Registered user %s (%s)", user.id, user.username)
    return user

def sign_in(
    repo: UserRepository,
    session: SessionContext,
    identifier: str,
    password: str,
    verify_passwords: bool = True,
) -> User:
    identifier = _require(identifier, "Email or username")
    user = repo.find_by_identifier(identifier)
    if user is None:
        raise NotFoundError("User not found")

    if verify_passwords:
        password_hash = repo.get_password_hash(user.id)
        if not password_hash or not verify_password(password or "", password_hash):
            raise AuthenticationError("Incorrect email or password")

    repo.set_current(user)
    session.bind(user)
    logger.info("User %s signed in", user.id)
    return user

def sign_out(repo: UserRepository, session: SessionContext) -> None:
    # пользователь и его контракты остаются, удаляется только указатель на сессию
    repo.clear_current()
    session.teardown()

def restore_session(repo: UserRepository, session: SessionContext) -> Optional[User]:
    user = repo.get_current()
    if user is not None:
        session.bind(user)
        logger.info("Restored session for %s", user.id)
    return user
