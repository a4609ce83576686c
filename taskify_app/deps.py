"""FastAPI dependencies for DB sessions, services and authentication.

Provides:
- get_db: scoped SQLAlchemy session generator.
- get_token_service / get_auth_service / get_task_service: service factories
  built from the settings and the request's session.
- get_current_user: the gateway every task route goes through. It resolves the
  bearer token to a stored user and attaches it to ``request.state.user``.
"""

import logging
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from . import models
from .errors import InvalidToken, MissingCredential
from .repositories import TaskRepository, UserRepository
from .security import TokenService
from .services import AuthService, TaskService
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


def get_db(request: Request):
    """Yield a session from the app's session factory and close it afterwards."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was created with."""
    return getattr(request.app.state, "settings", None) or get_settings()


def get_token_service(settings: Settings = Depends(get_app_settings)) -> TokenService:
    return TokenService(
        secret_key=settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        expires_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )


def get_auth_service(
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(UserRepository(db), tokens)


def get_task_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> TaskService:
    return TaskService(TaskRepository(db), strict_categories=settings.STRICT_CATEGORIES)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        return None
    scheme, _, credentials = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return credentials.strip() or None


def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> models.User:
    """Require a valid token for an existing user; raise an auth error otherwise."""
    token = extract_bearer_token(authorization)
    if token is None:
        raise MissingCredential()
    user_id = tokens.verify(token)
    user = UserRepository(db).get(user_id)
    if user is None:
        logger.debug("Token subject %s does not resolve to a user", user_id)
        raise InvalidToken()
    request.state.user = user
    return user
