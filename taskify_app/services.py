"""Registration/login and owner-scoped task operations.

Both services receive their repositories (and, for auth, the token service)
through the constructor. Failures are raised as :mod:`taskify_app.errors`
exceptions and rendered by the app's exception handlers.
"""

import logging
from typing import Any, Mapping, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError

from . import models
from .errors import DuplicateHandle, InvalidCredentials, NotFound, ValidationError
from .repositories import TaskRepository, UserRepository, normalize_email
from .schemas import Category, DEFAULT_CATEGORY
from .security import TokenService, hash_password, verify_password

logger = logging.getLogger(__name__)

CATEGORIES = frozenset(c.value for c in Category)
UPDATABLE_FIELDS = ("title", "description", "category", "is_done")


class AuthService:
    """Creates accounts and exchanges credentials for session tokens."""

    def __init__(self, users: UserRepository, tokens: TokenService) -> None:
        self.users = users
        self.tokens = tokens

    def register(self, name: str, email: str, password: str) -> Tuple[models.User, str]:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required")
        if not password:
            raise ValidationError("Password is required")
        email = normalize_email(email)
        if not email:
            raise ValidationError("Email is required")
        if self.users.exists(email):
            raise DuplicateHandle()

        try:
            user = self.users.add(name=name, email=email, password_hash=hash_password(password))
        except IntegrityError as exc:
            # lost a race with a concurrent registration for the same email
            raise DuplicateHandle() from exc

        logger.info("Registered user %s", user.id)
        return user, self.tokens.issue(user.id)

    def login(self, email: str, password: str) -> Tuple[models.User, str]:
        user = self.users.get_by_email(email)
        stored_hash = user.password_hash if user is not None else None
        if not verify_password(password or "", stored_hash):
            logger.info("Failed login for %s", normalize_email(email))
            raise InvalidCredentials()

        logger.info("User %s logged in", user.id)
        return user, self.tokens.issue(user.id)


class TaskService:
    """Task CRUD where every call is scoped to ``owner_id``."""

    def __init__(self, tasks: TaskRepository, *, strict_categories: bool = False) -> None:
        self.tasks = tasks
        self.strict_categories = strict_categories

    def _category(self, value: Optional[str]) -> str:
        label = (value or "").strip().lower()
        if label in CATEGORIES:
            return label
        if self.strict_categories and label:
            allowed = ", ".join(sorted(CATEGORIES))
            raise ValidationError(f"Invalid category '{value}'. Allowed: {allowed}")
        return DEFAULT_CATEGORY.value

    @staticmethod
    def _title(value: Optional[str]) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError("Title is required")
        return value.strip()

    def list(self, owner_id: str, category: Optional[str] = None) -> Sequence[models.Task]:
        label = (category or "").strip().lower() or None
        return self.tasks.list_for_owner(owner_id, label)

    def create(
        self,
        owner_id: str,
        title: Optional[str],
        description: Optional[str] = None,
        category: Optional[str] = None,
    ) -> models.Task:
        task = self.tasks.add(
            owner_id=owner_id,
            title=self._title(title),
            description=description,
            category=self._category(category),
        )
        logger.debug("User %s created task %s", owner_id, task.id)
        return task

    def update(self, owner_id: str, task_id: str, fields: Mapping[str, Any]) -> models.Task:
        """Apply the supplied fields; anything outside UPDATABLE_FIELDS is ignored."""
        changes: dict[str, Any] = {}
        for name in UPDATABLE_FIELDS:
            if name not in fields:
                continue
            value = fields[name]
            if name == "title":
                value = self._title(value)
            elif name == "category":
                value = self._category(value)
            elif name == "is_done":
                if not isinstance(value, bool):
                    raise ValidationError("is_done must be a boolean")
            changes[name] = value

        task = self.tasks.update_for_owner(owner_id, task_id, changes)
        if task is None:
            raise NotFound()
        return task

    def delete(self, owner_id: str, task_id: str) -> None:
        if not self.tasks.delete_for_owner(owner_id, task_id):
            raise NotFound()
        logger.debug("User %s deleted task %s", owner_id, task_id)
