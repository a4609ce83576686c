"""Persistence access for users and tasks.

The repositories are the only place that talks to the SQLAlchemy query API.
Every task lookup takes the owner id alongside the task id, so a record
owned by someone else is indistinguishable from a missing one.
"""

from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import delete, desc, select
from sqlalchemy.orm import Session

from . import models


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


class _Repository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise


# -----------------------------------------------------------------------------
# USERS
# -----------------------------------------------------------------------------
class UserRepository(_Repository):
    def get(self, user_id: str) -> Optional[models.User]:
        """Return a user by id or None if not found."""
        if not user_id:
            return None
        return self.db.get(models.User, user_id)

    def get_by_email(self, email: str) -> Optional[models.User]:
        """Return a user by normalized email or None if not found."""
        norm = normalize_email(email)
        if not norm:
            return None
        return self.db.scalars(select(models.User).where(models.User.email == norm)).first()

    def exists(self, email: str) -> bool:
        return self.get_by_email(email) is not None

    def add(self, *, name: str, email: str, password_hash: str) -> models.User:
        """Insert a user. Raises IntegrityError if the email is already taken."""
        user = models.User(
            name=name,
            email=normalize_email(email),
            password_hash=password_hash,
        )
        self.db.add(user)
        self._commit()
        self.db.refresh(user)
        return user


# -----------------------------------------------------------------------------
# TASKS
# -----------------------------------------------------------------------------
class TaskRepository(_Repository):
    def list_for_owner(self, owner_id: str, category: Optional[str] = None) -> Sequence[models.Task]:
        """Return the owner's tasks, newest first, optionally limited to one category."""
        stmt = select(models.Task).where(models.Task.owner_id == owner_id)
        if category:
            stmt = stmt.where(models.Task.category == category)
        stmt = stmt.order_by(desc(models.Task.created_at), desc(models.Task.id))
        return list(self.db.scalars(stmt).all())

    def get_for_owner(self, owner_id: str, task_id: str) -> Optional[models.Task]:
        return self.db.scalars(
            select(models.Task).where(
                models.Task.id == task_id,
                models.Task.owner_id == owner_id,
            )
        ).first()

    def add(
        self,
        *,
        owner_id: str,
        title: str,
        description: Optional[str],
        category: str,
    ) -> models.Task:
        task = models.Task(
            owner_id=owner_id,
            title=title,
            description=description,
            category=category,
            is_done=False,
            created_at=models.utcnow(),
        )
        self.db.add(task)
        self._commit()
        self.db.refresh(task)
        return task

    def update_for_owner(
        self, owner_id: str, task_id: str, changes: Mapping[str, Any]
    ) -> Optional[models.Task]:
        """Apply ``changes`` to the owner's task; None when no such task is owned."""
        task = self.get_for_owner(owner_id, task_id)
        if task is None:
            return None
        for field, value in changes.items():
            setattr(task, field, value)
        self._commit()
        self.db.refresh(task)
        return task

    def delete_for_owner(self, owner_id: str, task_id: str) -> bool:
        """Delete the owner's task; True if a row was removed."""
        result = self.db.execute(
            delete(models.Task).where(
                models.Task.id == task_id,
                models.Task.owner_id == owner_id,
            )
        )
        self._commit()
        return bool(result.rowcount)
