import pytest

from taskify_app.errors import NotFound, ValidationError
from taskify_app.repositories import TaskRepository, UserRepository
from taskify_app.services import TaskService


@pytest.fixture()
def owners(db):
    users = UserRepository(db)
    a = users.add(name="A", email="a@example.com", password_hash="unused-hash")
    b = users.add(name="B", email="b@example.com", password_hash="unused-hash")
    return a.id, b.id


@pytest.fixture()
def service(db):
    return TaskService(TaskRepository(db))


def test_list_only_returns_own_tasks(service, owners):
    a, b = owners
    service.create(a, "a1")
    service.create(b, "b1")
    assert [t.title for t in service.list(a)] == ["a1"]
    assert [t.title for t in service.list(b)] == ["b1"]


def test_list_newest_first_and_filter(service, owners):
    a, _ = owners
    first = service.create(a, "first", category="work")
    second = service.create(a, "second", category="health")
    third = service.create(a, "third", category="work")
    assert [t.id for t in service.list(a)] == [third.id, second.id, first.id]
    assert [t.id for t in service.list(a, "work")] == [third.id, first.id]
    assert service.list(a, "shopping") == []


def test_update_ignores_unknown_and_owner_fields(service, owners):
    a, b = owners
    t = service.create(a, "task")
    updated = service.update(a, t.id, {"owner_id": b, "id": "other", "is_done": True})
    assert updated.owner_id == a
    assert updated.id == t.id
    assert updated.is_done is True


def test_update_and_delete_are_ownership_blind(service, owners):
    a, b = owners
    t = service.create(a, "private")
    with pytest.raises(NotFound):
        service.update(b, t.id, {"title": "hijacked"})
    with pytest.raises(NotFound):
        service.delete(b, t.id)
    with pytest.raises(NotFound):
        service.delete(b, "missing-id")
    assert [x.title for x in service.list(a)] == ["private"]


def test_update_validates_fields(service, owners):
    a, _ = owners
    t = service.create(a, "task")
    with pytest.raises(ValidationError):
        service.update(a, t.id, {"title": None})
    with pytest.raises(ValidationError):
        service.update(a, t.id, {"is_done": "yes"})


def test_create_requires_title(service, owners):
    a, _ = owners
    for title in (None, "", "   "):
        with pytest.raises(ValidationError):
            service.create(a, title)


def test_strict_categories_reject_unknown_labels(db, owners):
    a, _ = owners
    strict = TaskService(TaskRepository(db), strict_categories=True)
    with pytest.raises(ValidationError):
        strict.create(a, "x", category="astrology")
    assert strict.create(a, "y").category == "general"
    assert strict.create(a, "z", category="health").category == "health"


def test_delete_removes_task(service, owners):
    a, _ = owners
    t = service.create(a, "bye")
    service.delete(a, t.id)
    assert service.list(a) == []
