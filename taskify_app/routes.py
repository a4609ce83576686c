from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from . import deps, models, schemas
from .services import AuthService, TaskService

_ERRORS = {
    400: {"model": schemas.ErrorOut},
    401: {"model": schemas.ErrorOut},
}

# -----------------------------------------------------------------------------
# AUTH
# -----------------------------------------------------------------------------
auth_router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(user: models.User, token: str) -> schemas.AuthResponse:
    return schemas.AuthResponse(user=schemas.UserOut.model_validate(user), token=token)


@auth_router.post(
    "/register",
    response_model=schemas.AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": schemas.ErrorOut}, 409: {"model": schemas.ErrorOut}},
)
def register(user_in: schemas.UserCreate, auth: AuthService = Depends(deps.get_auth_service)):
    user, token = auth.register(user_in.name, user_in.email, user_in.password)
    return _auth_response(user, token)


@auth_router.post("/login", response_model=schemas.AuthResponse, responses=_ERRORS)
def login(credentials: schemas.UserLogin, auth: AuthService = Depends(deps.get_auth_service)):
    user, token = auth.login(credentials.email, credentials.password)
    return _auth_response(user, token)


@auth_router.get("/me", response_model=schemas.UserOut, responses={401: {"model": schemas.ErrorOut}})
def me(current_user: models.User = Depends(deps.get_current_user)):
    return current_user


# -----------------------------------------------------------------------------
# TASKS (every route authenticated)
# -----------------------------------------------------------------------------
tasks_router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
    dependencies=[Depends(deps.get_current_user)],
    responses={401: {"model": schemas.ErrorOut}},
)


@tasks_router.get("", response_model=List[schemas.TaskOut])
def list_tasks(
    category: Optional[str] = Query(None, description="only tasks with this category"),
    current_user: models.User = Depends(deps.get_current_user),
    tasks: TaskService = Depends(deps.get_task_service),
):
    return tasks.list(current_user.id, category)


@tasks_router.post(
    "",
    response_model=schemas.TaskOut,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": schemas.ErrorOut}},
)
def create_task(
    task_in: schemas.TaskCreate,
    current_user: models.User = Depends(deps.get_current_user),
    tasks: TaskService = Depends(deps.get_task_service),
):
    return tasks.create(
        current_user.id,
        title=task_in.title,
        description=task_in.description,
        category=task_in.category,
    )


@tasks_router.patch(
    "/{task_id}",
    response_model=schemas.TaskOut,
    responses={400: {"model": schemas.ErrorOut}, 404: {"model": schemas.ErrorOut}},
)
def update_task(
    task_id: str,
    task_in: schemas.TaskUpdate,
    current_user: models.User = Depends(deps.get_current_user),
    tasks: TaskService = Depends(deps.get_task_service),
):
    return tasks.update(current_user.id, task_id, task_in.model_dump(exclude_unset=True))


@tasks_router.delete(
    "/{task_id}",
    response_model=schemas.MessageOut,
    responses={404: {"model": schemas.ErrorOut}},
)
def delete_task(
    task_id: str,
    current_user: models.User = Depends(deps.get_current_user),
    tasks: TaskService = Depends(deps.get_task_service),
):
    tasks.delete(current_user.id, task_id)
    return {"message": "Deleted"}
