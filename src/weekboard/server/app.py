"""Task API server (FastAPI).

Reference implementation of the remote task API the board talks to:
list / create / update / delete / reorder, scoped to the caller's user id.
Authentication is a static bearer-token map; a real deployment puts its own
auth provider in front of this.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Annotated, Any

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import get_settings
from ..core.ports import TaskRepo
from ..tasks.task_models import TITLE_MAX_LENGTH, is_iso_date, task_to_wire, utcnow
from .task_repo import SqliteTaskRepo

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


class CreateTaskBody(BaseModel):
    title: str | None = None
    description: str | None = None
    scheduledDate: str | None = None
    category: str | None = None


class UpdateTaskBody(BaseModel):
    title: str | None = None
    description: str | None = None
    scheduledDate: str | None = None
    category: str | None = None
    position: int | None = None
    isCompleted: bool | None = None


class ReorderBody(BaseModel):
    date: str | None = None
    taskIds: list[str] | None = None


# request key -> repo field name
_PATCH_FIELDS = {
    "title": "title",
    "description": "description",
    "scheduledDate": "scheduled_date",
    "category": "category",
    "position": "position",
    "isCompleted": "is_completed",
}


def _bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def _check_title(title: str) -> None:
    if not title.strip():
        raise _bad_request("Title must not be empty")
    if len(title) > TITLE_MAX_LENGTH:
        raise _bad_request(f"Title must be {TITLE_MAX_LENGTH} characters or less")


def _check_date(value: str) -> None:
    if not is_iso_date(value):
        raise _bad_request("scheduledDate must be a date like 2025-01-20")


def _repo(request: Request) -> TaskRepo:
    return request.app.state.repo


def current_user(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Resolve the bearer token to a user id, or 401."""
    tokens: dict[str, str] = request.app.state.tokens
    scheme, _, token = (authorization or "").partition(" ")
    user_id = tokens.get(token.strip()) if scheme.lower() == "bearer" else None
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user_id


UserId = Annotated[str, Depends(current_user)]
Repo = Annotated[TaskRepo, Depends(_repo)]

router = APIRouter()


@router.get("/tasks")
async def list_tasks(user_id: UserId, repo: Repo, start: str | None = None, end: str | None = None) -> dict[str, Any]:
    """Tasks of the caller with start <= scheduledDate <= end, ordered by position."""
    if not start or not end:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing start or end date")
    tasks = await run_in_threadpool(repo.list_tasks, user_id, start=start, end=end)
    return {"tasks": [task_to_wire(t) for t in tasks]}


@router.post("/tasks", status_code=status.HTTP_201_CREATED)
async def create_task(body: CreateTaskBody, user_id: UserId, repo: Repo) -> dict[str, Any]:
    if not body.title or not body.scheduledDate:
        raise _bad_request("Title and scheduledDate required")
    _check_title(body.title)
    _check_date(body.scheduledDate)
    task = await run_in_threadpool(
        repo.create_task,
        user_id,
        title=body.title,
        scheduled_date=body.scheduledDate,
        description=body.description,
        category=body.category,
    )
    return {"task": task_to_wire(task)}


# Registered before /tasks/{task_id} so "reorder" is not taken for an id.
@router.patch("/tasks/reorder", response_model=None)
async def reorder_tasks(body: ReorderBody, user_id: UserId, repo: Repo) -> dict[str, Any] | JSONResponse:
    """position = index for each id; failures are collected and reported together."""
    if not body.date or body.taskIds is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid request body")

    now = utcnow()
    failures: list[str] = []
    for position, task_id in enumerate(body.taskIds):
        try:
            ok = await run_in_threadpool(repo.set_position, user_id, task_id, position, now=now)
        except Exception as exc:
            logger.exception("reorder: position update failed for %s", task_id)
            failures.append(f"{task_id}: {exc}")
            continue
        if not ok:
            failures.append(f"{task_id}: not found")

    if failures:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to update some positions", "details": failures},
        )
    return {"success": True, "updated": len(body.taskIds)}


@router.patch("/tasks/{task_id}")
async def update_task(task_id: str, body: UpdateTaskBody, user_id: UserId, repo: Repo) -> dict[str, Any]:
    sent = body.model_dump(exclude_unset=True)
    fields = {_PATCH_FIELDS[key]: value for key, value in sent.items()}
    if fields.get("title") is not None:
        _check_title(fields["title"])
    if fields.get("scheduled_date") is not None:
        _check_date(fields["scheduled_date"])
    if fields.get("position") is not None and fields["position"] < 0:
        raise _bad_request("position must not be negative")
    task = await run_in_threadpool(repo.update_task, user_id, task_id, fields)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return {"task": task_to_wire(task)}


@router.delete("/tasks/{task_id}")
async def delete_task(task_id: str, user_id: UserId, repo: Repo) -> dict[str, Any]:
    deleted = await run_in_threadpool(repo.delete_task, user_id, task_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return {"success": True}


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


def jsonable_errors(exc: RequestValidationError) -> list[str]:
    return [f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}" for err in exc.errors()]


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request body", "details": jsonable_errors(exc)},
    )


def create_app(repo: TaskRepo, tokens: dict[str, str]) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Task API ready (%d token(s) configured)", len(tokens))
        if not tokens:
            logger.warning("No API tokens configured; every request will get 401. Set WEEKBOARD_API_TOKENS.")
        yield
        logger.info("Task API shutting down")

    app = FastAPI(
        title="weekboard task API",
        description="Weekly task board backend",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.repo = repo
    app.state.tokens = dict(tokens)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.include_router(router, prefix=API_PREFIX, tags=["tasks"])
    return app


def create_app_from_settings() -> FastAPI:
    """uvicorn factory: build the app from environment settings."""
    settings = get_settings()
    return create_app(SqliteTaskRepo(settings.tasks_db_path), settings.api_tokens)
