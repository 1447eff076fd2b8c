# src/weekboard/client/http_api.py

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from ..tasks.errors import AuthError, NotFoundError, TaskError, TransientError, ValidationError
from ..tasks.task_models import Task, fields_to_wire, task_from_wire

logger = logging.getLogger(__name__)


def make_timeout(connect_s: float, read_s: float) -> httpx.Timeout:
    return httpx.Timeout(
        connect=connect_s,
        read=read_s,
        write=10.0,
        pool=connect_s,
    )


def _error_message(resp: httpx.Response) -> tuple[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        return (resp.text or resp.reason_phrase or f"HTTP {resp.status_code}"), None
    if isinstance(body, dict):
        msg = body.get("error") or body.get("detail") or f"HTTP {resp.status_code}"
        return str(msg), body.get("details")
    return f"HTTP {resp.status_code}", None


def error_for_response(resp: httpx.Response) -> TaskError:
    message, details = _error_message(resp)
    code = resp.status_code
    if code in (401, 403):
        return AuthError(message, status_code=code, details=details)
    if code == 404:
        return NotFoundError(message, status_code=code, details=details)
    if code in (400, 422):
        return ValidationError(message, status_code=code, details=details)
    return TransientError(message, status_code=code, details=details)


class HttpTaskApi:
    """
    TaskApi over HTTP (httpx.AsyncClient).

    base_url points at the API root, e.g. "http://127.0.0.1:8000/api"; the
    endpoints are /tasks, /tasks/{id} and /tasks/reorder below it.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: httpx.Timeout | float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout if timeout is not None else make_timeout(5.0, 15.0),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpTaskApi:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            resp = await self._client.request(method, path, params=params, json=json)
        except httpx.TimeoutException as exc:
            raise TransientError(f"{method} {path} timed out") from exc
        except httpx.HTTPError as exc:
            raise TransientError(str(exc) or exc.__class__.__name__) from exc

        if resp.status_code >= 400:
            err = error_for_response(resp)
            logger.warning("%s %s -> %s %s", method, path, resp.status_code, err.message)
            raise err

        try:
            data = resp.json()
        except ValueError as exc:
            raise TransientError(f"{method} {path}: response is not JSON") from exc
        if not isinstance(data, dict):
            raise TransientError(f"{method} {path}: unexpected response shape")
        logger.debug("%s %s -> %s", method, path, resp.status_code)
        return data

    async def list_tasks(self, *, start: str, end: str) -> list[Task]:
        data = await self._request("GET", "/tasks", params={"start": start, "end": end})
        return [task_from_wire(item) for item in data.get("tasks") or []]

    async def create_task(self, fields: dict[str, Any]) -> Task:
        data = await self._request("POST", "/tasks", json=fields_to_wire(fields))
        return task_from_wire(data["task"])

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> Task:
        data = await self._request("PATCH", f"/tasks/{task_id}", json=fields_to_wire(fields))
        return task_from_wire(data["task"])

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"/tasks/{task_id}")

    async def reorder_tasks(self, *, date: str, task_ids: Sequence[str]) -> int:
        data = await self._request(
            "PATCH", "/tasks/reorder", json={"date": date, "taskIds": list(task_ids)}
        )
        return int(data.get("updated") or 0)
