from __future__ import annotations

import logging
from typing import Any

from src.fleet.domain.exceptions import NetworkError, RejectedByServer, TaskNotFoundError
from src.fleet.domain.models.form import FormReferenceData
from src.fleet.domain.models.location_snapshot import LocationSnapshot
from src.fleet.domain.models.task_draft import TaskDraft
from src.fleet.domain.models.task_record import TaskRecord
from src.fleet.domain.models.task_summary import TaskSummary
from src.fleet.domain.repositories import TaskServiceRepository
from src.fleet.infrastructure.http.client import HttpClient
from src.fleet.infrastructure.taskapi.mappers import PayloadMapper

logger = logging.getLogger(__name__)

SUCCESS_STATUS = "success"


class HttpTaskService(TaskServiceRepository):
    """Task API client. Every body carries a ``status`` field; anything but
    ``"success"`` is a structured rejection."""

    def __init__(self, http: HttpClient) -> None:
        self._http = http

    async def get_form_data(self) -> FormReferenceData:
        body = await self._get("form-data")
        return PayloadMapper.to_form_reference_data(body)

    async def get_task(self, task_id: str) -> TaskRecord:
        try:
            body = await self._get(f"task/{task_id}")
        except NetworkError as exc:
            if exc.status_code == 404:
                raise TaskNotFoundError(task_id) from exc
            raise
        data = body.get("data")
        if not isinstance(data, dict):
            raise TaskNotFoundError(task_id)
        return PayloadMapper.to_task_record(task_id, data)

    async def create_task(self, draft: TaskDraft, locations: LocationSnapshot) -> str | None:
        payload = PayloadMapper.to_create_payload(draft, locations)
        body = await self._post("create-task", payload)
        task_id = PayloadMapper.to_created_task_id(body.get("data"))
        logger.info("Task created", extra={"task_id": task_id})
        return task_id

    async def list_tasks(self, user_id: int, role_id: int) -> list[TaskSummary]:
        body = await self._get("tasks", params={"user_id": user_id, "role_id": role_id})
        return [PayloadMapper.to_task_summary(item) for item in body.get("data") or []]

    async def update_push_token(self, user_id: int, token: str) -> None:
        await self._post("update-push-token", {"user_id": user_id, "token": token})

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            body = await self._http.get_json(path, params=params)
        except NetworkError as exc:
            self._raise_if_rejected(exc)
            raise
        return self._checked(path, body)

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            body = await self._http.post_json(path, payload)
        except NetworkError as exc:
            self._raise_if_rejected(exc)
            raise
        return self._checked(path, body)

    def _checked(self, path: str, body: Any) -> dict[str, Any]:
        if not isinstance(body, dict):
            raise NetworkError(self._http.url_for(path), "unexpected response shape")
        if body.get("status") != SUCCESS_STATUS:
            message = body.get("message") or "Request was rejected by the server."
            logger.warning("Task API rejected request", extra={"path": path, "message": message})
            raise RejectedByServer(message)
        return body

    @staticmethod
    def _raise_if_rejected(exc: NetworkError) -> None:
        # 4xx responses with a structured body carry a message meant for the user.
        payload = exc.payload
        if (
            exc.status_code is not None
            and 400 <= exc.status_code < 500
            and exc.status_code != 404
            and isinstance(payload, dict)
            and payload.get("message")
        ):
            raise RejectedByServer(str(payload["message"])) from exc
