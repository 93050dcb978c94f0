from __future__ import annotations

import logging

import inject

from src.fleet.domain.exceptions import NetworkError, RejectedByServer
from src.fleet.domain.models.task_summary import TaskSummary
from src.fleet.domain.repositories import TaskServiceRepository

logger = logging.getLogger(__name__)

DRIVER_ROLE_ID = 4


class TaskInboxController:
    """Tasks assigned to or created by the signed-in user.

    The list is fetched when the owning view is activated. Responses that
    arrive after ``deactivate()`` are dropped.
    """

    def __init__(
        self,
        user_id: int,
        role_id: int = 0,
        task_service: TaskServiceRepository | None = None,
    ) -> None:
        self._user_id = user_id
        self._role_id = role_id
        self._task_service = task_service or inject.instance(TaskServiceRepository)
        self._tasks: list[TaskSummary] = []
        self._active = False
        self._loading = False
        self._last_error: str | None = None
        # Incremented on each activation so late responses from a previous one are ignored.
        self._epoch = 0

    @property
    def active(self) -> bool:
        return self._active

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def tasks(self) -> list[TaskSummary]:
        return list(self._tasks)

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def is_driver(self) -> bool:
        return self._role_id == DRIVER_ROLE_ID

    async def activate(self) -> None:
        self._active = True
        self._epoch += 1
        await self.refresh()

    def deactivate(self) -> None:
        self._active = False
        self._loading = False
        self._epoch += 1

    async def refresh(self) -> None:
        """Refetch the list; failures keep the previous list and record the error."""
        if not self._active:
            return
        epoch = self._epoch
        self._loading = True
        try:
            tasks = await self._task_service.list_tasks(self._user_id, self._role_id)
        except (NetworkError, RejectedByServer) as exc:
            if epoch == self._epoch:
                self._loading = False
                self._last_error = str(exc)
            logger.warning("Task list fetch failed", extra={"user_id": self._user_id, "error": str(exc)})
            return

        if epoch != self._epoch:
            logger.debug("Discarding task list for an inactive view")
            return
        self._loading = False
        self._last_error = None
        self._tasks = tasks

    def actionable_tasks(self) -> list[TaskSummary]:
        """Tasks a driver still has to accept or reject."""
        if not self.is_driver:
            return []
        return [task for task in self._tasks if task.awaiting_response]
