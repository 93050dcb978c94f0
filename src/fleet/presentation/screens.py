from __future__ import annotations

from src.fleet.application.inbox import TaskInboxController
from src.fleet.application.location import LocationResolutionController
from src.fleet.application.task_form import TaskFormController
from src.setup.client_config import ClientSettings, get_client_settings


def open_task_screen(
    task_id: str | None = None,
    settings: ClientSettings | None = None,
) -> TaskFormController:
    """Controller for the task screen: Create mode without an id, View mode with one.

    Repositories come from the injector, see ``src.setup.app_config.configure_di``.
    """
    if settings is None:
        settings = get_client_settings()
    locations = LocationResolutionController(
        debounce_seconds=settings.search_debounce_seconds,
        min_query_length=settings.MIN_QUERY_LENGTH,
    )
    return TaskFormController(task_id, locations=locations)


def open_task_inbox(user_id: int, role_id: int = 0) -> TaskInboxController:
    return TaskInboxController(user_id, role_id)
