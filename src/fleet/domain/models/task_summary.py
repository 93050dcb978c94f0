from pydantic import BaseModel, Field

AWAITING_RESPONSE_STATUS = "Menunggu"


class TaskSummary(BaseModel):
    """Compact representation used by the assigned-task list."""

    id: int
    ticket_number: str = ""
    task_type: str = ""
    date: str = ""
    driver_name: str = ""
    registration_number: str = ""
    current_status: str = Field(default="", description="Server status label.")
    created_at: str = ""

    @property
    def awaiting_response(self) -> bool:
        return self.current_status == AWAITING_RESPONSE_STATUS
