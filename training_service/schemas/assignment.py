from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class AssignmentCreate(BaseModel):
    user_id: int
    program_id: int


class AssignmentResponse(BaseModel):
    id: int
    program_id: int
    user_id: int
    completed: bool
    completed_at: datetime | None = None
    expires_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class DirectoryUser(BaseModel):
    id: int
    email: str | None = None
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    subscription_ids: list[int] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        full = " ".join(p for p in (self.first_name, self.last_name) if p)
        return full or self.username or self.email or f"user {self.id}"


class AssignedUserResponse(BaseModel):
    id: int = Field(..., description="Assignment id")
    program_id: int
    completed: bool
    expires_at: datetime | None = None
    user: DirectoryUser


class AvailableUserResponse(DirectoryUser):
    has_active_program: bool = False
    active_program_id: int | None = None
    active_assignment_id: int | None = None


class BatchAssignmentRequest(BaseModel):
    assign_user_ids: list[int] = Field(default_factory=list)
    remove_assignment_ids: list[int] = Field(default_factory=list)


class BatchItemResult(BaseModel):
    action: Literal["assign", "remove"]
    target_id: int = Field(..., description="User id for assign, assignment id for remove")
    ok: bool
    assignment_id: int | None = None
    error_code: str | None = None
    detail: str | None = None


class BatchAssignmentResponse(BaseModel):
    results: list[BatchItemResult]
    succeeded: int
    failed: int


class CompletedTrainingStatus(str, Enum):
    completed = "completed"
    expiring_soon = "expiringSoon"
    in_progress = "inProgress"


class CompletedTrainingFilter(BaseModel):
    user_id: int | None = None
    status: CompletedTrainingStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)


class CompletedTrainingItem(BaseModel):
    id: int
    user_id: int
    client_name: str | None = None
    program_id: int
    program_title: str
    program_type: str
    week_count: int
    day_count: int
    status: CompletedTrainingStatus
    created_at: datetime | None = None
    completed_at: datetime | None = None
    expires_at: datetime | None = None


class CompletedTrainingPage(BaseModel):
    items: list[CompletedTrainingItem]
    total_count: int
    page: int
    page_size: int
    total_pages: int
