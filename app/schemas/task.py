from pydantic import BaseModel, Field, ValidationInfo, field_validator
from datetime import datetime
from typing import Literal, Optional, List
from uuid import UUID

from app.models.task import TaskStatus, TaskPriority
from app.schemas.common import CamelModel, Confidence, Metadata, UtcDatetime, ensure_after

class TaskBase(CamelModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[UtcDatetime] = None
    scheduled_start: Optional[UtcDatetime] = None
    scheduled_end: Optional[UtcDatetime] = None
    raw_input: Optional[str] = None
    parser_confidence: Confidence = 0
    semantic_metadata: Optional[Metadata] = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be blank")
        return value.strip()

    @field_validator("scheduled_end")
    @classmethod
    def _end_after_start(cls, value, info: ValidationInfo):
        ensure_after(info.data.get("scheduled_start"), value, "scheduled_end must be after scheduled_start")
        return value

class TaskCreate(TaskBase):
    status: TaskStatus = TaskStatus.PENDING

class TaskUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[UtcDatetime] = None
    scheduled_start: Optional[UtcDatetime] = None
    scheduled_end: Optional[UtcDatetime] = None
    raw_input: Optional[str] = None
    parser_confidence: Optional[Confidence] = None
    semantic_metadata: Optional[Metadata] = None

    @field_validator("title", "priority", "status", "parser_confidence")
    @classmethod
    def _not_null(cls, value, info: ValidationInfo):
        # Omit a field to leave it alone; null is only meaningful for nullable columns
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        if info.field_name == "title" and not value.strip():
            raise ValueError("title must not be blank")
        return value

    @field_validator("scheduled_end")
    @classmethod
    def _end_after_start(cls, value, info: ValidationInfo):
        ensure_after(info.data.get("scheduled_start"), value, "scheduled_end must be after scheduled_start")
        return value

class TaskResponse(BaseModel):
    id: UUID
    user_id: str
    title: str
    description: Optional[str]
    priority: TaskPriority
    status: TaskStatus
    due_date: Optional[datetime]
    scheduled_start: Optional[datetime]
    scheduled_end: Optional[datetime]
    raw_input: Optional[str]
    parser_confidence: Optional[int]
    semantic_metadata: Optional[Metadata]
    deleted: bool
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime]
    
    class Config:
        from_attributes = True

class TaskListItem(BaseModel):
    id: UUID
    title: str
    description: Optional[str]
    priority: TaskPriority
    status: TaskStatus
    due_date: Optional[datetime]
    
    class Config:
        from_attributes = True

class PageMeta(BaseModel):
    page: int
    limit: int
    has_next_page: bool

class TaskListResponse(BaseModel):
    data: List[TaskListItem]
    meta: PageMeta

TaskSortField = Literal["created_at", "title"]
SortOrder = Literal["asc", "desc"]
