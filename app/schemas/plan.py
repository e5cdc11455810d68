from pydantic import AliasChoices, BaseModel, Field, ValidationInfo, field_validator
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Union
from uuid import UUID

from app.models.task import TaskPriority
from app.schemas.common import CamelModel, Confidence, Metadata, UtcDatetime, ensure_after
from app.schemas.task import TaskResponse

UNTITLED_BLOCK = "Untitled"

@dataclass(frozen=True)
class ExistingTaskRef:
    """Block links to a task the caller already owns"""
    id: UUID

class InlineTaskSpec(CamelModel):
    """Task to be created alongside the block"""
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[UtcDatetime] = None
    scheduled_start: Optional[UtcDatetime] = None
    scheduled_end: Optional[UtcDatetime] = None
    raw_input: Optional[str] = None
    parser_confidence: Confidence = 0
    semantic_metadata: Optional[Metadata] = None

# Existing task, inline-created task, or no task at all
BlockTaskRef = Union[ExistingTaskRef, InlineTaskSpec, None]

class BlockTaskInput(CamelModel):
    """Wire shape of a block's `task` entry: either {id} or inline fields"""
    id: Optional[UUID] = None
    title: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[UtcDatetime] = None
    scheduled_start: Optional[UtcDatetime] = None
    scheduled_end: Optional[UtcDatetime] = None
    raw_input: Optional[str] = None
    parser_confidence: Optional[Confidence] = None
    semantic_metadata: Optional[Metadata] = None

    @field_validator("scheduled_end")
    @classmethod
    def _end_after_start(cls, value, info: ValidationInfo):
        ensure_after(info.data.get("scheduled_start"), value, "scheduled_end must be after scheduled_start")
        return value

    def resolve(self) -> BlockTaskRef:
        if self.id is not None:
            return ExistingTaskRef(id=self.id)
        if self.title and self.title.strip():
            return InlineTaskSpec(
                title=self.title.strip(),
                description=self.description,
                priority=self.priority or TaskPriority.MEDIUM,
                due_date=self.due_date,
                scheduled_start=self.scheduled_start,
                scheduled_end=self.scheduled_end,
                raw_input=self.raw_input,
                parser_confidence=self.parser_confidence or 0,
                semantic_metadata=self.semantic_metadata,
            )
        return None

class PlanBlockCreate(CamelModel):
    title: Optional[str] = Field(None, max_length=256)
    notes: Optional[str] = None
    location: Optional[str] = None
    start_ts: UtcDatetime
    end_ts: UtcDatetime
    order_index: Optional[int] = None
    task: Optional[BlockTaskInput] = None

    @field_validator("end_ts")
    @classmethod
    def _end_after_start(cls, value, info: ValidationInfo):
        ensure_after(info.data.get("start_ts"), value, "end_ts must be after start_ts")
        return value

class PlanCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=256)
    description: Optional[str] = None
    is_template: bool = False
    metadata: Optional[Metadata] = None
    blocks: List[PlanBlockCreate] = Field(..., min_length=1)

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be blank")
        return value.strip()

class PlanUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=256)
    description: Optional[str] = None
    is_template: Optional[bool] = None
    metadata: Optional[Metadata] = None

    @field_validator("title", "is_template")
    @classmethod
    def _not_null(cls, value, info: ValidationInfo):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

class PlanBlockUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=256)
    notes: Optional[str] = None
    location: Optional[str] = None
    start_ts: Optional[UtcDatetime] = None
    end_ts: Optional[UtcDatetime] = None
    completed: Optional[bool] = None
    order_index: Optional[int] = None
    task_id: Optional[UUID] = None

    @field_validator("title", "start_ts", "end_ts", "completed", "order_index")
    @classmethod
    def _not_null(cls, value, info: ValidationInfo):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

    @field_validator("end_ts")
    @classmethod
    def _end_after_start(cls, value, info: ValidationInfo):
        ensure_after(info.data.get("start_ts"), value, "end_ts must be after start_ts")
        return value

class PlanBlockResponse(BaseModel):
    id: UUID
    plan_id: UUID
    task_id: Optional[UUID]
    title: str
    notes: Optional[str]
    location: Optional[str]
    start_ts: datetime
    end_ts: datetime
    completed: bool
    order_index: int
    created_at: datetime
    task: Optional[TaskResponse] = None

    class Config:
        from_attributes = True

class PlanResponse(BaseModel):
    id: UUID
    user_id: str
    title: str
    description: Optional[str]
    metadata: Optional[Metadata] = Field(
        default=None,
        validation_alias=AliasChoices("plan_metadata", "metadata")
    )
    is_template: bool
    created_at: datetime
    updated_at: datetime
    blocks: List[PlanBlockResponse] = []

    class Config:
        from_attributes = True

class PlanListResponse(BaseModel):
    plans: List[PlanResponse]
