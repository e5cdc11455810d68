"""
Tool surface for the assistant.

Each tool pairs a camelCase pydantic input model with a handler that calls
the same services the HTTP routes use. Handlers return small confirmation
payloads rather than whole rows; failures come back as `{"ok": False, ...}`
so the model can read them and react.
"""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Type, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from app.core.errors import ServiceError, format_validation_errors
from app.core.logging import get_logger
from app.models.task import TaskPriority, TaskStatus
from app.schemas.common import CamelModel
from app.schemas.plan import PlanBlockCreate, PlanBlockUpdate, PlanCreate, PlanUpdate
from app.schemas.task import TaskCreate, TaskUpdate
from app.services.plan_service import PlanService
from app.services.task_service import TaskService

logger = get_logger(__name__)

@dataclass
class ToolContext:
    db: Session
    user_id: Optional[str]

@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    input_model: Type[BaseModel]
    handler: Callable[[ToolContext, Any], Dict[str, Any]]

    def definition(self) -> Dict[str, Any]:
        """OpenAI-style function spec (the format LiteLLM forwards to every provider)"""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_model.model_json_schema(by_alias=True),
            },
        }

TOOLS: Dict[str, Tool] = {}

def tool(name: str, description: str, input_model: Type[BaseModel]):
    def decorator(fn):
        TOOLS[name] = Tool(name=name, description=description, input_model=input_model, handler=fn)
        return fn
    return decorator

# Inputs

class UpdateTaskInput(TaskUpdate):
    task_id: UUID

class TaskIdInput(CamelModel):
    task_id: UUID

class ListTasksInput(CamelModel):
    limit: int = Field(20, ge=1, le=100)
    status: Optional[TaskStatus] = None

class NoInput(CamelModel):
    pass

class PlanIdInput(CamelModel):
    plan_id: UUID

class UpdatePlanInput(PlanUpdate):
    plan_id: UUID

class AddPlanBlockInput(PlanBlockCreate):
    plan_id: UUID

class UpdatePlanBlockInput(PlanBlockUpdate):
    plan_id: UUID
    block_id: UUID

class BlockIdInput(CamelModel):
    plan_id: UUID
    block_id: UUID

# Results

class _Result(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    def dump(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

class TaskSummary(_Result):
    id: UUID
    title: str
    description: Optional[str] = None
    priority: TaskPriority
    status: TaskStatus

class BlockSummary(_Result):
    id: UUID
    title: str
    task_id: Optional[UUID] = None
    start_ts: datetime
    end_ts: datetime
    completed: bool
    order_index: int

class PlanSummary(_Result):
    id: UUID
    title: str
    description: Optional[str] = None
    is_template: bool
    blocks: List[BlockSummary] = []

def _payload(**fields) -> Dict[str, Any]:
    return {"ok": True, **fields}

# Task tools

@tool("createTask", "Create a new task for the current user.", TaskCreate)
def create_task(ctx: ToolContext, data: TaskCreate):
    task = TaskService(ctx.db).create_task(ctx.user_id, data)
    return _payload(task=TaskSummary.model_validate(task).dump())

@tool("updateTask", "Update fields of one of the user's tasks by taskId.", UpdateTaskInput)
def update_task(ctx: ToolContext, data: UpdateTaskInput):
    changes = TaskUpdate.model_validate(data.model_dump(exclude={"task_id"}, exclude_unset=True))
    task = TaskService(ctx.db).update_task(ctx.user_id, data.task_id, changes)
    return _payload(task=TaskSummary.model_validate(task).dump())

@tool("deleteTask", "Soft-delete a task by taskId (it is hidden, not erased).", TaskIdInput)
def delete_task(ctx: ToolContext, data: TaskIdInput):
    TaskService(ctx.db).delete_task(ctx.user_id, data.task_id)
    return _payload()

@tool("listTasks", "List the user's tasks, newest first. Deleted tasks are excluded.", ListTasksInput)
def list_tasks(ctx: ToolContext, data: ListTasksInput):
    rows, _ = TaskService(ctx.db).list_tasks(ctx.user_id, limit=data.limit, status=data.status)
    return _payload(tasks=[TaskSummary.model_validate(row).dump() for row in rows])

# Plan tools

@tool("listPlans", "List the user's plans with their blocks.", NoInput)
def list_plans(ctx: ToolContext, data: NoInput):
    plans = PlanService(ctx.db).list_plans(ctx.user_id)
    return _payload(plans=[PlanSummary.model_validate(plan).dump() for plan in plans])

@tool("getPlan", "Fetch one plan and its blocks by planId.", PlanIdInput)
def get_plan(ctx: ToolContext, data: PlanIdInput):
    plan = PlanService(ctx.db).get_plan(ctx.user_id, data.plan_id)
    return _payload(plan=PlanSummary.model_validate(plan).dump())

@tool(
    "createPlan",
    "Create a plan with time blocks. Each block may link an existing task "
    "(task.id), create one inline (task.title plus optional fields) or have no task.",
    PlanCreate
)
def create_plan(ctx: ToolContext, data: PlanCreate):
    plan = PlanService(ctx.db).create_plan(ctx.user_id, data)
    return _payload(plan=PlanSummary.model_validate(plan).dump())

@tool("updatePlan", "Update top-level plan fields (not its blocks).", UpdatePlanInput)
def update_plan(ctx: ToolContext, data: UpdatePlanInput):
    changes = PlanUpdate.model_validate(data.model_dump(exclude={"plan_id"}, exclude_unset=True))
    PlanService(ctx.db).update_plan(ctx.user_id, data.plan_id, changes)
    return _payload()

@tool("deletePlan", "Delete a plan and all of its blocks.", PlanIdInput)
def delete_plan(ctx: ToolContext, data: PlanIdInput):
    PlanService(ctx.db).delete_plan(ctx.user_id, data.plan_id)
    return _payload()

@tool("addPlanBlock", "Add a time block to an existing plan.", AddPlanBlockInput)
def add_plan_block(ctx: ToolContext, data: AddPlanBlockInput):
    block_data = PlanBlockCreate.model_validate(data.model_dump(exclude={"plan_id"}, exclude_unset=True))
    block = PlanService(ctx.db).add_block(ctx.user_id, data.plan_id, block_data)
    return _payload(block=BlockSummary.model_validate(block).dump())

@tool("updatePlanBlock", "Update a single block of a plan.", UpdatePlanBlockInput)
def update_plan_block(ctx: ToolContext, data: UpdatePlanBlockInput):
    changes = PlanBlockUpdate.model_validate(data.model_dump(exclude={"plan_id", "block_id"}, exclude_unset=True))
    PlanService(ctx.db).update_block(ctx.user_id, data.plan_id, data.block_id, changes)
    return _payload()

@tool("deletePlanBlock", "Delete a single block of a plan.", BlockIdInput)
def delete_plan_block(ctx: ToolContext, data: BlockIdInput):
    PlanService(ctx.db).delete_block(ctx.user_id, data.plan_id, data.block_id)
    return _payload()

def tool_definitions() -> List[Dict[str, Any]]:
    return [registered.definition() for registered in TOOLS.values()]

def _error(code: str, message: str, **extra) -> Dict[str, Any]:
    return {"ok": False, "code": code, "error": message, **extra}

def execute_tool(name: str, arguments: Union[str, Dict[str, Any], None], ctx: ToolContext) -> Dict[str, Any]:
    """Validate `arguments` against the tool's input model and run it"""
    registered = TOOLS.get(name)
    if registered is None:
        return _error("unknown_tool", f"Unknown tool: {name}")

    if isinstance(arguments, str):
        try:
            arguments = json.loads(arguments) if arguments.strip() else {}
        except json.JSONDecodeError:
            return _error("invalid_arguments", "Arguments are not valid JSON")

    try:
        data = registered.input_model.model_validate(arguments or {})
    except ValidationError as exc:
        return _error("validation_error", "Invalid arguments", details=format_validation_errors(exc.errors()))

    try:
        return registered.handler(ctx, data)
    except ServiceError as exc:
        ctx.db.rollback()
        extra = {"field": exc.field} if exc.field else {}
        return _error(exc.code, exc.message, **extra)
    except Exception:
        ctx.db.rollback()
        logger.exception("Tool %s failed", name)
        return _error("internal_error", "Internal error")
