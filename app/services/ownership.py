"""
Ownership checks shared by the HTTP routes and the assistant tools.

A record that does not exist and a record owned by someone else produce the
same NotFoundError, so callers cannot probe for other users' ids.
"""

from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from app.core.errors import NotFoundError, UnauthorizedError
from app.models.plan import Plan, PlanBlock
from app.models.task import Task

TASK_NOT_FOUND = "Task not found"
PLAN_NOT_FOUND = "Plan not found"
BLOCK_NOT_FOUND = "Block not found"

def require_principal(user_id: Optional[str]) -> str:
    if not user_id:
        raise UnauthorizedError("Unauthorized")
    return user_id

def get_owned_task(db: Session, user_id: Optional[str], task_id: UUID, include_deleted: bool = False) -> Task:
    require_principal(user_id)
    query = db.query(Task).filter(Task.id == task_id, Task.user_id == user_id)
    if not include_deleted:
        query = query.filter(Task.deleted.is_(False))
    task = query.first()
    if not task:
        raise NotFoundError(TASK_NOT_FOUND)
    return task

def get_owned_plan(db: Session, user_id: Optional[str], plan_id: UUID, with_blocks: bool = False) -> Plan:
    require_principal(user_id)
    query = db.query(Plan).filter(Plan.id == plan_id, Plan.user_id == user_id)
    if with_blocks:
        # Refresh blocks already in the session; order or membership may have changed
        query = query.options(selectinload(Plan.blocks).selectinload(PlanBlock.task)).populate_existing()
    plan = query.first()
    if not plan:
        raise NotFoundError(PLAN_NOT_FOUND)
    return plan

def get_owned_block(db: Session, user_id: Optional[str], plan_id: UUID, block_id: UUID) -> PlanBlock:
    """Blocks have no owner column, so ownership is checked through the parent plan"""
    require_principal(user_id)
    block = (
        db.query(PlanBlock)
        .join(Plan, Plan.id == PlanBlock.plan_id)
        .options(selectinload(PlanBlock.task))
        .populate_existing()
        .filter(
            PlanBlock.id == block_id,
            PlanBlock.plan_id == plan_id,
            Plan.user_id == user_id
        )
        .first()
    )
    if not block:
        raise NotFoundError(BLOCK_NOT_FOUND)
    return block

def find_unowned_task_ids(db: Session, user_id: str, task_ids: Iterable[UUID]) -> List[UUID]:
    """Return the ids from `task_ids` the caller cannot link (missing, foreign or deleted)"""
    wanted = list(dict.fromkeys(task_ids))
    if not wanted:
        return []
    owned = {
        row.id
        for row in db.query(Task.id).filter(
            Task.id.in_(wanted),
            Task.user_id == user_id,
            Task.deleted.is_(False)
        )
    }
    return [task_id for task_id in wanted if task_id not in owned]
