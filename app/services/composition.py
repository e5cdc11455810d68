"""
Turns plan/block requests into rows.

Nothing here commits: callers wrap a composition in one transaction so a
failure anywhere leaves no plan, block or inline task behind.
"""

from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import InvalidInputError
from app.models.plan import Plan, PlanBlock
from app.models.task import Task, TaskPriority, TaskStatus
from app.schemas.plan import (
    UNTITLED_BLOCK,
    BlockTaskRef,
    ExistingTaskRef,
    InlineTaskSpec,
    PlanBlockCreate,
    PlanCreate,
)
from app.services.ownership import find_unowned_task_ids

def resolve_block_refs(
    db: Session,
    user_id: str,
    entries: Sequence[PlanBlockCreate],
    field_prefix: str = "blocks"
) -> List[BlockTaskRef]:
    """Resolve each entry's task reference and batch-check existing ids before any write"""
    refs = [entry.task.resolve() if entry.task else None for entry in entries]
    existing = [
        (index, ref.id) for index, ref in enumerate(refs)
        if isinstance(ref, ExistingTaskRef)
    ]
    if existing:
        missing = set(find_unowned_task_ids(db, user_id, [task_id for _, task_id in existing]))
        for index, task_id in existing:
            if task_id in missing:
                field = f"{field_prefix}.{index}.task.id" if field_prefix else "task.id"
                raise InvalidInputError(f"Task {task_id} not found or not owned by user", field=field)
    return refs

def create_inline_task(db: Session, user_id: str, spec: InlineTaskSpec) -> Task:
    task = Task(
        user_id=user_id,
        title=spec.title,
        description=spec.description,
        priority=spec.priority or TaskPriority.MEDIUM,
        status=TaskStatus.PENDING,
        due_date=spec.due_date,
        scheduled_start=spec.scheduled_start,
        scheduled_end=spec.scheduled_end,
        raw_input=spec.raw_input,
        parser_confidence=spec.parser_confidence or 0,
        semantic_metadata=spec.semantic_metadata or {}
    )
    db.add(task)
    db.flush()
    return task

def _link_task(db: Session, user_id: str, ref: BlockTaskRef) -> Tuple[Optional[UUID], Optional[str]]:
    """Return (task_id, fallback title) for a block"""
    if isinstance(ref, ExistingTaskRef):
        existing = db.get(Task, ref.id)
        return ref.id, existing.title if existing else None
    if isinstance(ref, InlineTaskSpec):
        task = create_inline_task(db, user_id, ref)
        return task.id, task.title
    return None, None

def build_block(
    db: Session,
    user_id: str,
    plan: Plan,
    entry: PlanBlockCreate,
    ref: BlockTaskRef,
    default_order: int
) -> PlanBlock:
    task_id, task_title = _link_task(db, user_id, ref)
    block = PlanBlock(
        plan=plan,
        task_id=task_id,
        title=entry.title or task_title or UNTITLED_BLOCK,
        notes=entry.notes,
        location=entry.location,
        start_ts=entry.start_ts,
        end_ts=entry.end_ts,
        completed=False,
        order_index=entry.order_index if entry.order_index is not None else default_order
    )
    db.add(block)
    return block

def compose_plan(db: Session, user_id: str, data: PlanCreate) -> Plan:
    """Stage a plan, its blocks and any inline tasks in the current transaction"""
    refs = resolve_block_refs(db, user_id, data.blocks)
    plan = Plan(
        user_id=user_id,
        title=data.title,
        description=data.description,
        is_template=data.is_template,
        plan_metadata=data.metadata or {}
    )
    db.add(plan)
    for position, (entry, ref) in enumerate(zip(data.blocks, refs)):
        build_block(db, user_id, plan, entry, ref, default_order=position)
    db.flush()
    return plan

def compose_block(db: Session, user_id: str, plan: Plan, entry: PlanBlockCreate) -> PlanBlock:
    """Stage one block on an existing plan; order defaults to the insertion position"""
    (ref,) = resolve_block_refs(db, user_id, [entry], field_prefix="")
    position = db.query(PlanBlock).filter(PlanBlock.plan_id == plan.id).count()
    block = build_block(db, user_id, plan, entry, ref, default_order=position)
    db.flush()
    return block
