from contextlib import contextmanager
from sqlalchemy.orm import Session, selectinload
from typing import List
from datetime import datetime
from uuid import UUID

from app.core.errors import InvalidInputError
from app.core.logging import get_logger
from app.models.plan import Plan, PlanBlock
from app.schemas.plan import PlanBlockCreate, PlanBlockUpdate, PlanCreate, PlanUpdate
from app.services import composition
from app.services.audit import record_audit
from app.services.ownership import (
    find_unowned_task_ids,
    get_owned_block,
    get_owned_plan,
    require_principal,
)

logger = get_logger(__name__)

class PlanService:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _atomic(self):
        """Commit everything staged inside the block, or nothing"""
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def list_plans(self, user_id: str) -> List[Plan]:
        """All of the caller's plans with blocks and linked tasks"""
        require_principal(user_id)
        return (
            self.db.query(Plan)
            .options(selectinload(Plan.blocks).selectinload(PlanBlock.task))
            .populate_existing()
            .filter(Plan.user_id == user_id)
            .order_by(Plan.created_at.desc(), Plan.id)
            .all()
        )

    def get_plan(self, user_id: str, plan_id: UUID) -> Plan:
        return get_owned_plan(self.db, user_id, plan_id, with_blocks=True)

    def create_plan(self, user_id: str, plan_data: PlanCreate) -> Plan:
        """Create a plan, its blocks and any inline tasks as one unit"""
        require_principal(user_id)
        with self._atomic():
            plan = composition.compose_plan(self.db, user_id, plan_data)
            record_audit(
                self.db, user_id, "plan", plan.id, "create",
                {"title": plan.title, "blocks": len(plan_data.blocks)}
            )
        logger.info("Created plan %s with %d blocks", plan.id, len(plan_data.blocks))
        return self.get_plan(user_id, plan.id)

    def update_plan(self, user_id: str, plan_id: UUID, plan_data: PlanUpdate) -> Plan:
        """Update top-level plan fields (blocks are edited separately)"""
        plan = get_owned_plan(self.db, user_id, plan_id)
        update_data = plan_data.model_dump(exclude_unset=True)
        if "metadata" in update_data:
            plan.plan_metadata = update_data.pop("metadata") or {}
        for field, value in update_data.items():
            setattr(plan, field, value)
        plan.updated_at = datetime.utcnow()
        with self._atomic():
            record_audit(self.db, user_id, "plan", plan.id, "update", {"fields": sorted(plan_data.model_fields_set)})
        return plan

    def delete_plan(self, user_id: str, plan_id: UUID) -> None:
        """Physically delete a plan; its blocks go with it"""
        plan = get_owned_plan(self.db, user_id, plan_id)
        with self._atomic():
            record_audit(self.db, user_id, "plan", plan.id, "delete", {"title": plan.title})
            self.db.delete(plan)
        logger.info("Deleted plan %s", plan_id)

    def add_block(self, user_id: str, plan_id: UUID, block_data: PlanBlockCreate) -> PlanBlock:
        plan = get_owned_plan(self.db, user_id, plan_id)
        with self._atomic():
            block = composition.compose_block(self.db, user_id, plan, block_data)
            plan.updated_at = datetime.utcnow()
            record_audit(self.db, user_id, "plan_block", block.id, "create", {"plan_id": str(plan.id)})
        return self.get_block(user_id, plan_id, block.id)

    def get_block(self, user_id: str, plan_id: UUID, block_id: UUID) -> PlanBlock:
        return get_owned_block(self.db, user_id, plan_id, block_id)

    def update_block(self, user_id: str, plan_id: UUID, block_id: UUID, block_data: PlanBlockUpdate) -> PlanBlock:
        block = get_owned_block(self.db, user_id, plan_id, block_id)
        update_data = block_data.model_dump(exclude_unset=True)

        start = update_data.get("start_ts", block.start_ts)
        end = update_data.get("end_ts", block.end_ts)
        if end <= start:
            raise InvalidInputError("end_ts must be after start_ts", field="end_ts")

        task_id = update_data.get("task_id")
        if task_id is not None and find_unowned_task_ids(self.db, user_id, [task_id]):
            raise InvalidInputError(f"Task {task_id} not found or not owned by user", field="task_id")

        for field, value in update_data.items():
            setattr(block, field, value)
        with self._atomic():
            record_audit(self.db, user_id, "plan_block", block.id, "update", {"fields": sorted(update_data)})
        return self.get_block(user_id, plan_id, block_id)

    def delete_block(self, user_id: str, plan_id: UUID, block_id: UUID) -> None:
        block = get_owned_block(self.db, user_id, plan_id, block_id)
        with self._atomic():
            record_audit(self.db, user_id, "plan_block", block.id, "delete", {"plan_id": str(plan_id)})
            self.db.delete(block)
