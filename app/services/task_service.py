from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
from datetime import datetime
from uuid import UUID

from app.core.errors import InvalidInputError
from app.core.logging import get_logger
from app.models.task import Task, TaskStatus
from app.schemas.task import TaskCreate, TaskUpdate
from app.services.audit import record_audit
from app.services.ownership import get_owned_task, require_principal

logger = get_logger(__name__)

SORT_COLUMNS = {
    "created_at": Task.created_at,
    "title": Task.title,
}

class TaskService:
    def __init__(self, db: Session):
        self.db = db

    def create_task(self, user_id: str, task_data: TaskCreate) -> Task:
        """Create a new task"""
        require_principal(user_id)
        task = Task(
            **task_data.model_dump(exclude={"semantic_metadata"}),
            semantic_metadata=task_data.semantic_metadata or {},
            user_id=user_id
        )
        if task.status == TaskStatus.COMPLETED:
            task.completed_at = datetime.utcnow()
        self.db.add(task)
        self.db.flush()
        record_audit(self.db, user_id, "task", task.id, "create", {"title": task.title})
        self.db.commit()
        logger.info("Created task %s for user %s", task.id, user_id)
        return task

    def list_tasks(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 20,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        status: Optional[TaskStatus] = None
    ) -> Tuple[List[Task], bool]:
        """Page through the caller's live tasks; returns (rows, has_next_page)"""
        require_principal(user_id)
        query = self.db.query(Task).filter(
            Task.user_id == user_id,
            Task.deleted.is_(False)
        )
        if status:
            query = query.filter(Task.status == status)

        column = SORT_COLUMNS.get(sort_by, Task.created_at)
        ordering = column.asc() if sort_order == "asc" else column.desc()
        # Fetch one extra row instead of counting
        rows = (
            query.order_by(ordering, Task.id)
            .offset((page - 1) * limit)
            .limit(limit + 1)
            .all()
        )
        return rows[:limit], len(rows) > limit

    def get_task(self, user_id: str, task_id: UUID, include_deleted: bool = False) -> Task:
        """Get a single task"""
        return get_owned_task(self.db, user_id, task_id, include_deleted=include_deleted)

    def update_task(self, user_id: str, task_id: UUID, task_data: TaskUpdate) -> Task:
        """Apply the fields present in `task_data`"""
        task = get_owned_task(self.db, user_id, task_id)
        update_data = task_data.model_dump(exclude_unset=True)

        start = update_data.get("scheduled_start", task.scheduled_start)
        end = update_data.get("scheduled_end", task.scheduled_end)
        if start is not None and end is not None and end <= start:
            raise InvalidInputError("scheduled_end must be after scheduled_start", field="scheduled_end")

        if "semantic_metadata" in update_data and update_data["semantic_metadata"] is None:
            update_data["semantic_metadata"] = {}

        new_status = update_data.get("status")
        if new_status is not None and new_status != task.status:
            task.completed_at = datetime.utcnow() if new_status == TaskStatus.COMPLETED else None

        for field, value in update_data.items():
            setattr(task, field, value)

        task.updated_at = datetime.utcnow()
        record_audit(self.db, user_id, "task", task.id, "update", {"fields": sorted(update_data)})
        self.db.commit()
        return task

    def delete_task(self, user_id: str, task_id: UUID) -> Task:
        """Soft delete: the row stays so plan blocks can still point at it"""
        task = get_owned_task(self.db, user_id, task_id)
        task.deleted = True
        task.updated_at = datetime.utcnow()
        record_audit(self.db, user_id, "task", task.id, "delete")
        self.db.commit()
        logger.info("Soft-deleted task %s", task.id)
        return task

    def restore_task(self, user_id: str, task_id: UUID) -> Task:
        """Undo a soft delete"""
        task = get_owned_task(self.db, user_id, task_id, include_deleted=True)
        if task.deleted:
            task.deleted = False
            task.updated_at = datetime.utcnow()
            record_audit(self.db, user_id, "task", task.id, "restore")
            self.db.commit()
        return task
