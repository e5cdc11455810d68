# Task CRUD
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.models.task import TaskStatus
from app.schemas.task import (
    PageMeta,
    SortOrder,
    TaskCreate,
    TaskListResponse,
    TaskResponse,
    TaskSortField,
    TaskUpdate,
)
from app.services.task_service import TaskService

router = APIRouter()

@router.post("/", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a new task"""
    service = TaskService(db)
    return service.create_task(current_user.id, task_data)

@router.get("/", response_model=TaskListResponse)
def list_tasks(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort_by: TaskSortField = Query("created_at"),
    sort_order: SortOrder = Query("desc"),
    status: Optional[TaskStatus] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List the current user's tasks (soft-deleted tasks are excluded)"""
    service = TaskService(db)
    rows, has_next_page = service.list_tasks(
        current_user.id,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        status=status
    )
    return TaskListResponse(
        data=rows,
        meta=PageMeta(page=page, limit=limit, has_next_page=has_next_page)
    )

@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: UUID,
    include_deleted: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get a specific task"""
    service = TaskService(db)
    return service.get_task(current_user.id, task_id, include_deleted=include_deleted)

@router.patch("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: UUID,
    task_data: TaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update a task"""
    service = TaskService(db)
    return service.update_task(current_user.id, task_id, task_data)

@router.delete("/{task_id}")
def delete_task(
    task_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Soft-delete a task"""
    service = TaskService(db)
    service.delete_task(current_user.id, task_id)
    return {"message": "Task deleted"}

@router.post("/{task_id}/restore", response_model=TaskResponse)
def restore_task(
    task_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Undo a soft delete"""
    service = TaskService(db)
    return service.restore_task(current_user.id, task_id)
