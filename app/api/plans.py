# Plans + plan blocks
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from uuid import UUID

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.schemas.plan import (
    PlanBlockCreate,
    PlanBlockResponse,
    PlanBlockUpdate,
    PlanCreate,
    PlanListResponse,
    PlanResponse,
    PlanUpdate,
)
from app.services.plan_service import PlanService

router = APIRouter()

@router.get("/", response_model=PlanListResponse)
def list_plans(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """All plans of the current user with their blocks"""
    service = PlanService(db)
    return PlanListResponse(plans=service.list_plans(current_user.id))

@router.post("/", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
def create_plan(
    plan_data: PlanCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Create a plan with its blocks.
    Each block may link an existing task (`task.id`), create one inline
    (`task.title`), or have no task.
    """
    service = PlanService(db)
    return service.create_plan(current_user.id, plan_data)

@router.get("/{plan_id}", response_model=PlanResponse)
def get_plan(
    plan_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = PlanService(db)
    return service.get_plan(current_user.id, plan_id)

@router.patch("/{plan_id}")
def update_plan(
    plan_id: UUID,
    plan_data: PlanUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update title/description/metadata/template flag"""
    service = PlanService(db)
    plan = service.update_plan(current_user.id, plan_id, plan_data)
    return {"message": "Plan updated", "id": plan.id}

@router.delete("/{plan_id}")
def delete_plan(
    plan_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Delete a plan and all of its blocks"""
    service = PlanService(db)
    service.delete_plan(current_user.id, plan_id)
    return {"message": "Plan deleted"}

@router.post("/{plan_id}/blocks", response_model=PlanBlockResponse, status_code=status.HTTP_201_CREATED)
def add_block(
    plan_id: UUID,
    block_data: PlanBlockCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = PlanService(db)
    return service.add_block(current_user.id, plan_id, block_data)

@router.get("/{plan_id}/blocks/{block_id}", response_model=PlanBlockResponse)
def get_block(
    plan_id: UUID,
    block_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = PlanService(db)
    return service.get_block(current_user.id, plan_id, block_id)

@router.patch("/{plan_id}/blocks/{block_id}", response_model=PlanBlockResponse)
def update_block(
    plan_id: UUID,
    block_id: UUID,
    block_data: PlanBlockUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = PlanService(db)
    return service.update_block(current_user.id, plan_id, block_id, block_data)

@router.delete("/{plan_id}/blocks/{block_id}")
def delete_block(
    plan_id: UUID,
    block_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = PlanService(db)
    service.delete_block(current_user.id, plan_id, block_id)
    return {"message": "Block deleted"}
