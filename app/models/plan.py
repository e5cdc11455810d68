# Plan + PlanBlock models

from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey, JSON, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime
from uuid import uuid4
from app.core.database import Base

class Plan(Base):
    __tablename__ = "plans"
    
    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    
    title = Column(String(256), nullable=False)
    description = Column(Text, nullable=True)
    plan_metadata = Column("metadata", JSON, default=dict)
    is_template = Column(Boolean, default=False, nullable=False)
    
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    
    # Order index is a sort hint, not a unique key
    blocks = relationship(
        "PlanBlock",
        back_populates="plan",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: [PlanBlock.order_index, PlanBlock.created_at, PlanBlock.id]
    )

class PlanBlock(Base):
    __tablename__ = "plan_blocks"
    
    id = Column(Uuid, primary_key=True, default=uuid4)
    plan_id = Column(Uuid, ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True)
    task_id = Column(Uuid, ForeignKey("task.id", ondelete="SET NULL"), nullable=True, index=True)
    
    title = Column(String(256), nullable=False)
    notes = Column(Text, nullable=True)
    location = Column(Text, nullable=True)
    start_ts = Column(DateTime, nullable=False)
    end_ts = Column(DateTime, nullable=False)
    completed = Column(Boolean, default=False, nullable=False)
    order_index = Column(Integer, default=0, nullable=False)
    
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    
    # Relationships
    plan = relationship("Plan", back_populates="blocks")
    task = relationship("Task")
    
    @property
    def owner_id(self):
        """Blocks carry no owner column; ownership follows the parent plan"""
        return self.plan.user_id if self.plan is not None else None
