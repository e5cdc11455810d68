# Task model

from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey, JSON, Uuid, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from uuid import uuid4
import enum
from app.core.database import Base

class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    SNOOZED = "snoozed"
    CANCELLED = "cancelled"

class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

def _enum_values(enum_cls):
    return [member.value for member in enum_cls]

class Task(Base):
    __tablename__ = "task"
    
    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    
    # Basic info
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(
        SQLEnum(TaskPriority, name="task_priority", values_callable=_enum_values),
        default=TaskPriority.MEDIUM,
        nullable=False
    )
    status = Column(
        SQLEnum(TaskStatus, name="task_status", values_callable=_enum_values),
        default=TaskStatus.PENDING,
        nullable=False
    )
    
    # Scheduling (UTC)
    due_date = Column(DateTime, nullable=True)
    scheduled_start = Column(DateTime, nullable=True)
    scheduled_end = Column(DateTime, nullable=True)
    
    # Original utterance + parser output
    raw_input = Column(Text, nullable=True)
    parser_confidence = Column(Integer, default=0)  # 0-100
    semantic_metadata = Column(JSON, default=dict)
    
    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    
    # Soft delete (allows undo)
    deleted = Column(Boolean, default=False, nullable=False)
    
    # Relationships
    user = relationship("User")
