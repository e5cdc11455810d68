# Reminder model (stored only; nothing delivers these yet)

from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey, JSON, Uuid, CheckConstraint, Enum as SQLEnum
from datetime import datetime
from uuid import uuid4
import enum
from app.core.database import Base

class ReminderChannel(str, enum.Enum):
    IN_APP = "in_app"
    EMAIL = "email"
    TELEGRAM = "telegram"
    WHATSAPP = "whatsapp"

class Reminder(Base):
    __tablename__ = "reminders"
    __table_args__ = (
        # Exactly one target
        CheckConstraint(
            "(task_id IS NULL) <> (plan_block_id IS NULL)",
            name="ck_reminders_single_target"
        ),
    )
    
    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    
    task_id = Column(Uuid, ForeignKey("task.id", ondelete="CASCADE"), nullable=True)
    plan_block_id = Column(Uuid, ForeignKey("plan_blocks.id", ondelete="CASCADE"), nullable=True)
    
    # Delivery (UTC)
    deliver_at = Column(DateTime, nullable=False)
    delivered = Column(Boolean, default=False)
    delivered_at = Column(DateTime, nullable=True)
    channel = Column(
        SQLEnum(ReminderChannel, name="reminder_channel", values_callable=lambda e: [m.value for m in e]),
        default=ReminderChannel.IN_APP,
        nullable=False
    )
    payload = Column(JSON, default=dict)
    
    # Retry bookkeeping
    attempts = Column(Integer, default=0)
    last_error = Column(Text, nullable=True)
    
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
