# Import every model so Base.metadata sees all tables

from app.models.user import User
from app.models.task import Task, TaskPriority, TaskStatus
from app.models.plan import Plan, PlanBlock
from app.models.reminder import Reminder, ReminderChannel
from app.models.audit import Audit

__all__ = [
    "User",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "Plan",
    "PlanBlock",
    "Reminder",
    "ReminderChannel",
    "Audit",
]
