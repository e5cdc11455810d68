# Audit log model (append-only)

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, Uuid
from datetime import datetime
from app.core.database import Base

class Audit(Base):
    __tablename__ = "audits"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    entity = Column(String(64), nullable=False)  # task | plan | plan_block | reminder
    entity_id = Column(Uuid, nullable=True)
    action = Column(String(128), nullable=False)  # create | update | delete | restore
    payload = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
