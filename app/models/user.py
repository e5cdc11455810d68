# User model (rows are owned by the identity provider)

from sqlalchemy import Column, String, DateTime, Boolean, JSON
from datetime import datetime
from uuid import uuid4
from app.core.database import Base

class User(Base):
    __tablename__ = "users"
    
    id = Column(String(64), primary_key=True, default=lambda: str(uuid4()))
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False, default="")
    email_verified = Column(Boolean, nullable=False, default=False)
    
    # Preferences
    timezone = Column(String(64), default="Asia/Kolkata")
    locale = Column(String(32), default="en-IN")
    user_metadata = Column("metadata", JSON, default=dict)
    
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
