from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.audit import Audit

def record_audit(
    db: Session,
    user_id: str,
    entity: str,
    entity_id: Optional[UUID],
    action: str,
    payload: Optional[Dict[str, Any]] = None
) -> Audit:
    """Append an audit row to the caller's transaction (no commit)"""
    entry = Audit(
        user_id=user_id,
        entity=entity,
        entity_id=entity_id,
        action=action,
        payload=payload or {}
    )
    db.add(entry)
    return entry
