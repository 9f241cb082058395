import uuid
from datetime import datetime
from typing import Any, Dict
from loguru import logger
from sqlmodel import Session

from app.db.schema import ActivityLog, AuditAction
from app.db.core import engine


def _perform_audit_log(
    actor_email: str,
    entity_type: str,
    entity_id: uuid.UUID,
    action: AuditAction,
    changes: Dict[str, Any],
):
    """
    Background worker.
    Creates its OWN session using the global engine, so a failure here never
    touches the request that scheduled it.
    """
    try:
        with Session(engine) as session:
            log_entry = ActivityLog(
                actor_email=actor_email,
                entity_type=entity_type,
                entity_id=entity_id,
                action=action,
                changes=changes,
                timestamp=datetime.utcnow()
            )
            session.add(log_entry)
            session.commit()

    except Exception:
        logger.exception(
            f"Activity log failed for {entity_type} {entity_id} ({action.value})")
