"""
Audit logging service
"""
import logging
from typing import Optional, Dict, Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from workhub.models.audit_log import AuditLog
from workhub.utils.datetime_utils import now_utc
from workhub.utils.json_serializer import sanitize_for_json

logger = logging.getLogger(__name__)


def log_audit(
    db: Session,
    actor_id: int,
    action: str,
    entity_type: str,
    entity_id: Optional[int] = None,
    meta: Optional[Dict[str, Any]] = None
) -> Optional[AuditLog]:
    """
    Create an audit log entry

    Failures are logged and swallowed so that auditing never undoes or fails
    the operation being audited.

    Args:
        db: Database session
        actor_id: ID of the user performing the action
        action: Action type (e.g., "ATTENDANCE_IN", "USER_CREATE")
        entity_type: Type of entity (e.g., "attendance_records", "users")
        entity_id: ID of the affected entity (optional)
        meta: Additional metadata as dictionary (optional)

    Returns:
        Created AuditLog instance, or None if it could not be written
    """
    safe_meta = sanitize_for_json(meta) if meta is not None else None

    # created_at set explicitly; SQLite server defaults lose the timezone
    audit_log = AuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        meta_json=safe_meta,
        created_at=now_utc()
    )
    try:
        db.add(audit_log)
        db.commit()
        db.refresh(audit_log)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Failed to write audit log %s for actor %s: %s", action, actor_id, e)
        return None
    return audit_log
