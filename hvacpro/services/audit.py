"""
Audit logging service.
Append-only audit log with integrity hashing.
"""
import hashlib
import json
from datetime import datetime, timezone
from typing import Optional, Dict

from sqlalchemy.orm import Session

from ..config import settings
from ..models.models import AuditLog


def record_audit(
    db: Session,
    entity_type: str,
    entity_id,
    action: str,
    company_id: Optional[int] = None,
    actor_id: Optional[int] = None,
    changes: Optional[Dict] = None,
    integrity_secret: Optional[str] = None,
) -> AuditLog:
    """
    Stage an audit entry in the caller's transaction.

    Args:
        db: Database session (the caller commits)
        entity_type: customer|technician|job|invoice|invoice_item|inventory|equipment|pricebook|user
        entity_id: Entity ID
        action: CREATE|UPDATE|DELETE
        company_id: Tenant the entity belongs to
        actor_id: User ID who performed the action
        changes: Before/after diff or created values
        integrity_secret: Secret for integrity hash (defaults to SESSION_SECRET)
    """
    timestamp_utc = datetime.now(timezone.utc)
    if integrity_secret is None:
        integrity_secret = settings.session_secret

    canonical_data = {
        "entity_type": entity_type,
        "entity_id": str(entity_id),
        "action": action,
        "company_id": company_id,
        "actor_id": actor_id,
        "timestamp_utc": timestamp_utc.isoformat(),
        "changes": changes,
    }
    # Remove None values and sort keys for consistency
    canonical_data = {k: v for k, v in canonical_data.items() if v is not None}
    canonical_json = json.dumps(canonical_data, sort_keys=True, default=str)
    integrity_hash = hashlib.sha256(f"{canonical_json}:{integrity_secret}".encode()).hexdigest()

    entry = AuditLog(
        company_id=company_id,
        entity_type=entity_type,
        entity_id=str(entity_id),
        action=action,
        actor_id=actor_id,
        changes_json=json.loads(json.dumps(changes, default=str)) if changes is not None else None,
        timestamp_utc=timestamp_utc,
        integrity_hash=integrity_hash,
    )
    db.add(entry)
    return entry


def get_audit_logs(
    db: Session,
    company_id: int,
    entity_type: Optional[str] = None,
    entity_id=None,
    limit: int = 100,
    offset: int = 0,
) -> list:
    query = db.query(AuditLog).filter(AuditLog.company_id == company_id)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        query = query.filter(AuditLog.entity_id == str(entity_id))
    return query.order_by(AuditLog.timestamp_utc.desc(), AuditLog.id.desc()).offset(offset).limit(limit).all()
