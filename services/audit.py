from typing import NamedTuple, Optional
from sqlalchemy.orm import Session
from models.system import AuditLog


class AuditContext(NamedTuple):
    actor: Optional[str] = None
    ip_address: Optional[str] = None


SYSTEM = AuditContext(actor="system")


def record_audit(db: Session, audit: AuditContext, action: str, entity_type: str, entity_id,
                 old_values=None, new_values=None) -> AuditLog:
    """Add an audit row to the current transaction; it commits or rolls back with the mutation."""
    entry = AuditLog(
        actor=audit.actor,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        old_values=old_values,
        new_values=new_values,
        ip_address=audit.ip_address,
    )
    db.add(entry)
    return entry


def audit_from_request(request) -> AuditContext:
    """Actor comes from the X-User header set by the external auth layer."""
    client = getattr(request, "client", None)
    return AuditContext(
        actor=request.headers.get("X-User") or "anonymous",
        ip_address=client.host if client else None,
    )
