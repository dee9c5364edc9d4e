from __future__ import annotations
from typing import Any, Dict, Optional
from flask_jwt_extended import get_jwt_identity, get_jwt
from vansupport import get_db
from vansupport.models.audit import AuditLog


def add_audit(action: str, entity: Optional[str] = None, entity_id: Optional[str] = None, meta: Optional[Dict[str, Any]] = None):
    """Persist an audit log entry within the current DB session.

    Parameters:
      action: short action code e.g. OWNER.CREATE, TICKET.REOPEN, USER.ROLES.SET
      entity: optional entity name (Owner, Van, Ticket, User)
      entity_id: optional primary key string
      meta: additional JSON-safe dictionary (will be shallow copied)

    Public ticket endpoints run without a session token; the actor is then
    recorded as None.
    """
    session = get_db()
    claims = {}
    actor = None
    try:
        claims = get_jwt() or {}
        ident = get_jwt_identity()
        actor = int(ident) if ident is not None else None
    except RuntimeError:
        # no verified token in this request context
        claims, actor = {}, None
    log = AuditLog(
        actor_user_id=actor,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        roles_snapshot={'roles': claims.get('roles', [])},
        meta=dict(meta or {}),
    )
    session.add(log)
    # No commit here; caller's transaction boundary controls durability.
    return log
