from __future__ import annotations
"""JSON projections of the ticketing models shared by several blueprints."""
from typing import Any, Dict, Optional


def iso(ts) -> Optional[str]:
    return ts.isoformat() if ts else None


def comment_json(c) -> Dict[str, Any]:
    return {
        'id': c.id,
        'ticket_id': c.ticket_id,
        'author_name': c.author_name,
        'author_type': c.author_type,
        'comment_text': c.comment_text,
        'is_resolution': c.is_resolution,
        'created_at': iso(c.created_at),
    }


def attachment_json(a) -> Dict[str, Any]:
    return {
        'id': a.id,
        'ticket_id': a.ticket_id,
        'comment_id': a.comment_id,
        'file_name': a.file_name,
        'mime_type': a.mime_type,
        'size_bytes': a.size_bytes,
        'public_url': a.public_url,
        'uploaded_by_type': a.uploaded_by_type,
        'created_at': iso(a.created_at),
    }


def ticket_summary_json(t) -> Dict[str, Any]:
    return {
        'id': t.id,
        'ticket_number': t.ticket_number,
        'subject': t.subject,
        'status': t.status,
        'priority': t.priority,
        'urgency': t.urgency,
        'owner_id': t.owner_id,
        'owner_name': t.owner_name,
        'van_id': t.van_id,
        'van_number': t.van.van_number if t.van else None,
        'category_id': t.category_id,
        'category_name': t.category.name if t.category else None,
        'assigned_to': t.assigned_to,
        'assigned_to_name': t.assignee.display_name if t.assignee else None,
        'created_at': iso(t.created_at),
        'updated_at': iso(t.updated_at),
    }


def ticket_detail_json(t) -> Dict[str, Any]:
    data = ticket_summary_json(t)
    data.update({
        'description': t.description,
        'phone': t.phone,
        'email': t.email,
        'resolution': t.resolution,
        'resolved_at': iso(t.resolved_at),
        'resolved_by': t.resolved_by,
        'reopened_from_id': t.reopened_from_id,
        'comments': [comment_json(c) for c in t.comments],
        'attachments': [attachment_json(a) for a in t.attachments],
    })
    return data


def owner_json(o, van_count: Optional[int] = None) -> Dict[str, Any]:
    data = {
        'id': o.id,
        'name': o.name,
        'company': o.company,
        'phone': o.phone,
        'email': o.email,
        'created_at': iso(o.created_at),
        'updated_at': iso(o.updated_at),
    }
    if van_count is not None:
        data['van_count'] = van_count
    return data


def van_json(v) -> Dict[str, Any]:
    return {
        'id': v.id,
        'van_number': v.van_number,
        'make': v.make,
        'version': v.version,
        'year': v.year,
        'vin': v.vin,
        'owner_id': v.owner_id,
        'owner_name': v.owner.name if v.owner else None,
        'created_at': iso(v.created_at),
        'updated_at': iso(v.updated_at),
    }


def user_json(u) -> Dict[str, Any]:
    return {
        'id': u.id,
        'email': u.email,
        'full_name': u.full_name,
        'is_active': u.is_active,
        'roles': u.role_names,
        'last_login': iso(u.last_login),
    }
