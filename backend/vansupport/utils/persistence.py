from __future__ import annotations
from flask import abort, current_app
from sqlalchemy.exc import SQLAlchemyError


def commit_or_abort(session, action: str):
    """Commit the unit of work; on database failure roll back and surface 'Failed to <action>'."""
    try:
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        current_app.logger.exception('Database error while trying to %s', action)
        abort(500, description=f'Failed to {action}')


def get_or_404(session, model, pk, what: str = None):
    obj = session.get(model, pk)
    if obj is None:
        abort(404, description=f'{what or model.__name__} not found')
    return obj
