from flask import Blueprint
from sqlalchemy import select
from vansupport.models.category import TicketCategory
from vansupport import get_db

categories_bp = Blueprint('categories', __name__)


# Public: the ticket creation form needs the list before anyone logs in
@categories_bp.get('')
def list_categories():
    session = get_db()
    rows = session.execute(
        select(TicketCategory).where(TicketCategory.is_active.is_(True)).order_by(TicketCategory.name)
    ).scalars().all()
    return {'categories': [{'id': c.id, 'name': c.name, 'description': c.description} for c in rows]}
