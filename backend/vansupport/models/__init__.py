"""Import every model module so Base.metadata knows all tables."""
from .authz import Base, Role, User, UserRole  # noqa: F401
from .audit import AuditLog  # noqa: F401
from .owner import Owner  # noqa: F401
from .van import Van  # noqa: F401
from .category import TicketCategory  # noqa: F401
from .ticket import Ticket  # noqa: F401
from .ticket_comment import TicketComment  # noqa: F401
from .ticket_attachment import TicketAttachment  # noqa: F401
