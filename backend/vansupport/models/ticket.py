from __future__ import annotations
import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, DateTime, ForeignKey, func
from vansupport.models.authz import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> str:
    return str(uuid.uuid4())


class Ticket(Base):
    __tablename__ = 'tickets'
    # Status constants
    STATUS_OPEN = 'open'
    STATUS_ASSIGNED = 'assigned'
    STATUS_IN_PROGRESS = 'in_progress'
    STATUS_WAITING_CUSTOMER = 'waiting_customer'
    STATUS_RESOLVED = 'resolved'
    STATUS_CLOSED = 'closed'
    STATUS_CANCELLED = 'cancelled'
    ALL_STATUSES = (STATUS_OPEN, STATUS_ASSIGNED, STATUS_IN_PROGRESS, STATUS_WAITING_CUSTOMER,
                    STATUS_RESOLVED, STATUS_CLOSED, STATUS_CANCELLED)
    ACTIVE_STATUSES = (STATUS_OPEN, STATUS_ASSIGNED, STATUS_IN_PROGRESS, STATUS_WAITING_CUSTOMER)
    # resolution fields are only populated in these
    RESOLVED_STATUSES = (STATUS_RESOLVED, STATUS_CLOSED)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    ticket_number: Mapped[int] = mapped_column(Integer, nullable=False, unique=True, index=True)
    owner_id: Mapped[Optional[int]] = mapped_column(ForeignKey('owners.id'), nullable=True, index=True)
    van_id: Mapped[Optional[int]] = mapped_column(ForeignKey('vans.id'), nullable=True, index=True)
    category_id: Mapped[Optional[int]] = mapped_column(ForeignKey('ticket_categories.id'), nullable=True)
    # contact snapshot taken when the ticket is filed
    owner_name: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default='normal', index=True)
    urgency: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=STATUS_OPEN, index=True)
    assigned_to: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True)
    resolution: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    resolved_at = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_by: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    reopened_from_id: Mapped[Optional[str]] = mapped_column(ForeignKey('tickets.id'), nullable=True)
    created_at = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship('Owner')
    van = relationship('Van')
    category = relationship('TicketCategory')
    assignee = relationship('User')
    comments = relationship('TicketComment', back_populates='ticket', order_by='TicketComment.created_at')
    attachments = relationship('TicketAttachment', back_populates='ticket', order_by='TicketAttachment.created_at')

# Status flow: open -> assigned -> in_progress <-> waiting_customer -> resolved -> closed
# (cancelled as alternative terminal). Reopening a resolved/closed ticket creates a
# new ticket linked through reopened_from_id; the original keeps its terminal status.
