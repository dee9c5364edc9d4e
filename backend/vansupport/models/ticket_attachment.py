from __future__ import annotations
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, DateTime, ForeignKey
from .authz import Base
from .ticket import new_uuid, utcnow


class TicketAttachment(Base):
    __tablename__ = 'ticket_attachments'

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    ticket_id: Mapped[str] = mapped_column(ForeignKey('tickets.id', ondelete='CASCADE'), nullable=False, index=True)
    # null comment_id marks a general (ticket level) attachment
    comment_id: Mapped[Optional[str]] = mapped_column(ForeignKey('ticket_comments.id'), nullable=True)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)
    public_url: Mapped[str] = mapped_column(String(512), nullable=False)
    uploaded_by_type: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at = mapped_column(DateTime(timezone=True), default=utcnow, index=True)

    ticket = relationship('Ticket', back_populates='attachments')

__all__ = ["TicketAttachment"]
