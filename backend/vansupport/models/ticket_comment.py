from __future__ import annotations
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, Boolean, DateTime, ForeignKey
from .authz import Base
from .ticket import new_uuid, utcnow


class TicketComment(Base):
    """Append-only; comments are never edited or deleted."""
    __tablename__ = 'ticket_comments'

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    ticket_id: Mapped[str] = mapped_column(ForeignKey('tickets.id', ondelete='CASCADE'), nullable=False, index=True)
    author_name: Mapped[str] = mapped_column(String(150), nullable=False)
    author_type: Mapped[str] = mapped_column(String(16), nullable=False)
    author_user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    comment_text: Mapped[str] = mapped_column(Text, nullable=False)
    is_resolution: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at = mapped_column(DateTime(timezone=True), default=utcnow, index=True)

    ticket = relationship('Ticket', back_populates='comments')

__all__ = ["TicketComment"]
