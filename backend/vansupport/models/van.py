from __future__ import annotations
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, DateTime, ForeignKey, func
from .authz import Base


class Van(Base):
    __tablename__ = 'vans'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    van_number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)
    make: Mapped[str] = mapped_column(String(32), nullable=False)
    version: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    vin: Mapped[Optional[str]] = mapped_column(String(17), nullable=True)
    owner_id: Mapped[Optional[int]] = mapped_column(ForeignKey('owners.id'), nullable=True, index=True)
    owner = relationship('Owner', back_populates='vans')
    created_at = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

__all__ = ["Van"]
