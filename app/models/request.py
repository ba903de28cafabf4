from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base
from .base import new_id, utcnow


class RequestRow(Base):
    """A scientist asking their division for equipment."""

    __tablename__ = "requests"

    id = Column(Text, primary_key=True, default=new_id)
    scientist_id = Column(Text, ForeignKey("profiles.id"), nullable=False, index=True)
    item_requested = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    reason = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="pending")
    division_id = Column(Text, ForeignKey("divisions.id"), nullable=False, index=True)
    approved_by = Column(Text, ForeignKey("profiles.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    scientist = relationship("ProfileRow", foreign_keys=[scientist_id], lazy="joined")

    @property
    def scientist_name(self) -> str | None:
        return self.scientist.name if self.scientist else None
