from __future__ import annotations

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base
from .base import new_id, utcnow


class InventoryItemRow(Base):
    """One piece of equipment owned by a division."""

    __tablename__ = "inventory_items"

    id = Column(Text, primary_key=True, default=new_id)
    item_name = Column(Text, nullable=False)
    category = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    location = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="active")
    division_id = Column(Text, ForeignKey("divisions.id"), nullable=False, index=True)
    added_by = Column(Text, ForeignKey("profiles.id"), nullable=False)
    scientist_assigned = Column(Text, ForeignKey("profiles.id"), nullable=True)
    calibration_date = Column(Date, nullable=False)
    calibration_status = Column(Text, nullable=False, default="current")
    last_updated = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    added_by_profile = relationship("ProfileRow", foreign_keys=[added_by], lazy="joined")
    scientist_profile = relationship("ProfileRow", foreign_keys=[scientist_assigned], lazy="joined")

    @property
    def added_by_name(self) -> str | None:
        return self.added_by_profile.name if self.added_by_profile else None

    @property
    def scientist_name(self) -> str | None:
        return self.scientist_profile.name if self.scientist_profile else None
