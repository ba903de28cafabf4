from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from ..db.session import Base
from .base import new_id, utcnow


class ActivityLogRow(Base):
    __tablename__ = "activity_logs"

    id = Column(Text, primary_key=True, default=new_id)
    action = Column(Text, nullable=False)
    user_id = Column(Text, ForeignKey("profiles.id"), nullable=False)
    # ``ADMIN`` rows have no divisions entry, so this is not a foreign key here.
    division_id = Column(Text, nullable=False, index=True)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    user = relationship("ProfileRow", lazy="joined")

    @property
    def user_name(self) -> str | None:
        return self.user.name if self.user else None
