from __future__ import annotations

from sqlalchemy import Column, DateTime, Text

from ..db.session import Base
from .base import utcnow


class DivisionRow(Base):
    __tablename__ = "divisions"

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
