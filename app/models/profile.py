"""Accounts of the demo backend.

A hosted backend keeps credentials in its own auth schema and the profile in a
public table; the demo collapses both into one row.
"""

from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Text

from ..db.session import Base
from .base import new_id, utcnow


class ProfileRow(Base):
    __tablename__ = "profiles"

    id = Column(Text, primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False, unique=True, index=True)
    password_hash = Column(Text, nullable=False)
    role = Column(Text, nullable=False)
    division_id = Column(Text, ForeignKey("divisions.id"), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
