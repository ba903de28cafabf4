from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ADMIN_DIVISION = "ADMIN"


class Role(str, Enum):
    ADMIN = "admin"
    DIVISION_PERSONNEL = "division_personnel"
    SCIENTIST = "scientist"


class ItemStatus(str, Enum):
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"


class CalibrationStatus(str, Enum):
    CURRENT = "current"
    DUE = "due"
    OVERDUE = "overdue"


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Table(str, Enum):
    INVENTORY = "inventory_items"
    REQUESTS = "requests"
    ACTIVITY_LOGS = "activity_logs"


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class Division(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None


class Profile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: Role
    division_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def division_label(self) -> str:
        """Division shown in badges and stamped on activity rows."""

        return self.division_id or ADMIN_DIVISION


class InventoryItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    item_name: str
    category: str
    quantity: int = Field(ge=0)
    location: str
    status: ItemStatus
    division_id: str
    added_by: str
    scientist_assigned: Optional[str] = None
    calibration_date: date
    calibration_status: CalibrationStatus
    last_updated: datetime
    created_at: datetime
    added_by_name: Optional[str] = None
    scientist_name: Optional[str] = None


class InventoryRequest(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    scientist_id: str
    item_requested: str
    quantity: int = Field(gt=0)
    reason: str
    status: RequestStatus
    division_id: str
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: datetime
    scientist_name: Optional[str] = None


class ActivityLog(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    action: str
    user_id: str
    division_id: str
    details: Optional[str] = None
    created_at: datetime
    user_name: Optional[str] = None


class ActivityLogCreate(BaseModel):
    action: str = Field(min_length=1, max_length=200)
    details: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("action")
    @classmethod
    def strip_action(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("action must not be blank")
        return cleaned

    @field_validator("details")
    @classmethod
    def blank_details_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None
