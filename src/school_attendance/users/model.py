from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import iso_or_none


@dataclass(frozen=True)
class Student:
    """Domain entity: a student account.

    Note: plain data object, no DB access. ``id`` is the database key,
    ``student_id`` the school-issued code printed on cards and sent by scanners.
    """

    id: int
    student_id: str
    name: str
    email: str
    password_hash: str
    class_name: str
    grade: str
    phone_number: Optional[str] = None
    address: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_public_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "student_id": self.student_id,
            "name": self.name,
            "email": self.email,
            "class": self.class_name,
            "grade": self.grade,
            "phone_number": self.phone_number or "",
            "address": self.address or "",
            "is_active": self.is_active,
            "created_at": iso_or_none(self.created_at),
            "updated_at": iso_or_none(self.updated_at),
        }


@dataclass(frozen=True)
class Admin:
    id: int
    username: str
    email: str
    password_hash: str
    name: str
    role: str = "admin"
    is_active: bool = True

    def to_public_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "is_active": self.is_active,
        }
