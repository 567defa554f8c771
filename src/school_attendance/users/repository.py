from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..common.pagination import Page, PageRequest
from .model import Admin, Student


class StudentRepository(Protocol):
    """Repository interface for students.

    Note (DIP): services depend on this interface, not on a concrete database.
    Soft-deleted students are invisible to every method.
    """

    def get_by_id(self, pk: int) -> Optional[Student]:
        raise NotImplementedError

    def get_by_student_id(self, student_id: str) -> Optional[Student]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Student]:
        raise NotImplementedError

    def exists_student_id_or_email(self, student_id: str, email: str) -> bool:
        raise NotImplementedError

    def create_student(
        self,
        *,
        student_id: str,
        name: str,
        email: str,
        password_hash: str,
        class_name: str,
        grade: str,
        phone_number: Optional[str] = None,
        address: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def update_student(self, pk: int, *, fields: Mapping[str, Any]) -> bool:
        """Update the given columns (keys are Student attribute names)."""

        raise NotImplementedError

    def soft_delete(self, pk: int) -> bool:
        raise NotImplementedError

    def search(
        self,
        *,
        page: PageRequest,
        class_name: Optional[str] = None,
        grade: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Page[Student]:
        raise NotImplementedError

    def list_active_by_class(self, class_name: str) -> Sequence[Student]:
        raise NotImplementedError

    def list_active_by_grade(self, grade: str) -> Sequence[Student]:
        raise NotImplementedError


class AdminRepository(Protocol):
    def get_by_id(self, pk: int) -> Optional[Admin]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Admin]:
        raise NotImplementedError
