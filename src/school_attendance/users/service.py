from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.pagination import Page, PageRequest
from ..common.validators import optional_str, require_email, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import UserType
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError
from .model import Student
from .repository import AdminRepository, StudentRepository
from .tokens import TokenService


@dataclass(frozen=True)
class NewStudent:
    student_id: str
    name: str
    email: str
    password: str
    class_name: str
    grade: str
    phone_number: str = ""
    address: str = ""

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "NewStudent":
        password = data.get("password")
        if not isinstance(password, str):
            password = ""
        return cls(
            student_id=require_non_empty(data.get("student_id"), "student_id"),
            name=require_non_empty(data.get("name"), "name"),
            email=require_email(data.get("email")),
            password=require_min_length(password, "password", MIN_PASSWORD_LENGTH),
            class_name=require_non_empty(data.get("class"), "class"),
            grade=require_non_empty(data.get("grade"), "grade"),
            phone_number=optional_str(data.get("phone_number")),
            address=optional_str(data.get("address")),
        )


@dataclass(frozen=True)
class AuthResult:
    token: str
    user: dict

    def to_dict(self) -> dict:
        return {"token": self.token, "user": self.user}


def _password_matches(password_hash: str, password: str) -> bool:
    try:
        return check_password_hash(password_hash, password)
    except (TypeError, ValueError):
        # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
        return False


def _create_student(students: StudentRepository, new: NewStudent) -> Student:
    if students.exists_student_id_or_email(new.student_id, new.email):
        raise ConflictError("Student ID or email already exists")

    pk = students.create_student(
        student_id=new.student_id,
        name=new.name,
        email=new.email,
        password_hash=generate_password_hash(new.password),
        class_name=new.class_name,
        grade=new.grade,
        phone_number=new.phone_number or None,
        address=new.address or None,
    )
    student = students.get_by_id(pk)
    if not student:
        raise NotFoundError("Student not found")
    return student


class AuthService:
    """Use cases: login, registration and profile lookup."""

    def __init__(self, students: StudentRepository, admins: AdminRepository, tokens: TokenService):
        self._students = students
        self._admins = admins
        self._tokens = tokens

    def student_login(self, email: str, password: str) -> AuthResult:
        student = self._students.get_by_email((email or "").strip().lower())
        if not student or not student.is_active or not _password_matches(student.password_hash, password or ""):
            raise AuthenticationError("Invalid credentials")
        token = self._tokens.issue(student.id, UserType.STUDENT)
        return AuthResult(token=token, user=student.to_public_dict())

    def admin_login(self, email: str, password: str) -> AuthResult:
        admin = self._admins.get_by_email((email or "").strip().lower())
        if not admin or not admin.is_active or not _password_matches(admin.password_hash, password or ""):
            raise AuthenticationError("Invalid credentials")
        token = self._tokens.issue(admin.id, UserType.ADMIN)
        return AuthResult(token=token, user=admin.to_public_dict())

    def register_student(self, new: NewStudent) -> AuthResult:
        student = _create_student(self._students, new)
        token = self._tokens.issue(student.id, UserType.STUDENT)
        return AuthResult(token=token, user=student.to_public_dict())

    def profile(self, *, user_id: int, user_type: UserType) -> dict:
        if user_type == UserType.ADMIN:
            admin = self._admins.get_by_id(user_id)
            if not admin:
                raise NotFoundError("User not found")
            return {"user": admin.to_public_dict(), "user_type": user_type.value}

        student = self._students.get_by_id(user_id)
        if not student:
            raise NotFoundError("User not found")
        return {"user": student.to_public_dict(), "user_type": user_type.value}


class StudentService:
    """Use case: manage students (admin)."""

    def __init__(self, students: StudentRepository):
        self._students = students

    def list_students(
        self,
        *,
        page: PageRequest,
        class_name: Optional[str] = None,
        grade: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Page[Student]:
        return self._students.search(
            page=page,
            class_name=(class_name or "").strip() or None,
            grade=(grade or "").strip() or None,
            search=(search or "").strip() or None,
        )

    def get_student(self, pk: int) -> Student:
        student = self._students.get_by_id(pk)
        if not student:
            raise NotFoundError("Student not found")
        return student

    def create_student(self, new: NewStudent) -> Student:
        return _create_student(self._students, new)

    def update_student(self, pk: int, data: Mapping[str, Any]) -> Student:
        student = self.get_student(pk)
        fields: dict[str, Any] = {}

        email = optional_str(data.get("email")).lower()
        if email and email != student.email:
            email = require_email(email)
            other = self._students.get_by_email(email)
            if other and other.id != student.id:
                raise ConflictError("Email already exists")
            fields["email"] = email

        for key, attr in (
            ("name", "name"),
            ("class", "class_name"),
            ("grade", "grade"),
            ("phone_number", "phone_number"),
            ("address", "address"),
        ):
            value = optional_str(data.get(key))
            if value:
                fields[attr] = value

        if isinstance(data.get("is_active"), bool):
            fields["is_active"] = data["is_active"]

        password = data.get("password")
        if isinstance(password, str) and password:
            require_min_length(password, "password", MIN_PASSWORD_LENGTH)
            fields["password_hash"] = generate_password_hash(password)

        if fields:
            self._students.update_student(student.id, fields=fields)
        return self.get_student(student.id)

    def delete_student(self, pk: int) -> None:
        self.get_student(pk)
        if not self._students.soft_delete(pk):
            raise NotFoundError("Student not found")

    def by_class(self, class_name: str) -> Sequence[Student]:
        return self._students.list_active_by_class(class_name)

    def by_grade(self, grade: str) -> Sequence[Student]:
        return self._students.list_active_by_grade(grade)
