from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..common.pagination import Page, PageRequest
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_where, db_cursor, fetchall, fetchone, like_pattern
from .model import Student
from .repository import StudentRepository

_COLUMNS = """
    id, student_id, name, email, password_hash, class_name, grade,
    phone_number, address, is_active, created_at, updated_at
"""

# Student attribute -> column; only these may be written by update_student.
_UPDATABLE = {
    "name": "name",
    "email": "email",
    "password_hash": "password_hash",
    "class_name": "class_name",
    "grade": "grade",
    "phone_number": "phone_number",
    "address": "address",
    "is_active": "is_active",
}


def _to_student(r: dict) -> Student:
    return Student(
        id=int(r["id"]),
        student_id=r["student_id"],
        name=r["name"],
        email=r["email"],
        password_hash=r["password_hash"],
        class_name=r["class_name"],
        grade=r["grade"],
        phone_number=r.get("phone_number"),
        address=r.get("address"),
        is_active=bool(r.get("is_active", True)),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, column: str, value: Any) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM students WHERE {column}=%s AND deleted_at IS NULL",
                (value,),
            )
            row = fetchone(cur)
            return _to_student(row) if row else None

    def get_by_id(self, pk: int) -> Optional[Student]:
        return self._get_one("id", int(pk))

    def get_by_student_id(self, student_id: str) -> Optional[Student]:
        return self._get_one("student_id", student_id)

    def get_by_email(self, email: str) -> Optional[Student]:
        return self._get_one("email", email)

    def exists_student_id_or_email(self, student_id: str, email: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS found FROM students
                WHERE (student_id=%s OR email=%s) AND deleted_at IS NULL
                LIMIT 1
                """,
                (student_id, email),
            )
            return fetchone(cur) is not None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO students(student_id, name, email, password_hash, class_name, grade,
                                     phone_number, address, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (student_id, name, email, password_hash, class_name, grade, phone_number, address),
            )
            return int(cur.lastrowid)

    def update_student(self, pk: int, *, fields: Mapping[str, Any]) -> bool:
        sets: list[str] = []
        params: list[object] = []
        for key, value in fields.items():
            column = _UPDATABLE.get(key)
            if not column:
                raise ValueError(f"Unsupported student field: {key}")
            sets.append(f"{column}=%s")
            params.append(int(value) if isinstance(value, bool) else value)
        if not sets:
            return False

        params.append(int(pk))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE students SET {', '.join(sets)} WHERE id=%s AND deleted_at IS NULL",
                tuple(params),
            )
            return cur.rowcount > 0

    def soft_delete(self, pk: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE students SET deleted_at=NOW() WHERE id=%s AND deleted_at IS NULL",
                (int(pk),),
            )
            return cur.rowcount > 0

    def search(
        self,
        *,
        page: PageRequest,
        class_name: Optional[str] = None,
        grade: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Page[Student]:
        clauses = ["deleted_at IS NULL"]
        params: list[object] = []

        if class_name:
            clauses.append("class_name=%s")
            params.append(class_name)
        if grade:
            clauses.append("grade=%s")
            params.append(grade)
        if search:
            clauses.append("(name LIKE %s OR student_id LIKE %s OR email LIKE %s)")
            pattern = like_pattern(search)
            params.extend([pattern, pattern, pattern])

        where = build_where(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM students {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total", 0))

            cur.execute(
                f"SELECT {_COLUMNS} FROM students {where} ORDER BY name LIMIT %s OFFSET %s",
                tuple(params) + (page.limit, page.offset),
            )
            items = [_to_student(r) for r in fetchall(cur)]

        return Page(items=items, total=total, page=page.page, limit=page.limit)

    def list_active_by_class(self, class_name: str) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM students
                WHERE class_name=%s AND is_active=1 AND deleted_at IS NULL
                ORDER BY name
                """,
                (class_name,),
            )
            return [_to_student(r) for r in fetchall(cur)]

    def list_active_by_grade(self, grade: str) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM students
                WHERE grade=%s AND is_active=1 AND deleted_at IS NULL
                ORDER BY class_name, name
                """,
                (grade,),
            )
            return [_to_student(r) for r in fetchall(cur)]
