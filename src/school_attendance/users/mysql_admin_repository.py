from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Admin
from .repository import AdminRepository


class MySQLAdminRepository(AdminRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _row_to_admin(self, row: dict) -> Admin:
        return Admin(
            id=int(row["id"]),
            username=row["username"],
            email=row["email"],
            password_hash=row["password_hash"],
            name=row["name"],
            role=row.get("role") or "admin",
            is_active=bool(row.get("is_active", True)),
        )

    def get_by_id(self, pk: int) -> Optional[Admin]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, username, email, password_hash, name, role, is_active
                FROM admins
                WHERE id=%s
                """,
                (int(pk),),
            )
            row = fetchone(cur)
            return self._row_to_admin(row) if row else None

    def get_by_email(self, email: str) -> Optional[Admin]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, username, email, password_hash, name, role, is_active
                FROM admins
                WHERE email=%s
                """,
                (email,),
            )
            row = fetchone(cur)
            return self._row_to_admin(row) if row else None
