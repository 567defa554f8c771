from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..common.http import json_endpoint, make_auth_guard, read_json
from ..common.pagination import PageRequest
from ..core.enums import UserType
from ..core.exceptions import ValidationError
from ..container import Container
from .service import NewStudent


def register(app: Flask, container: Container) -> None:
    auth_required = make_auth_guard(container.tokens)

    # ---------------------------------------------------------------- auth
    @app.route("/api/auth/student/login", methods=["POST"], endpoint="student_login")
    @json_endpoint("Login failed")
    def student_login():
        data = read_json()
        if not data.get("email") or not data.get("password"):
            raise ValidationError("email and password are required")
        result = container.auth_service.student_login(str(data["email"]), str(data["password"]))
        return jsonify(result.to_dict())

    @app.route("/api/auth/admin/login", methods=["POST"], endpoint="admin_login")
    @json_endpoint("Login failed")
    def admin_login():
        data = read_json()
        if not data.get("email") or not data.get("password"):
            raise ValidationError("email and password are required")
        result = container.auth_service.admin_login(str(data["email"]), str(data["password"]))
        return jsonify(result.to_dict())

    @app.route("/api/auth/student/register", methods=["POST"], endpoint="student_register")
    @json_endpoint("Failed to create student")
    def student_register():
        new = NewStudent.from_payload(read_json())
        result = container.auth_service.register_student(new)
        return jsonify(result.to_dict()), 201

    # ------------------------------------------------------------- profile
    def _profile():
        return jsonify(container.auth_service.profile(user_id=g.user_id, user_type=g.user_type))

    app.add_url_rule(
        "/api/profile",
        endpoint="profile",
        view_func=auth_required()(json_endpoint("Failed to load profile")(_profile)),
    )
    app.add_url_rule(
        "/api/student/profile",
        endpoint="student_profile",
        view_func=auth_required(UserType.STUDENT)(json_endpoint("Failed to load profile")(_profile)),
    )
    app.add_url_rule(
        "/api/admin/profile",
        endpoint="admin_profile",
        view_func=auth_required(UserType.ADMIN)(json_endpoint("Failed to load profile")(_profile)),
    )

    # --------------------------------------------------- student management
    @app.route("/api/admin/students", methods=["GET"], endpoint="admin_list_students")
    @auth_required(UserType.ADMIN)
    @json_endpoint("Failed to fetch students")
    def admin_list_students():
        page = PageRequest.from_args(request.args)
        result = container.student_service.list_students(
            page=page,
            class_name=request.args.get("class"),
            grade=request.args.get("grade"),
            search=request.args.get("search"),
        )
        return jsonify(
            {
                "students": [s.to_public_dict() for s in result.items],
                "total": result.total,
                "page": result.page,
                "limit": result.limit,
            }
        )

    @app.route("/api/admin/students/<int:student_pk>", methods=["GET"], endpoint="admin_get_student")
    @auth_required(UserType.ADMIN)
    @json_endpoint("Database error")
    def admin_get_student(student_pk: int):
        student = container.student_service.get_student(student_pk)
        return jsonify(student.to_public_dict())

    @app.route("/api/admin/students", methods=["POST"], endpoint="admin_create_student")
    @auth_required(UserType.ADMIN)
    @json_endpoint("Failed to create student")
    def admin_create_student():
        student = container.student_service.create_student(NewStudent.from_payload(read_json()))
        return jsonify(student.to_public_dict()), 201

    @app.route("/api/admin/students/<int:student_pk>", methods=["PUT"], endpoint="admin_update_student")
    @auth_required(UserType.ADMIN)
    @json_endpoint("Failed to update student")
    def admin_update_student(student_pk: int):
        student = container.student_service.update_student(student_pk, read_json())
        return jsonify(student.to_public_dict())

    @app.route("/api/admin/students/<int:student_pk>", methods=["DELETE"], endpoint="admin_delete_student")
    @auth_required(UserType.ADMIN)
    @json_endpoint("Failed to delete student")
    def admin_delete_student(student_pk: int):
        container.student_service.delete_student(student_pk)
        return jsonify({"message": "Student deleted successfully"})

    @app.route("/api/admin/students/class/<class_name>", methods=["GET"], endpoint="admin_students_by_class")
    @auth_required(UserType.ADMIN)
    @json_endpoint("Failed to fetch students")
    def admin_students_by_class(class_name: str):
        return jsonify([s.to_public_dict() for s in container.student_service.by_class(class_name)])

    @app.route("/api/admin/students/grade/<grade>", methods=["GET"], endpoint="admin_students_by_grade")
    @auth_required(UserType.ADMIN)
    @json_endpoint("Failed to fetch students")
    def admin_students_by_grade(grade: str):
        return jsonify([s.to_public_dict() for s in container.student_service.by_grade(grade)])
