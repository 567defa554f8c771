from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..common.http import json_endpoint, make_auth_guard, read_json
from ..common.pagination import Page, PageRequest
from ..core.enums import UserType
from ..container import Container


def _page_payload(result: Page) -> dict:
    return {
        "attendances": [r.to_dict() for r in result.items],
        "total": result.total,
        "page": result.page,
        "limit": result.limit,
    }


def register(app: Flask, container: Container) -> None:
    auth_required = make_auth_guard(container.tokens)

    @app.route("/api/student/checkin", methods=["POST"], endpoint="student_checkin")
    @auth_required(UserType.STUDENT)
    @json_endpoint("Failed to create attendance record")
    def student_checkin():
        data = read_json()
        result = container.attendance_service.check_in(g.user_id, subject=data.get("subject") or "")
        body = {"message": "Check-in successful", "attendance": result.record.to_dict()}
        return jsonify(body), (201 if result.created else 200)

    @app.route("/api/student/checkout", methods=["POST"], endpoint="student_checkout")
    @auth_required(UserType.STUDENT)
    @json_endpoint("Failed to update attendance")
    def student_checkout():
        record = container.attendance_service.check_out(g.user_id)
        return jsonify({"message": "Check-out successful", "attendance": record.to_dict()})

    @app.route("/api/student/attendance", methods=["GET"], endpoint="student_attendance")
    @auth_required(UserType.STUDENT)
    @json_endpoint("Failed to fetch attendance records")
    def student_attendance():
        result = container.attendance_service.my_attendance(
            g.user_id,
            page=PageRequest.from_args(request.args),
            month=request.args.get("month"),
        )
        return jsonify(_page_payload(result))

    @app.route("/api/admin/attendance", methods=["GET"], endpoint="admin_list_attendance")
    @auth_required(UserType.ADMIN)
    @json_endpoint("Failed to fetch attendance records")
    def admin_list_attendance():
        result = container.attendance_service.list_all(
            page=PageRequest.from_args(request.args),
            class_name=request.args.get("class"),
            grade=request.args.get("grade"),
            day=request.args.get("date"),
            status=request.args.get("status"),
        )
        return jsonify(_page_payload(result))

    @app.route("/api/admin/attendance", methods=["POST"], endpoint="admin_create_attendance")
    @auth_required(UserType.ADMIN)
    @json_endpoint("Failed to create attendance record")
    def admin_create_attendance():
        record = container.attendance_service.create_record(read_json())
        return jsonify(record.to_dict()), 201

    @app.route("/api/admin/attendance/<int:record_id>", methods=["PUT"], endpoint="admin_update_attendance")
    @auth_required(UserType.ADMIN)
    @json_endpoint("Failed to update attendance")
    def admin_update_attendance(record_id: int):
        record = container.attendance_service.update_record(record_id, read_json())
        return jsonify(record.to_dict())

    @app.route("/api/admin/attendance/stats", methods=["GET"], endpoint="admin_attendance_stats")
    @auth_required(UserType.ADMIN)
    @json_endpoint("Failed to fetch attendance statistics")
    def admin_attendance_stats():
        stats = container.attendance_service.stats(
            student_id=request.args.get("student_id"),
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
        )
        return jsonify([s.to_dict() for s in stats])
