from __future__ import annotations

from flask import Flask, g, jsonify

from ..common.http import json_endpoint, make_auth_guard, read_json
from ..core.enums import UserType
from ..core.exceptions import NotFoundError
from ..container import Container
from .model import ScanSubmission


def register(app: Flask, container: Container) -> None:
    auth_required = make_auth_guard(container.tokens)

    @app.route("/api/admin/qr/generate", methods=["POST"], endpoint="admin_generate_qr")
    @auth_required(UserType.ADMIN)
    @json_endpoint("Failed to create QR session")
    def admin_generate_qr():
        generated = container.qr_session_service.create_session(read_json())
        return jsonify(generated.to_dict())

    @app.route("/api/admin/qr/sessions", methods=["GET"], endpoint="admin_qr_sessions")
    @auth_required(UserType.ADMIN)
    @json_endpoint("Failed to fetch QR sessions")
    def admin_qr_sessions():
        sessions = container.qr_session_service.list_active()
        return jsonify({"sessions": [s.to_dict() for s in sessions]})

    @app.route(
        "/api/admin/qr/sessions/<session_code>/deactivate",
        methods=["POST"],
        endpoint="admin_deactivate_qr_session",
    )
    @auth_required(UserType.ADMIN)
    @json_endpoint("Failed to deactivate QR session")
    def admin_deactivate_qr_session(session_code: str):
        container.qr_session_service.deactivate(session_code)
        return jsonify({"message": "QR session deactivated successfully"})

    @app.route("/api/admin/qr/sessions/<session_code>/report", methods=["GET"], endpoint="admin_qr_report")
    @auth_required(UserType.ADMIN)
    @json_endpoint("Failed to fetch attendance report")
    def admin_qr_report(session_code: str):
        return jsonify(container.qr_session_service.report(session_code).to_dict())

    @app.route("/api/student/qr/scan", methods=["POST"], endpoint="student_qr_scan")
    @auth_required(UserType.STUDENT)
    @json_endpoint("Failed to record attendance")
    def student_qr_scan():
        submission = ScanSubmission.from_mapping(read_json())

        # Scanners send the printed student code; fall back to the caller's own.
        student_id = submission.student_id
        if not student_id:
            me = container.students_repo.get_by_id(g.user_id)
            if not me:
                raise NotFoundError("Student not found")
            student_id = me.student_id

        receipt = container.qr_session_service.scan(
            qr_data=submission.qr_data,
            student_id=student_id,
            location=submission.location,
        )
        return jsonify(receipt.to_dict())
