from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_identity, identity_required, iso, json_body
from ..core.constants import API_PREFIX
from ..container import Container
from .model import AttendanceDetail, AttendanceRecord, MarkEntry


def record_json(r: AttendanceRecord | AttendanceDetail) -> dict:
    return {
        "id": r.attendance_id,
        "classId": r.class_id,
        "studentId": r.student_id,
        "date": iso(r.attend_date),
        "status": r.status.value,
        "remarks": r.remarks,
        "markedBy": r.marked_by,
        "createdAt": iso(r.created_at),
    }


def detail_json(r: AttendanceDetail) -> dict:
    out = record_json(r)
    out["student"] = {"id": r.student_id, "name": r.student_name, "email": r.student_email}
    out["class"] = {"id": r.class_id, "name": r.class_name, "code": r.class_code}
    out["marker"] = {"id": r.marked_by, "name": r.marked_by_name}
    return out


def _entries_from(raw):
    if not isinstance(raw, list):
        return raw
    return [MarkEntry.from_mapping(item) if isinstance(item, dict) else item for item in raw]


def register(app: Flask, container: Container) -> None:
    login_required = identity_required(container.identity_service)
    ledger = container.attendance_service

    @app.route(f"{API_PREFIX}/mark", methods=["POST"], endpoint="mark_attendance")
    @login_required
    def mark_attendance():
        data = json_body()
        records = ledger.mark_batch(
            actor=current_identity(),
            class_id=data.get("classId"),
            date=data.get("date"),
            entries=_entries_from(data.get("attendance")),
        )
        return jsonify({"message": "Attendance marked successfully", "attendance": [record_json(r) for r in records]})

    @app.route(f"{API_PREFIX}/class/<int:class_id>/date/<date_s>", methods=["GET"], endpoint="attendance_by_date")
    @login_required
    def attendance_by_date(class_id: int, date_s: str):
        rows = ledger.get_by_class_and_date(actor=current_identity(), class_id=class_id, date=date_s)
        return jsonify([detail_json(r) for r in rows])

    @app.route(f"{API_PREFIX}/student/<student_id>", methods=["GET"], endpoint="student_attendance")
    @login_required
    def student_attendance(student_id: str):
        rows = ledger.get_by_student(actor=current_identity(), student_id=student_id)
        return jsonify([detail_json(r) for r in rows])

    @app.route(f"{API_PREFIX}/student/<student_id>/range", methods=["GET"], endpoint="student_attendance_range")
    @login_required
    def student_attendance_range(student_id: str):
        rows = ledger.get_by_student(
            actor=current_identity(),
            student_id=student_id,
            start=request.args.get("startDate"),
            end=request.args.get("endDate"),
            class_id=request.args.get("classId"),
        )
        return jsonify([detail_json(r) for r in rows])

    @app.route(f"{API_PREFIX}/attendance/<int:attendance_id>", methods=["PUT"], endpoint="update_attendance")
    @login_required
    def update_attendance(attendance_id: int):
        data = json_body()
        rec = ledger.update_record(
            actor=current_identity(),
            attendance_id=attendance_id,
            status=data.get("status"),
            remarks=data.get("remarks"),
        )
        return jsonify(record_json(rec))

    @app.route(f"{API_PREFIX}/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="delete_attendance")
    @login_required
    def delete_attendance(attendance_id: int):
        ledger.delete_record(actor=current_identity(), attendance_id=attendance_id)
        return jsonify({"message": "Attendance record deleted successfully"})
