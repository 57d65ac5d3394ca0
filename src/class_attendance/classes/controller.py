from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import current_identity, identity_required, iso, json_body
from ..core.constants import API_PREFIX
from ..container import Container
from ..users.controller import user_json
from .model import ClassDetail


def class_json(detail: ClassDetail) -> dict:
    c = detail.school_class
    return {
        "id": c.class_id,
        "name": c.name,
        "code": c.code,
        "facultyId": c.faculty_id,
        "faculty": user_json(detail.faculty) if detail.faculty else None,
        "students": [user_json(s) for s in detail.students],
        "schedule": {"day": c.schedule.day, "time": c.schedule.time},
        "createdAt": iso(c.created_at),
    }


def register(app: Flask, container: Container) -> None:
    login_required = identity_required(container.identity_service)
    classes = container.class_service

    def _classes_json(items) -> list[dict]:
        return [class_json(classes.describe(c)) for c in items]

    @app.route(f"{API_PREFIX}/classes", methods=["GET"], endpoint="list_classes")
    @login_required
    def list_classes():
        return jsonify(_classes_json(classes.list_classes_for_faculty(actor=current_identity())))

    @app.route(f"{API_PREFIX}/classes", methods=["POST"], endpoint="create_class")
    @login_required
    def create_class():
        data = json_body()
        cls = classes.create_class(
            actor=current_identity(),
            name=data.get("name"),
            code=data.get("code"),
            schedule=data.get("schedule"),
        )
        return jsonify(class_json(classes.describe(cls))), 201

    @app.route(f"{API_PREFIX}/classes/<int:class_id>", methods=["DELETE"], endpoint="delete_class")
    @login_required
    def delete_class(class_id: int):
        classes.delete_class(actor=current_identity(), class_id=class_id)
        return jsonify({"message": "Class deleted successfully"})

    @app.route(f"{API_PREFIX}/classes/<int:class_id>/students", methods=["POST"], endpoint="enroll_student")
    @login_required
    def enroll_student(class_id: int):
        cls = classes.enroll(actor=current_identity(), class_id=class_id, student_id=json_body().get("studentId"))
        return jsonify(class_json(classes.describe(cls)))

    @app.route(f"{API_PREFIX}/classes/<int:class_id>/students", methods=["GET"], endpoint="class_roster")
    @login_required
    def class_roster(class_id: int):
        students = classes.get_roster(actor=current_identity(), class_id=class_id)
        return jsonify([user_json(s) for s in students])

    @app.route(
        f"{API_PREFIX}/classes/<int:class_id>/students/<student_id>",
        methods=["DELETE"],
        endpoint="unenroll_student",
    )
    @login_required
    def unenroll_student(class_id: int, student_id: str):
        classes.unenroll(actor=current_identity(), class_id=class_id, student_id=student_id)
        return jsonify({"message": "Student removed from class successfully"})

    @app.route(f"{API_PREFIX}/student/<student_id>/classes", methods=["GET"], endpoint="student_classes")
    @login_required
    def student_classes(student_id: str):
        items = classes.list_classes_for_student(actor=current_identity(), student_id=student_id)
        return jsonify(_classes_json(items))
