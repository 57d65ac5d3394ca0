from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import current_identity, identity_required
from ..core.constants import API_PREFIX
from ..container import Container
from .model import User


def user_json(u: User) -> dict:
    return {"id": u.user_id, "name": u.full_name, "email": u.email, "role": u.role.value}


def register(app: Flask, container: Container) -> None:
    login_required = identity_required(container.identity_service)

    @app.route(f"{API_PREFIX}/students", methods=["GET"], endpoint="list_students")
    @login_required
    def list_students():
        students = container.user_service.list_students(actor=current_identity())
        return jsonify([user_json(u) for u in students])
