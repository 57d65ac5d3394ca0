from __future__ import annotations

from flask import Flask, jsonify, request

from ..classes.controller import class_json
from ..common.web import current_identity, identity_required
from ..core.constants import API_PREFIX
from ..container import Container


def register(app: Flask, container: Container) -> None:
    login_required = identity_required(container.identity_service)
    stats = container.stats_service

    @app.route(f"{API_PREFIX}/student/<student_id>/stats", methods=["GET"], endpoint="student_stats")
    @login_required
    def student_stats(student_id: str):
        result = stats.student_stats(actor=current_identity(), student_id=student_id)
        body = result.stats.as_dict()
        body["classStats"] = {str(cid): tally.as_dict() for cid, tally in result.class_stats.items()}
        return jsonify(body)

    @app.route(f"{API_PREFIX}/classes/<int:class_id>/summary", methods=["GET"], endpoint="class_summary")
    @login_required
    def class_summary(class_id: int):
        result = stats.class_summary(
            actor=current_identity(),
            class_id=class_id,
            start=request.args.get("startDate"),
            end=request.args.get("endDate"),
        )
        return jsonify(
            {
                "class": class_json(container.class_service.describe(result.school_class)),
                "summary": [s.as_dict() for s in result.summary],
                "totalDays": result.total_days,
            }
        )
