from __future__ import annotations

import io
import logging

from flask import Flask, jsonify, request, send_file

from ..common.http import current_user_id, error_response, user_required
from ..common.validators import parse_positive_int, parse_threshold, split_csv_param
from ..core.constants import DEFAULT_LIST_THRESHOLD, DEFAULT_PAGE_SIZE
from ..container import Container
from ..exports.service import describe_filters
from .model import AttendanceFilters
from .service import build_filters

logger = logging.getLogger(__name__)


def _filters_from(source) -> AttendanceFilters:
    return build_filters(
        course=source.get("course"),
        threshold=parse_threshold(source.get("threshold"), default=DEFAULT_LIST_THRESHOLD),
        search=source.get("search"),
        exclude_courses=split_csv_param(source.get("exclude_courses")),
    )


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.after_request
    def no_store(response):
        # API responses are per-user and change on every upload.
        if request.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, private"
            response.headers["Pragma"] = "no-cache"
            response.headers["Expires"] = "0"
        return response

    @app.route("/api/attendance", methods=["GET"], endpoint="api_attendance")
    @user_required
    def api_attendance():
        filters = _filters_from(request.args)
        page = parse_positive_int(request.args.get("page"), "page", default=1)
        per_page = parse_positive_int(request.args.get("per_page"), "per_page", default=DEFAULT_PAGE_SIZE)
        return jsonify(service.list_records(current_user_id(), filters, page=page, per_page=per_page))

    @app.route("/api/stats", methods=["GET"], endpoint="api_stats")
    @user_required
    def api_stats():
        return jsonify(service.dashboard_stats(current_user_id()))

    @app.route("/api/filtered_stats", methods=["GET"], endpoint="api_filtered_stats")
    @user_required
    def api_filtered_stats():
        return jsonify(service.filtered_stats(current_user_id(), _filters_from(request.args)))

    @app.route("/api/courses", methods=["GET"], endpoint="api_courses")
    @user_required
    def api_courses():
        return jsonify(service.list_courses(current_user_id()))

    @app.route("/api/attendance/<int:record_id>", methods=["DELETE"], endpoint="api_delete_record")
    @user_required
    def api_delete_record(record_id: int):
        if service.delete_record(current_user_id(), record_id):
            return jsonify({"success": True})
        return error_response("Record not found", 404)

    @app.route("/api/clear_all", methods=["POST"], endpoint="api_clear_all")
    @user_required
    def api_clear_all():
        if service.clear_all_data(current_user_id()):
            return jsonify({"success": True, "message": "All data cleared"})
        return error_response("Failed to clear data", 500)

    @app.route("/api/cleanup", methods=["POST"], endpoint="api_cleanup")
    @user_required
    def api_cleanup():
        removed = service.cleanup_insufficient_records(
            current_user_id(), container.ingestion_policy.min_conducted_periods
        )
        return jsonify({"success": True, "removed": removed})

    def _export(kind: str):
        source = request.get_json(silent=True) or request.form
        filters = _filters_from(source)
        records = service.records_for_export(current_user_id(), filters)
        if kind == "excel":
            export = container.export_service.to_excel(records, describe_filters(filters))
        else:
            export = container.export_service.to_csv(records, describe_filters(filters))
        logger.info("Exporting %d records to %s (%s)", len(records), kind, export.filename)
        return send_file(
            io.BytesIO(export.content),
            mimetype=export.mimetype,
            as_attachment=True,
            download_name=export.filename,
        )

    @app.route("/export/excel", methods=["POST"], endpoint="export_excel")
    @user_required
    def export_excel():
        return _export("excel")

    @app.route("/export/csv", methods=["POST"], endpoint="export_csv")
    @user_required
    def export_csv():
        return _export("csv")
