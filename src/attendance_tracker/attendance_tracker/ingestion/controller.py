from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_user_id, error_response, user_required
from ..container import Container
from .model import UploadedFile


def register(app: Flask, container: Container) -> None:
    @app.route("/upload", methods=["POST"], endpoint="upload")
    @user_required
    def upload():
        files = [
            UploadedFile(filename=f.filename or "", content=f.read())
            for f in request.files.getlist("files")
            if f and f.filename
        ]
        # No files or too many files raise ValidationError, rendered as 400.
        result = container.ingestion_service.process_batch(current_user_id(), files)
        if not result.success:
            return error_response(result.message, 500)
        return jsonify(result.to_dict())
