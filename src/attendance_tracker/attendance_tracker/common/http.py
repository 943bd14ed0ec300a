from __future__ import annotations

from functools import wraps

from flask import Flask, current_app, g, jsonify, request

from ..core.exceptions import ValidationError


def user_required(view):
    """Resolve the owning user from the header set by the upstream authenticator."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        header = current_app.config.get("AUTH_USER_HEADER", "X-User-Id")
        user_id = (request.headers.get(header) or "").strip()
        if not user_id:
            return jsonify({"success": False, "error": "Authentication required"}), 401
        g.user_id = user_id
        return view(*args, **kwargs)

    return wrapper


def current_user_id() -> str:
    return g.user_id


def error_response(message: str, status: int):
    return jsonify({"success": False, "error": message}), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def on_validation_error(exc: ValidationError):
        return error_response(str(exc), 400)

    @app.errorhandler(413)
    def on_too_large(_exc):
        return error_response("Upload too large", 413)
