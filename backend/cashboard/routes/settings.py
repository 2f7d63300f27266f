# Overview: Flask API routes for application settings; parses input and returns JSON responses.

from __future__ import annotations

from flask import Blueprint, jsonify, request, g

from ..decorators import require_auth, require_permission
from ..services import settings_service
from ..services.settings_service import (
    SettingsAuthorizationError,
    SettingsValidationError,
    SettingsNotFoundError,
)


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


def _json_error(exc: Exception):
    if isinstance(exc, SettingsValidationError):
        return jsonify({"error": str(exc)}), 400
    if isinstance(exc, SettingsAuthorizationError):
        return jsonify({"error": str(exc)}), 403
    if isinstance(exc, SettingsNotFoundError):
        return jsonify({"error": str(exc)}), 404
    return jsonify({"error": str(exc)}), 400


@settings_bp.get("")
@require_auth
@require_permission("settings:view")
def get_settings():
    return jsonify(settings_service.load_settings()), 200


@settings_bp.put("/<section>")
@require_auth
@require_permission("settings:edit")
def save_section(section: str):
    payload = request.get_json(silent=True)
    try:
        settings = settings_service.save_section(g.current_user, section, payload)
        return jsonify(settings), 200
    except settings_service.SettingsError as exc:
        return _json_error(exc)


@settings_bp.delete("/<section>")
@require_auth
@require_permission("settings:edit")
def reset_section(section: str):
    try:
        settings = settings_service.reset_section(g.current_user, section)
        return jsonify(settings), 200
    except settings_service.SettingsError as exc:
        return _json_error(exc)
