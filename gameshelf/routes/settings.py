"""
Settings Routes - read and update settings.yaml sections
"""

from flask import Blueprint, request

from gameshelf.api_responses import VALIDATION_ERROR, error_response, handle_api_errors, success_response
from gameshelf.routes import get_services
from gameshelf.settings import load_settings, set_section_settings
from gameshelf.utils import sanitize_sensitive_data

settings_bp = Blueprint("settings", __name__, url_prefix="/api")

EDITABLE_KEYS = {
    "backup": ("keep",),
    "maintenance": ("reminder_days_before", "reminder_hour", "history_limit"),
}


@settings_bp.route("/settings")
@handle_api_errors
def get_settings_api():
    """Current settings, flattened as section/key with secrets masked"""
    settings = load_settings(config_file=get_services().paths['config_file'])
    flattened = {}
    for section, values in sanitize_sensitive_data(settings, ["secret", "token", "password"]).items():
        if isinstance(values, dict):
            for key, value in values.items():
                flattened[f"{section}/{key}"] = value
        else:
            flattened[section] = values
    return success_response(data=flattened)


@settings_bp.post("/settings/<any(backup, maintenance):section>")
@handle_api_errors
def set_section_settings_api(section):
    services = get_services()
    data = request.get_json(silent=True) or {}
    changes = {key: data[key] for key in EDITABLE_KEYS[section] if key in data}

    success, errors = set_section_settings(section, changes, config_file=services.paths['config_file'])
    if not success:
        return error_response(VALIDATION_ERROR, f"Invalid {section} settings", details=errors)

    services.apply_settings(load_settings(config_file=services.paths['config_file']))
    return success_response(data=services.settings[section], message="Settings saved")
