"""
IGDB Routes - credentials, connection status and response cache
"""

from flask import Blueprint, request

from gameshelf.api_responses import handle_api_errors, success_response
from gameshelf.routes import get_services
from gameshelf.utils import mask_value

igdb_bp = Blueprint("igdb", __name__, url_prefix="/api")


@igdb_bp.route("/igdb/credentials")
@handle_api_errors
def get_igdb_credentials_api():
    """Saved credentials, without ever exposing the secret"""
    auth = get_services().igdb_auth
    saved = auth.get_credentials()
    return success_response(data={
        "clientId": mask_value(saved['clientId']),
        "hasSavedCredentials": bool(saved['clientId'] and saved['clientSecret']),
        "configured": auth.is_configured(),
    })


@igdb_bp.put("/igdb/credentials")
@handle_api_errors
def save_igdb_credentials_api():
    data = request.get_json(silent=True) or {}
    get_services().igdb_auth.save_credentials(data.get("clientId"), data.get("clientSecret"))
    return success_response(message="IGDB credentials saved")


@igdb_bp.delete("/igdb/credentials")
@handle_api_errors
def delete_igdb_credentials_api():
    get_services().igdb_auth.delete_credentials()
    return success_response(message="IGDB credentials removed")


@igdb_bp.route("/igdb/status")
@handle_api_errors
def igdb_status_api():
    return success_response(data=get_services().igdb.check_connection())


@igdb_bp.delete("/igdb/cache")
@handle_api_errors
def clear_igdb_cache_api():
    removed = get_services().igdb.clear_cache()
    return success_response(data={"removed": removed})
