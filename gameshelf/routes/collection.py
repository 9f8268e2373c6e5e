"""
Collection Routes - CRUD over games, consoles, accessories and wishlist
"""

from flask import Blueprint, request

from gameshelf.api_responses import handle_api_errors, not_found_response, success_response
from gameshelf.constants import GAMES
from gameshelf.models import get_model
from gameshelf.routes import get_services

collection_bp = Blueprint("collection", __name__, url_prefix="/api")

KIND_RULE = "<any(games, consoles, accessories, wishlist):kind>"


@collection_bp.route("/collection")
@handle_api_errors
def get_collection_api():
    """Whole collection document"""
    return success_response(data=get_services().store.get())


@collection_bp.route(f"/{KIND_RULE}")
@handle_api_errors
def list_entities_api(kind):
    return success_response(data=get_services().store.list(kind))


@collection_bp.post(f"/{KIND_RULE}")
@handle_api_errors
def add_entity_api(kind):
    entity = get_services().store.add(kind, request.get_json(silent=True))
    return success_response(data=entity, message=f"{get_model(kind).label} added", status_code=201)


@collection_bp.route(f"/{KIND_RULE}/<entity_id>")
@handle_api_errors
def get_entity_api(kind, entity_id):
    entity = get_services().store.get_by_id(kind, entity_id)
    if entity is None:
        return not_found_response(get_model(kind).label, entity_id)
    return success_response(data=entity)


@collection_bp.patch(f"/{KIND_RULE}/<entity_id>")
@handle_api_errors
def update_entity_api(kind, entity_id):
    entity = get_services().store.update(kind, entity_id, request.get_json(silent=True))
    if entity is None:
        return not_found_response(get_model(kind).label, entity_id)
    return success_response(data=entity)


@collection_bp.delete(f"/{KIND_RULE}/<entity_id>")
@handle_api_errors
def delete_entity_api(kind, entity_id):
    if not get_services().store.delete(kind, entity_id):
        return not_found_response(get_model(kind).label, entity_id)
    return success_response(message=f"{get_model(kind).label} deleted")


@collection_bp.route("/games/<game_id>/console")
@handle_api_errors
def get_game_console_api(game_id):
    """Console a game points at; null data when the reference is dangling"""
    store = get_services().store
    game = store.get_by_id(GAMES, game_id)
    if game is None:
        return not_found_response(get_model(GAMES).label, game_id)
    return success_response(data=store.resolve_console(game.get('consoleId')))
