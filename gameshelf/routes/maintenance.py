"""
Maintenance Routes - due dates, reminders and notification history
"""

from flask import Blueprint

from gameshelf.api_responses import handle_api_errors, not_found_response, success_response
from gameshelf.maintenance import get_maintenance_items, get_upcoming_maintenance_items, mark_maintenance_done
from gameshelf.routes import get_services

maintenance_bp = Blueprint("maintenance", __name__, url_prefix="/api")


@maintenance_bp.route("/maintenance")
@handle_api_errors
def get_maintenance_api():
    """Consoles and accessories with a due date, most urgent first"""
    store = get_services().store
    return success_response(data=get_maintenance_items(store.get_consoles(), store.get_accessories()))


@maintenance_bp.route("/maintenance/upcoming")
@handle_api_errors
def get_upcoming_maintenance_api():
    services = get_services()
    days_before = services.settings['maintenance']['reminder_days_before']
    items = get_upcoming_maintenance_items(
        services.store.get_consoles(), services.store.get_accessories(), days_before=days_before)
    return success_response(data=items)


@maintenance_bp.post("/maintenance/<any(console, accessory):kind>/<entity_id>/done")
@handle_api_errors
def mark_maintenance_done_api(kind, entity_id):
    entity = mark_maintenance_done(get_services().store, kind, entity_id)
    if entity is None:
        return not_found_response(kind.capitalize(), entity_id)
    return success_response(data=entity, message="Maintenance recorded")


@maintenance_bp.route("/notifications")
@handle_api_errors
def get_notifications_api():
    return success_response(data=get_services().notifier.get_history())


@maintenance_bp.route("/notifications/unread")
@handle_api_errors
def count_unread_notifications_api():
    return success_response(data={"count": get_services().notifier.count_unread()})


@maintenance_bp.post("/notifications/<notification_id>/read")
@handle_api_errors
def mark_notification_read_api(notification_id):
    if not get_services().notifier.mark_as_read(notification_id):
        return not_found_response("Notification", notification_id)
    return success_response()


@maintenance_bp.post("/notifications/read")
@handle_api_errors
def mark_all_notifications_read_api():
    get_services().notifier.mark_all_as_read()
    return success_response()


@maintenance_bp.delete("/notifications")
@handle_api_errors
def clear_notifications_api():
    get_services().notifier.clear_history()
    return success_response(message="Notification history cleared")
