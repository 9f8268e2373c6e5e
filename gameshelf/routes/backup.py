"""
Backup Routes - export, restore and housekeeping of backup files
"""

from flask import Blueprint, request

from gameshelf.api_responses import handle_api_errors, not_found_response, success_response
from gameshelf.exceptions import InvalidBackupException
from gameshelf.routes import get_services

backup_bp = Blueprint("backup", __name__, url_prefix="/api")


@backup_bp.post("/backup/export")
@handle_api_errors
def export_backup_api():
    result = get_services().backups.create_backup()
    return success_response(data=result, message="Backup created")


@backup_bp.route("/backups")
@handle_api_errors
def list_backups_api():
    return success_response(data=get_services().backups.list_backups())


@backup_bp.delete("/backups/<filename>")
@handle_api_errors
def delete_backup_api(filename):
    if not get_services().backups.delete_backup(filename):
        return not_found_response("Backup", filename)
    return success_response(message="Backup deleted")


@backup_bp.post("/backup/restore")
@handle_api_errors
def restore_backup_api():
    """Restore from an uploaded file, or from a stored backup by name"""
    backups = get_services().backups
    upload = request.files.get("file")
    if upload is not None:
        counts = backups.restore_backup(upload.stream)
    else:
        filename = (request.get_json(silent=True) or {}).get("filename")
        if not filename:
            raise InvalidBackupException("No backup file selected")
        counts = backups.restore_from_backup_file(filename)
    return success_response(data=counts, message="Backup restored")
