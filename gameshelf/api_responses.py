"""
JSON envelope for the /api routes: ``{code, success, data?, message?, details?}``.

GameShelf exceptions are rendered by the handlers registered in
gameshelf.exceptions; this module covers the replies the routes build
themselves.
"""
import logging
from functools import wraps

from flask import jsonify

logger = logging.getLogger('main')

SUCCESS = "SUCCESS"
VALIDATION_ERROR = "VALIDATION_ERROR"
NOT_FOUND = "NOT_FOUND"


def _envelope(code, data=None, message=None, details=None):
    body = {"code": code, "success": code == SUCCESS}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    if details:
        body["details"] = details
    return body


def success_response(data=None, message=None, status_code=200):
    return jsonify(_envelope(SUCCESS, data=data, message=message)), status_code


def error_response(code, message, details=None, status_code=400):
    logger.warning(f"{code}: {message}" + (f" | {details}" if details else ""))
    return jsonify(_envelope(code, message=message, details=details)), status_code


def not_found_response(label, resource_id):
    """404 for an id that is not in its collection (or history, or backup dir)"""
    return error_response(NOT_FOUND, f"{label} '{resource_id}' not found", status_code=404)


def handle_api_errors(f):
    """
    A missing stored file becomes a 404 and a bad value a 400; everything
    else, GameShelf exceptions included, goes to the app error handlers.
    """

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except FileNotFoundError as e:
            return error_response(NOT_FOUND, str(e), status_code=404)
        except ValueError as e:
            return error_response(VALIDATION_ERROR, str(e))

    return wrapper
