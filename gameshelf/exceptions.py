"""
GameShelf - Custom Exceptions and Exception Handlers
"""
import structlog
from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = structlog.get_logger('exceptions')


class GameShelfException(Exception):
    """Base exception for GameShelf"""
    title = "Error"

    def __init__(self, message: str, code: str = "GAMESHELF_ERROR", title: str = None):
        self.message = message
        self.code = code
        if title:
            self.title = title
        super().__init__(message)

    def to_dict(self):
        return {
            'error': True,
            'code': self.code,
            'title': self.title,
            'message': self.message
        }


class StorageException(GameShelfException):
    """Collection document read/write failures"""
    title = "Storage error"

    def __init__(self, message: str):
        super().__init__(message, code="STORAGE_ERROR")
        logger.error(f"Storage error: {message}")


class ValidationException(GameShelfException):
    """Validation-related exceptions"""
    title = "Invalid data"

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        super().__init__(message, code=code)
        logger.warning(f"Validation error: {message}")


class InvalidBackupException(ValidationException):
    """Backup file is unreadable or structurally invalid"""
    title = "Invalid backup"

    def __init__(self, message: str):
        super().__init__(message, code="INVALID_BACKUP")


class NotConfiguredException(GameShelfException):
    """IGDB client id/secret are missing"""
    title = "IGDB not configured"

    def __init__(self, message: str = "IGDB API credentials are not configured"):
        super().__init__(message, code="NOT_CONFIGURED")
        logger.warning(f"Configuration error: {message}")


class AuthenticationException(GameShelfException):
    """Token exchange or bearer token rejected"""
    title = "Authentication failed"

    def __init__(self, message: str = "Authentication with the IGDB API failed"):
        super().__init__(message, code="AUTH_ERROR")
        logger.warning(f"Authentication error: {message}")


class IGDBException(GameShelfException):
    """IGDB API request failures other than authentication"""
    title = "IGDB unavailable"

    def __init__(self, message: str):
        super().__init__(message, code="IGDB_ERROR")
        logger.error(f"IGDB error: {message}")


class SecureStorageException(GameShelfException):
    """Secure slot could not be written or decrypted"""
    title = "Secure storage error"

    def __init__(self, message: str):
        super().__init__(message, code="SECURE_STORAGE_ERROR")
        logger.error(f"Secure storage error: {message}")


def register_exception_handlers(app):
    """Register exception handlers with Flask app"""

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """Handle HTTP exceptions"""
        return jsonify({
            'error': True,
            'code': e.name.upper().replace(' ', '_'),
            'title': e.name,
            'message': e.description
        }), e.code

    @app.errorhandler(GameShelfException)
    def handle_gameshelf_exception(e):
        """Handle GameShelf custom exceptions"""
        return jsonify(e.to_dict()), 400

    @app.errorhandler(StorageException)
    def handle_storage_exception(e):
        """Handle storage exceptions"""
        return jsonify(e.to_dict()), 500

    @app.errorhandler(ValidationException)
    def handle_validation_exception(e):
        """Handle validation exceptions"""
        return jsonify(e.to_dict()), 400

    @app.errorhandler(NotConfiguredException)
    def handle_not_configured_exception(e):
        """Handle missing IGDB credentials"""
        return jsonify(e.to_dict()), 412

    @app.errorhandler(AuthenticationException)
    def handle_auth_exception(e):
        """Handle authentication exceptions"""
        return jsonify(e.to_dict()), 401

    @app.errorhandler(IGDBException)
    def handle_igdb_exception(e):
        """Handle IGDB exceptions"""
        return jsonify(e.to_dict()), 502

    @app.errorhandler(SecureStorageException)
    def handle_secure_storage_exception(e):
        """Handle secure storage exceptions"""
        return jsonify(e.to_dict()), 500

    @app.errorhandler(Exception)
    def handle_generic_exception(e):
        """Handle all other exceptions"""
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify({
            'error': True,
            'code': 'INTERNAL_ERROR',
            'title': 'Error',
            'message': 'An unexpected error occurred'
        }), 500
