from flask import current_app


def get_services():
    """Service container built by ``create_app``"""
    return current_app.extensions['gameshelf']


def register_blueprints(app):
    from gameshelf.routes.backup import backup_bp
    from gameshelf.routes.collection import collection_bp
    from gameshelf.routes.igdb import igdb_bp
    from gameshelf.routes.maintenance import maintenance_bp
    from gameshelf.routes.settings import settings_bp

    app.register_blueprint(collection_bp)
    app.register_blueprint(backup_bp)
    app.register_blueprint(maintenance_bp)
    app.register_blueprint(igdb_bp)
    app.register_blueprint(settings_bp)
