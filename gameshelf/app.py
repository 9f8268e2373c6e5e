import logging
import os
import sys

import structlog
from flask import Flask

from gameshelf.backup import BackupManager
from gameshelf.cache import ExpiringCache
from gameshelf.constants import BASE_DIR, BUILD_VERSION
from gameshelf.events import EventBus
from gameshelf.exceptions import register_exception_handlers
from gameshelf.igdb_auth import IGDBAuth
from gameshelf.igdb_client import IGDBClient
from gameshelf.notifications import MaintenanceNotifier
from gameshelf.routes import register_blueprints
from gameshelf.secure_storage import EncryptedFileBackend, PrivateFileBackend, SecureStore
from gameshelf.settings import get_igdb_settings, load_settings
from gameshelf.storage import CollectionStore
from gameshelf.utils import ColoredFormatter, get_or_create_secret_key


def configure_logging(level=logging.INFO):
    formatter = ColoredFormatter(
        '[%(asctime)s.%(msecs)03d] %(levelname)s (%(module)s) %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=[handler])

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if os.environ.get('LOG_FORMAT') == 'json' else structlog.dev.ConsoleRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger('main')


def data_paths(base_dir):
    """Directory layout under a data root (mirrors gameshelf.constants)"""
    config_dir = os.path.join(base_dir, 'config')
    data_dir = os.path.join(base_dir, 'data')
    return {
        'config_file': os.path.join(config_dir, 'settings.yaml'),
        'secret_key_file': os.path.join(config_dir, '.secret_key'),
        'secrets_dir': os.path.join(config_dir, 'secrets'),
        'secure_values_file': os.path.join(config_dir, 'secure_values.json'),
        'collection_file': os.path.join(data_dir, 'collection.json'),
        'cache_file': os.path.join(data_dir, 'cache', 'cache.json'),
        'images_dir': os.path.join(data_dir, 'images'),
        'backup_dir': os.path.join(data_dir, 'backups'),
        'notifications_file': os.path.join(data_dir, 'notifications.json'),
    }


class Services:
    """Everything the routes need, built once per app"""

    def __init__(self, base_dir=BASE_DIR, settings=None, share=None):
        self.paths = data_paths(base_dir)
        self.settings = settings or load_settings(config_file=self.paths['config_file'])

        maintenance = self.settings['maintenance']
        self.notifier = MaintenanceNotifier(
            self.paths['notifications_file'],
            days_before=maintenance['reminder_days_before'],
            hour=maintenance['reminder_hour'],
            history_limit=maintenance['history_limit'],
        )
        self.events = EventBus()
        self.store = CollectionStore(self.paths['collection_file'], events=self.events, notifier=self.notifier)
        self.backups = BackupManager(
            self.store,
            backup_dir=self.paths['backup_dir'],
            images_dir=self.paths['images_dir'],
            share=share,
            keep=self.settings['backup']['keep'],
        )

        self.secure_store = SecureStore(
            primary=PrivateFileBackend(self.paths['secrets_dir']),
            fallback=EncryptedFileBackend(self.paths['secure_values_file'], self.paths['secret_key_file']),
        )
        igdb = get_igdb_settings(self.settings)
        self.cache = ExpiringCache(self.paths['cache_file'], default_ttl=igdb['cache_ttl'])
        # In-memory token cache; only IGDB responses are persisted
        self.igdb_auth = IGDBAuth(self.secure_store, igdb_settings=igdb)
        self.igdb = IGDBClient(self.igdb_auth, cache=self.cache)

    def apply_settings(self, settings):
        """Push edited backup/maintenance settings into the running services"""
        self.settings = settings
        maintenance = settings['maintenance']
        self.notifier.days_before = maintenance['reminder_days_before']
        self.notifier.hour = maintenance['reminder_hour']
        self.notifier.history_limit = maintenance['history_limit']
        self.backups.keep = settings['backup']['keep']
        logger.info("Settings applied", maintenance=maintenance, backup=settings['backup'])


def create_app(config=None):
    """Application factory"""
    config = config or {}
    configure_logging(config.get('LOG_LEVEL', logging.INFO))

    app = Flask(__name__)
    app.config.update(config)
    base_dir = app.config.get('DATA_DIR', BASE_DIR)
    services = Services(base_dir, share=app.config.get('BACKUP_SHARE'))
    app.config['SECRET_KEY'] = get_or_create_secret_key(services.paths['secret_key_file'])
    app.extensions['gameshelf'] = services

    # Register exception handlers
    register_exception_handlers(app)

    # Register blueprints
    register_blueprints(app)

    logger.info(f"GameShelf {BUILD_VERSION} ready (data dir: {base_dir})")
    return app


if __name__ == '__main__':
    create_app().run(host=os.environ.get('HOST', '0.0.0.0'), port=int(os.environ.get('PORT', 8465)))
