import os

APP_DIR = os.path.dirname(os.path.abspath(__file__))
BASE_DIR = os.environ.get('GAMESHELF_DATA_DIR', os.path.join(APP_DIR, 'data'))
CONFIG_DIR = os.path.join(BASE_DIR, 'config')
DATA_DIR = os.path.join(BASE_DIR, 'data')
CONFIG_FILE = os.path.join(CONFIG_DIR, 'settings.yaml')
SECRET_KEY_FILE = os.path.join(CONFIG_DIR, '.secret_key')
SECRETS_DIR = os.path.join(CONFIG_DIR, 'secrets')
COLLECTION_FILE = os.path.join(DATA_DIR, 'collection.json')
IMAGES_DIR = os.path.join(DATA_DIR, 'images')
BACKUP_DIR = os.path.join(DATA_DIR, 'backups')
NOTIFICATIONS_FILE = os.path.join(DATA_DIR, 'notifications.json')

BUILD_VERSION = '20261018_1200'

# Bumped whenever the backup payload layout changes
BACKUP_VERSION = '1.2.0'
BACKUP_PREFIX = 'gamemanager_backup_'

# Collection Document keys
GAMES = 'games'
CONSOLES = 'consoles'
ACCESSORIES = 'accessories'
WISHLIST = 'wishlist'
COLLECTIONS = [GAMES, CONSOLES, ACCESSORIES, WISHLIST]

# Entity kinds used for notification keys
KIND_CONSOLE = 'console'
KIND_ACCESSORY = 'accessory'
MAINTAINABLE_KINDS = {
    KIND_CONSOLE: CONSOLES,
    KIND_ACCESSORY: ACCESSORIES,
}

# Secure slot names
SLOT_CLIENT_ID = 'igdb_client_id'
SLOT_CLIENT_SECRET = 'igdb_client_secret'
SLOT_ACCESS_TOKEN = 'igdb_access_token'
SLOT_TOKEN_EXPIRY = 'igdb_token_expiry'

TOKEN_SAFETY_MARGIN = 5 * 60
IGDB_CACHE_PREFIX = 'igdb_cache_'
DEFAULT_CACHE_TTL = 24 * 60 * 60

# Maintenance urgency buckets
STATUS_OVERDUE = 'overdue'
STATUS_URGENT = 'urgent'
STATUS_ATTENTION = 'attention'
STATUS_NORMAL = 'normal'
URGENT_DAYS = 7
ATTENTION_DAYS = 15

DATE_FORMAT = '%d/%m/%Y'

# Events
DATA_CHANGED = 'DATA_CHANGED'
RESTORE_COMPLETED = 'RESTORE_COMPLETED'

DEFAULT_SETTINGS = {
    "igdb": {
        "client_id": "",
        "client_secret": "",
        "auth_url": "https://id.twitch.tv/oauth2/token",
        "api_url": "https://api.igdb.com/v4",
        "cache_ttl": DEFAULT_CACHE_TTL,
        "timeout": 10,
    },
    "backup": {
        "keep": 7,
    },
    "maintenance": {
        "reminder_days_before": 7,
        "reminder_hour": 9,
        "history_limit": 50,
    },
}
