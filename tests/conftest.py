"""
Pytest fixtures and configuration for GameShelf tests
"""
import pytest
from unittest.mock import MagicMock

from gameshelf.events import EventBus
from gameshelf.notifications import MaintenanceNotifier
from gameshelf.storage import CollectionStore


class FakeClock:
    """Controllable replacement for time.time"""

    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing"""
    logger = MagicMock()
    logger.info = MagicMock()
    logger.error = MagicMock()
    logger.warning = MagicMock()
    logger.debug = MagicMock()
    return logger


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / 'gameshelf'
    path.mkdir()
    return path


@pytest.fixture
def notifier(data_dir):
    return MaintenanceNotifier(str(data_dir / 'notifications.json'))


@pytest.fixture
def store(data_dir, notifier):
    """Collection store writing to a temporary document"""
    return CollectionStore(str(data_dir / 'collection.json'), events=EventBus(), notifier=notifier)


@pytest.fixture
def sample_console():
    return {
        'name': 'PlayStation 5',
        'brand': 'Sony',
        'model': 'CFI-1216A',
        'region': 'NTSC-U',
        'purchaseDate': '15/11/2020',
        'condition': 'excellent',
        'pricePaid': 499.99,
        'lastMaintenanceDate': '01/06/2024',
        'maintenanceIntervalMonths': 6,
        'notifyMaintenance': False,
    }


@pytest.fixture
def sample_game():
    return {
        'name': 'Astro Bot',
        'consoleId': 'missing-console',
        'genre': 'Platformer',
        'region': 'NTSC-U',
        'releaseYear': 2024,
        'purchaseDate': '06/09/2024',
        'isPhysical': True,
        'pricePaid': 59.99,
    }


@pytest.fixture
def sample_accessory():
    return {
        'name': 'DualSense',
        'type': 'controller',
        'consoleId': 'missing-console',
        'purchaseDate': '15/11/2020',
        'lastMaintenanceDate': '01/01/2024',
        'maintenanceIntervalMonths': 3,
    }


@pytest.fixture
def sample_wishlist_item():
    return {
        'name': 'Nintendo Switch 2',
        'type': 'console',
        'priority': 'high',
        'estimatedPrice': 449.0,
    }


@pytest.fixture
def app(data_dir, monkeypatch):
    """Application built against a temporary data directory"""
    monkeypatch.delenv('IGDB_CLIENT_ID', raising=False)
    monkeypatch.delenv('IGDB_CLIENT_SECRET', raising=False)
    from gameshelf.app import create_app

    return create_app({'TESTING': True, 'DATA_DIR': str(data_dir)})


@pytest.fixture
def client(app):
    with app.test_client() as client:
        with app.app_context():
            yield client
