"""
Tests for backup export and restore
"""
import io
import json
import os
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from gameshelf.backup import BackupManager, backup_filename, validate_backup
from gameshelf.constants import BACKUP_VERSION, CONSOLES, GAMES, RESTORE_COMPLETED, WISHLIST
from gameshelf.events import EventBus
from gameshelf.exceptions import InvalidBackupException
from gameshelf.storage import CollectionStore

IMAGE_BYTES = b'\xff\xd8\xff\xe0fake-jpeg-payload\x00\x01\x02'


@pytest.fixture
def image_file(tmp_path):
    path = tmp_path / 'photos' / 'cover.jpg'
    path.parent.mkdir()
    path.write_bytes(IMAGE_BYTES)
    return str(path)


@pytest.fixture
def backups(store, data_dir):
    return BackupManager(store, backup_dir=str(data_dir / 'backups'), images_dir=str(data_dir / 'images'))


@pytest.fixture
def empty_store(tmp_path):
    """A second store on another document, as on a fresh install"""
    target = tmp_path / 'fresh'
    target.mkdir()
    return CollectionStore(str(target / 'collection.json'), events=EventBus())


def _read_backup(result):
    with open(result['path']) as f:
        return json.load(f)


class TestExport:
    """Tests for create_backup"""

    def test_filename_has_day_granularity(self):
        assert backup_filename(datetime(2024, 6, 1, 23, 59)) == 'gamemanager_backup_20240601.json'

    def test_backup_has_collections_timestamp_and_version(self, backups, store, sample_game):
        store.add_game(sample_game)

        result = backups.create_backup(when=datetime(2024, 6, 1))
        payload = _read_backup(result)

        assert result['filename'] == 'gamemanager_backup_20240601.json'
        assert set(payload) == {'games', 'consoles', 'accessories', 'wishlist', 'timestamp', 'version'}
        assert payload['version'] == BACKUP_VERSION
        assert payload['timestamp'].endswith('Z')
        assert result['counts'][GAMES] == 1

    def test_local_image_is_embedded(self, backups, store, sample_game, image_file):
        store.add_game({**sample_game, 'imageUrl': image_file})

        game = _read_backup(backups.create_backup())[GAMES][0]

        assert 'imageUrl' not in game
        assert game['imageBase64']

    def test_remote_image_is_dropped(self, backups, store, sample_game):
        store.add_game({**sample_game, 'imageUrl': 'https://images.igdb.com/cover.jpg'})

        game = _read_backup(backups.create_backup())[GAMES][0]

        assert 'imageUrl' not in game
        assert 'imageBase64' not in game

    def test_unreadable_image_does_not_fail_export(self, backups, store, sample_game, tmp_path):
        store.add_game({**sample_game, 'imageUrl': str(tmp_path / 'gone.jpg')})

        game = _read_backup(backups.create_backup())[GAMES][0]

        assert 'imageBase64' not in game
        assert game['name'] == sample_game['name']

    def test_export_does_not_modify_the_store(self, backups, store, sample_game, image_file):
        game = store.add_game({**sample_game, 'imageUrl': image_file})

        backups.create_backup()

        assert store.get_games() == [game]

    def test_backup_is_handed_to_share(self, store, data_dir):
        share = MagicMock()
        manager = BackupManager(store, backup_dir=str(data_dir / 'backups'), share=share)

        result = manager.create_backup()

        share.assert_called_once_with(result['path'])

    def test_same_day_exports_overwrite(self, backups, store, sample_game):
        backups.create_backup(when=datetime(2024, 6, 1, 9))
        store.add_game(sample_game)
        result = backups.create_backup(when=datetime(2024, 6, 1, 18))

        assert [b['filename'] for b in backups.list_backups()] == [result['filename']]
        assert len(_read_backup(result)[GAMES]) == 1


class TestRestore:
    """Tests for restore_backup"""

    def test_round_trip_preserves_entities(self, backups, store, empty_store, sample_game,
                                           sample_wishlist_item, image_file, data_dir):
        game = store.add_game({**sample_game, 'imageUrl': image_file})
        remote = store.add_game({**sample_game, 'name': 'Remote', 'imageUrl': 'http://example.com/a.jpg'})
        item = store.add_wishlist_item(sample_wishlist_item)
        result = backups.create_backup()

        restorer = BackupManager(empty_store, backup_dir=str(data_dir / 'restore'),
                                 images_dir=str(data_dir / 'restored-images'))
        counts = restorer.restore_backup(result['path'])

        assert counts == {'games': 2, 'consoles': 0, 'accessories': 0, 'wishlist': 1}
        restored_game = empty_store.get_game_by_id(game['id'])
        new_path = restored_game.pop('imageUrl')
        assert new_path != image_file
        with open(new_path, 'rb') as f:
            assert f.read() == IMAGE_BYTES
        assert restored_game == {k: v for k, v in game.items() if k != 'imageUrl'}
        assert empty_store.get_game_by_id(remote['id']) == {k: v for k, v in remote.items() if k != 'imageUrl'}
        assert empty_store.get_wishlist_items() == [item]

    def test_ps5_maintenance_survives_restore(self, backups, store, empty_store, sample_console, data_dir):
        console = store.add_console(sample_console)
        assert console['nextMaintenanceDate'] == '01/12/2024'
        result = backups.create_backup()

        BackupManager(empty_store, backup_dir=str(data_dir / 'restore'),
                      images_dir=str(data_dir / 'restored-images')).restore_backup(result['path'])

        assert empty_store.get_consoles() == [console]

    def test_restore_from_file_object(self, backups, store, sample_game):
        payload = {'games': [{**sample_game, 'id': 'g1'}], 'consoles': [], 'accessories': [], 'wishlist': [],
                   'timestamp': '2024-06-01T10:00:00.000Z', 'version': BACKUP_VERSION}

        backups.restore_backup(io.BytesIO(json.dumps(payload).encode('utf-8')))

        assert store.get_game_by_id('g1')['name'] == sample_game['name']

    def test_restore_completed_is_emitted_once(self, backups, store):
        listener = MagicMock()
        store.events.subscribe(RESTORE_COMPLETED, listener)
        result = backups.create_backup()

        backups.restore_backup(result['path'])

        listener.assert_called_once()
        assert listener.call_args[0][0]['version'] == BACKUP_VERSION

    def test_all_empty_collections_empty_the_store(self, backups, store, sample_game, tmp_path):
        store.add_game(sample_game)
        path = tmp_path / 'empty.json'
        path.write_text(json.dumps({'games': [], 'consoles': [], 'accessories': [], 'wishlist': [],
                                    'timestamp': '2024-06-01T10:00:00Z', 'version': '1.0.0'}))

        backups.restore_backup(str(path))

        assert store.get_games() == []

    def test_broken_image_degrades_to_no_image(self, backups, store, sample_game):
        payload = {'games': [{**sample_game, 'id': 'g1', 'imageBase64': '***not base64***'}],
                   'consoles': [], 'accessories': [], 'wishlist': [],
                   'timestamp': '2024-06-01T10:00:00Z', 'version': BACKUP_VERSION}

        backups.restore_backup(io.StringIO(json.dumps(payload)))

        game = store.get_game_by_id('g1')
        assert 'imageUrl' not in game
        assert 'imageBase64' not in game

    @pytest.mark.parametrize('payload', [
        {'games': [], 'consoles': [], 'accessories': [], 'wishlist': [], 'timestamp': '2024-06-01T10:00:00Z'},
        {'games': [], 'consoles': [], 'accessories': [], 'wishlist': [], 'version': '1.2.0'},
        {'games': {}, 'consoles': [], 'accessories': [], 'wishlist': [],
         'timestamp': '2024-06-01T10:00:00Z', 'version': '1.2.0'},
        {'consoles': [], 'accessories': [], 'wishlist': [], 'timestamp': '2024-06-01T10:00:00Z', 'version': '1.2.0'},
        ['not', 'an', 'object'],
    ])
    def test_invalid_backup_is_rejected_before_any_write(self, backups, store, sample_game, data_dir, payload):
        game = store.add_game(sample_game)
        if isinstance(payload, dict) and isinstance(payload.get('games'), list):
            payload['games'] = [{**sample_game, 'id': 'x', 'imageBase64': 'aGVsbG8='}]

        with pytest.raises(InvalidBackupException):
            backups.restore_backup(io.StringIO(json.dumps(payload)))

        assert store.get_games() == [game]
        assert not os.path.exists(data_dir / 'images')

    @pytest.mark.parametrize('entry', ['oops', 5, None, ['id', 'g1'], {'name': 'No id'}, {'id': ''}, {'id': 7}])
    def test_malformed_entries_are_rejected_before_any_write(self, backups, store, sample_game, data_dir, entry):
        game = store.add_game(sample_game)
        payload = {'games': [{**sample_game, 'id': 'g1', 'imageBase64': 'aGVsbG8='}, entry],
                   'consoles': [], 'accessories': [], 'wishlist': [],
                   'timestamp': '2024-06-01T10:00:00Z', 'version': BACKUP_VERSION}

        with pytest.raises(InvalidBackupException) as exc:
            backups.restore_backup(io.StringIO(json.dumps(payload)))

        assert 'games[1]' in exc.value.message
        assert store.get_games() == [game]
        assert not os.path.exists(data_dir / 'images')

    def test_replaced_images_are_removed(self, backups, store, sample_game, data_dir):
        images_dir = data_dir / 'images'
        images_dir.mkdir()
        (images_dir / 'old_1700000000000.jpg').write_bytes(IMAGE_BYTES)
        payload = {'games': [{**sample_game, 'id': 'g1', 'imageBase64': 'aGVsbG8='}],
                   'consoles': [], 'accessories': [], 'wishlist': [],
                   'timestamp': '2024-06-01T10:00:00Z', 'version': BACKUP_VERSION}

        backups.restore_backup(io.StringIO(json.dumps(payload)))

        restored = store.get_game_by_id('g1')['imageUrl']
        assert os.listdir(images_dir) == [os.path.basename(restored)]

    def test_non_json_file_is_rejected(self, backups):
        with pytest.raises(InvalidBackupException):
            backups.restore_backup(io.BytesIO(b'this is not json'))

    def test_no_file_selected(self, backups):
        with pytest.raises(InvalidBackupException):
            backups.restore_backup(None)


class TestValidateBackup:
    """Tests for validate_backup"""

    def test_valid_structure(self):
        validate_backup({'games': [], 'consoles': [], 'accessories': [], 'wishlist': [],
                         'timestamp': '2024-06-01T10:00:00Z', 'version': '1.2.0'})

    def test_reports_invalid_collections(self):
        with pytest.raises(InvalidBackupException) as exc:
            validate_backup({'games': [], 'consoles': None, 'accessories': [], 'wishlist': 'x',
                             'timestamp': '2024-06-01T10:00:00Z', 'version': '1.2.0'})
        assert CONSOLES in exc.value.message
        assert WISHLIST in exc.value.message

    def test_entry_without_id(self):
        with pytest.raises(InvalidBackupException) as exc:
            validate_backup({'games': [], 'consoles': [{'id': 'c1'}, {'name': 'PS5'}], 'accessories': [],
                             'wishlist': [], 'timestamp': '2024-06-01T10:00:00Z', 'version': '1.2.0'})
        assert exc.value.message == 'Backup entry consoles[1] has no id'


class TestBackupHousekeeping:
    """Tests for listing, deleting and pruning backups"""

    def test_cleanup_keeps_most_recent(self, store, data_dir):
        manager = BackupManager(store, backup_dir=str(data_dir / 'backups'), keep=2)

        for day in (1, 2, 3, 4):
            manager.create_backup(when=datetime(2024, 6, day))

        assert len(manager.list_backups()) == 2

    def test_delete_backup(self, backups):
        result = backups.create_backup()

        assert backups.delete_backup(result['filename']) is True
        assert backups.delete_backup(result['filename']) is False
        assert backups.list_backups() == []

    def test_restore_from_stored_backup(self, backups, store, sample_game):
        result = backups.create_backup()
        store.add_game(sample_game)

        backups.restore_from_backup_file(result['filename'])

        assert store.get_games() == []

    def test_missing_stored_backup(self, backups):
        with pytest.raises(FileNotFoundError):
            backups.restore_from_backup_file('gamemanager_backup_19990101.json')

    @pytest.mark.parametrize('name', ['../collection.json', 'notes.txt'])
    def test_backup_names_are_confined_to_backup_dir(self, backups, name):
        with pytest.raises(InvalidBackupException):
            backups.delete_backup(name)
