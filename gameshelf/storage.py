"""
Collection Store - the single persisted document holding games, consoles,
accessories and wishlist items.

Every mutation reads the whole document, changes one collection and
writes the whole document back. Read-modify-write cycles are serialized
by a per-store lock, so two callers mutating different collections can
no longer overwrite each other's change.

``update`` and ``delete`` on an id that does not exist are no-ops and do
not raise, mirroring map/filter semantics over the collection.
"""
import json
import logging
import threading
from typing import Dict, List, Optional

from gameshelf.constants import (
    ACCESSORIES,
    COLLECTION_FILE,
    COLLECTIONS,
    CONSOLES,
    DATA_CHANGED,
    GAMES,
    WISHLIST,
)
from gameshelf.events import EventBus
from gameshelf.exceptions import StorageException, ValidationException
from gameshelf.maintenance import calculate_next_maintenance_date, kind_for_collection, maintenance_inputs_changed
from gameshelf.models import MAINTENANCE_FIELDS, get_model, validate_changes, validate_entity
from gameshelf.utils import generate_id, read_json, safe_write_json

logger = logging.getLogger('main')


def empty_document() -> Dict[str, List]:
    return {collection: [] for collection in COLLECTIONS}


class CollectionStore:
    def __init__(self, path: str = COLLECTION_FILE, events: EventBus = None, notifier=None):
        self.path = path
        self.events = events or EventBus()
        self.notifier = notifier
        self._lock = threading.RLock()

    # Persistence primitives
    def _read(self) -> Dict[str, List]:
        try:
            data = read_json(self.path)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageException(f"Failed to read collection data: {e}") from e

        if data is None:
            logger.info("No collection data found, initializing storage")
            data = empty_document()
            self._write(data)
            return data

        if not isinstance(data, dict):
            raise StorageException("Collection data is corrupted")
        for collection in COLLECTIONS:
            data.setdefault(collection, [])
        return data

    def _write(self, data: Dict[str, List]):
        try:
            safe_write_json(self.path, data)
        except (OSError, TypeError, ValueError) as e:
            raise StorageException(f"Failed to save collection data: {e}") from e
        logger.debug(f"Collection data saved to {self.path}")

    def get(self) -> Dict[str, List]:
        """The whole Collection Document"""
        with self._lock:
            return self._read()

    def replace_document(self, data: Dict[str, List]):
        """Overwrite the persisted document in one write (used by restore)"""
        document = {collection: list(data.get(collection) or []) for collection in COLLECTIONS}
        with self._lock:
            self._write(document)
        logger.info("Collection document replaced: " + ", ".join(
            f"{collection}={len(document[collection])}" for collection in COLLECTIONS))

    # Generic CRUD
    def _model(self, collection: str):
        model = get_model(collection)
        if model is None:
            raise ValidationException(f"Unknown collection: {collection}")
        return model

    def list(self, collection: str) -> List[Dict]:
        self._model(collection)
        return self.get()[collection]

    def get_by_id(self, collection: str, entity_id: str) -> Optional[Dict]:
        for entity in self.list(collection):
            if entity.get('id') == entity_id:
                return entity
        return None

    def add(self, collection: str, data: Dict) -> Dict:
        model = self._model(collection)
        entity = validate_entity(model, data)

        if model.maintainable:
            next_date = calculate_next_maintenance_date(
                entity.get('lastMaintenanceDate'), entity.get('maintenanceIntervalMonths'))
            if next_date:
                entity['nextMaintenanceDate'] = next_date

        with self._lock:
            document = self._read()
            entity = {**entity, 'id': generate_id()}
            document[collection].append(entity)
            self._write(document)

        logger.info(f"{model.label} added: {entity['id']} ({entity.get('name')})")
        self._after_change(collection, 'add', entity, model.maintainable)
        return entity

    def update(self, collection: str, entity_id: str, changes: Dict) -> Optional[Dict]:
        """Merge ``changes`` into the entity; returns the updated entity or None if absent"""
        model = self._model(collection)
        if not isinstance(changes, dict):
            raise ValidationException(f"{model.label} update must be an object")

        with self._lock:
            document = self._read()
            items = document[collection]
            index = next((i for i, item in enumerate(items) if item.get('id') == entity_id), None)
            if index is None:
                logger.debug(f"{model.label} {entity_id} not found, update ignored")
                return None

            current = items[index]
            changes = validate_changes(model, current, changes)
            updated = {**current, **changes}
            if model.maintainable and maintenance_inputs_changed(current, changes):
                next_date = calculate_next_maintenance_date(
                    updated.get('lastMaintenanceDate'), updated.get('maintenanceIntervalMonths'))
                if next_date:
                    updated['nextMaintenanceDate'] = next_date
                else:
                    updated.pop('nextMaintenanceDate', None)

            items[index] = updated
            self._write(document)

        logger.info(f"{model.label} updated: {entity_id} ({', '.join(sorted(changes)) or 'no fields'})")
        touches_schedule = model.maintainable and any(field in changes for field in MAINTENANCE_FIELDS)
        self._after_change(collection, 'update', updated, touches_schedule)
        return updated

    def delete(self, collection: str, entity_id: str) -> bool:
        model = self._model(collection)
        with self._lock:
            document = self._read()
            remaining = [item for item in document[collection] if item.get('id') != entity_id]
            if len(remaining) == len(document[collection]):
                logger.debug(f"{model.label} {entity_id} not found, delete ignored")
                return False
            document[collection] = remaining
            self._write(document)

        logger.info(f"{model.label} deleted: {entity_id}")
        kind = kind_for_collection(collection)
        if self.notifier and kind:
            self.notifier.cancel(entity_id, kind)
        self.events.emit(DATA_CHANGED, {'collection': collection, 'action': 'delete', 'id': entity_id})
        return True

    def _after_change(self, collection: str, action: str, entity: Dict, sync_schedule: bool):
        kind = kind_for_collection(collection)
        if sync_schedule and self.notifier and kind:
            self.notifier.sync(entity, kind)
        self.events.emit(DATA_CHANGED, {'collection': collection, 'action': action, 'id': entity['id']})

    def resolve_console(self, console_id: str) -> Optional[Dict]:
        """Console referenced by a game/accessory, or None for a dangling reference"""
        if not console_id:
            return None
        return self.get_by_id(CONSOLES, console_id)

    # Games
    def get_games(self) -> List[Dict]:
        return self.list(GAMES)

    def get_game_by_id(self, entity_id: str) -> Optional[Dict]:
        return self.get_by_id(GAMES, entity_id)

    def add_game(self, data: Dict) -> Dict:
        return self.add(GAMES, data)

    def update_game(self, entity_id: str, changes: Dict) -> Optional[Dict]:
        return self.update(GAMES, entity_id, changes)

    def delete_game(self, entity_id: str) -> bool:
        return self.delete(GAMES, entity_id)

    # Consoles
    def get_consoles(self) -> List[Dict]:
        return self.list(CONSOLES)

    def get_console_by_id(self, entity_id: str) -> Optional[Dict]:
        return self.get_by_id(CONSOLES, entity_id)

    def add_console(self, data: Dict) -> Dict:
        return self.add(CONSOLES, data)

    def update_console(self, entity_id: str, changes: Dict) -> Optional[Dict]:
        return self.update(CONSOLES, entity_id, changes)

    def delete_console(self, entity_id: str) -> bool:
        return self.delete(CONSOLES, entity_id)

    # Accessories
    def get_accessories(self) -> List[Dict]:
        return self.list(ACCESSORIES)

    def get_accessory_by_id(self, entity_id: str) -> Optional[Dict]:
        return self.get_by_id(ACCESSORIES, entity_id)

    def add_accessory(self, data: Dict) -> Dict:
        return self.add(ACCESSORIES, data)

    def update_accessory(self, entity_id: str, changes: Dict) -> Optional[Dict]:
        return self.update(ACCESSORIES, entity_id, changes)

    def delete_accessory(self, entity_id: str) -> bool:
        return self.delete(ACCESSORIES, entity_id)

    # Wishlist
    def get_wishlist_items(self) -> List[Dict]:
        return self.list(WISHLIST)

    def get_wishlist_item_by_id(self, entity_id: str) -> Optional[Dict]:
        return self.get_by_id(WISHLIST, entity_id)

    def add_wishlist_item(self, data: Dict) -> Dict:
        return self.add(WISHLIST, data)

    def update_wishlist_item(self, entity_id: str, changes: Dict) -> Optional[Dict]:
        return self.update(WISHLIST, entity_id, changes)

    def delete_wishlist_item(self, entity_id: str) -> bool:
        return self.delete(WISHLIST, entity_id)
