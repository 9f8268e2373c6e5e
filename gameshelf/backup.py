"""
Backup / restore of the Collection Document.

A backup is one JSON file holding the four collections plus ``timestamp``
and ``version``. Local images travel inside it as ``imageBase64``; remote
(http/https) images are not downloaded and are left out of the backup.
"""
import json
import logging
import os
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from gameshelf.constants import (
    BACKUP_DIR,
    BACKUP_PREFIX,
    BACKUP_VERSION,
    COLLECTIONS,
    IMAGES_DIR,
    RESTORE_COMPLETED,
)
from gameshelf.exceptions import InvalidBackupException, StorageException
from gameshelf.images import IMAGE_ERRORS, base64_to_image, image_to_base64, is_remote_url, list_images, local_path
from gameshelf.utils import now_utc, safe_write_json

logger = logging.getLogger('main')


def backup_filename(when: datetime = None) -> str:
    """Day-granular name; two exports on the same day share it"""
    when = when or datetime.now()
    return f"{BACKUP_PREFIX}{when.strftime('%Y%m%d')}.json"


def validate_backup(data) -> None:
    if not isinstance(data, dict):
        raise InvalidBackupException("Backup file is not a JSON object")
    if not data.get('version') or not data.get('timestamp'):
        raise InvalidBackupException("Backup file is missing its version or timestamp")
    invalid = [collection for collection in COLLECTIONS if not isinstance(data.get(collection), list)]
    if invalid:
        raise InvalidBackupException(f"Backup file has an invalid structure: {', '.join(invalid)}")
    for collection in COLLECTIONS:
        for position, item in enumerate(data[collection]):
            if not isinstance(item, dict):
                raise InvalidBackupException(f"Backup entry {collection}[{position}] is not an object")
            if not isinstance(item.get('id'), str) or not item['id'].strip():
                raise InvalidBackupException(f"Backup entry {collection}[{position}] has no id")


class BackupManager:
    def __init__(self, store, backup_dir: str = BACKUP_DIR, images_dir: str = IMAGES_DIR,
                 share: Optional[Callable[[str], None]] = None, keep: int = 7):
        self.store = store
        self.backup_dir = backup_dir
        self.images_dir = images_dir
        self.share = share
        self.keep = keep
        os.makedirs(self.backup_dir, exist_ok=True)

    def process_items_with_images(self, items: List[Dict]) -> List[Dict]:
        """Copies of ``items`` with local images embedded and ``imageUrl`` removed"""
        processed = []
        for item in items:
            entry = dict(item)
            image_url = entry.pop('imageUrl', None)
            entry.pop('imageBase64', None)
            if image_url:
                encoded = image_to_base64(image_url)
                if encoded:
                    entry['imageBase64'] = encoded
            processed.append(entry)
        return processed

    def restore_items_with_images(self, items: List[Dict]) -> List[Dict]:
        """Re-materialize embedded images; an item whose image fails keeps no image"""
        restored = []
        for item in items:
            entry = dict(item)
            encoded = entry.pop('imageBase64', None)
            entry.pop('imageUrl', None)
            if encoded and isinstance(encoded, str) and entry.get('id'):
                try:
                    entry['imageUrl'] = base64_to_image(encoded, entry['id'], self.images_dir)
                    logger.debug(f"Image restored for item {entry['id']}: {entry['imageUrl']}")
                except IMAGE_ERRORS as e:
                    logger.error(f"Failed to restore image for item {entry['id']}: {e}")
            restored.append(entry)
        return restored

    def remove_unreferenced_images(self, document: Dict[str, List[Dict]]) -> int:
        """Delete files in the images directory that no entity points at any more"""
        referenced = {
            os.path.abspath(local_path(item['imageUrl']))
            for collection in COLLECTIONS
            for item in document[collection]
            if item.get('imageUrl') and not is_remote_url(item['imageUrl'])
        }
        removed = 0
        for name in list_images(self.images_dir):
            path = os.path.join(self.images_dir, name)
            if os.path.abspath(path) in referenced:
                continue
            try:
                os.remove(path)
                removed += 1
            except OSError as e:
                logger.error(f"Failed to remove unused image {path}: {e}")
        if removed:
            logger.info(f"Removed {removed} unused image(s) from {self.images_dir}")
        return removed

    def build_backup(self) -> Dict:
        document = self.store.get()
        logger.info("Collecting data for backup: " + ", ".join(
            f"{collection}={len(document[collection])}" for collection in COLLECTIONS))
        payload = {collection: self.process_items_with_images(document[collection]) for collection in COLLECTIONS}
        payload['timestamp'] = now_utc().isoformat().replace('+00:00', 'Z')
        payload['version'] = BACKUP_VERSION
        return payload

    def create_backup(self, when: datetime = None) -> Dict:
        """Write a backup file and hand it to the share collaborator"""
        payload = self.build_backup()
        filename = backup_filename(when)
        path = os.path.join(self.backup_dir, filename)
        try:
            safe_write_json(path, payload, indent=None)
        except OSError as e:
            raise StorageException(f"Could not create the backup: {e}") from e
        logger.info(f"Backup file created: {path}")

        if self.share:
            self.share(path)

        self.cleanup_old_backups(keep=self.keep)
        return {
            'filename': filename,
            'path': path,
            'timestamp': payload['timestamp'],
            'version': payload['version'],
            'counts': {collection: len(payload[collection]) for collection in COLLECTIONS},
        }

    def restore_backup(self, source) -> Dict:
        """
        Restore from a backup file path or an open file object.

        The backup is validated before anything is written; on success the
        store document is replaced in one write and RESTORE_COMPLETED is
        emitted once.
        """
        if source is None:
            raise InvalidBackupException("No backup file selected")

        if hasattr(source, 'read'):
            content = source.read()
        else:
            with open(source, 'rb') as f:
                content = f.read()

        try:
            if isinstance(content, bytes):
                content = content.decode('utf-8')
            data = json.loads(content)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise InvalidBackupException(f"Backup file is not valid JSON: {e}") from e

        validate_backup(data)
        logger.info(f"Restoring backup version {data['version']} from {data['timestamp']}")

        restored = {collection: self.restore_items_with_images(data[collection]) for collection in COLLECTIONS}
        self.store.replace_document(restored)
        self.remove_unreferenced_images(restored)

        counts = {collection: len(restored[collection]) for collection in COLLECTIONS}
        self.store.events.emit(RESTORE_COMPLETED, {'counts': counts, 'version': data['version']})
        logger.info("Restore completed event emitted")
        return counts

    def restore_from_backup_file(self, backup_filename: str) -> Dict:
        """Restore one of the backups kept in the backup directory"""
        path = self._backup_path(backup_filename)
        if not os.path.exists(path):
            raise FileNotFoundError(f"Backup file not found: {backup_filename}")
        return self.restore_backup(path)

    def _backup_path(self, backup_filename: str) -> str:
        if os.path.basename(backup_filename) != backup_filename or not backup_filename.endswith('.json'):
            raise InvalidBackupException(f"Invalid backup file name: {backup_filename}")
        return os.path.join(self.backup_dir, backup_filename)

    def cleanup_old_backups(self, keep=7):
        """Keep only the most recent N backups"""
        backups = [
            os.path.join(self.backup_dir, filename)
            for filename in os.listdir(self.backup_dir)
            if filename.startswith(BACKUP_PREFIX) and filename.endswith('.json')
        ]
        backups.sort(key=lambda x: os.path.getmtime(x), reverse=True)

        for old_file in backups[keep:]:
            try:
                os.remove(old_file)
                logger.info(f"Removed old backup: {os.path.basename(old_file)}")
            except OSError as e:
                logger.error(f"Failed to remove old backup {old_file}: {e}")

    def list_backups(self):
        """List all available backups"""
        backups = []
        for filename in os.listdir(self.backup_dir):
            filepath = os.path.join(self.backup_dir, filename)
            if os.path.isfile(filepath) and filename.startswith(BACKUP_PREFIX) and filename.endswith('.json'):
                stat = os.stat(filepath)
                backups.append({
                    'filename': filename,
                    'size': stat.st_size,
                    'created': datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat(),
                })

        # Sort by creation time (newest first)
        backups.sort(key=lambda x: x['created'], reverse=True)
        return backups

    def delete_backup(self, filename):
        """Delete a specific backup file"""
        filepath = self._backup_path(filename)
        if os.path.exists(filepath):
            os.remove(filepath)
            logger.info(f"Backup deleted: {filename}")
            return True
        logger.error(f"Backup file not found for deletion: {filename}")
        return False
