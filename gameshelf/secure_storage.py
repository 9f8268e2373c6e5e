"""
Secure slots for API credentials and tokens.

Values go to a private secrets directory (one owner-only file per slot)
when the platform supports file permissions. Otherwise they are kept in
ordinary storage encrypted with Fernet, keyed from the application's
persistent secret key.
"""
import base64
import hashlib
import logging
import os
from abc import ABC, abstractmethod
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from gameshelf.constants import CONFIG_DIR, SECRET_KEY_FILE, SECRETS_DIR
from gameshelf.exceptions import SecureStorageException
from gameshelf.utils import get_or_create_secret_key, read_json, safe_write_json

logger = logging.getLogger('main')


class SecretBackend(ABC):
    name = "base"

    @abstractmethod
    def is_available(self) -> bool:
        pass

    @abstractmethod
    def set(self, key: str, value: str):
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def delete(self, key: str):
        pass


class PrivateFileBackend(SecretBackend):
    """One file per slot, readable by the owner only"""
    name = "private-files"

    def __init__(self, secrets_dir: str = SECRETS_DIR):
        self.secrets_dir = secrets_dir

    def is_available(self) -> bool:
        if os.name != 'posix':
            return False
        try:
            os.makedirs(self.secrets_dir, mode=0o700, exist_ok=True)
            os.chmod(self.secrets_dir, 0o700)
        except OSError as e:
            logger.warning(f"Secrets directory unavailable: {e}")
            return False
        return True

    def _path(self, key: str) -> str:
        if not key or os.path.basename(key) != key:
            raise SecureStorageException(f"Invalid secure slot name: {key}")
        return os.path.join(self.secrets_dir, key)

    def set(self, key: str, value: str):
        path = self._path(key)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(value)
        os.chmod(path, 0o600)

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def delete(self, key: str):
        path = self._path(key)
        if os.path.exists(path):
            os.remove(path)


class EncryptedFileBackend(SecretBackend):
    """Fernet-encrypted values in a plain JSON file"""
    name = "encrypted-file"

    def __init__(self, path: str = None, secret_key_file: str = SECRET_KEY_FILE):
        self.path = path or os.path.join(CONFIG_DIR, 'secure_values.json')
        self.secret_key_file = secret_key_file
        self._fernet = None

    def is_available(self) -> bool:
        return True

    def _cipher(self) -> Fernet:
        if self._fernet is None:
            secret = get_or_create_secret_key(self.secret_key_file)
            digest = hashlib.sha256(secret.encode('utf-8')).digest()
            self._fernet = Fernet(base64.urlsafe_b64encode(digest))
        return self._fernet

    def set(self, key: str, value: str):
        values = read_json(self.path, default={}) or {}
        values[f"encrypted_{key}"] = self._cipher().encrypt(value.encode('utf-8')).decode('ascii')
        safe_write_json(self.path, values)

    def get(self, key: str) -> Optional[str]:
        values = read_json(self.path, default={}) or {}
        token = values.get(f"encrypted_{key}")
        if token is None:
            return None
        return self._cipher().decrypt(token.encode('ascii')).decode('utf-8')

    def delete(self, key: str):
        values = read_json(self.path, default={}) or {}
        if values.pop(f"encrypted_{key}", None) is not None:
            safe_write_json(self.path, values)


class SecureStore:
    def __init__(self, primary: SecretBackend = None, fallback: SecretBackend = None):
        primary = primary or PrivateFileBackend()
        fallback = fallback or EncryptedFileBackend()
        if primary.is_available():
            self.backend = primary
        else:
            logger.warning(f"Secure storage '{primary.name}' not available, using '{fallback.name}'")
            self.backend = fallback

    def save(self, key: str, value: str):
        try:
            self.backend.set(key, value)
        except OSError as e:
            raise SecureStorageException(f"Failed to save sensitive data for '{key}': {e}") from e
        logger.info(f"Secure value stored for slot: {key}")

    def get(self, key: str) -> Optional[str]:
        try:
            return self.backend.get(key)
        except (OSError, ValueError, InvalidToken) as e:
            logger.error(f"Failed to read secure value for slot {key}: {e}")
            return None

    def delete(self, key: str):
        try:
            self.backend.delete(key)
        except OSError as e:
            raise SecureStorageException(f"Failed to remove secure value for '{key}': {e}") from e
        logger.info(f"Secure value removed for slot: {key}")
