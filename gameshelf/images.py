import base64
import binascii
import logging
import os
import time
from typing import Optional
from urllib.parse import unquote, urlparse

from gameshelf.constants import IMAGES_DIR

logger = logging.getLogger('main')


def is_remote_url(uri: str) -> bool:
    return uri.startswith('http://') or uri.startswith('https://')


def local_path(uri: str) -> str:
    """Filesystem path for a local image reference (plain path or file:// URI)"""
    if uri.startswith('file://'):
        return unquote(urlparse(uri).path)
    return uri


def image_to_base64(uri: str) -> Optional[str]:
    """
    Read a local image as base64.

    Remote images are not downloaded; they return None, as does any file
    that cannot be read.
    """
    if not uri:
        return None
    if is_remote_url(uri):
        logger.info(f"Skipping remote image: {uri}")
        return None
    try:
        with open(local_path(uri), 'rb') as f:
            return base64.b64encode(f.read()).decode('ascii')
    except OSError as e:
        logger.error(f"Failed to read image {uri}: {e}")
        return None


def base64_to_image(payload: str, item_id: str, images_dir: str = IMAGES_DIR) -> str:
    """Write a base64 image for ``item_id`` and return the new file path"""
    if not item_id:
        raise ValueError("An item id is required to name the restored image")
    data = base64.b64decode(payload, validate=True)
    os.makedirs(images_dir, exist_ok=True)
    path = os.path.join(images_dir, f"{item_id}_{int(time.time() * 1000)}.jpg")
    with open(path, 'wb') as f:
        f.write(data)
    return path


def list_images(images_dir: str = IMAGES_DIR):
    if not os.path.isdir(images_dir):
        return []
    return [name for name in os.listdir(images_dir) if name.endswith('.jpg')]


# Errors writing one restored image may raise
IMAGE_ERRORS = (OSError, binascii.Error, ValueError, TypeError)
