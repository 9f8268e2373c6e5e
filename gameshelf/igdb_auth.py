"""
IGDB credential and bearer-token lifecycle (Twitch client-credentials grant).

The token lives in two places: an in-process ExpiringCache for fast reuse
and the ``igdb_access_token`` / ``igdb_token_expiry`` secure slots so it
survives restarts. A token is only reused while its expiry minus a
five-minute safety margin is still ahead.
"""
import logging
import time
from typing import Callable, Dict, Optional

import requests

from gameshelf.cache import ExpiringCache
from gameshelf.constants import (
    SLOT_ACCESS_TOKEN,
    SLOT_CLIENT_ID,
    SLOT_CLIENT_SECRET,
    SLOT_TOKEN_EXPIRY,
    TOKEN_SAFETY_MARGIN,
)
from gameshelf.exceptions import AuthenticationException, NotConfiguredException, ValidationException
from gameshelf.settings import get_igdb_settings
from gameshelf.utils import mask_value

logger = logging.getLogger('main')

TOKEN_CACHE_KEY = 'igdb_access_token'


class IGDBAuth:
    def __init__(self, secure_store, igdb_settings: Dict = None, cache: ExpiringCache = None,
                 clock: Callable[[], float] = time.time):
        self.secure_store = secure_store
        self.igdb_settings = igdb_settings if igdb_settings is not None else get_igdb_settings()
        self.clock = clock
        self.cache = cache or ExpiringCache(clock=clock)

    # Credentials
    def get_credentials(self) -> Dict[str, Optional[str]]:
        """User-saved credentials only (what the settings screen edits)"""
        return {
            'clientId': self.secure_store.get(SLOT_CLIENT_ID),
            'clientSecret': self.secure_store.get(SLOT_CLIENT_SECRET),
        }

    def resolve_credentials(self) -> Dict[str, Optional[str]]:
        """Effective credentials: user-saved values win over configured defaults"""
        saved = self.get_credentials()
        return {
            'clientId': saved['clientId'] or self.igdb_settings.get('client_id') or None,
            'clientSecret': saved['clientSecret'] or self.igdb_settings.get('client_secret') or None,
        }

    def is_configured(self) -> bool:
        credentials = self.resolve_credentials()
        return bool(credentials['clientId'] and credentials['clientSecret'])

    def save_credentials(self, client_id: str, client_secret: str):
        client_id = (client_id or '').strip()
        client_secret = (client_secret or '').strip()
        if not client_id or not client_secret:
            raise ValidationException("Client ID and Client Secret are both required")
        self.secure_store.save(SLOT_CLIENT_ID, client_id)
        self.secure_store.save(SLOT_CLIENT_SECRET, client_secret)
        # A token issued for other credentials must not be reused
        self.clear_token()
        logger.info(f"IGDB credentials saved for client {mask_value(client_id)}")

    def delete_credentials(self):
        self.secure_store.delete(SLOT_CLIENT_ID)
        self.secure_store.delete(SLOT_CLIENT_SECRET)
        self.clear_token()
        logger.info("IGDB credentials removed")

    # Token
    def _stored_token(self) -> Optional[str]:
        token = self.secure_store.get(SLOT_ACCESS_TOKEN)
        expiry = self.secure_store.get(SLOT_TOKEN_EXPIRY)
        if not token or not expiry:
            return None
        try:
            usable_until = float(expiry) - TOKEN_SAFETY_MARGIN
        except ValueError:
            logger.warning("Stored IGDB token expiry is invalid, ignoring token")
            return None
        remaining = usable_until - self.clock()
        if remaining <= 0:
            logger.debug("Stored IGDB token expired")
            return None
        self.cache.set(TOKEN_CACHE_KEY, token, ttl=remaining)
        return token

    def get_token(self) -> str:
        """A valid bearer token, requesting a new one when needed"""
        token = self.cache.get(TOKEN_CACHE_KEY)
        if token:
            return token

        token = self._stored_token()
        if token:
            logger.debug("Using stored IGDB token")
            return token

        credentials = self.resolve_credentials()
        if not credentials['clientId'] or not credentials['clientSecret']:
            raise NotConfiguredException()

        logger.info("Requesting new IGDB access token")
        now = self.clock()
        params = {
            "client_id": credentials['clientId'],
            "client_secret": credentials['clientSecret'],
            "grant_type": "client_credentials",
        }
        try:
            response = requests.post(
                self.igdb_settings.get('auth_url'), params=params, timeout=self.igdb_settings.get('timeout', 10))
            response.raise_for_status()
            data = response.json()
            access_token = data["access_token"]
            expires_in = float(data["expires_in"])
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            logger.error(f"IGDB auth failed: {e}")
            raise AuthenticationException() from e

        if not access_token:
            raise AuthenticationException("Token missing from the IGDB auth response")

        expiry = now + expires_in
        self.secure_store.save(SLOT_ACCESS_TOKEN, access_token)
        self.secure_store.save(SLOT_TOKEN_EXPIRY, str(expiry))
        ttl = expiry - TOKEN_SAFETY_MARGIN - now
        if ttl > 0:
            self.cache.set(TOKEN_CACHE_KEY, access_token, ttl=ttl)
        logger.info(f"IGDB token obtained, expires in {int(expires_in)}s")
        return access_token

    def clear_token(self):
        """Forget the token so the next call re-authenticates"""
        self.cache.delete(TOKEN_CACHE_KEY)
        self.secure_store.delete(SLOT_ACCESS_TOKEN)
        self.secure_store.delete(SLOT_TOKEN_EXPIRY)
        logger.debug("IGDB token cleared")
