import base64
import logging
from typing import Any, Dict

import requests

from gameshelf.cache import ExpiringCache
from gameshelf.constants import IGDB_CACHE_PREFIX
from gameshelf.exceptions import (
    AuthenticationException,
    GameShelfException,
    IGDBException,
    NotConfiguredException,
)

logger = logging.getLogger('main')


def make_cache_key(endpoint: str, query: str) -> str:
    encoded = base64.b64encode(query.encode('utf-8')).decode('ascii')
    return f"{IGDB_CACHE_PREFIX}{endpoint}_{encoded}"


class IGDBClient:
    """Client for IGDB API (via Twitch)"""

    def __init__(self, auth, cache: ExpiringCache = None):
        self.auth = auth
        settings = auth.igdb_settings
        self.base_url = settings.get('api_url', 'https://api.igdb.com/v4').rstrip('/')
        self.timeout = settings.get('timeout', 10)
        self.cache_ttl = settings.get('cache_ttl')
        self.cache = cache or ExpiringCache()
        self.session = requests.Session()

    def query(self, endpoint: str, query: str, use_cache: bool = True) -> Any:
        """
        Run an Apicalypse query against an IGDB endpoint.

        A 401 response clears the cached token so the next call
        re-authenticates.
        """
        if not endpoint or not query:
            logger.error("IGDB query called without endpoint or query")
            return []

        cache_key = make_cache_key(endpoint, query)
        if use_cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug(f"IGDB cache hit for {endpoint}")
                return cached

        client_id = self.auth.resolve_credentials()['clientId']
        if not client_id:
            raise NotConfiguredException()
        token = self.auth.get_token()

        headers = {
            "Accept": "application/json",
            "Client-ID": client_id,
            "Authorization": f"Bearer {token}",
        }
        try:
            response = self.session.post(
                f"{self.base_url}/{endpoint}", headers=headers, data=query, timeout=self.timeout)
        except requests.RequestException as e:
            raise IGDBException(f"IGDB request to {endpoint} failed: {e}") from e

        if response.status_code == 401:
            logger.info("IGDB rejected the token, clearing it")
            self.auth.clear_token()
            raise AuthenticationException()

        try:
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise IGDBException(f"IGDB request to {endpoint} failed: {e}") from e

        if use_cache:
            self.cache.set(cache_key, data, ttl=self.cache_ttl)
        return data

    def check_connection(self) -> Dict[str, Any]:
        """Try a minimal query and report whether the API answered"""
        if not self.auth.is_configured():
            return {'connected': False, 'message': 'IGDB API credentials are not configured'}
        try:
            self.query('platforms', 'fields name; limit 1;', use_cache=False)
        except GameShelfException as e:
            return {'connected': False, 'message': e.message}
        return {'connected': True, 'message': 'IGDB API connected successfully'}

    def clear_cache(self) -> int:
        return self.cache.clear_pattern(IGDB_CACHE_PREFIX)
