"""
System configuration store.
Model names and prompt templates live in the Supabase `system_config` table
and are injected into each legal tool through a ConfigProvider.
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional

import requests
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from legal_functions.cache import MISSING, TTLCache

logger = logging.getLogger(__name__)

DEFAULT_MODEL = 'gpt-4.1-2025-04-14'

# Only model names and numeric settings have defaults. Prompt text must be
# configured; a missing prompt is a ConfigurationError.
DEFAULT_CONFIGS = {
    'research_ai_model': DEFAULT_MODEL,
    'analysis_ai_model': DEFAULT_MODEL,
    'drafting_ai_model': DEFAULT_MODEL,
    'strategy_ai_model': 'o3-2025-04-16',
    'agent_creation_ai_model': DEFAULT_MODEL,
    'prompt_optimizer_model': DEFAULT_MODEL,
    'organize_form_ai_model': DEFAULT_MODEL,
    'clause_improver_model': 'gpt-4o-mini',
    'openai_model': DEFAULT_MODEL,
    'system_timeout_seconds': '30',
    'max_retry_attempts': '3',
    'openai_api_timeout': '30',
}


class ConfigurationError(RuntimeError):
    """Raised when a required system_config setting is missing."""

    def __init__(self, config_key: str):
        self.config_key = config_key
        super().__init__(f"Missing configuration: {config_key}")


class ConfigLookupError(RuntimeError):
    """Raised when the config store could not be read (as opposed to a missing row)."""


class ConfigProvider(ABC):
    """Read access to system_config values."""

    @abstractmethod
    def get(self, config_key: str) -> Optional[str]:
        """Return the configured value, or None when absent."""

    def lookup(self, config_key: str) -> Optional[str]:
        """Like get(), but raises ConfigLookupError when the store is unreachable."""
        return self.get(config_key)

    def get_many(self, config_keys: Iterable[str]) -> Dict[str, Optional[str]]:
        return {key: self.get(key) for key in config_keys}

    def model(self, config_key: str, default: Optional[str] = None) -> str:
        """
        Resolve a model setting, falling back to a default model name.

        Args:
            config_key: system_config key holding the model name.
            default: Fallback; DEFAULT_CONFIGS entry or DEFAULT_MODEL when omitted.
        """
        value = self.get(config_key)
        if value:
            return value.strip()

        fallback = default or DEFAULT_CONFIGS.get(config_key, DEFAULT_MODEL)
        logger.info(f"No model configured for {config_key}, using default: {fallback}")
        return fallback

    def require(self, config_key: str) -> str:
        """
        Resolve a setting that has no safe default (prompt text).

        Raises:
            ConfigurationError: If the setting is missing or blank.
        """
        value = self.get(config_key)
        if not value or not value.strip():
            logger.error(f"{config_key} not configured in system_config")
            raise ConfigurationError(config_key)
        return value


class StaticConfigProvider(ConfigProvider):
    """Dictionary-backed provider for local runs and tests."""

    def __init__(self, values: Optional[Dict[str, str]] = None):
        self._values = dict(values or {})

    def get(self, config_key: str) -> Optional[str]:
        return self._values.get(config_key)

    def set(self, config_key: str, value: str) -> None:
        self._values[config_key] = value


class SupabaseConfigProvider(ConfigProvider):
    """Reads system_config rows through the Supabase PostgREST API."""

    def __init__(self, supabase_url: str, service_key: str, table: str = 'system_config', session=None, timeout=(5, 15)):
        if not supabase_url or not service_key:
            raise ValueError("Supabase URL and service role key are required")

        self._rest_url = f"{supabase_url.rstrip('/')}/rest/v1/{table}"
        self._service_key = service_key
        self._session = session or requests.Session()
        self._timeout = timeout

    def _headers(self) -> dict:
        return {
            'apikey': self._service_key,
            'Authorization': f'Bearer {self._service_key}',
            'Accept': 'application/json',
        }

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((requests.HTTPError,)),
        reraise=True
    )
    def _fetch_rows(self, key_filter: str) -> list:
        """
        Fetch config rows matching a PostgREST filter.

        Raises:
            requests.HTTPError: On 429/503 (retried by tenacity) and other HTTP errors.
        """
        response = self._session.get(
            self._rest_url,
            headers=self._headers(),
            params={
                'select': 'config_key,config_value',
                'config_key': key_filter,
            },
            timeout=self._timeout
        )

        if response.status_code in (429, 503):
            logger.warning(f"Received {response.status_code} from Supabase, will retry")

        response.raise_for_status()
        return response.json()

    def lookup(self, config_key: str) -> Optional[str]:
        try:
            rows = self._fetch_rows(f'eq.{config_key}')
        except (requests.RequestException, ValueError) as e:
            raise ConfigLookupError(f"Error fetching system config for key '{config_key}': {e}") from e

        if not rows:
            logger.debug(f"No config found for {config_key}")
            return None

        return rows[0].get('config_value')

    def get(self, config_key: str) -> Optional[str]:
        try:
            return self.lookup(config_key)
        except ConfigLookupError as e:
            logger.warning(str(e))
            return None

    def get_many(self, config_keys: Iterable[str]) -> Dict[str, Optional[str]]:
        keys = list(config_keys)
        result = {key: None for key in keys}
        if not keys:
            return result

        try:
            rows = self._fetch_rows(f"in.({','.join(keys)})")
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Error fetching multiple system configs: {e}")
            return result

        for row in rows:
            if row.get('config_key') in result:
                result[row['config_key']] = row.get('config_value')

        return result


class CachedConfigProvider(ConfigProvider):
    """Read-through TTL cache in front of another provider."""

    def __init__(self, inner: ConfigProvider, ttl: int = 300, cache: Optional[TTLCache] = None):
        self._inner = inner
        self._ttl = ttl
        self._cache = cache or TTLCache(default_ttl=ttl)

    def lookup(self, config_key: str) -> Optional[str]:
        cached = self._cache.get(config_key, MISSING)
        if cached is not MISSING:
            return cached

        # Store failures propagate uncached; found and absent values are cached
        value = self._inner.lookup(config_key)
        self._cache.set(config_key, value, self._ttl)
        return value

    def get(self, config_key: str) -> Optional[str]:
        try:
            return self.lookup(config_key)
        except ConfigLookupError as e:
            logger.warning(f"{e} (not cached)")
            return None

    def invalidate(self, config_key: Optional[str] = None) -> None:
        """Drop one cached key, or everything when no key is given."""
        if config_key is None:
            self._cache.clear()
        else:
            self._cache.delete(config_key)
