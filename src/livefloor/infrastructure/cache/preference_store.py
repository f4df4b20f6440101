from __future__ import annotations

from livefloor.application.ports.preferences import PreferenceStore
from livefloor.infrastructure.cache.redis_client import get_redis_client

_KEY_PREFIX = "livefloor:pref:"


class RedisPreferenceStore(PreferenceStore):
    def __init__(self, timeout_seconds: float = 1.0) -> None:
        self._timeout_seconds = timeout_seconds

    def get(self, key: str) -> str | None:
        value = get_redis_client(timeout_seconds=self._timeout_seconds).get(_KEY_PREFIX + key)
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def set(self, key: str, value: str) -> None:
        get_redis_client(timeout_seconds=self._timeout_seconds).set(
            name=_KEY_PREFIX + key,
            value=value,
        )


class InMemoryPreferenceStore(PreferenceStore):
    """Process-local preferences, used when Redis is not configured."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
