"""Test doubles for the Redis client."""

import redis


class FakeRedis:
    """Dict-backed stand-in for redis.Redis with decode_responses=True."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    def ping(self) -> bool:
        return True

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> bool:
        self.data[key] = value
        return True

    def delete(self, *keys: str) -> int:
        return sum(1 for key in keys if self.data.pop(key, None) is not None)


class BrokenRedis(FakeRedis):
    """Every call fails as if the server went away."""

    def _fail(self, *args, **kwargs):
        raise redis.exceptions.ConnectionError("Connection refused")

    ping = get = set = delete = _fail
