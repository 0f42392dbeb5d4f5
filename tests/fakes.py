"""
In-memory stand-ins for Redis used by the test suite.
"""
import fnmatch

from redis.exceptions import ConnectionError as RedisConnectionError


class FakeRedis:
    """Implements the subset of redis.Redis the usage cache calls."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def get(self, key):
        return self.store.get(key)

    def eval(self, script, numkeys, *args):
        # Mirrors the set-if-higher script used by UsageCache.set
        key, value, ttl = args[0], int(args[1]), int(args[2])
        current = self.store.get(key)
        self.ttls[key] = ttl
        if current is None or int(current) < value:
            self.store[key] = str(value)
            return 1
        return 0

    def delete(self, *keys):
        deleted = 0
        for key in keys:
            if key in self.store:
                del self.store[key]
                self.ttls.pop(key, None)
                deleted += 1
        return deleted

    def scan_iter(self, match=None, count=None):
        return [key for key in list(self.store) if match is None or fnmatch.fnmatch(key, match)]

    def ping(self):
        return True


class FailingRedis:
    """Every call fails the way an unreachable Redis server does."""

    def _fail(self, *args, **kwargs):
        raise RedisConnectionError("Connection refused")

    get = eval = delete = scan_iter = ping = _fail
