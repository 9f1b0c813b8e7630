# fitcoach/utils/user_lock.py
import logging
import os
import threading
from contextlib import contextmanager

from fitcoach.errors import StorageError

logger = logging.getLogger(__name__)


class _LocalLocks:
    def __init__(self):
        self._locks = {}
        self._guard = threading.Lock()

    def get(self, key):
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock


class UserLock:
    """
    Per-user mutual exclusion around record-then-evaluate:
      - Uses REDIS_URL if available (required for multi-worker)
      - Else falls back to a process-local lock table
    """
    def __init__(self, namespace="fitcoach", timeout_secs=10, wait_secs=5):
        self.ns = namespace
        self.timeout = timeout_secs
        self.wait = wait_secs
        self._redis = None
        self._local = _LocalLocks()

    def init_app(self, app):
        self.timeout = app.config.get("USER_LOCK_TIMEOUT_SECS", self.timeout)
        self.wait = app.config.get("USER_LOCK_WAIT_SECS", self.wait)

        url = app.config.get("REDIS_URL") or os.getenv("REDIS_CONNECTION_STRING")
        self._redis = None
        if url:
            try:
                import redis
                client = redis.Redis.from_url(url, decode_responses=True)
                client.ping()
                self._redis = client
            except Exception as e:
                logger.warning("Redis unavailable (%s), using process-local user locks", e)
                self._redis = None

        app.extensions["user_lock"] = self

    @property
    def distributed(self) -> bool:
        return self._redis is not None

    def _key(self, user_id):
        return f"{self.ns}:{user_id}:adherence-lock"

    @contextmanager
    def hold(self, user_id):
        key = self._key(user_id)

        if self._redis is not None:
            from redis.exceptions import LockError

            lock = self._redis.lock(key, timeout=self.timeout, blocking_timeout=self.wait)
            if not lock.acquire():
                raise StorageError("Another update for this user is still running, try again")
            try:
                yield
            finally:
                try:
                    lock.release()
                except LockError:
                    # lease expired while held; the version check still guards the write
                    logger.warning("User lock %s expired before release", key)
            return

        lock = self._local.get(key)
        if not lock.acquire(timeout=self.wait):
            raise StorageError("Another update for this user is still running, try again")
        try:
            yield
        finally:
            lock.release()
