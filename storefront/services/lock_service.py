import uuid
from contextlib import contextmanager

import redis
from redis.exceptions import RedisError

from storefront.domain.errors import ConflictError, TransactionAbortedError
from storefront.utils.retry import redis_retry, poll_until_true
from storefront.utils.settings import REDIS_URL, MERGE_LOCK_TTL_SECONDS, MERGE_LOCK_WAIT_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#compare-and-delete in lua, redis runs the script as one uninterruptible step
#so nobody can slip in between GET and DEL and we never drop someone else's lock
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


def merge_lock_key(user_id: int) -> str:
    return f"cart-merge:user:{user_id}:lock"


class LockService:
    """
    Distributed mutual exclusion on top of redis:
    - acquire: SET key token NX EX ttl
    - release: atomic compare-and-delete (lua)
    - user_merge_lock: per-user scope for the guest cart merge
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @redis_retry()
    def acquire(self, key: str, token: str, ttl: int) -> bool:
        #SET cart-merge:user:1:lock "<token>" NX EX 30
        return bool(self.redis.set(name=key, value=token, nx=True, ex=ttl))

    @redis_retry()
    def release(self, key: str, token: str) -> bool:
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    def acquire_with_wait(self, key: str, token: str, ttl: int, wait: float) -> bool:
        return poll_until_true(wait)(self.acquire)(key, token, ttl)

    @contextmanager
    def user_merge_lock(
        self,
        user_id: int,
        ttl: int = MERGE_LOCK_TTL_SECONDS,
        wait: float = MERGE_LOCK_WAIT_SECONDS,
    ):
        key = merge_lock_key(user_id)
        token = uuid.uuid4().hex

        try:
            acquired = self.acquire_with_wait(key, token, ttl, wait)
        except RedisError as e:
            logger.error(f"Redis unavailable while locking {key}: {e}")
            raise TransactionAbortedError("Lock backend unavailable") from e

        if not acquired:
            logger.warning(f"Could not acquire {key} within {wait}s")
            raise ConflictError(f"Cart merge already in progress for user {user_id}")

        logger.info(f"Acquired {key}")
        try:
            yield token
        finally:
            try:
                if not self.release(key, token):
                    #ttl ran out while we were working, someone else may hold it now
                    logger.warning(f"Lock {key} expired before release")
            except RedisError as e:
                logger.warning(f"Failed to release {key}, it will expire in {ttl}s: {e}")
