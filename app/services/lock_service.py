import uuid
from contextlib import contextmanager
from functools import lru_cache

import redis

from app.domain.errors import ResourceBusy
from app.utils.logging import get_logger
from app.utils.retry import poll_until_true, redis_retry
from app.utils.settings import LOCK_TTL_SECONDS, LOCK_WAIT_SECONDS, REDIS_URL

logger = get_logger(__name__)

#LUA porównaj i usuń, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje atomowo przez lua, skrypt działa jako jedna nieprzerywalna operacja
#nie można wcisnąć się między GET a DEL, więc tu jest get + porównanie + del wszystko naraz


def product_lock_key(product_id: int) -> str:
    return f"product:{product_id}:lock"


def order_lock_key(order_id: int) -> str:
    return f"order:{order_id}:lock"


class LockService:
    """
    -mutex na produkt / zamówienie (SET NX EX)
    -zwalnianie locka tylko przez właściciela (lua)
    -czekanie na lock z timeoutem (tenacity)
    """

    def __init__(
        self,
        url: str | None = None,
        client: redis.Redis | None = None,
        ttl: int = LOCK_TTL_SECONDS,
        wait_seconds: float = LOCK_WAIT_SECONDS,
    ):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.ttl = ttl
        self.wait_seconds = wait_seconds

    @redis_retry()
    def try_acquire(self, key: str, token: str) -> bool:
        #SET product:1:lock "<token>" NX EX 10
        return bool(
            self.redis.set(
                name=key,
                value=token,
                nx=True, #tylko jeśli klucz nie istnieje
                ex=self.ttl, #wygasa sam, gdyby proces padł z lockiem
            )
        )

    @redis_retry()
    def release(self, key: str, token: str) -> bool:
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    def acquire(self, key: str, token: str) -> bool:
        """Czeka na lock maksymalnie wait_seconds. Zwraca False po timeoucie."""
        return poll_until_true(self.wait_seconds)(self.try_acquire)(key, token)

    @contextmanager
    def hold(self, keys):
        """
        Bierze wszystkie locki (posortowane, żeby uniknąć zakleszczeń)
        i zwalnia je przy wyjściu, również po wyjątku.
        """
        token = uuid.uuid4().hex
        ordered = sorted(set(keys))
        taken = []
        try:
            for key in ordered:
                if not self.acquire(key, token):
                    logger.warning(f"Lock {key} busy for more than {self.wait_seconds}s")
                    raise ResourceBusy(
                        "Zasób jest chwilowo zajęty przez inną operację, spróbuj ponownie"
                    )
                taken.append(key)
                logger.info(f"Acquire lock {key}")
            yield token
        finally:
            for key in reversed(taken):
                try:
                    self.release(key, token)
                    logger.info(f"Release lock {key}")
                except redis.RedisError as e:
                    # lock i tak wygaśnie po ttl
                    logger.error(f"Failed to release lock {key}: {e}")

    def hold_checkout(self, order_id: int, product_ids):
        keys = [order_lock_key(order_id)] + [product_lock_key(pid) for pid in product_ids]
        return self.hold(keys)


@lru_cache
def get_lock_service() -> LockService:
    return LockService()
