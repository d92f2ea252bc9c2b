# coding: utf-8
import contextlib

import redis

from differance.config import (
    IPAM_REDIS_URL,
    IPAM_REDIS_POOL_SIZE,
    IPAM_REDIS_SOCKET_TIMEOUT,
)
from differance.errors import StoreUnavailable


def get_redis_client(url=None, max_connections=None):
    pool = redis.ConnectionPool.from_url(
        url or IPAM_REDIS_URL,
        max_connections=max_connections or IPAM_REDIS_POOL_SIZE,
        socket_timeout=IPAM_REDIS_SOCKET_TIMEOUT,
        decode_responses=True,
    )
    return redis.Redis(connection_pool=pool)


@contextlib.contextmanager
def store_errors():
    """unreachable redis is reported, caller may try again later"""
    try:
        yield
    except (redis.ConnectionError, redis.TimeoutError) as e:
        raise StoreUnavailable('redis unavailable: %s' % e) from e
