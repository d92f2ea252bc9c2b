# coding: utf-8

from differance.config import IPAM_POOL_DIR


def get_storage(source, pool_dir=None, rds=None):
    if source == 'file':
        from differance.storage.file import YAMLFileStorage
        return YAMLFileStorage(pool_dir or IPAM_POOL_DIR)
    elif source == 'redis':
        from differance.storage.redis import RedisStorage
        return RedisStorage(rds)
    raise ValueError('Pool source must be either file or redis, got %r' % (source,))
