# coding: utf-8

import os


def get_env(name, default=None, force_type=None):
    """get value from os.environ, if not force_type, infer from default"""
    res = os.getenv(name, default)
    if force_type is not None:
        return force_type(res)
    if default is not None:
        return _cast(default.__class__, res)
    return res


def _cast(klass, value):
    # bool('False') is True
    if klass is bool and isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return klass(value)


IPAM_REDIS_URL = get_env('IPAM_REDIS_URL', 'redis://127.0.0.1:6379/0')
IPAM_REDIS_POOL_SIZE = get_env('IPAM_REDIS_POOL_SIZE', 4)
IPAM_REDIS_SOCKET_TIMEOUT = get_env('IPAM_REDIS_SOCKET_TIMEOUT', 5.0)

IPAM_POOL_SOURCE = get_env('IPAM_POOL_SOURCE', 'file')
IPAM_POOL_DIR = get_env('IPAM_POOL_DIR', '/etc/cni/net.d/networkips')
IPAM_DEFAULT_NAMESPACE = get_env('IPAM_DEFAULT_NAMESPACE', 'default')
IPAM_NETWORKIP_KEY = get_env('IPAM_NETWORKIP_KEY', 'differance:networkip:%s')

IPAM_DEBUG = get_env('IPAM_DEBUG', False)
IPAM_DEBUG_FILE = get_env('IPAM_DEBUG_FILE', '')
