# coding: utf-8
import json

from differance.clients import store_errors
from differance.config import IPAM_NETWORKIP_KEY
from differance.errors import DecodeError, PoolNotFound
from differance.ipam.structure import NetworkIP
from differance.storage.base import BaseNetworkStorage, split_namespaced_name


class RedisStorage(BaseNetworkStorage):
    """NetworkIPs as JSON, one redis hash per namespace keyed by name"""

    def __init__(self, redis, key_fmt=IPAM_NETWORKIP_KEY):
        self._client = redis
        self._key_fmt = key_fmt

    def get(self, namespaced_name):
        namespace, name = split_namespaced_name(namespaced_name)
        with store_errors():
            raw = self._client.hget(self._key_fmt % namespace, name)
        if raw is None:
            raise PoolNotFound('cannot find networkip %s/%s' % (namespace, name))
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise DecodeError('networkip %s/%s is not valid JSON: %s' % (namespace, name, e))
        return NetworkIP.from_dict(data, namespace=namespace)

    def write(self, networkip):
        with store_errors():
            return self._client.hset(self._key_fmt % networkip.namespace, networkip.name,
                    json.dumps(networkip.to_dict()))

    def list(self, namespace):
        with store_errors():
            keys = self._client.hkeys(self._key_fmt % namespace)
        return sorted(self._decode(k) for k in keys)

    def delete(self, namespaced_name):
        namespace, name = split_namespaced_name(namespaced_name)
        with store_errors():
            return self._client.hdel(self._key_fmt % namespace, name)

    @staticmethod
    def _decode(value):
        return value.decode('utf-8') if isinstance(value, bytes) else value
