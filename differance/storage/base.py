# coding: utf-8

from differance.config import IPAM_DEFAULT_NAMESPACE
from differance.errors import PoolNotFound


def split_namespaced_name(namespaced_name, default_namespace=None):
    """'ns/name' -> (ns, name), a bare 'name' lives in the default namespace"""
    parts = namespaced_name.split('/')
    if len(parts) == 2:
        return parts[0], parts[1]
    if len(parts) == 1:
        return default_namespace or IPAM_DEFAULT_NAMESPACE, parts[0]
    raise PoolNotFound('cannot find networkip %s' % namespaced_name)


class BaseNetworkStorage(object):

    def get(self, namespaced_name):
        """should return NetworkIP or raise PoolNotFound"""
        raise NotImplementedError()

    def list(self, namespace):
        """names of the NetworkIPs in namespace"""
        raise NotImplementedError()

    def write(self, networkip):
        raise NotImplementedError()

    def delete(self, namespaced_name):
        raise NotImplementedError()
