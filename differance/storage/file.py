# coding: utf-8

import os
import logging

import yaml

from differance.errors import DecodeError, PoolNotFound
from differance.ipam.structure import NetworkIP, NETWORKIP_KIND
from differance.storage.base import BaseNetworkStorage, split_namespaced_name

_log = logging.getLogger(__name__)

MANIFEST_SUFFIXES = ('.yaml', '.yml', '.json')


def load_manifests(path):
    """all NetworkIP documents of one YAML (or JSON) file"""
    try:
        with open(path) as f:
            documents = list(yaml.safe_load_all(f))
    except OSError as e:
        raise PoolNotFound('cannot read %s: %s' % (path, e))
    except yaml.YAMLError as e:
        raise DecodeError('failed to parse %s: %s' % (path, e))

    networkips = []
    for document in documents:
        if not isinstance(document, dict) or document.get('kind') != NETWORKIP_KIND:
            continue
        networkips.append(NetworkIP.from_dict(document))
    return networkips


class YAMLFileStorage(BaseNetworkStorage):
    """read only, NetworkIP manifests in a directory"""

    def __init__(self, pool_dir):
        self.pool_dir = pool_dir

    def _iter_files(self):
        try:
            names = sorted(os.listdir(self.pool_dir))
        except OSError as e:
            raise PoolNotFound('cannot read pool directory %s: %s' % (self.pool_dir, e))
        for name in names:
            if name.startswith('.') or not name.endswith(MANIFEST_SUFFIXES):
                continue
            yield os.path.join(self.pool_dir, name)

    def _iter_networkips(self):
        for path in self._iter_files():
            for networkip in load_manifests(path):
                yield path, networkip

    def get(self, namespaced_name):
        namespace, name = split_namespaced_name(namespaced_name)
        for path, networkip in self._iter_networkips():
            if networkip.namespace == namespace and networkip.name == name:
                _log.debug('networkip %s/%s loaded from %s', namespace, name, path)
                return networkip
        raise PoolNotFound('cannot find networkip %s/%s in %s' % (namespace, name, self.pool_dir))

    def list(self, namespace):
        return sorted(n.name for _, n in self._iter_networkips() if n.namespace == namespace)
