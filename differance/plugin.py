# coding: utf-8

import json
import logging

from differance.cni import bridge
from differance.cni.ipnet import IPNet
from differance.cni.skel import NetConf
from differance.cni.types import DNS, IPConfig, Result
from differance.clients import get_redis_client
from differance.config import (
    IPAM_DEBUG,
    IPAM_POOL_DIR,
    IPAM_POOL_SOURCE,
    IPAM_REDIS_URL,
)
from differance.errors import (
    AddressError,
    ConsistencyError,
    DecodeError,
    IPAMError,
    PoolAlreadyInitialized,
    PoolCountMismatch,
)
from differance.ipam.bitmap import BitmapIPAM
from differance.log import init_logging
from differance.storage import get_storage

_log = logging.getLogger(__name__)


class IPAMConfig(object):
    """the `ipam` section of the network configuration"""

    def __init__(self, network, redis_url=IPAM_REDIS_URL, pool_source=IPAM_POOL_SOURCE,
            pool_dir=IPAM_POOL_DIR, debug_file='', name='', type=''):
        self.network = network
        self.redis_url = redis_url
        self.pool_source = pool_source
        self.pool_dir = pool_dir
        self.debug_file = debug_file
        self.name = name
        self.type = type

    @classmethod
    def from_dict(cls, data):
        network = data.get('network')
        if not network or not isinstance(network, str):
            raise DecodeError('ipam.network is required')
        return cls(
            network,
            redis_url=data.get('redis_ip') or IPAM_REDIS_URL,
            pool_source=data.get('pool_source') or IPAM_POOL_SOURCE,
            pool_dir=data.get('pool_dir') or IPAM_POOL_DIR,
            debug_file=data.get('debug_file') or '',
            name=data.get('name') or '',
            type=data.get('type') or '',
        )


def get_owner_payload(args):
    return '%s/%s %s' % (
        args.get('K8S_POD_NAMESPACE', 'UnknownNamespace'),
        args.get('K8S_POD_NAME', 'UnknownPodName'),
        args.get('K8S_POD_INFRA_CONTAINER_ID', 'UnknownContainerID'),
    )


def ensure_pools(ipam):
    """initialize a NetworkIP on first use, refuse a half initialized one"""
    pools = ipam.networkip.ip_allocations
    count = ipam.count_initialized_pools(pools)
    if count == 0:
        try:
            ipam.initialize_pools(pools)
        except PoolAlreadyInitialized:
            # a concurrent ADD initialized every pool first
            _log.debug('%s initialized concurrently', ipam.networkip.namespaced_name)
    elif count != len(pools):
        raise PoolCountMismatch(ipam.networkip.namespaced_name, len(pools), count)


def cmd_add(netconf, cmd_args, ipam):
    # nothing is allocated for a result that cannot be written
    bridge.check_version(netconf.cni_version)
    prev_result = netconf.get_current_result()
    ensure_pools(ipam)
    owner = get_owner_payload(cmd_args.args)

    ips = []
    for pool in ipam.networkip.ip_allocations:
        try:
            ip = ipam.allocate(pool, owner=owner)
        except IPAMError:
            # allocations already made for this request are kept
            if ips:
                _log.warning('allocation from %s failed, keeping %s for %s',
                        ipam.pool_key(pool), ', '.join(str(i.address) for i in ips), owner)
            raise
        ips.append(IPConfig(IPNet(ip, pool.subnet.prefixlen), gateway=pool.gateway))

    result = Result(
        prev_result.cni_version,
        interfaces=prev_result.interfaces,
        ips=ips,
        routes=[r for pool in ipam.networkip.ip_allocations for r in pool.get_cni_routes()],
        dns=DNS(),
    )
    return netconf.get_result_output(result)


def cmd_check(netconf, cmd_args, ipam):
    # TODO: compare prevResult addresses against the bitmap and owner records
    return netconf.get_result_output(netconf.get_current_result())


def cmd_del(netconf, cmd_args, ipam):
    result = netconf.get_current_result()
    for ipc in result.ips:
        network = ipc.address.network_address()
        pool = ipam.networkip.find_allocation(network)
        if pool is None:
            _log.warning('no allocation of %s matches %s, skipped',
                    ipam.networkip.namespaced_name, ipc.address)
            continue
        try:
            ipam.release(pool, ipc.address.ip)
        except (AddressError, ConsistencyError) as e:
            # DEL must not get stuck on one address
            _log.warning('cannot release %s: %s', ipc.address, e)


COMMAND_HANDLERS = {
    'ADD': cmd_add,
    'CHECK': cmd_check,
    'DEL': cmd_del,
}


def version_output():
    return json.dumps({
        'cniVersion': bridge.LATEST_VERSION,
        'supportedVersions': list(bridge.SUPPORTED_VERSIONS),
    }, separators=(',', ':')).encode('utf-8')


class Plugin(object):

    def __init__(self, cmd_args, rds=None, storage=None):
        self.cmd_args = cmd_args
        self.netconf = None
        self.ipam_conf = None
        self._rds = rds
        self._storage = storage

    @property
    def cni_version(self):
        return self.netconf.cni_version if self.netconf else ''

    def _get_rds(self):
        if self._rds is None:
            try:
                self._rds = get_redis_client(self.ipam_conf.redis_url)
            except ValueError as e:
                raise IPAMError('invalid redis url %r: %s' % (self.ipam_conf.redis_url, e))
        return self._rds

    def _get_storage(self):
        if self._storage is None:
            rds = self._get_rds() if self.ipam_conf.pool_source == 'redis' else None
            self._storage = get_storage(self.ipam_conf.pool_source,
                    pool_dir=self.ipam_conf.pool_dir, rds=rds)
        return self._storage

    def run(self, command):
        """returns the bytes to print on stdout, or None"""
        if command == 'VERSION':
            return version_output()

        handler = COMMAND_HANDLERS.get(command)
        if handler is None:
            return ('unknown command: %s' % command).encode('utf-8')

        self.netconf = NetConf.from_json(self.cmd_args.stdin_data)
        self.ipam_conf = IPAMConfig.from_dict(self.netconf.ipam)
        if self.ipam_conf.debug_file:
            try:
                init_logging(self.ipam_conf.debug_file, IPAM_DEBUG)
            except OSError as e:
                raise IPAMError('cannot open debug file %s: %s' % (self.ipam_conf.debug_file, e))

        _log.info('%s container %s ifname %s network %s', command,
                self.cmd_args.container_id, self.cmd_args.ifname, self.ipam_conf.network)
        try:
            networkip = self._get_storage().get(self.ipam_conf.network)
        except ValueError as e:
            raise DecodeError(str(e))
        ipam = BitmapIPAM(self._get_rds(), networkip)
        return handler(self.netconf, self.cmd_args, ipam)
