# coding: utf-8

"""NetworkIP pool configuration, as read from its manifest."""

from netaddr import IPAddress

from differance.cni.ipnet import WIDTH
from differance.cni.types.common import (
    Jsonized,
    Route,
    expect_mapping,
    require,
    decode_ip,
    decode_ipnet,
    decode_str,
    decode_list,
)
from differance.errors import DecodeError

NETWORKIP_KIND = 'NetworkIP'
NETWORKIP_API_VERSION = 'differance.cni.cncf.io/v1alpha1'


class NetworkIPRange(Jsonized):

    def __init__(self, start, end=None):
        self.start = start
        self.end = end

    @classmethod
    def from_dict(cls, data, where='range'):
        if data is None:
            return None
        expect_mapping(data, where)
        return cls(decode_ip(require(data, 'start', where), where + '.start'),
                decode_ip(data.get('end'), where + '.end', optional=True))

    def to_dict(self):
        d = {'start': str(self.start)}
        if self.end is not None:
            d['end'] = str(self.end)
        return d


class IPAllocation(Jsonized):
    """one allocatable range of a NetworkIP, backed by one bitmap"""

    def __init__(self, name, subnet, gateway=None, range=None, exclude=None, route=None):
        self.name = name
        self.subnet = subnet
        self.gateway = gateway
        self.range = range
        self.exclude = list(exclude or [])
        self.route = list(route or [])

    @classmethod
    def from_dict(cls, data, where='ipAllocation'):
        expect_mapping(data, where)
        return cls(
            decode_str(require(data, 'name', where), where + '.name'),
            decode_ipnet(require(data, 'subnet', where), where + '.subnet'),
            gateway=decode_ip(data.get('gateway'), where + '.gateway', optional=True),
            range=NetworkIPRange.from_dict(data.get('range'), where + '.range'),
            exclude=decode_list(data.get('exclude'), where + '.exclude', decode_ip),
            route=decode_list(data.get('route'), where + '.route', Route.from_dict),
        )

    @property
    def baseip(self):
        """address of bit 0: range start, or the first host of the subnet"""
        if self.range is not None:
            return self.range.start
        network = self.subnet.network_address()
        # no reserved network address in IPv6, nor in IPv4 /31 and /32
        if network.version == 6 or WIDTH[network.version] - self.subnet.prefixlen <= 1:
            return network
        return IPAddress(int(network) + 1, network.version)

    @property
    def last_address(self):
        """last address that may be handed out"""
        if self.range is not None and self.range.end is not None:
            return self.range.end
        network = self.subnet.network_address()
        host_bits = WIDTH[network.version] - self.subnet.prefixlen
        last = int(network) + (1 << host_bits) - 1
        # no broadcast address to skip in IPv6, nor in /31 and /32
        if network.version == 4 and host_bits > 1:
            last -= 1
        return IPAddress(last, network.version)

    def network_address(self):
        return self.subnet.network_address()

    def get_cni_routes(self):
        return list(self.route)

    def is_excluded(self, ip):
        return IPAddress(ip) in self.exclude

    def to_dict(self):
        d = {'name': self.name, 'subnet': str(self.subnet)}
        if self.gateway is not None:
            d['gateway'] = str(self.gateway)
        if self.range is not None:
            d['range'] = self.range.to_dict()
        if self.exclude:
            d['exclude'] = [str(ip) for ip in self.exclude]
        if self.route:
            d['route'] = [r.to_dict() for r in self.route]
        return d


class NetworkIP(Jsonized):

    def __init__(self, namespace, name, ip_allocations=None):
        self.namespace = namespace
        self.name = name
        self.ip_allocations = list(ip_allocations or [])

    @classmethod
    def from_dict(cls, data, namespace='default'):
        """data is a NetworkIP manifest: metadata + spec.ipAllocations"""
        expect_mapping(data, 'networkip')
        kind = data.get('kind', NETWORKIP_KIND)
        if kind != NETWORKIP_KIND:
            raise DecodeError('expected kind %s, got %r' % (NETWORKIP_KIND, kind))

        metadata = expect_mapping(data.get('metadata') or {}, 'networkip.metadata')
        spec = expect_mapping(data.get('spec') or {}, 'networkip.spec')
        name = decode_str(require(metadata, 'name', 'networkip.metadata'), 'networkip.metadata.name')
        namespace = decode_str(metadata.get('namespace'), 'networkip.metadata.namespace', namespace)
        where = '%s/%s.spec.ipAllocations' % (namespace, name)
        allocations = decode_list(spec.get('ipAllocations'), where, IPAllocation.from_dict)
        return cls(namespace, name, allocations)

    @property
    def namespaced_name(self):
        return '%s/%s' % (self.namespace, self.name)

    def get_allocation(self, name):
        for alloc in self.ip_allocations:
            if alloc.name == name:
                return alloc
        return None

    def find_allocation(self, network_address):
        """allocation whose subnet has the given network address"""
        for alloc in self.ip_allocations:
            if alloc.network_address() == network_address:
                return alloc
        return None

    def to_dict(self):
        return {
            'apiVersion': NETWORKIP_API_VERSION,
            'kind': NETWORKIP_KIND,
            'metadata': {'namespace': self.namespace, 'name': self.name},
            'spec': {'ipAllocations': [a.to_dict() for a in self.ip_allocations]},
        }
