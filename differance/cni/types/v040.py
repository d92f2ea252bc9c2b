# coding: utf-8

"""cniVersion 0.3.0, 0.3.1 and 0.4.0"""

from differance.cni.types.common import (
    Jsonized,
    Route,
    DNS,
    expect_mapping,
    require,
    decode_ip,
    decode_ipnet,
    decode_str,
    decode_list,
    decode_interface_index,
    ip_to_json,
)
from differance.cni.types.v100 import Interface, IPConfig, Result

VERSIONS = ('0.3.0', '0.3.1', '0.4.0')


class IPConfig040(Jsonized):
    """like 1.0.0 but every address carries its family as "4" or "6"."""

    def __init__(self, version, address, gateway=None, interface=None):
        self.version = version
        self.address = address
        self.gateway = gateway
        self.interface = interface

    @classmethod
    def from_dict(cls, data, where='ip'):
        expect_mapping(data, where)
        return cls(decode_str(require(data, 'version', where), where + '.version'),
                decode_ipnet(require(data, 'address', where), where + '.address'),
                gateway=decode_ip(data.get('gateway'), where + '.gateway', optional=True),
                interface=decode_interface_index(data.get('interface'), where + '.interface'))

    def to_latest(self):
        return IPConfig(self.address, gateway=self.gateway, interface=self.interface)

    @classmethod
    def from_latest(cls, latest):
        return cls(str(latest.address.version), latest.address,
                gateway=latest.gateway, interface=latest.interface)

    def to_dict(self):
        return {
            'version': self.version,
            'interface': self.interface,
            'address': str(self.address),
            'gateway': ip_to_json(self.gateway),
        }


class Result040(Jsonized):

    def __init__(self, cni_version, interfaces=None, ips=None, routes=None, dns=None):
        self.cni_version = cni_version
        self.interfaces = list(interfaces or [])
        self.ips = list(ips or [])
        self.routes = list(routes or [])
        self.dns = dns if dns is not None else DNS()

    @classmethod
    def from_dict(cls, data, where='result'):
        expect_mapping(data, where)
        return cls(
            decode_str(data.get('cniVersion'), where + '.cniVersion'),
            interfaces=decode_list(data.get('interfaces'), where + '.interfaces', Interface.from_dict),
            ips=decode_list(data.get('ips'), where + '.ips', IPConfig040.from_dict),
            routes=decode_list(data.get('routes'), where + '.routes', Route.from_dict),
            dns=DNS.from_dict(data.get('dns'), where + '.dns'),
        )

    def to_latest(self):
        return Result(
            '1.0.0',
            interfaces=[i.copy() for i in self.interfaces],
            ips=[ip.to_latest() for ip in self.ips],
            routes=list(self.routes),
            dns=self.dns.copy(),
        )

    @classmethod
    def from_latest(cls, latest, cni_version):
        return cls(
            cni_version,
            interfaces=[i.copy() for i in latest.interfaces],
            ips=[IPConfig040.from_latest(ip) for ip in latest.ips],
            routes=list(latest.routes),
            dns=latest.dns.copy(),
        )

    def to_dict(self):
        d = {'cniVersion': self.cni_version}
        if self.interfaces:
            d['interfaces'] = [i.to_dict() for i in self.interfaces]
        if self.ips:
            d['ips'] = [ip.to_dict() for ip in self.ips]
        if self.routes:
            d['routes'] = [r.to_dict() for r in self.routes]
        d['dns'] = self.dns.to_dict()
        return d
