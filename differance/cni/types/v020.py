# coding: utf-8

"""
cniVersion 0.1.0 and 0.2.0

These results have no interface list and room for a single address per
family, each with its own gateway and routes. Converting the latest
result down keeps the first IPv4 and the first IPv6 address only.
"""

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
    ip_to_json,
)
from differance.cni.types.v100 import IPConfig, Result

VERSIONS = ('0.1.0', '0.2.0')


class IPConfig020(Jsonized):

    def __init__(self, ip, gateway=None, routes=None):
        self.ip = ip
        self.gateway = gateway
        self.routes = list(routes or [])

    @classmethod
    def from_dict(cls, data, where='ip'):
        if data is None:
            return None
        expect_mapping(data, where)
        return cls(decode_ipnet(require(data, 'ip', where), where + '.ip'),
                gateway=decode_ip(data.get('gateway'), where + '.gateway', optional=True),
                routes=decode_list(data.get('routes'), where + '.routes', Route.from_dict))

    def to_dict(self):
        d = {'ip': str(self.ip), 'gateway': ip_to_json(self.gateway)}
        if self.routes:
            d['routes'] = [r.to_dict() for r in self.routes]
        return d


def _first_of_family(ips, version):
    for ip in ips:
        if ip.address.version == version:
            return ip
    return None


class Result020(Jsonized):

    def __init__(self, cni_version, ip4=None, ip6=None, dns=None):
        self.cni_version = cni_version
        self.ip4 = ip4
        self.ip6 = ip6
        self.dns = dns if dns is not None else DNS()

    @classmethod
    def from_dict(cls, data, where='result'):
        expect_mapping(data, where)
        return cls(
            decode_str(data.get('cniVersion'), where + '.cniVersion'),
            ip4=IPConfig020.from_dict(data.get('ip4'), where + '.ip4'),
            ip6=IPConfig020.from_dict(data.get('ip6'), where + '.ip6'),
            dns=DNS.from_dict(data.get('dns'), where + '.dns'),
        )

    def to_latest(self):
        present = [ip for ip in (self.ip4, self.ip6) if ip is not None]
        return Result(
            '1.0.0',
            ips=[IPConfig(ip.ip, gateway=ip.gateway) for ip in present],
            routes=[r for ip in present for r in ip.routes],
            dns=self.dns.copy(),
        )

    @classmethod
    def from_latest(cls, latest, cni_version):
        buckets = {}
        for version in (4, 6):
            ip = _first_of_family(latest.ips, version)
            if ip is None:
                continue
            routes = [r for r in latest.routes if r.dst.version == version]
            buckets[version] = IPConfig020(ip.address, gateway=ip.gateway, routes=routes)
        return cls(cni_version, ip4=buckets.get(4), ip6=buckets.get(6), dns=latest.dns.copy())

    def to_dict(self):
        return {
            'cniVersion': self.cni_version,
            'ip4': self.ip4 and self.ip4.to_dict(),
            'ip6': self.ip6 and self.ip6.to_dict(),
            'dns': self.dns.to_dict(),
        }
