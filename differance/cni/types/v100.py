# coding: utf-8

"""cniVersion 1.0.0, also the canonical in-memory result."""

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

VERSIONS = ('1.0.0',)


class Interface(Jsonized):

    def __init__(self, name, mac='', sandbox=''):
        self.name = name
        self.mac = mac
        self.sandbox = sandbox

    @classmethod
    def from_dict(cls, data, where='interface'):
        expect_mapping(data, where)
        return cls(decode_str(require(data, 'name', where), where + '.name'),
                mac=decode_str(data.get('mac'), where + '.mac'),
                sandbox=decode_str(data.get('sandbox'), where + '.sandbox'))

    def copy(self):
        return Interface(self.name, self.mac, self.sandbox)

    def to_dict(self):
        return {'name': self.name, 'mac': self.mac, 'sandbox': self.sandbox}


class IPConfig(Jsonized):

    def __init__(self, address, gateway=None, interface=None):
        self.address = address
        self.gateway = gateway
        self.interface = interface

    @classmethod
    def from_dict(cls, data, where='ip'):
        expect_mapping(data, where)
        return cls(decode_ipnet(require(data, 'address', where), where + '.address'),
                gateway=decode_ip(data.get('gateway'), where + '.gateway', optional=True),
                interface=decode_interface_index(data.get('interface'), where + '.interface'))

    @property
    def version(self):
        return self.address.version

    def to_dict(self):
        return {
            'interface': self.interface,
            'address': str(self.address),
            'gateway': ip_to_json(self.gateway),
        }


class Result(Jsonized):

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
            ips=decode_list(data.get('ips'), where + '.ips', IPConfig.from_dict),
            routes=decode_list(data.get('routes'), where + '.routes', Route.from_dict),
            dns=DNS.from_dict(data.get('dns'), where + '.dns'),
        )

    def to_latest(self):
        return self

    @classmethod
    def from_latest(cls, latest, cni_version):
        return cls(cni_version, latest.interfaces, latest.ips, latest.routes, latest.dns)

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
