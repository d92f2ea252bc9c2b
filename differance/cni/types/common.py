# coding: utf-8

"""
Types shared by every cniVersion generation.

Each generation (v020, v040, v100) defines its own Result with
`to_latest()` and `from_latest()`, so a plugin reads the previous
result, converts it to the latest form, modifies it and returns it
in whatever cniVersion the caller asked for.
"""

from netaddr import AddrFormatError

from differance.cni.ipnet import IPNet, parse_ip
from differance.errors import DecodeError, MalformedCIDR


class Jsonized(object):
    """value object compared and printed through its JSON form"""

    def to_dict(self):
        raise NotImplementedError()

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __ne__(self, other):
        r = self.__eq__(other)
        return r if r is NotImplemented else not r

    __hash__ = None

    def __repr__(self):
        return '%s(%r)' % (self.__class__.__name__, self.to_dict())


def expect_mapping(data, where):
    if not isinstance(data, dict):
        raise DecodeError('%s: expected an object, got %r' % (where, data))
    return data


def require(data, key, where):
    if data.get(key) is None:
        raise DecodeError('%s: missing field %r' % (where, key))
    return data[key]


def decode_ip(value, where, optional=False):
    if value is None and optional:
        return None
    try:
        return parse_ip(value)
    except (AddrFormatError, ValueError, TypeError):
        raise DecodeError('%s: invalid IP address %r' % (where, value))


def decode_ipnet(value, where):
    try:
        return IPNet.from_json(value)
    except MalformedCIDR as e:
        raise DecodeError('%s: %s' % (where, e))


def decode_str(value, where, default=''):
    if value is None:
        return default
    if not isinstance(value, str):
        raise DecodeError('%s: expected a string, got %r' % (where, value))
    return value


def decode_str_list(value, where):
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise DecodeError('%s: expected a list of strings, got %r' % (where, value))
    return list(value)


def decode_list(value, where, decoder):
    if value is None:
        return []
    if not isinstance(value, list):
        raise DecodeError('%s: expected a list, got %r' % (where, value))
    return [decoder(v, '%s[%d]' % (where, i)) for i, v in enumerate(value)]


def decode_interface_index(value, where):
    """interface index is an u8 ordinal into `interfaces`, never range checked"""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
        raise DecodeError('%s: invalid interface index %r' % (where, value))
    return value


def ip_to_json(ip):
    return None if ip is None else str(ip)


class Route(Jsonized):

    def __init__(self, dst, gw):
        self.dst = dst
        self.gw = gw

    @classmethod
    def from_dict(cls, data, where='route'):
        expect_mapping(data, where)
        return cls(decode_ipnet(require(data, 'dst', where), where + '.dst'),
                decode_ip(require(data, 'gw', where), where + '.gw'))

    @property
    def version(self):
        return self.dst.version

    def to_dict(self):
        return {'dst': str(self.dst), 'gw': str(self.gw)}


class DNS(Jsonized):

    def __init__(self, nameservers=None, domain='', search=None, options=None):
        self.nameservers = list(nameservers or [])
        self.domain = domain or ''
        self.search = list(search or [])
        self.options = list(options or [])

    @classmethod
    def from_dict(cls, data, where='dns'):
        if data is None:
            return cls()
        expect_mapping(data, where)
        return cls(
            nameservers=decode_str_list(data.get('nameservers'), where + '.nameservers'),
            domain=decode_str(data.get('domain'), where + '.domain'),
            search=decode_str_list(data.get('search'), where + '.search'),
            options=decode_str_list(data.get('options'), where + '.options'),
        )

    def copy(self):
        return DNS(self.nameservers, self.domain, self.search, self.options)

    def to_dict(self):
        d = {}
        if self.nameservers:
            d['nameservers'] = list(self.nameservers)
        d['domain'] = self.domain
        if self.search:
            d['search'] = list(self.search)
        if self.options:
            d['options'] = list(self.options)
        return d
