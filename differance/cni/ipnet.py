# coding: utf-8

"""`ip/prefixlen` values as they appear in CNI results and pool manifests."""

from netaddr import IPAddress, AddrFormatError, INET_PTON

from differance.errors import MalformedCIDR

WIDTH = {4: 32, 6: 128}


def parse_ip(text):
    """strict textual IPv4/IPv6 address, raises AddrFormatError otherwise"""
    if isinstance(text, IPAddress):
        return IPAddress(text)
    if not isinstance(text, str):
        raise AddrFormatError('%r is not an IP address string' % (text,))
    try:
        return IPAddress(text, flags=INET_PTON)
    except ValueError as e:
        # netaddr refuses 'ip/prefixlen' text with a plain ValueError
        raise AddrFormatError('%r is not an IP address: %s' % (text, e))


class IPNet(object):
    """
    An address together with its prefix length, e.g. 10.1.1.1/24.
    Unlike netaddr.IPNetwork the host part is kept as is and only
    the canonical `ip/prefixlen` text form is accepted.
    """

    __slots__ = ('ip', 'prefixlen')

    def __init__(self, ip, prefixlen):
        ip = parse_ip(ip)
        width = WIDTH[ip.version]
        if isinstance(prefixlen, bool) or not isinstance(prefixlen, int) \
                or not 0 <= prefixlen <= width:
            raise MalformedCIDR('%s/%s' % (ip, prefixlen),
                    'prefix length must be between 0 and %d' % width)
        object.__setattr__(self, 'ip', ip)
        object.__setattr__(self, 'prefixlen', prefixlen)

    def __setattr__(self, name, value):
        raise AttributeError('IPNet is immutable')

    def __delattr__(self, name):
        raise AttributeError('IPNet is immutable')

    @classmethod
    def parse(cls, text):
        if not isinstance(text, str):
            raise MalformedCIDR(text, 'expected a string')

        parts = text.split('/')
        if len(parts) != 2:
            raise MalformedCIDR(text, 'expected ip/prefixlen')

        ip_text, len_text = parts
        try:
            ip = parse_ip(ip_text)
        except (AddrFormatError, ValueError, TypeError):
            raise MalformedCIDR(text, 'failed to parse IP %r' % ip_text)

        if not (len_text.isascii() and len_text.isdigit()):
            raise MalformedCIDR(text, 'failed to parse len %r' % len_text)
        return cls(ip, int(len_text))

    from_json = parse

    def to_json(self):
        return str(self)

    @property
    def version(self):
        return self.ip.version

    def network_address(self):
        shift = WIDTH[self.ip.version] - self.prefixlen
        return IPAddress(int(self.ip) >> shift << shift, self.ip.version)

    def __str__(self):
        return '%s/%d' % (self.ip, self.prefixlen)

    def __repr__(self):
        return 'IPNet(%r)' % str(self)

    def __eq__(self, other):
        if not isinstance(other, IPNet):
            return NotImplemented
        return (self.ip, self.prefixlen) == (other.ip, other.prefixlen)

    def __ne__(self, other):
        r = self.__eq__(other)
        return r if r is NotImplemented else not r

    def __hash__(self):
        return hash((self.ip.version, int(self.ip), self.prefixlen))
