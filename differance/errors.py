# coding: utf-8

"""Errors raised by the IPAM plugin, grouped the way they are reported."""

# CNI error codes, see the CNI SPEC "Error" section
CODE_INCOMPATIBLE_VERSION = 1
CODE_INVALID_ENVIRONMENT = 4
CODE_DECODE_FAILURE = 6
CODE_TRY_AGAIN_LATER = 11
CODE_GENERIC = 999


class IPAMError(Exception):
    """Base exception for all plugin failures."""

    code = CODE_GENERIC

    def to_dict(self, cni_version=''):
        return {
            'cniVersion': cni_version,
            'code': self.code,
            'msg': str(self),
        }


class DecodeError(IPAMError):
    """Malformed JSON, CIDR text or pool manifest."""

    code = CODE_DECODE_FAILURE


class MalformedCIDR(DecodeError):

    def __init__(self, text, reason):
        self.text = text
        super(MalformedCIDR, self).__init__('invalid ip/mask %r: %s' % (text, reason))


class UnsupportedVersion(IPAMError):

    code = CODE_INCOMPATIBLE_VERSION

    def __init__(self, version):
        self.version = version
        super(UnsupportedVersion, self).__init__('unsupported cniVersion: %r' % (version,))


class StoreUnavailable(IPAMError):
    """Redis could not be reached; never retried here."""

    code = CODE_TRY_AGAIN_LATER


class ConsistencyError(IPAMError):
    pass


class BaseAddressMissing(ConsistencyError):

    def __init__(self, pool_key):
        self.pool_key = pool_key
        super(BaseAddressMissing, self).__init__('pool %s is not initialized: no base address' % pool_key)


class PoolCountMismatch(ConsistencyError):

    def __init__(self, network, expected, found):
        self.expected = expected
        self.found = found
        super(PoolCountMismatch, self).__init__(
            'database mismatch for %s: %d allocations configured, %d initialized' % (network, expected, found))


class PoolAlreadyInitialized(ConsistencyError):

    def __init__(self, pool_key, baseip):
        self.pool_key = pool_key
        self.baseip = baseip
        super(PoolAlreadyInitialized, self).__init__(
            'pool %s already initialized with base address %s' % (pool_key, baseip))


class AddressError(IPAMError):
    pass


class AddressFamilyMismatch(AddressError):

    def __init__(self, base, address):
        super(AddressFamilyMismatch, self).__init__(
            'address type mismatch: base %s, address %s' % (base, address))


class IndexOverflow(AddressError):

    def __init__(self, base, offset):
        self.offset = offset
        super(IndexOverflow, self).__init__(
            'offset %d from %s does not fit a bitmap index, address range may be too big' % (offset, base))


class PoolExhausted(AddressError):

    def __init__(self, pool_key):
        self.pool_key = pool_key
        super(PoolExhausted, self).__init__('no free address left in pool %s' % pool_key)


class PoolNotFound(IPAMError):
    pass


class MissingArgument(IPAMError):

    code = CODE_INVALID_ENVIRONMENT

    def __init__(self, name):
        self.name = name
        super(MissingArgument, self).__init__('%r is required but cannot be found' % name)
