# coding: utf-8

"""
IPAM backed by one redis bitmap per pool.

Keys, for a NetworkIP `ns/name` and one of its allocations `pool`:

    ns/name/pool/baseip     address of bit 0, fixed by initialize()
    ns/name/pool/bitmap     bit i is 1 iff baseip + i is in use
    ns/name/pool/<address>  who holds <address>

Every plugin invocation is its own process, so nothing is cached here
and the only synchronization is WATCH/MULTI/EXEC on the bitmap: a
conflicting commit means scanning again, never failing the request.
"""

import logging

import redis
import retrying
from netaddr import IPAddress, AddrFormatError

from differance.clients import store_errors
from differance.cni.ipnet import WIDTH, parse_ip
from differance.errors import (
    AddressFamilyMismatch,
    BaseAddressMissing,
    DecodeError,
    IndexOverflow,
    PoolAlreadyInitialized,
    PoolExhausted,
)
from differance.ipam.base import BaseIPAM

_log = logging.getLogger(__name__)

# redis bitmaps stop at 2^32 bits
MAX_OFFSET = 2 ** 32 - 1


def address_offset(baseip, ip):
    if baseip.version != ip.version:
        raise AddressFamilyMismatch(baseip, ip)
    offset = int(ip) - int(baseip)
    if not 0 <= offset <= MAX_OFFSET:
        raise IndexOverflow(baseip, offset)
    return offset


def address_at(baseip, offset):
    if not 0 <= offset <= MAX_OFFSET:
        raise IndexOverflow(baseip, offset)
    value = min(int(baseip) + offset, 2 ** WIDTH[baseip.version] - 1)
    return IPAddress(value, baseip.version)


def _text(value):
    return value.decode('utf-8') if isinstance(value, bytes) else value


def _is_conflict(e):
    if isinstance(e, redis.WatchError):
        _log.debug('watched key changed before commit, retrying: %s', e)
        return True
    return False


class BitmapIPAM(BaseIPAM):

    def __init__(self, rds, networkip):
        self._client = rds
        self.networkip = networkip

    def pool_key(self, pool):
        return '%s/%s/%s' % (self.networkip.namespace, self.networkip.name, pool.name)

    def bitmap_key(self, pool):
        return '%s/bitmap' % self.pool_key(pool)

    def baseip_key(self, pool):
        return '%s/baseip' % self.pool_key(pool)

    def owner_key(self, pool, ip):
        return '%s/%s' % (self.pool_key(pool), ip)

    def get_baseip(self, pool):
        with store_errors():
            value = self._client.get(self.baseip_key(pool))
        if value is None:
            return None
        return parse_ip(_text(value))

    def _require_baseip(self, pool):
        baseip = self.get_baseip(pool)
        if baseip is None:
            raise BaseAddressMissing(self.pool_key(pool))
        return baseip

    def _last_offset(self, pool, baseip):
        last = pool.last_address
        if baseip.version != last.version:
            raise AddressFamilyMismatch(baseip, last)
        return min(int(last) - int(baseip), MAX_OFFSET)

    def _exclusion_offsets(self, pool, baseip):
        """offsets of the excluded addresses that may ever be handed out"""
        last_offset = self._last_offset(pool, baseip)
        offsets = []
        for ip in pool.exclude:
            if ip.version != baseip.version:
                raise AddressFamilyMismatch(baseip, ip)
            offset = int(ip) - int(baseip)
            if not 0 <= offset <= last_offset:
                _log.debug('excluded %s is outside pool %s, ignored', ip, self.pool_key(pool))
                continue
            offsets.append(offset)
        return offsets

    def initialize(self, pool, force=False):
        """
        Store the base address of pool and mark its excluded addresses used.
        An initialized pool is left alone unless force is given; forcing
        rewrites base and exclusions but keeps the bits of live allocations.
        """
        return self.initialize_pools([pool], force=force)[0]

    def initialize_pools(self, pools, force=False):
        """initialize several pools in one transaction, all or none"""
        if not pools:
            return []
        plans = []
        for pool in pools:
            baseip = pool.baseip
            plans.append((pool, baseip, self._exclusion_offsets(pool, baseip)))
        with store_errors():
            self._initialize(plans, force)
        for pool, baseip, offsets in plans:
            _log.info('pool %s initialized, base %s, %d excluded', self.pool_key(pool), baseip, len(offsets))
        return [baseip for _, baseip, _ in plans]

    @retrying.retry(retry_on_exception=_is_conflict)
    def _initialize(self, plans, force):
        baseip_keys = [self.baseip_key(pool) for pool, _, _ in plans]
        with self._client.pipeline() as pipe:
            pipe.watch(*baseip_keys)
            for (pool, baseip, _), baseip_key in zip(plans, baseip_keys):
                current = pipe.get(baseip_key)
                if current is not None and not force:
                    raise PoolAlreadyInitialized(self.pool_key(pool), _text(current))
                if current is not None:
                    _log.warning('overwriting base address %s of pool %s with %s',
                            _text(current), self.pool_key(pool), baseip)
            pipe.multi()
            for (pool, baseip, offsets), baseip_key in zip(plans, baseip_keys):
                pipe.set(baseip_key, str(baseip))
                for offset in offsets:
                    pipe.setbit(self.bitmap_key(pool), offset, 1)
            pipe.execute()

    def allocate(self, pool, owner=None):
        baseip = self._require_baseip(pool)
        last_offset = self._last_offset(pool, baseip)
        with store_errors():
            ip = self._claim(pool, baseip, last_offset, owner)
        _log.info('allocated %s from pool %s', ip, self.pool_key(pool))
        return ip

    @retrying.retry(retry_on_exception=_is_conflict)
    def _claim(self, pool, baseip, last_offset, owner):
        bitmap_key = self.bitmap_key(pool)
        with self._client.pipeline() as pipe:
            pipe.watch(bitmap_key)
            offset = pipe.bitpos(bitmap_key, 0)
            if offset < 0 or offset > last_offset:
                raise PoolExhausted(self.pool_key(pool))
            ip = address_at(baseip, offset)

            pipe.multi()
            pipe.setbit(bitmap_key, offset, 1)
            if owner is not None:
                pipe.set(self.owner_key(pool, ip), owner)
            pipe.execute()
        return ip

    def release(self, pool, address):
        """returns whether address was in use, releasing a free one is a no-op"""
        ip = self._to_ip(address)
        baseip = self._require_baseip(pool)
        offset = address_offset(baseip, ip)
        if pool.is_excluded(ip):
            _log.warning('%s is excluded from pool %s, not releasing', ip, self.pool_key(pool))
            return False

        with store_errors():
            with self._client.pipeline() as pipe:
                pipe.setbit(self.bitmap_key(pool), offset, 0)
                pipe.delete(self.owner_key(pool, ip))
                previous, _ = pipe.execute()
        _log.info('released %s to pool %s', ip, self.pool_key(pool))
        return bool(previous)

    def record_owner(self, pool, address, payload):
        with store_errors():
            with self._client.pipeline() as pipe:
                pipe.set(self.owner_key(pool, self._to_ip(address)), payload)
                pipe.execute()

    def erase_owner(self, pool, address):
        with store_errors():
            with self._client.pipeline() as pipe:
                pipe.delete(self.owner_key(pool, self._to_ip(address)))
                pipe.execute()

    def get_owner(self, pool, address):
        with store_errors():
            value = self._client.get(self.owner_key(pool, self._to_ip(address)))
        return _text(value)

    def is_allocated(self, pool, address):
        ip = self._to_ip(address)
        offset = address_offset(self._require_baseip(pool), ip)
        with store_errors():
            return bool(self._client.getbit(self.bitmap_key(pool), offset))

    def count_initialized_pools(self, pools):
        keys = [self.baseip_key(pool) for pool in pools]
        if not keys:
            return 0
        with store_errors():
            return self._client.exists(*keys)

    def usage(self, pool):
        """(used, capacity), excluded addresses count as used"""
        baseip = self._require_baseip(pool)
        capacity = max(self._last_offset(pool, baseip) + 1, 0)
        with store_errors():
            used = self._client.bitcount(self.bitmap_key(pool))
        return used, capacity

    @staticmethod
    def _to_ip(address):
        if isinstance(address, IPAddress):
            return address
        try:
            return parse_ip(address)
        except (AddrFormatError, ValueError, TypeError):
            raise DecodeError('invalid IP address %r' % (address,))
