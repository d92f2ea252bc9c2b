# coding: utf-8


class BaseIPAM(object):

    def initialize(self, pool, force=False):
        """persist base address and exclusions of pool, once per pool lifetime"""

    def allocate(self, pool, owner=None):
        """take the lowest free address of pool,
        owner is recorded together with it when given"""

    def release(self, pool, address):
        """give address back to pool, forgetting its owner"""

    def record_owner(self, pool, address, payload):
        """remember who holds address"""

    def erase_owner(self, pool, address):
        """forget who holds address"""

    def get_owner(self, pool, address):
        """return who holds address, or None"""

    def count_initialized_pools(self, pools):
        """how many of pools already have persisted state"""
