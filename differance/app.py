# coding: utf-8

import sys
import json
import logging

import click

from differance import __VERSION__
from differance.clients import get_redis_client
from differance.cni.skel import get_cmdargs
from differance.config import (
    IPAM_DEBUG,
    IPAM_DEBUG_FILE,
    IPAM_POOL_DIR,
    IPAM_POOL_SOURCE,
    IPAM_REDIS_URL,
)
from differance.errors import IPAMError, PoolAlreadyInitialized
from differance.ipam.bitmap import BitmapIPAM
from differance.log import init_logging
from differance.plugin import Plugin
from differance.storage import get_storage
from differance.storage.file import load_manifests
from differance.storage.redis import RedisStorage

_log = logging.getLogger(__name__)


def run_cni(environ=None, stdin=None, rds=None, storage=None):
    """run as a CNI plugin, returns the exit code"""
    plugin = None
    try:
        command, cmd_args = get_cmdargs(environ, stdin)
        plugin = Plugin(cmd_args, rds=rds, storage=storage)
        output = plugin.run(command)
    except IPAMError as e:
        _log.error('%s: %s', e.__class__.__name__, e)
        cni_version = plugin.cni_version if plugin else ''
        click.echo(json.dumps(e.to_dict(cni_version), separators=(',', ':')))
        return 1

    if output is not None:
        click.echo(output.decode('utf-8'))
    return 0


class AdminContext(object):

    def __init__(self, redis_url, pool_source, pool_dir):
        self.redis_url = redis_url
        self.pool_source = pool_source
        self.pool_dir = pool_dir
        self._rds = None

    @property
    def rds(self):
        if self._rds is None:
            try:
                self._rds = get_redis_client(self.redis_url)
            except ValueError as e:
                raise IPAMError('invalid redis url %r: %s' % (self.redis_url, e))
        return self._rds

    def get_networkip(self, network):
        rds = self.rds if self.pool_source == 'redis' else None
        return get_storage(self.pool_source, pool_dir=self.pool_dir, rds=rds).get(network)


def _fail(e):
    click.echo('Error: %s' % e, err=True)
    sys.exit(1)


@click.group(invoke_without_command=True)
@click.version_option(version=__VERSION__)
@click.option('--redis-url', default=IPAM_REDIS_URL, show_default=True, help='Redis URL')
@click.option('--pool-source', type=click.Choice(['file', 'redis']), default=IPAM_POOL_SOURCE,
        show_default=True, help='Where NetworkIP objects are read from')
@click.option('--pool-dir', default=IPAM_POOL_DIR, show_default=True,
        help='Directory of NetworkIP manifests')
@click.pass_context
def cli(ctx, redis_url, pool_source, pool_dir):
    """IPAM CNI plugin with redis backend.

    Without a subcommand it runs as a CNI plugin, reading CNI_* variables
    and the network configuration from stdin.
    """
    ctx.obj = AdminContext(redis_url, pool_source, pool_dir)
    if ctx.invoked_subcommand is None:
        ctx.exit(run_cni())


@cli.command()
@click.argument('network')
@click.option('--force', is_flag=True, help='Overwrite base addresses of initialized pools')
@click.pass_obj
def init(admin, network, force):
    """Initialize the bitmaps of every allocation of NETWORK."""
    try:
        networkip = admin.get_networkip(network)
        ipam = BitmapIPAM(admin.rds, networkip)
        for pool in networkip.ip_allocations:
            try:
                baseip = ipam.initialize(pool, force=force)
            except PoolAlreadyInitialized as e:
                click.echo('%s: skipped, %s' % (ipam.pool_key(pool), e))
                continue
            click.echo('%s: base %s, %d excluded' % (ipam.pool_key(pool), baseip, len(pool.exclude)))
    except IPAMError as e:
        _fail(e)


@cli.command()
@click.argument('network')
@click.pass_obj
def status(admin, network):
    """Show usage of every allocation of NETWORK."""
    try:
        networkip = admin.get_networkip(network)
        ipam = BitmapIPAM(admin.rds, networkip)
        for pool in networkip.ip_allocations:
            baseip = ipam.get_baseip(pool)
            if baseip is None:
                click.echo('%s: not initialized' % ipam.pool_key(pool))
                continue
            used, capacity = ipam.usage(pool)
            click.echo('%s: subnet %s, base %s, %d/%d used' % (
                ipam.pool_key(pool), pool.subnet, baseip, used, capacity))
    except IPAMError as e:
        _fail(e)


@cli.group()
def pool():
    """Manage NetworkIP objects stored in redis."""


@pool.command('put')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def pool_put(admin, path):
    """Store the NetworkIP manifests of PATH in redis."""
    try:
        networkips = load_manifests(path)
        storage = RedisStorage(admin.rds)
        for networkip in networkips:
            storage.write(networkip)
            click.echo('stored %s' % networkip.namespaced_name)
    except IPAMError as e:
        _fail(e)
    if not networkips:
        click.echo('no NetworkIP found in %s' % path, err=True)
        sys.exit(1)


def main():
    init_logging(IPAM_DEBUG_FILE, IPAM_DEBUG)
    cli(prog_name='differance-ipam')


if __name__ == '__main__':
    main()
