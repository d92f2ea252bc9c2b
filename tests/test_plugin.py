# coding: utf-8

import io
import json

import pytest
from netaddr import IPAddress

from differance.cni.skel import get_cmdargs
from differance.errors import (
    DecodeError,
    IPAMError,
    PoolCountMismatch,
    PoolExhausted,
    PoolNotFound,
    UnsupportedVersion,
)
from differance.ipam.bitmap import BitmapIPAM
from differance.ipam.structure import NetworkIP
from differance.log import init_logging
from differance.plugin import IPAMConfig, Plugin, ensure_pools, get_owner_payload
from differance.storage.redis import RedisStorage

from tests.utils import make_allocation, make_environ, make_manifest, make_netconf

POD_ARGS = 'IgnoreUnknown=1;K8S_POD_NAMESPACE=default;K8S_POD_NAME=nginx;K8S_POD_INFRA_CONTAINER_ID=abc'


def make_plugin(command, stdin, rds=None, storage=None, args=POD_ARGS):
    _, cmd_args = get_cmdargs(make_environ(command, args=args), io.StringIO(stdin))
    return Plugin(cmd_args, rds=rds, storage=storage)


def run(command, stdin, rds, storage, args=POD_ARGS):
    return make_plugin(command, stdin, rds, storage, args=args).run(command)


def test_ipam_config():
    conf = IPAMConfig.from_dict({'network': 'team/net1', 'redis_ip': 'redis://10.0.0.1:6379/2',
        'pool_source': 'redis', 'type': 'differance-ipam'})
    assert conf.network == 'team/net1'
    assert conf.redis_url == 'redis://10.0.0.1:6379/2'
    assert conf.pool_source == 'redis'
    assert conf.type == 'differance-ipam'
    assert conf.debug_file == ''

    conf = IPAMConfig.from_dict({'network': 'net1'})
    assert conf.redis_url == 'redis://127.0.0.1:6379/0'
    assert conf.pool_source == 'file'

    for bad in ({}, {'network': ''}, {'network': ['net1']}):
        with pytest.raises(DecodeError):
            IPAMConfig.from_dict(bad)


def test_owner_payload():
    assert get_owner_payload({'K8S_POD_NAMESPACE': 'default', 'K8S_POD_NAME': 'nginx',
        'K8S_POD_INFRA_CONTAINER_ID': 'abc'}) == 'default/nginx abc'
    assert get_owner_payload({}) == 'UnknownNamespace/UnknownPodName UnknownContainerID'


def test_add(rds, redis_storage, networkip):
    output = json.loads(run('ADD', make_netconf(cni_version='0.4.0'), rds, redis_storage))
    assert output == {
        'cniVersion': '0.4.0',
        'ips': [
            {'version': '4', 'interface': None, 'address': '10.1.1.1/24', 'gateway': '10.1.1.254'},
            {'version': '6', 'interface': None, 'address': '10::100/64', 'gateway': '10::fffe'},
        ],
        'routes': [{'dst': '0.0.0.0/0', 'gw': '10.1.1.254'}],
        'dns': {'domain': ''},
    }

    ipam = BitmapIPAM(rds, networkip)
    v4, v6 = networkip.ip_allocations
    assert ipam.count_initialized_pools(networkip.ip_allocations) == 2
    assert ipam.get_owner(v4, '10.1.1.1') == 'default/nginx abc'
    assert ipam.get_owner(v6, '10::100') == 'default/nginx abc'

    output = json.loads(run('ADD', make_netconf(cni_version='0.4.0'), rds, redis_storage))
    assert [ip['address'] for ip in output['ips']] == ['10.1.1.2/24', '10::101/64']


def test_add_keeps_interfaces_of_prev_result(rds, redis_storage):
    prev_result = {
        'cniVersion': '1.0.0',
        'interfaces': [{'name': 'eth0', 'mac': '00:11:22:33:44:55', 'sandbox': '/var/run/netns/test'}],
        'ips': [{'address': '172.16.0.9/16'}],
        'dns': {'nameservers': ['8.8.8.8']},
    }
    output = json.loads(run('ADD', make_netconf(cni_version='1.0.0', prev_result=prev_result),
        rds, redis_storage))
    assert output['interfaces'] == prev_result['interfaces']
    assert [ip['address'] for ip in output['ips']] == ['10.1.1.1/24', '10::100/64']
    assert output['dns'] == {'domain': ''}


def test_add_gen_a(rds, redis_storage):
    output = json.loads(run('ADD', make_netconf(cni_version='0.2.0'), rds, redis_storage))
    assert output == {
        'cniVersion': '0.2.0',
        'ip4': {
            'ip': '10.1.1.1/24',
            'gateway': '10.1.1.254',
            'routes': [{'dst': '0.0.0.0/0', 'gw': '10.1.1.254'}],
        },
        'ip6': {'ip': '10::100/64', 'gateway': '10::fffe'},
        'dns': {'domain': ''},
    }


def test_add_from_pool_dir(rds, pool_dir):
    stdin = make_netconf(network='other', cni_version='1.0.0', pool_dir=pool_dir)
    output = json.loads(run('ADD', stdin, rds, None))
    assert output['ips'] == [{'interface': None, 'address': '192.168.0.1/30', 'gateway': None}]
    assert 'routes' not in output

    with pytest.raises(PoolNotFound):
        run('ADD', make_netconf(network='team/missing', pool_dir=pool_dir), rds, None)


def test_add_pool_count_mismatch(rds, redis_storage, networkip):
    BitmapIPAM(rds, networkip).initialize(networkip.get_allocation('v4'))
    with pytest.raises(PoolCountMismatch) as e:
        run('ADD', make_netconf(), rds, redis_storage)
    assert e.value.expected == 2
    assert e.value.found == 1


def test_add_does_not_roll_back(rds):
    networkip = NetworkIP.from_dict(make_manifest('small', [
        make_allocation('a', '10.0.0.0/30'),
        make_allocation('b', '10.0.1.7/32'),
    ]))
    storage = RedisStorage(rds)
    storage.write(networkip)
    stdin = make_netconf(network='small', cni_version='1.0.0')

    output = json.loads(run('ADD', stdin, rds, storage))
    assert [ip['address'] for ip in output['ips']] == ['10.0.0.1/30', '10.0.1.7/32']

    with pytest.raises(PoolExhausted):
        run('ADD', stdin, rds, storage)
    ipam = BitmapIPAM(rds, networkip)
    assert ipam.is_allocated(networkip.get_allocation('a'), '10.0.0.2')


def test_del(rds, redis_storage, networkip):
    added = run('ADD', make_netconf(cni_version='0.3.1'), rds, redis_storage).decode('utf-8')
    prev_result = json.loads(added)
    prev_result['ips'].append({'version': '4', 'address': '192.168.9.9/24'})

    output = run('DEL', make_netconf(cni_version='0.3.1', prev_result=prev_result), rds, redis_storage)
    assert output is None

    ipam = BitmapIPAM(rds, networkip)
    v4, v6 = networkip.ip_allocations
    assert not ipam.is_allocated(v4, '10.1.1.1')
    assert not ipam.is_allocated(v6, '10::100')
    assert ipam.get_owner(v4, '10.1.1.1') is None
    assert ipam.get_owner(v6, '10::100') is None
    assert ipam.is_allocated(v4, '10.1.1.4')

    # a second DEL of the same result is harmless
    run('DEL', make_netconf(cni_version='0.3.1', prev_result=prev_result), rds, redis_storage)


def test_check(rds, redis_storage):
    prev_result = {
        'cniVersion': '0.3.0',
        'ips': [{'version': '4', 'address': '10.1.1.1/24', 'gateway': '10.1.1.254'}],
    }
    output = json.loads(run('CHECK', make_netconf(cni_version='0.3.0', prev_result=prev_result),
        rds, redis_storage))
    assert output['cniVersion'] == '0.3.0'
    assert output['ips'] == [{'version': '4', 'interface': None, 'address': '10.1.1.1/24', 'gateway': '10.1.1.254'}]


def test_version_and_unknown_command(rds):
    output = json.loads(run('VERSION', '', rds, None))
    assert output['cniVersion'] == '1.0.0'
    assert output['supportedVersions'] == ['0.1.0', '0.2.0', '0.3.0', '0.3.1', '0.4.0', '1.0.0']

    assert run('GC', '', rds, None) == b'unknown command: GC'


def test_bad_netconf(rds, redis_storage):
    plugin = make_plugin('ADD', 'not json', rds, redis_storage)
    with pytest.raises(DecodeError):
        plugin.run('ADD')
    assert plugin.cni_version == ''

    plugin = make_plugin('ADD', json.dumps({'cniVersion': '0.4.0', 'ipam': {}}), rds, redis_storage)
    with pytest.raises(DecodeError):
        plugin.run('ADD')
    assert plugin.cni_version == '0.4.0'

    with pytest.raises(DecodeError):
        run('ADD', make_netconf(pool_source='etcd'), rds, None)


def test_debug_file(rds, redis_storage, tmpdir):
    debug_file = str(tmpdir.join('ipam.log'))
    try:
        run('ADD', make_netconf(debug_file=debug_file), rds, redis_storage)
    finally:
        init_logging()
    with open(debug_file) as f:
        content = f.read()
    assert 'ADD container' in content
    assert 'allocated 10.1.1.1 from pool team/net1/v4' in content


def test_debug_file_unwritable(rds, redis_storage, tmpdir):
    debug_file = str(tmpdir.join('missing', 'ipam.log'))
    try:
        with pytest.raises(IPAMError) as e:
            run('ADD', make_netconf(debug_file=debug_file), rds, redis_storage)
    finally:
        init_logging()
    assert e.value.code == 999
    assert 'cannot open debug file' in str(e.value)


def test_bad_redis_url(redis_storage):
    with pytest.raises(IPAMError) as e:
        run('ADD', make_netconf(redis_ip='foo://bar'), None, redis_storage)
    assert e.value.code == 999
    assert 'invalid redis url' in str(e.value)


def test_add_unsupported_version_allocates_nothing(rds, redis_storage, networkip):
    stdin = make_netconf(cni_version='9.9.9', prev_result={'cniVersion': '1.0.0', 'ips': []})
    with pytest.raises(UnsupportedVersion):
        run('ADD', stdin, rds, redis_storage)

    ipam = BitmapIPAM(rds, networkip)
    assert ipam.count_initialized_pools(networkip.ip_allocations) == 0
    assert rds.bitcount(ipam.bitmap_key(networkip.get_allocation('v4'))) == 0


def test_add_gateway_outside_range(rds):
    networkip = NetworkIP.from_dict(make_manifest('ranged', [
        make_allocation('a', '10.0.0.0/24', gateway='10.0.0.1',
            range={'start': '10.0.0.10', 'end': '10.0.0.50'}, exclude=['10.0.0.1']),
    ]))
    storage = RedisStorage(rds)
    storage.write(networkip)

    output = json.loads(run('ADD', make_netconf(network='ranged', cni_version='1.0.0'), rds, storage))
    assert output['ips'] == [{'interface': None, 'address': '10.0.0.10/24', 'gateway': '10.0.0.1'}]
    ipam = BitmapIPAM(rds, networkip)
    assert ipam.usage(networkip.get_allocation('a')) == (1, 41)


def test_ensure_pools_initialized_concurrently(rds, networkip, monkeypatch):
    ipam = BitmapIPAM(rds, networkip)
    ipam.initialize_pools(networkip.ip_allocations)
    # another ADD initializes the pools between count and initialize
    monkeypatch.setattr(ipam, 'count_initialized_pools', lambda pools: 0)
    ensure_pools(ipam)
    assert ipam.get_baseip(networkip.get_allocation('v4')) == IPAddress('10.1.1.1')


def test_del_skips_unreleasable_addresses(rds, redis_storage, networkip):
    prev_result = {'cniVersion': '1.0.0', 'ips': [{'address': '10.1.1.5/24'}, {'address': '10::5/64'}]}
    # nothing initialized yet
    assert run('DEL', make_netconf(cni_version='1.0.0', prev_result=prev_result), rds, redis_storage) is None

    run('ADD', make_netconf(cni_version='1.0.0'), rds, redis_storage)
    prev_result['ips'].append({'address': '10::100/64'})
    # 10::5 sits below the base of v6, 10::100 is still released
    assert run('DEL', make_netconf(cni_version='1.0.0', prev_result=prev_result), rds, redis_storage) is None
    ipam = BitmapIPAM(rds, networkip)
    assert not ipam.is_allocated(networkip.get_allocation('v6'), '10::100')
    assert ipam.is_allocated(networkip.get_allocation('v4'), '10.1.1.1')
