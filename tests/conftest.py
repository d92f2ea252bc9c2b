# coding: utf-8
import pytest
import yaml

from differance.ipam.bitmap import BitmapIPAM
from differance.ipam.structure import NetworkIP
from differance.storage.redis import RedisStorage

from tests.mock import FakeRedis
from tests.utils import make_allocation, make_manifest


@pytest.fixture
def rds():
    return FakeRedis()


@pytest.fixture
def manifest():
    return make_manifest('net1', [
        make_allocation('v4', '10.1.1.0/24', gateway='10.1.1.254',
            exclude=['10.1.1.4'],
            route=[{'dst': '0.0.0.0/0', 'gw': '10.1.1.254'}]),
        make_allocation('v6', '10::/64', gateway='10::fffe',
            range={'start': '10::100', 'end': '10::1ff'}),
    ], namespace='team')


@pytest.fixture
def networkip(manifest):
    return NetworkIP.from_dict(manifest)


@pytest.fixture
def ipam(rds, networkip):
    return BitmapIPAM(rds, networkip)


@pytest.fixture
def pool(ipam, networkip):
    pool = networkip.get_allocation('v4')
    ipam.initialize(pool)
    return pool


@pytest.fixture
def pool_dir(tmpdir, manifest):
    path = tmpdir.join('networkips.yaml')
    other = make_manifest('other', [make_allocation('v4', '192.168.0.0/30')])
    path.write(yaml.safe_dump_all([manifest, {'kind': 'ConfigMap'}, other]))
    tmpdir.join('.hidden.yaml').write('not: [valid')
    tmpdir.join('README').write('ignored')
    return str(tmpdir)


@pytest.fixture
def redis_storage(rds, networkip):
    storage = RedisStorage(rds)
    storage.write(networkip)
    return storage
