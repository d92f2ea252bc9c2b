# coding: utf-8

import io
import json

import pytest

from differance.cni.skel import NetConf, get_args, get_cmdargs
from differance.cni.types import Result
from differance.errors import DecodeError, MissingArgument, UnsupportedVersion

from tests.utils import make_environ, make_netconf


def test_get_args():
    assert get_args('') == {'': ''}
    assert get_args('K8S_POD_NAME=nginx;K8S_POD_NAMESPACE=default') == {
        'K8S_POD_NAME': 'nginx',
        'K8S_POD_NAMESPACE': 'default',
    }
    # last one wins, broken segments are dropped
    assert get_args('A=1;A=2;B=x=y;IgnoreUnknown') == {'A': '2', 'IgnoreUnknown': ''}


def test_get_cmdargs():
    environ = make_environ('ADD', container_id='abc', args='K8S_POD_NAME=nginx')
    command, args = get_cmdargs(environ, io.StringIO('{"cniVersion": "0.4.0"}'))
    assert command == 'ADD'
    assert args.container_id == 'abc'
    assert args.netns == '/var/run/netns/test'
    assert args.ifname == 'eth0'
    assert args.path == '/opt/cni/bin'
    assert args.args == {'K8S_POD_NAME': 'nginx'}
    assert args.stdin_data == '{"cniVersion": "0.4.0"}'

    command, args = get_cmdargs(environ, io.BytesIO(b'{}'))
    assert args.stdin_data == '{}'


def test_get_cmdargs_required():
    environ = make_environ('DEL')
    del environ['CNI_NETNS']
    del environ['CNI_ARGS']
    command, args = get_cmdargs(environ, io.StringIO(''))
    assert command == 'DEL'
    assert args.netns == ''
    assert args.args == {'': ''}

    environ = make_environ('ADD')
    del environ['CNI_NETNS']
    with pytest.raises(MissingArgument) as e:
        get_cmdargs(environ, io.StringIO(''))
    assert e.value.name == 'CNI_NETNS'
    assert e.value.code == 4

    environ = make_environ('CHECK')
    del environ['CNI_IFNAME']
    with pytest.raises(MissingArgument):
        get_cmdargs(environ, io.StringIO(''))

    with pytest.raises(MissingArgument) as e:
        get_cmdargs({}, io.StringIO(''))
    assert e.value.name == 'CNI_COMMAND'

    # nothing beyond the command is needed for VERSION
    command, args = get_cmdargs({'CNI_COMMAND': 'VERSION'}, io.StringIO(''))
    assert command == 'VERSION'
    assert args.container_id == ''


def test_netconf():
    prev_result = {
        'cniVersion': '0.2.0',
        'ip4': {'ip': '10.1.1.2/24', 'gateway': '10.1.1.254'},
    }
    conf = NetConf.from_json(make_netconf(cni_version='0.4.0', prev_result=prev_result,
        redis_ip='redis://10.0.0.1:6379/1'))
    assert conf.cni_version == '0.4.0'
    assert conf.name == 'k8s-pod-network'
    assert conf.type == 'macvlan'
    assert conf.ipam['network'] == 'team/net1'
    assert conf.ipam['redis_ip'] == 'redis://10.0.0.1:6379/1'

    result = conf.get_current_result()
    assert isinstance(result, Result)
    assert [str(ip.address) for ip in result.ips] == ['10.1.1.2/24']

    output = json.loads(conf.get_result_output(result))
    assert output['cniVersion'] == '0.4.0'
    assert output['ips'] == [{'version': '4', 'interface': None, 'address': '10.1.1.2/24', 'gateway': '10.1.1.254'}]


def test_netconf_without_prev_result():
    conf = NetConf.from_json(make_netconf(cni_version='1.0.0'))
    assert conf.prev_result is None
    assert conf.get_current_result() == Result('1.0.0')

    conf = NetConf.from_json(make_netconf(cni_version='7.0.0'))
    with pytest.raises(UnsupportedVersion):
        conf.get_current_result()


@pytest.mark.parametrize('text', ['', 'not json', '[]', '{"ipam": "redis"}', '{"dns": {"search": "x"}}'])
def test_netconf_errors(text):
    with pytest.raises(DecodeError):
        NetConf.from_json(text)
