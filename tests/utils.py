# coding: utf-8

import json
import uuid
import random
import string
import hashlib


def random_ipv4():
    return '.'.join(str(random.randint(0, 255)) for _ in range(4))


def random_string(prefix='', random_size=4):
    return prefix + ''.join(random.choice(string.ascii_lowercase + string.digits) for _ in range(random_size))


def random_uuid():
    return str(uuid.uuid4())


def random_sha1():
    return hashlib.sha1(random_string(random_size=8).encode('utf-8')).hexdigest()


def make_allocation(name, subnet, gateway=None, range=None, exclude=None, route=None):
    d = {'name': name, 'subnet': subnet}
    if gateway is not None:
        d['gateway'] = gateway
    if range is not None:
        d['range'] = range
    if exclude is not None:
        d['exclude'] = exclude
    if route is not None:
        d['route'] = route
    return d


def make_manifest(name, allocations, namespace='default'):
    return {
        'apiVersion': 'differance.cni.cncf.io/v1alpha1',
        'kind': 'NetworkIP',
        'metadata': {'namespace': namespace, 'name': name},
        'spec': {'ipAllocations': allocations},
    }


def make_environ(command, container_id=None, args=''):
    return {
        'CNI_COMMAND': command,
        'CNI_CONTAINERID': container_id or random_sha1(),
        'CNI_NETNS': '/var/run/netns/test',
        'CNI_IFNAME': 'eth0',
        'CNI_ARGS': args,
        'CNI_PATH': '/opt/cni/bin',
    }


def make_netconf(network='team/net1', cni_version='0.4.0', prev_result=None, **ipam):
    ipam.setdefault('type', 'differance-ipam')
    ipam['network'] = network
    conf = {
        'cniVersion': cni_version,
        'name': 'k8s-pod-network',
        'type': 'macvlan',
        'ipam': ipam,
    }
    if prev_result is not None:
        conf['prevResult'] = prev_result
    return json.dumps(conf)
