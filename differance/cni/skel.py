# coding: utf-8

"""CNI calling convention: CNI_* environment variables and the stdin config."""

import os
import sys
import json

from differance.cni import bridge
from differance.cni.types import DNS
from differance.errors import DecodeError, MissingArgument

# variable -> required for (ADD, CHECK, DEL)
CMDARGS_ENV = (
    ('container_id', 'CNI_CONTAINERID', (True, True, True)),
    ('netns', 'CNI_NETNS', (True, True, False)),
    ('ifname', 'CNI_IFNAME', (True, True, True)),
    ('args', 'CNI_ARGS', (False, False, False)),
    ('path', 'CNI_PATH', (True, True, True)),
)
COMMANDS = ('ADD', 'CHECK', 'DEL')


class CmdArgs(object):

    def __init__(self, container_id='', netns='', ifname='', args=None, path='', stdin_data=''):
        self.container_id = container_id
        self.netns = netns
        self.ifname = ifname
        self.args = args or {}
        self.path = path
        self.stdin_data = stdin_data


def get_args(text):
    """K=V;K2=V2; -> dict, segments with more than one '=' are dropped"""
    args = {}
    for segment in text.split(';'):
        parts = segment.split('=')
        if len(parts) == 1:
            args[parts[0]] = ''
        elif len(parts) == 2:
            args[parts[0]] = parts[1]
    return args


def get_cmdargs_env(environ, command, name, required):
    value = environ.get(name)
    if value is not None:
        return value
    if command in COMMANDS and required[COMMANDS.index(command)]:
        raise MissingArgument(name)
    return ''


def get_cmdargs(environ=None, stdin=None):
    """returns (command, CmdArgs) from the process environment and stdin"""
    environ = os.environ if environ is None else environ
    stdin = sys.stdin if stdin is None else stdin

    stdin_data = stdin.read()
    if isinstance(stdin_data, bytes):
        stdin_data = stdin_data.decode('utf-8')

    command = environ.get('CNI_COMMAND')
    if command is None:
        raise MissingArgument('CNI_COMMAND')

    values = {}
    for attr, name, required in CMDARGS_ENV:
        values[attr] = get_cmdargs_env(environ, command, name, required)
    values['args'] = get_args(values['args'])
    return command, CmdArgs(stdin_data=stdin_data, **values)


class NetConf(object):
    """network configuration handed to the plugin on stdin"""

    def __init__(self, cni_version='', name='', type='', capabilities=None,
            dns=None, ipam=None, prev_result=None, raw=None):
        self.cni_version = cni_version
        self.name = name
        self.type = type
        self.capabilities = capabilities or {}
        self.dns = dns if dns is not None else DNS()
        self.ipam = ipam or {}
        self.prev_result = prev_result
        self.raw = raw or {}

    @classmethod
    def from_json(cls, text):
        try:
            data = json.loads(text)
        except ValueError as e:
            raise DecodeError('failed to decode network configuration: %s' % e)
        if not isinstance(data, dict):
            raise DecodeError('network configuration must be a JSON object')

        ipam = data.get('ipam') or {}
        if not isinstance(ipam, dict):
            raise DecodeError('netconf.ipam: expected an object, got %r' % (ipam,))
        return cls(
            cni_version=str(data.get('cniVersion') or ''),
            name=str(data.get('name') or ''),
            type=str(data.get('type') or ''),
            capabilities=data.get('capabilities') or {},
            dns=DNS.from_dict(data.get('dns'), 'netconf.dns'),
            ipam=ipam,
            prev_result=data.get('prevResult'),
            raw=data,
        )

    def get_current_result(self):
        """prevResult in its own cniVersion, converted to the latest result"""
        return bridge.to_canonical(self.prev_result, self.cni_version)

    def get_result_output(self, result):
        """result rendered in the cniVersion this plugin was called with"""
        return bridge.from_canonical(result, self.cni_version)
