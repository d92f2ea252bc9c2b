# coding: utf-8

from differance.cni.types.common import Route, DNS
from differance.cni.types.v100 import Interface, IPConfig, Result
from differance.cni.types.v040 import IPConfig040, Result040
from differance.cni.types.v020 import IPConfig020, Result020

__all__ = [
    'Route',
    'DNS',
    'Interface',
    'IPConfig',
    'Result',
    'IPConfig040',
    'Result040',
    'IPConfig020',
    'Result020',
]
