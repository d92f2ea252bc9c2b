# coding: utf-8

from differance.cni.ipnet import IPNet, parse_ip
from differance.cni.bridge import (
    SUPPORTED_VERSIONS,
    LATEST_VERSION,
    to_canonical,
    from_canonical,
)

__all__ = [
    'IPNet',
    'parse_ip',
    'SUPPORTED_VERSIONS',
    'LATEST_VERSION',
    'to_canonical',
    'from_canonical',
]
