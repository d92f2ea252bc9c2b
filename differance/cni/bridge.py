# coding: utf-8

"""
Conversion between the CNI result generations and the latest result.

The strategy is the one of the reference CNI libraries: take the
cniVersion found in the result itself (falling back to the declared
one), stamp it into the document, decode the document with the model
of exactly that version, then convert it to the latest result.
"""

import json
import logging

from differance.cni.types import v020, v040, v100
from differance.errors import DecodeError, UnsupportedVersion

_log = logging.getLogger(__name__)

GEN_A_VERSIONS = v020.VERSIONS
GEN_B_VERSIONS = v040.VERSIONS
GEN_C_VERSIONS = v100.VERSIONS
SUPPORTED_VERSIONS = GEN_A_VERSIONS + GEN_B_VERSIONS + GEN_C_VERSIONS
LATEST_VERSION = '1.0.0'

_GENERATIONS = {}
for _versions, _klass in ((GEN_A_VERSIONS, v020.Result020),
                          (GEN_B_VERSIONS, v040.Result040),
                          (GEN_C_VERSIONS, v100.Result)):
    for _v in _versions:
        _GENERATIONS[_v] = _klass


def _generation(version):
    try:
        return _GENERATIONS[version]
    except (KeyError, TypeError):
        raise UnsupportedVersion(version)


def check_version(version):
    """raise UnsupportedVersion unless results can be written in version"""
    _generation(version)
    return version


def load_document(raw):
    """bytes, text or an already decoded mapping; None is an empty result"""
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode('utf-8')
        except UnicodeDecodeError as e:
            raise DecodeError('result is not valid utf-8: %s' % e)
    if not isinstance(raw, str):
        raise DecodeError('result must be a JSON object, got %r' % (raw,))
    try:
        document = json.loads(raw)
    except ValueError as e:
        raise DecodeError('failed to decode result: %s' % e)
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise DecodeError('result must be a JSON object, got %r' % (document,))
    return document


def effective_version(document, declared_version):
    version = document.get('cniVersion')
    if version is None:
        return declared_version
    return str(version)


def decode(document, version):
    """decode a result document with the model of the given cniVersion"""
    klass = _generation(version)
    stamped = dict(document, cniVersion=version)
    return klass.from_dict(stamped)


def to_canonical(raw, declared_version):
    document = load_document(raw)
    version = effective_version(document, declared_version)
    result = decode(document, version)
    _log.debug('decoded %s result as cniVersion %s', result.__class__.__name__, version)
    return result.to_latest()


def render(result, target_version):
    klass = _generation(target_version)
    return klass.from_latest(result, target_version).to_dict()


def from_canonical(result, target_version):
    document = render(result, target_version)
    return json.dumps(document, separators=(',', ':')).encode('utf-8')
