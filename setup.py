#!/usr/bin/python
#coding:utf-8
import os
from setuptools import setup, find_packages
from differance import __VERSION__

# package meta info
NAME = "differance"
VERSION = __VERSION__
DESCRIPTION = "IPAM CNI plugin with redis bitmap backend"
AUTHOR = "differance"
AUTHOR_EMAIL = ""
LICENSE = "BSD"
URL = ""
KEYWORDS = "cni ipam redis kubernetes"

ENTRY_POINTS = {
    'console_scripts':['differance-ipam=differance.app:main',]
}

INSTALL_REQUIRES = [
    'redis',
    'netaddr',
    'retrying',
    'PyYAML',
    'click',
]

EXTRAS_REQUIRE = {
    'test': ['pytest'],
}

here = os.path.abspath(os.path.dirname(__file__))

def read_long_description(filename):
    path = os.path.join(here, filename)
    if os.path.exists(path):
        with open(path, 'r') as f:
            return f.read()
    return ""

setup(
    name=NAME,
    version=VERSION,
    description=DESCRIPTION,
    long_description=read_long_description('README.rst'),
    author=AUTHOR,
    author_email=AUTHOR_EMAIL,
    license=LICENSE,
    url=URL,
    keywords=KEYWORDS,
    packages = find_packages(exclude=['tests.*', 'tests', 'examples.*', 'examples']),
    python_requires='>=3.7',
    include_package_data=True,
    zip_safe=False,
    entry_points=ENTRY_POINTS,
    install_requires=INSTALL_REQUIRES,
    extras_require=EXTRAS_REQUIRE,
)
