# coding: utf-8

from differance.ipam.bitmap import BitmapIPAM
from differance.ipam.structure import NetworkIP, IPAllocation, NetworkIPRange

__all__ = ['BitmapIPAM', 'NetworkIP', 'IPAllocation', 'NetworkIPRange']
