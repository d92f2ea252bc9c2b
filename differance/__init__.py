# coding: utf-8

__VERSION__ = '0.1.0'
