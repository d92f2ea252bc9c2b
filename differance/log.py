# coding: utf-8

import sys
import logging

FORMAT = '[%(asctime)s] [%(process)d] [%(levelname)s] [%(name)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S %z'


def init_logging(debug_file=None, debug=False):
    """stdout carries the CNI result, so logs go to debug_file or stderr"""
    logger = logging.getLogger('differance')
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(FORMAT, datefmt=DATE_FORMAT)

    if debug_file:
        handler = logging.FileHandler(debug_file, mode='a')
        handler.setLevel(logging.DEBUG if debug else logging.INFO)
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG if debug else logging.WARNING)
    handler.setFormatter(formatter)

    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    return logger
