#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SETUP SCRIPT
============

Metadata and dependencies are declared in `setup.cfg`.
Optional dependencies:
test
    pytest and scipy (used to cross-check some decompositions).
"""
from setuptools import setup, find_packages
import os
from configparser import ConfigParser

config = ConfigParser()
rootdir = os.path.dirname(os.path.abspath(__file__))
config.read(os.path.join(rootdir, 'setup.cfg'))
INSTALL_REQUIRES = config['options']['install_requires']
INSTALL_REQUIRES = [req.strip() for req in INSTALL_REQUIRES.split('\n')
                    if req.strip()]

setup(
    packages=find_packages(),
    install_requires=INSTALL_REQUIRES,
)
