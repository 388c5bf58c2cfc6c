#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
XorName Setup Script (Legacy Compatibility)
===========================================

Configuration lives in pyproject.toml (PEP 621).

For modern installations, use:
    pip install .
    pip install -e .[test]
"""

from setuptools import setup

setup()
