#!/usr/bin/env python3
"""Tuya DP - a Tuya datapoint protocol core."""

__version__ = "0.1.0"
VERSION = __version__
