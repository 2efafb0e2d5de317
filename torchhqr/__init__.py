"""Blocked multishift implicit QR sweeps for Hessenberg matrices."""
import logging as _logging

# Library code never configures logging: applications opt in with
# `logging.basicConfig` or by attaching handlers to the "torchhqr" logger.
_logging.getLogger(__name__).addHandler(_logging.NullHandler())

from . import core

__version__ = '0.1.0'
