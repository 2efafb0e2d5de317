"""Useful constants."""

import torch
from .optionals import numpy as np


def _precision(dtype):
    """Number of bits in the significand (0 if unknown)."""
    if isinstance(dtype, str):
        dtype = getattr(torch, dtype, dtype)
    if np and not isinstance(dtype, torch.dtype):
        try:
            dtype = np.dtype(dtype).name
        except TypeError:
            return 0
        dtype = getattr(torch, dtype, None)
    if dtype in (torch.float16, getattr(torch, 'complex32', None)):
        return 10
    if dtype in (torch.float32, torch.complex64):
        return 23
    if dtype in (torch.float64, torch.complex128):
        return 52
    return 0


def eps(dtype='float32'):
    """Machine epsilon for different precisions.

    Parameters
    ----------
    dtype : str or torch.dtype or np.dtype, default='float32'
        Real or complex floating point type. The epsilon of a complex
        type is the one of its real component.

    Returns
    -------
    eps : float

    """
    bits = _precision(dtype)
    if not bits:
        raise NotImplementedError(f'No epsilon for data type {dtype}')
    return 2 ** -bits
