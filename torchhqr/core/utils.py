"""PyTorch utilities."""

import torch


def as_tensor(input, dtype=None, device=None):
    """Convert object to tensor.

    This function expands ``torch.as_tensor`` by accepting nested lists
    of tensors, which are recursively stacked after being converted to
    a common backend.

    Parameters
    ----------
    input : tensor_like
        Input object: tensor or (nested) list/tuple of tensors/scalars
    dtype : torch.dtype, optional
        Output data type.
    device : torch.device, optional
        Output device

    Returns
    -------
    output : tensor
        Output tensor.

    """
    def _stack(x):
        if torch.is_tensor(x):
            return x.to(device if device is not None else x.device,
                        dtype if dtype is not None else x.dtype)
        if isinstance(x, (list, tuple)) and any(map(torch.is_tensor, x)):
            subs = [_stack(e) for e in x]
            common = max_backend(*subs)
            return torch.stack([elem.to(**common) for elem in subs])
        return torch.as_tensor(x, dtype=dtype, device=device)

    return _stack(input)


def backend(x):
    """Return the backend (dtype and device) of a tensor

    Parameters
    ----------
    x : tensor

    Returns
    -------
    dict with keys 'dtype' and 'device'

    """
    return dict(dtype=x.dtype, device=x.device)


def max_backend(*args):
    """Get a common dtype and device for a series of tensors.

    The dtype is obtained by type promotion and the device is the first
    non-cpu device encountered (cpu otherwise).

    Parameters
    ----------
    args : tensors

    Returns
    -------
    dict with keys 'dtype' and 'device'

    """
    args = [torch.as_tensor(arg) for arg in args]
    dtype = args[0].dtype
    for arg in args[1:]:
        dtype = torch.promote_types(dtype, arg.dtype)
    device = torch.device('cpu')
    for arg in args:
        if arg.device.type != 'cpu':
            device = arg.device
            break
    return dict(dtype=dtype, device=device)


def float_dtype(dtype):
    """Return the dtype itself if it is a (real or complex) floating point
    type, and the default floating point type otherwise."""
    if dtype.is_floating_point or dtype.is_complex:
        return dtype
    return torch.get_default_dtype()


def complex_dtype(dtype):
    """Complex data type with the same precision as `dtype`."""
    if dtype.is_complex:
        return dtype
    return {torch.float16: getattr(torch, 'complex32', torch.complex64),
            torch.float32: torch.complex64,
            torch.float64: torch.complex128}.get(dtype, torch.complex64)


def conj(x):
    """Take conjugate if complex (saves a copy when real)."""
    return x.conj() if x.is_complex() else x


def herm(x):
    """Conjugate transpose of a (batch of) matrix."""
    return conj(x).transpose(-1, -2)


def abs1(x):
    """The cheap modulus |Re(x)| + |Im(x)| (|x| if real)."""
    if x.is_complex():
        return x.real.abs() + x.imag.abs()
    return x.abs()
