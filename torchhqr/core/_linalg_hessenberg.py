"""Reduction to upper Hessenberg form.

This is the unblocked algorithm (LAPACK `gehd2`): a sequence of `n-2`
elementary reflectors is applied on both sides of the matrix. The
reflectors are stored below the first subdiagonal, and the unitary
factor can be built afterwards with ``orghr_``.
"""
import torch
from . import utils
from ._linalg_householder import reflector_, reflector_apply_, org2r_


def hessenberg(a, compute_q=False, inplace=False, check_finite=True):
    """Return an Hessenberg form of the matrix (or matrices) ``a``.

    Parameters
    ----------
    a : (..., n, n) tensor_like
        Input matrix. Can be complex.
    compute_q : bool, default=False
        Compute and return the unitary factor ``q``.
    inplace : bool, default=False
        Overwrite ``a``.
    check_finite : bool, default=True
        Check that all values in ``a`` are finite.

    Returns
    -------
    h : (..., n, n) tensor
        Hessenberg form of ``a`` (exact zeros below the first subdiagonal).
    q : (..., n, n) tensor, if `compute_q`
        Unitary matrix such that :math:`a = q h q^H`.

    """
    a = utils.as_tensor(a)
    a = a.to(utils.float_dtype(a.dtype))
    if a.dim() < 2 or a.shape[-1] != a.shape[-2]:
        raise ValueError('Expected square matrix. Got ({})'
                         .format(', '.join(map(str, a.shape[-2:]))))
    if check_finite and not torch.isfinite(a).all():
        raise ValueError('Input has non finite values.')
    if not inplace:
        a = a.clone()

    a, tau = hessenberg_(a)
    q = orghr_(a, tau) if compute_q else None
    a.triu_(-1)
    return (a, q) if compute_q else a


def hessenberg_(a):
    """Inplace version of ``hessenberg``, without any checks.

    Returns
    -------
    a : (..., n, n) tensor
        Hessenberg form of ``a``, with the tails of the Householder
        vectors stored below the first subdiagonal.
    tau : (..., n-2) tensor
        Scalar factors of the reflectors.

    """
    n = a.shape[-1]
    tau = a.new_zeros([*a.shape[:-2], max(n - 2, 0)])
    for i in range(n - 2):
        x = a[..., i+1:, i]
        tau_i = reflector_(x)
        tau[..., i] = tau_i
        v = x.clone()
        v[..., 0] = 1
        # a := H^H a H
        reflector_apply_(a[..., :, i+1:], v, tau_i, side='right')
        reflector_apply_(a[..., i+1:, i+1:], v, utils.conj(tau_i),
                         side='left')
    return a, tau


def orghr_(a, tau):
    """Build the unitary factor of a Hessenberg reduction.

    Parameters
    ----------
    a : (..., n, n) tensor
        Output of ``hessenberg_`` (reflectors below the subdiagonal).
        It is not modified.
    tau : (..., n-2) tensor
        Scalar factors of the reflectors.

    Returns
    -------
    q : (..., n, n) tensor

    """
    n = a.shape[-1]
    q = torch.zeros_like(a)
    if n == 0:
        return q
    q[..., 0, 0] = 1
    # the i-th reflector acts on rows (i+1, ...): shift them one column
    # to the right so that they look like a QR factorization
    q[..., 1:, 1:] = a[..., 1:, :-1]
    org2r_(q[..., 1:, 1:], tau)
    return q
