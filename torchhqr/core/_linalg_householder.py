"""Elementary (Householder) reflectors.

An elementary reflector is a matrix of the form :math:`H = I - \\tau v v^H`,
where the Householder vector `v` has a leading entry equal to one. It is
fully described by the scalar `tau` and the tail `v[1:]`, so that it can
be stored in place of the entries it annihilates.

Reflectors follow the LAPACK conventions (`larfg`, `larf`, `org2r`):
:math:`H^H x = \\beta e_1`, with :math:`\\beta` real. Because `tau` is
complex in general, `H` is not Hermitian: applying :math:`H^H` amounts to
using `conj(tau)`.

References
----------
..[1] "LAPACK Users' Guide", Anderson et al., SIAM, 1999.
      Section 5.4 "Representation of orthogonal or unitary matrices".
"""
import torch
from . import utils


def reflector(x, inplace=False, check_finite=True):
    """Generate the elementary reflector that maps `x` onto its first axis.

    Parameters
    ----------
    x : (..., k) tensor_like
        Input vector. Can be batched and complex.
    inplace : bool, default=False
        If True, overwrite `x`.
    check_finite : bool, default=True
        If True, checks that the input does not contain any
        non finite value. Disabling this may speed up the algorithm.

    Returns
    -------
    x : (..., k) tensor
        `x[..., 0]` contains `beta` and `x[..., 1:]` contains the tail of
        the Householder vector `v` (its first element is implicitly 1).
    tau : (...) tensor
        Scalar factor of the reflector. It is zero if `x[..., 1:]` is
        zero and `x[..., 0]` is real, in which case `H` is the identity.

    """
    x = utils.as_tensor(x)
    x = x.to(utils.float_dtype(x.dtype))
    if check_finite and not torch.isfinite(x).all():
        raise ValueError('Input has non finite values.')
    if x.dim() == 0 or x.shape[-1] == 0:
        raise ValueError('Expected a non-empty vector.')
    if not inplace:
        x = x.clone()

    tau = reflector_(x)
    return x, tau


def reflector_(x):
    """Inplace version of ``reflector``, without any checks.

    Returns only `tau`; `x` is overwritten with `[beta, v[1:]]`.
    """
    alpha = x[..., 0].clone()
    xnorm = torch.linalg.vector_norm(x[..., 1:], dim=-1)
    if x.is_complex():
        alpha_re, alpha_im = alpha.real, alpha.imag
    else:
        alpha_re, alpha_im = alpha, torch.zeros_like(alpha)
    identity = (xnorm == 0) & (alpha_im == 0)

    # beta = -sign(Re alpha) * ||x||, with the sign of alpha so that
    # (alpha - beta) does not cancel
    beta = -torch.copysign(torch.hypot(alpha.abs(), xnorm), alpha_re)
    beta = torch.where(identity, torch.ones_like(beta), beta)
    beta = beta.to(x.dtype)

    tau = (beta - alpha) / beta
    tau = torch.where(identity, torch.zeros_like(tau), tau)
    scale = (alpha - beta).reciprocal()
    scale = torch.where(identity, torch.ones_like(scale), scale)

    x[..., 1:] *= scale[..., None]
    x[..., 0] = torch.where(identity, alpha, beta)
    return tau


def reflector_apply_(a, v, tau, side='left'):
    """Apply an elementary reflector to a (view of a) matrix, in place.

    Parameters
    ----------
    a : (..., m, n) tensor
        Matrix (or view into a larger matrix) to transform.
    v : (..., k) tensor
        Householder vector, *including* its leading one.
        `k == m` if `side == 'left'`, `k == n` if `side == 'right'`.
    tau : (...) tensor
        Scalar factor. Use `conj(tau)` to apply :math:`H^H`.
    side : {'left', 'right'}, default='left'
        Apply :math:`H a` or :math:`a H`.

    Returns
    -------
    a : (..., m, n) tensor

    """
    tau = tau[..., None, None]
    if side == 'left':
        a -= (tau * v[..., :, None]).matmul(
            utils.conj(v)[..., None, :].matmul(a))
    elif side == 'right':
        a -= (a.matmul(v[..., :, None]) * tau).matmul(
            utils.conj(v)[..., None, :])
    else:
        raise ValueError(f'Unknown side {side}')
    return a


def org2r(a, tau, inplace=False, check_finite=True):
    """Generate the orthonormal factor of a QR factorization.

    Parameters
    ----------
    a : (..., m, n) tensor_like
        The i-th column contains, below the diagonal, the tail of the
        i-th Householder vector. Requires `m >= n`.
    tau : (..., k) tensor_like
        Scalar factors of the `k <= n` reflectors.
    inplace : bool, default=False
        Overwrite `a`.
    check_finite : bool, default=True
        Check that all values in `a` and `tau` are finite.

    Returns
    -------
    q : (..., m, n) tensor
        :math:`Q = H_0 H_1 \\dots H_{k-1}`, restricted to its first `n`
        columns.

    """
    a = utils.as_tensor(a)
    tau = utils.as_tensor(tau, device=a.device)
    a = a.to(utils.float_dtype(torch.promote_types(a.dtype, tau.dtype)))
    tau = tau.to(a.dtype)
    if check_finite and not (torch.isfinite(a).all()
                             and torch.isfinite(tau).all()):
        raise ValueError('Input has non finite values.')
    m, n = a.shape[-2:]
    if m < n:
        raise ValueError('Expected a tall matrix. Got ({}, {})'.format(m, n))
    if tau.shape[-1] > n:
        raise ValueError('Too many reflectors: {} > {}'
                         .format(tau.shape[-1], n))
    if not inplace:
        a = a.clone()

    return org2r_(a, tau)


def org2r_(a, tau):
    """Inplace version of ``org2r``, without any checks."""
    m, n = a.shape[-2:]
    k = tau.shape[-1]

    # columns that do not hold a reflector are set to the identity
    a[..., :, k:] = 0
    a[..., k:, k:].diagonal(0, -1, -2).fill_(1)

    for i in reversed(range(k)):
        tau_i = tau[..., i]
        if i < n - 1:
            a[..., i, i] = 1
            v = a[..., i:, i].clone()
            reflector_apply_(a[..., i:, i+1:], v, tau_i, side='left')
        if i < m - 1:
            a[..., i+1:, i] *= -tau_i[..., None]
        a[..., i, i] = 1 - tau_i
        a[..., :i, i] = 0
    return a
