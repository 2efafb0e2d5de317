"""Small kernels used to create and move bulges in implicit QR sweeps.

A bulge is the 3x3 (or 2x2 at the bottom of the active window) region
below the subdiagonal that is created when a double-shift reflector is
applied at the top of an Hessenberg matrix. It is chased down the
diagonal by a sequence of reflectors that restore the Hessenberg
structure of the column it occupies.

References
----------
..[1] "The multishift QR algorithm. Part I: Maintaining well-focused
      shifts and level 3 performance"
      K. Braman, R. Byers, R. Mathias.
      SIAM J. Matrix Anal. Appl. 23(4), 2002.
..[2] LAPACK routines `dlaqr1`, `zlaqr1` and `xlaqr5`.
"""
import torch
from . import utils, constants
from ._linalg_householder import reflector_


def shift_column(h, s1, s2):
    """Scaled first column of :math:`(H - s_1 I)(H - s_2 I)`.

    Parameters
    ----------
    h : (..., k, k) tensor, k in {2, 3}
        Leading block of an Hessenberg matrix.
    s1, s2 : (...) tensor_like
        Shifts. If `h` is real, they must be either both real or
        complex conjugates of each other.

    Returns
    -------
    v : (..., k) tensor
        Vector parallel to the first column of :math:`(H - s_1 I)(H - s_2 I)`.
        It is scaled to avoid overflows and is exactly zero if the first
        column of `h` is `[s2, 0, ...]`.

    """
    h = utils.as_tensor(h)
    h = h.to(utils.float_dtype(h.dtype))
    k = h.shape[-1]
    if k not in (2, 3) or h.shape[-2] != k:
        raise ValueError('Expected a 2x2 or 3x3 matrix. Got ({}, {})'
                         .format(h.shape[-2], k))
    ctype = utils.complex_dtype(h.dtype)
    s1 = utils.as_tensor(s1, dtype=ctype, device=h.device)
    s2 = utils.as_tensor(s2, dtype=ctype, device=h.device)
    return _shift_column(h, s1, s2)


def _shift_column_real(h, s1, s2):
    # Real arithmetic: the product (H - s1)(H - s2) is real because
    # s1 and s2 are conjugate (or both real).
    sr1, si1 = s1.real, s1.imag
    sr2, si2 = s2.real, s2.imag
    h00, h10 = h[..., 0, 0], h[..., 1, 0]
    h01, h11 = h[..., 0, 1], h[..., 1, 1]
    if h.shape[-1] == 2:
        scale = (h00 - sr2).abs() + si2.abs() + h10.abs()
        scale = torch.where(scale == 0, torch.ones_like(scale), scale)
        h10s = h10 / scale
        v0 = (h10s * h01 + (h00 - sr1) * ((h00 - sr2) / scale)
              - si1 * (si2 / scale))
        v1 = h10s * (h00 + h11 - sr1 - sr2)
        return torch.stack([v0, v1], -1)

    h20, h21, h02, h12, h22 = (h[..., 2, 0], h[..., 2, 1], h[..., 0, 2],
                               h[..., 1, 2], h[..., 2, 2])
    scale = (h00 - sr2).abs() + si2.abs() + h10.abs() + h20.abs()
    scale = torch.where(scale == 0, torch.ones_like(scale), scale)
    h10s = h10 / scale
    h20s = h20 / scale
    v0 = ((h00 - sr1) * ((h00 - sr2) / scale) - si1 * (si2 / scale)
          + h01 * h10s + h02 * h20s)
    v1 = h10s * (h00 + h11 - sr1 - sr2) + h12 * h20s
    v2 = h20s * (h00 + h22 - sr1 - sr2) + h21 * h10s
    return torch.stack([v0, v1, v2], -1)


def _shift_column_complex(h, s1, s2):
    abs1 = utils.abs1
    h00, h10 = h[..., 0, 0], h[..., 1, 0]
    h01, h11 = h[..., 0, 1], h[..., 1, 1]
    if h.shape[-1] == 2:
        scale = abs1(h00 - s2) + abs1(h10)
        scale = torch.where(scale == 0, torch.ones_like(scale), scale)
        h10s = h10 / scale
        v0 = h10s * h01 + (h00 - s1) * ((h00 - s2) / scale)
        v1 = h10s * (h00 + h11 - s1 - s2)
        return torch.stack([v0, v1], -1)

    h20, h21, h02, h12, h22 = (h[..., 2, 0], h[..., 2, 1], h[..., 0, 2],
                               h[..., 1, 2], h[..., 2, 2])
    scale = abs1(h00 - s2) + abs1(h10) + abs1(h20)
    scale = torch.where(scale == 0, torch.ones_like(scale), scale)
    h10s = h10 / scale
    h20s = h20 / scale
    v0 = (h00 - s1) * ((h00 - s2) / scale) + h01 * h10s + h02 * h20s
    v1 = h10s * (h00 + h11 - s1 - s2) + h12 * h20s
    v2 = h20s * (h00 + h22 - s1 - s2) + h21 * h10s
    return torch.stack([v0, v1, v2], -1)


def move_bulge(h, v, s1, s2, inplace=False, check_finite=True):
    """Move a bulge one position down the diagonal.

    Parameters
    ----------
    h : (..., 4, 3) tensor_like
        Window `A[i-1:i+3, i-1:i+2]` of the matrix, where `i` is the
        new position of the bulge. The last row has not received the
        update of the previous reflector yet.
    v : (..., 3) tensor_like
        Previous reflector `[tau, v1, v2]`.
    s1, s2 : (...) tensor_like
        Shifts carried by the bulge.
    inplace : bool, default=False
        Overwrite `h` and `v`.
    check_finite : bool, default=True
        Check that all values in `h` and `v` are finite.

    Returns
    -------
    h : (..., 4, 3) tensor
        Updated window. `h[..., 1, 0]` holds `beta` and `h[..., 2:, 0]`
        is exactly zero.
    v : (..., 3) tensor
        New reflector `[tau, v1, v2]`.

    """
    h = utils.as_tensor(h)
    h = h.to(utils.float_dtype(h.dtype))
    v = utils.as_tensor(v, **utils.backend(h))
    if tuple(h.shape[-2:]) != (4, 3):
        raise ValueError('Expected a 4x3 window. Got ({})'
                         .format(', '.join(map(str, h.shape[-2:]))))
    if v.shape[-1] != 3:
        raise ValueError('Expected a reflector of length 3. Got {}'
                         .format(v.shape[-1]))
    if check_finite and not (torch.isfinite(h).all()
                             and torch.isfinite(v).all()):
        raise ValueError('Input has non finite values.')
    if not inplace:
        h = h.clone()
        v = v.clone()
    ctype = utils.complex_dtype(h.dtype)
    s1 = utils.as_tensor(s1, dtype=ctype, device=h.device)
    s2 = utils.as_tensor(s2, dtype=ctype, device=h.device)

    move_bulge_(h, v, s1, s2)
    return h, v


def move_bulge_(h, v, s1, s2):
    """Inplace version of ``move_bulge``, without any checks."""
    conj = utils.conj

    # delayed update of the row below the bulge by the previous reflector
    tau, v1, v2 = v.unbind(-1)
    h32 = h[..., 3, 2].clone()
    refsum = tau * v2 * h32
    h[..., 3, 0] = -refsum
    h[..., 3, 1] = -refsum * conj(v1)
    h[..., 3, 2] = h32 - refsum * conj(v2)

    # reflector that annihilates h[2:, 0]
    x = h[..., 1:, 0].clone()
    tau = reflector_(x)
    beta = x[..., 0]

    # The bulge has collapsed if the fill-in below it vanished while the
    # matrix is not reduced at the bottom of the window. Try to restart
    # it from the shifts and keep the new reflector only if it does not
    # create a significant fill-in in the first column.
    collapsed = (h[..., 3, 0] == 0) & (h[..., 3, 1] == 0) & (h32 != 0)
    if collapsed.any():
        # The last column of the trailing 3x3 block is outside of the
        # window. It is only used through h[3, 1], which is zero here.
        trailing = torch.zeros_like(h[..., 1:, :])
        trailing[..., :, :2] = h[..., 1:, 1:]
        vt = _shift_column(trailing, s1, s2)
        tau_t = reflector_(vt)
        refsum = conj(tau_t) * (h[..., 1, 0]
                                + conj(vt[..., 1]) * h[..., 2, 0])
        fill = (utils.abs1(h[..., 2, 0] - refsum * vt[..., 1])
                + utils.abs1(refsum * vt[..., 2]))
        ref = (utils.abs1(h[..., 0, 0]) + utils.abs1(h[..., 1, 1])
               + utils.abs1(h[..., 2, 2]))
        restart = collapsed & ~(fill > constants.eps(h.dtype) * ref)
        beta = torch.where(restart, h[..., 1, 0] - refsum, beta)
        tau = torch.where(restart, tau_t, tau)
        x = torch.where(restart[..., None], vt, x)

    h[..., 1, 0] = beta
    h[..., 2:, 0] = 0
    v[..., 0] = tau
    v[..., 1:] = x[..., 1:]
    return h, v


def _shift_column(h, s1, s2):
    if h.is_complex():
        return _shift_column_complex(h, s1, s2)
    return _shift_column_real(h, s1, s2)
