"""Multishift QR sweep with delayed (blocked) updates.

A sweep applies one step of the implicitly shifted QR algorithm with
`2*k` shifts to the active window `[ilo, ihi)` of an Hessenberg matrix.
The shifts are packed in `k` tightly-coupled 3x3 bulges, two positions
apart, that are introduced at the top of the window, chased down the
diagonal and removed at the bottom.

Reflectors are only applied to a small diagonal block (the one that
contains the bulges). Their product is accumulated in a small unitary
matrix `U` that is applied to the rest of the matrix (and to `Z`) with
two matrix products once the block has been processed. The sweep is
split in three phases:

    INTRODUCE  bulges are created one at a time at the top of the window
    CHASE      the chain of bulges is moved down by `n_pos` positions
               (repeated while the chain does not reach the bottom block)
    REMOVE     bulges are pushed out of the bottom of the window

References
----------
..[1] "The multishift QR algorithm. Part I: Maintaining well-focused
      shifts and level 3 performance"
      K. Braman, R. Byers, R. Mathias.
      SIAM J. Matrix Anal. Appl. 23(4), 2002.
..[2] "Multishift variants of the QZ algorithm with aggressive early
      deflation", B. Kagstrom, D. Kressner.
      SIAM J. Matrix Anal. Appl. 29(1), 2007.
"""
import logging
from warnings import warn
import torch
from . import utils
from .options import Option, Validated
from ._linalg_householder import reflector_, reflector_apply_
from ._linalg_bulge import shift_column, move_bulge_

logger = logging.getLogger(__name__)


class SweepOptions(Option):
    """Options of ``multishift_sweep``"""
    want_t: bool = True             # update the full matrix, not only the window
    block_size: int = Validated(    # default: 2 * number of shifts
        None, lambda x: x is None or x >= 3)
    check_finite: bool = True       # check that inputs are finite
    truncate_shifts: bool = True    # drop shifts that do not fit in the window


def multishift_sweep(a, shifts, ilo=0, ihi=None, z=None, inplace=False,
                     options=None, **kwargs):
    """Perform one multishift QR sweep on an Hessenberg matrix.

    Parameters
    ----------
    a : (..., n, n) tensor_like
        Upper Hessenberg matrix. Can be complex.
    shifts : (..., n_shifts) tensor_like
        Shifts, in pairs. If `a` is real, each pair `(2i, 2i+1)` must be
        made of two real values or of two complex conjugates.
    ilo, ihi : int, default=(0, n)
        Active window `[ilo, ihi)`. The subdiagonal entries `a[ilo, ilo-1]`
        and `a[ihi, ihi-1]` should be zero (deflated).
    z : (..., m, n) tensor_like, optional
        If provided, `z` is multiplied on the right by the unitary
        transformation of the sweep.
    inplace : bool, default=False
        Overwrite `a` and `z`.
    options : SweepOptions or dict, optional
        Options of the sweep. Can also be passed as keywords:
        want_t : bool, default=True
            If True, the full matrix is updated so that it stays similar
            to the input. Else, only the window `[ilo, ihi)` is updated.
        block_size : int, default=2*n_shifts
            Size of the diagonal blocks in which reflectors are applied
            before being flushed to the rest of the matrix.
            Must be larger than `n_shifts`.
        check_finite : bool, default=True
            Check that inputs do not contain non finite values.
        truncate_shifts : bool, default=True
            If the window is too small for all the bulges, drop the
            trailing shifts (with a warning). Else, raise an error.

    Returns
    -------
    a : (..., n, n) tensor
        Transformed matrix :math:`U^H a U`.
    z : (..., m, n) tensor, if `z` is provided
        Transformed matrix :math:`z U`.

    """
    opt = SweepOptions().update(options, **kwargs)

    a = utils.as_tensor(a)
    a = a.to(utils.float_dtype(a.dtype))
    if a.dim() < 2 or a.shape[-1] != a.shape[-2]:
        raise ValueError('Expected square matrix. Got ({})'
                         .format(', '.join(map(str, a.shape[-2:]))))
    n = a.shape[-1]
    ihi = n if ihi is None else ihi
    if not 0 <= ilo <= ihi <= n:
        raise ValueError(f'Invalid active window [{ilo}, {ihi}) for a '
                         f'matrix of size {n}')

    shifts = utils.as_tensor(shifts, dtype=utils.complex_dtype(a.dtype),
                             device=a.device)
    if shifts.dim() == 0 or shifts.shape[-1] == 0 or shifts.shape[-1] % 2:
        raise ValueError('Expected an even, non-zero number of shifts. '
                         'Got shape {}'.format(tuple(shifts.shape)))
    batch, shift_batch = a.shape[:-2], shifts.shape[:-1]
    if (len(shift_batch) > len(batch) or
            any(s not in (1, b) for s, b in zip(reversed(shift_batch),
                                                reversed(batch)))):
        raise ValueError('Shifts of shape {} cannot be broadcast to the '
                         'batch shape {} of the matrix'
                         .format(tuple(shifts.shape), tuple(batch)))
    if not a.is_complex():
        s1, s2 = shifts[..., 0::2], shifts[..., 1::2]
        paired = ((s1.imag == 0) & (s2.imag == 0)) | (s1 == s2.conj())
        if not paired.all():
            raise ValueError('Shifts of a real matrix must come in pairs '
                             'of real values or complex conjugates.')

    if z is not None:
        z = utils.as_tensor(z, **utils.backend(a))
        if z.dim() < 2 or z.shape[-1] != n:
            raise ValueError('Expected z to have {} columns. Got {}'
                             .format(n, z.shape[-1] if z.dim() else 0))

    if opt.check_finite:
        if not torch.isfinite(a).all() or not torch.isfinite(shifts).all():
            raise ValueError('Input has non finite values.')
        if z is not None and not torch.isfinite(z).all():
            raise ValueError('Input has non finite values.')

    if not inplace:
        a = a.clone()
        z = z.clone() if z is not None else None

    if ihi - ilo < 3:
        logger.debug('Active window [%d, %d) too small for a bulge: '
                     'nothing to do', ilo, ihi)
        return (a, z) if z is not None else a

    n_shifts = shifts.shape[-1]
    max_shifts = 2 * ((ihi - ilo - 1) // 2)
    if n_shifts > max_shifts:
        if not opt.truncate_shifts:
            raise ValueError(f'At most {max_shifts} shifts fit in the '
                             f'active window [{ilo}, {ihi}). Got {n_shifts}')
        warn(f'At most {max_shifts} shifts fit in the active window '
             f'[{ilo}, {ihi}). The last {n_shifts - max_shifts} shifts '
             f'are dropped.', RuntimeWarning)
        shifts = shifts[..., :max_shifts]
        n_shifts = max_shifts

    block_size = opt.block_size or 2 * n_shifts
    if block_size < n_shifts + 1:
        raise ValueError(f'Block size must be larger than the number of '
                         f'shifts ({n_shifts}). Got {block_size}')

    multishift_sweep_(a, shifts, ilo, ihi, z, want_t=opt.want_t,
                      block_size=block_size)
    return (a, z) if z is not None else a


def multishift_sweep_(a, shifts, ilo, ihi, z=None, want_t=True,
                      block_size=None):
    """Inplace version of ``multishift_sweep``, without any checks.

    `shifts` must be complex, with an even length smaller than `ihi-ilo`,
    and `block_size` (default `2*n_shifts`) must be larger than the
    number of shifts.
    """
    n = a.shape[-1]
    n_shifts = shifts.shape[-1]
    n_bulges = n_shifts // 2
    block_size = block_size or 2 * n_shifts
    batch = a.shape[:-2]
    shifts = shifts.expand([*batch, n_shifts])

    # reflectors [tau, v1, v2] of each bulge, and block accumulator
    v = a.new_zeros([*batch, 3, n_bulges])
    u = a.new_zeros([*batch, block_size, block_size])
    window = (0, n) if want_t else (ilo, ihi)

    n_block = min(block_size, ihi - ilo)
    logger.debug('Introduce %d bulges in block [%d, %d)',
                 n_bulges, ilo, ilo + n_block)
    introduce_bulges_(a, v, u, shifts, ilo, n_block, window, z)

    i_pos_block = ilo + n_block - n_shifts
    while i_pos_block < ihi - block_size:
        n_pos = min(block_size - n_shifts, ihi - n_shifts - 1 - i_pos_block)
        logger.debug('Chase bulges in block [%d, %d)',
                     i_pos_block, i_pos_block + n_shifts + n_pos)
        chase_bulges_(a, v, u, shifts, i_pos_block, n_pos, window, z)
        i_pos_block += n_pos

    logger.debug('Remove bulges in block [%d, %d)', i_pos_block, ihi)
    remove_bulges_(a, v, u, shifts, i_pos_block, ihi, window, z)
    return a


def introduce_bulges_(a, v, u, shifts, ilo, n_block, window, z=None):
    """Introduce all bulges at the top of the active window.

    Bulge `k` is created at `ilo` once bulge `k-1` has been pushed two
    positions down. At the end, the lowest bulge sits at
    `ilo + n_block - 3` and the chain occupies the bottom of the block.

    Parameters
    ----------
    a : (..., n, n) tensor
    v : (..., 3, n_bulges) tensor
        Reflectors of each bulge (overwritten).
    u : (..., nb, nb) tensor
        Workspace for the block accumulator, with `nb >= n_block`.
    shifts : (..., 2*n_bulges) tensor
    ilo : int
        First row of the active window.
    n_block : int
        Size of the diagonal block `[ilo, ilo + n_block)`.
    window : (int, int)
        Range of rows and columns that receive the bulk updates.
    z : (..., m, n) tensor, optional

    Returns
    -------
    u : (..., n_block, n_block) tensor
        Accumulated unitary transformation of the block.

    """
    n_bulges = v.shape[-1]
    u = _identity_block(u, n_block)
    istop = ilo + n_block
    for i_pos_last in range(ilo, ilo + n_block - 2):
        n_active = min(n_bulges, (i_pos_last - ilo) // 2 + 1)
        for k in range(n_active):
            i_pos = i_pos_last - 2 * k
            s1, s2 = shifts[..., 2*k], shifts[..., 2*k+1]
            if i_pos == ilo:
                vk = shift_column(a[..., ilo:ilo+3, ilo:ilo+3], s1, s2)
                v[..., 0, k] = reflector_(vk)
                v[..., 1:, k] = vk[..., 1:]
            else:
                move_bulge_(a[..., i_pos-1:i_pos+3, i_pos-1:i_pos+2],
                            v[..., :, k], s1, s2)
            _apply_near_diagonal_(a, v, k, i_pos, ilo)
        bulges = range(n_active)
        _apply_delayed_left_(a, v, bulges, i_pos_last, istop)
        _accumulate_(u, v, bulges, i_pos_last - ilo)

    _flush_(a, u, ilo, window, z)
    return u


def chase_bulges_(a, v, u, shifts, i_pos_block, n_pos, window, z=None):
    """Move the chain of bulges `n_pos` positions down.

    Parameters
    ----------
    a : (..., n, n) tensor
    v : (..., 3, n_bulges) tensor
        Reflectors of each bulge (updated).
    u : (..., nb, nb) tensor
        Workspace for the block accumulator, with `nb >= n_shifts + n_pos`.
    shifts : (..., 2*n_bulges) tensor
    i_pos_block : int
        First row of the block. The top bulge is at `i_pos_block - 1`.
    n_pos : int
        Number of positions by which the bulges are moved.
    window : (int, int)
        Range of rows and columns that receive the bulk updates.
    z : (..., m, n) tensor, optional

    Returns
    -------
    u : (..., n_shifts + n_pos, n_shifts + n_pos) tensor
        Accumulated unitary transformation of the block.

    """
    n_bulges = v.shape[-1]
    n_shifts = 2 * n_bulges
    n_block = n_shifts + n_pos
    u = _identity_block(u, n_block)
    istop = i_pos_block + n_block
    bulges = range(n_bulges)
    first = i_pos_block + n_shifts - 2
    for i_pos_last in range(first, first + n_pos):
        for k in bulges:
            i_pos = i_pos_last - 2 * k
            move_bulge_(a[..., i_pos-1:i_pos+3, i_pos-1:i_pos+2],
                        v[..., :, k], shifts[..., 2*k], shifts[..., 2*k+1])
            _apply_near_diagonal_(a, v, k, i_pos, i_pos_block)
        _apply_delayed_left_(a, v, bulges, i_pos_last, istop)
        _accumulate_(u, v, bulges, i_pos_last - i_pos_block)

    _flush_(a, u, i_pos_block, window, z)
    return u


def remove_bulges_(a, v, u, shifts, i_pos_block, ihi, window, z=None):
    """Push all bulges out of the bottom of the active window.

    A bulge that reaches `ihi - 2` is removed with a 2x2 reflector;
    from then on it is inactive.

    Parameters
    ----------
    a : (..., n, n) tensor
    v : (..., 3, n_bulges) tensor
        Reflectors of each bulge (updated).
    u : (..., nb, nb) tensor
        Workspace for the block accumulator, with `nb >= ihi - i_pos_block`.
    shifts : (..., 2*n_bulges) tensor
    i_pos_block : int
        First row of the block. The top bulge is at `i_pos_block - 1`.
    ihi : int
        End of the active window.
    window : (int, int)
        Range of rows and columns that receive the bulk updates.
    z : (..., m, n) tensor, optional

    Returns
    -------
    u : (..., ihi - i_pos_block, ihi - i_pos_block) tensor
        Accumulated unitary transformation of the block.

    """
    n_bulges = v.shape[-1]
    n_shifts = 2 * n_bulges
    u = _identity_block(u, ihi - i_pos_block)
    for i_pos_last in range(i_pos_block + n_shifts - 2, ihi + n_shifts - 3):
        # bulges below ihi - 2 have already left the window
        first = max(0, (i_pos_last + 3 - ihi) // 2)
        for k in range(first, n_bulges):
            i_pos = i_pos_last - 2 * k
            if i_pos == ihi - 2:
                _remove_last_(a, v, u, k, i_pos, i_pos_block, ihi)
            else:
                move_bulge_(a[..., i_pos-1:i_pos+3, i_pos-1:i_pos+2],
                            v[..., :, k], shifts[..., 2*k], shifts[..., 2*k+1])
                _apply_near_diagonal_(a, v, k, i_pos, i_pos_block)
        # the 2x2 reflectors are already fully applied
        bulges = range(max(0, (i_pos_last + 4 - ihi) // 2), n_bulges)
        _apply_delayed_left_(a, v, bulges, i_pos_last, ihi)
        _accumulate_(u, v, bulges, i_pos_last - i_pos_block)

    _flush_(a, u, i_pos_block, window, z)
    return u


def _remove_last_(a, v, u, k, i_pos, i_pos_block, ihi):
    """Remove a bulge that sits at `ihi - 2` with a 2x2 reflector."""
    x = a[..., i_pos:i_pos+2, i_pos-1]
    tau = reflector_(x)
    v[..., 0, k] = tau
    v[..., 1, k] = x[..., 1]
    v[..., 2, k] = 0
    x[..., 1] = 0

    w = _householder_vector(v, k)[..., :2]
    reflector_apply_(a[..., i_pos_block:i_pos+2, i_pos:i_pos+2], w, tau,
                     side='right')
    reflector_apply_(a[..., i_pos:i_pos+2, i_pos:ihi], w, utils.conj(tau),
                     side='left')
    i = i_pos - i_pos_block
    reflector_apply_(u[..., :, i:i+2], w, tau, side='right')


def _householder_vector(v, k):
    """Return the full Householder vector [1, v1, v2] of bulge `k`."""
    w = v[..., :, k].clone()
    w[..., 0] = 1
    return w


def _apply_near_diagonal_(a, v, k, i_pos, istart):
    """Apply the reflector of bulge `k` in the vicinity of the bulge.

    From the right, it is applied to rows `[istart, i_pos + 3)` (the row
    below the bulge is updated by the next ``move_bulge_``). From the
    left, it is only applied to column `i_pos`: the other columns are
    updated by ``_apply_delayed_left_``, once all bulges have moved.
    """
    tau = v[..., 0, k].clone()
    w = _householder_vector(v, k)
    reflector_apply_(a[..., istart:i_pos+3, i_pos:i_pos+3], w, tau,
                     side='right')
    reflector_apply_(a[..., i_pos:i_pos+3, i_pos:i_pos+1], w,
                     utils.conj(tau), side='left')


def _apply_delayed_left_(a, v, bulges, i_pos_last, istop):
    """Apply the reflectors of all bulges from the left, up to `istop`."""
    for k in bulges:
        i_pos = i_pos_last - 2 * k
        tau = v[..., 0, k].clone()
        w = _householder_vector(v, k)
        reflector_apply_(a[..., i_pos:i_pos+3, i_pos+1:istop], w,
                         utils.conj(tau), side='left')


def _accumulate_(u, v, bulges, i_last):
    """Accumulate the reflectors of all bulges in the block transform."""
    for k in bulges:
        i = i_last - 2 * k
        tau = v[..., 0, k].clone()
        w = _householder_vector(v, k)
        reflector_apply_(u[..., :, i:i+3], w, tau, side='right')


def _identity_block(u, n_block):
    u = u[..., :n_block, :n_block]
    u.zero_()
    u.diagonal(0, -1, -2).fill_(1)
    return u


def _flush_(a, u, start, window, z=None):
    """Apply the block transform to the rest of the matrix.

    The block is `[start, start + nb)`. Rows of the block are updated
    from the left in columns `[start + nb, istop)` and columns of the
    block are updated from the right in rows `[istart, start)`, where
    `(istart, istop) = window`. All rows of `z` are updated.
    """
    istart, istop = window
    stop = start + u.shape[-1]
    if stop < istop:
        blk = a[..., start:stop, stop:istop]
        blk.copy_(utils.herm(u).matmul(blk))
    if istart < start:
        blk = a[..., istart:start, start:stop]
        blk.copy_(blk.matmul(u))
    if z is not None:
        blk = z[..., :, start:stop]
        blk.copy_(blk.matmul(u))
