"""Residuals used to assess the quality of a decomposition."""
import torch
from . import utils


def _eye_like(x):
    n = x.shape[-1]
    return torch.eye(n, dtype=x.dtype, device=x.device)


def orthogonality_error(q):
    """Frobenius norm of :math:`Q^H Q - I`.

    Parameters
    ----------
    q : (..., m, n) tensor_like

    Returns
    -------
    err : (...) tensor

    """
    q = utils.as_tensor(q)
    return torch.linalg.norm(utils.herm(q).matmul(q) - _eye_like(q),
                             dim=(-2, -1))


def similarity_error(a, t, q):
    """Relative Frobenius norm of :math:`Q T Q^H - A`.

    Parameters
    ----------
    a : (..., n, n) tensor_like
        Original matrix.
    t : (..., n, n) tensor_like
        Transformed matrix.
    q : (..., n, n) tensor_like
        Unitary transformation.

    Returns
    -------
    err : (...) tensor
        :math:`\\|Q T Q^H - A\\|_F / \\|A\\|_F`

    """
    a = utils.as_tensor(a)
    t = utils.as_tensor(t)
    q = utils.as_tensor(q)
    norm = torch.linalg.norm(a, dim=(-2, -1))
    err = torch.linalg.norm(q.matmul(t).matmul(utils.herm(q)) - a,
                            dim=(-2, -1))
    return err / norm


def hessenberg_error(h):
    """Frobenius norm of the entries below the first subdiagonal."""
    h = utils.as_tensor(h)
    return torch.linalg.norm(torch.tril(h, -2), dim=(-2, -1))
