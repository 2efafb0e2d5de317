import pytest
import torch
from torchhqr.core import linalg
from torchhqr.core.optionals import try_import
scipy_linalg = try_import('scipy.linalg')

dtypes = (torch.float64, torch.complex128)


@pytest.mark.parametrize('dtype', dtypes)
@pytest.mark.parametrize('n', (1, 2, 3, 6, 11))
def test_hessenberg(dtype, n):
    g = torch.Generator().manual_seed(n)
    a = torch.randn([n, n], generator=g, dtype=dtype)
    h, q = linalg.hessenberg(a, compute_q=True)
    assert (torch.tril(h, -2) == 0).all()
    assert linalg.orthogonality_error(q) < 1e-12
    assert linalg.similarity_error(a, h, q) < 1e-12


@pytest.mark.parametrize('dtype', dtypes)
def test_hessenberg_batched(dtype):
    g = torch.Generator().manual_seed(0)
    a = torch.randn([2, 3, 5, 5], generator=g, dtype=dtype)
    h, q = linalg.hessenberg(a, compute_q=True)
    for i in range(2):
        for j in range(3):
            hij, qij = linalg.hessenberg(a[i, j], compute_q=True)
            assert torch.allclose(h[i, j], hij)
            assert torch.allclose(q[i, j], qij)


def test_hessenberg_first_column():
    # the unitary factor leaves the first axis untouched
    g = torch.Generator().manual_seed(1)
    a = torch.randn([7, 7], generator=g, dtype=torch.float64)
    _, q = linalg.hessenberg(a, compute_q=True)
    assert torch.equal(q[:, 0], torch.eye(7, dtype=torch.float64)[:, 0])


@pytest.mark.skipif(scipy_linalg is None, reason='requires scipy')
def test_hessenberg_scipy():
    g = torch.Generator().manual_seed(2)
    a = torch.randn([8, 8], generator=g, dtype=torch.float64)
    h = linalg.hessenberg(a)
    h_ref, q_ref = scipy_linalg.hessenberg(a.numpy(), calc_q=True)
    h_ref = torch.as_tensor(h_ref)
    # same reflectors as LAPACK, up to rounding
    assert torch.allclose(h, h_ref, atol=1e-10)


def test_hessenberg_inplace():
    g = torch.Generator().manual_seed(3)
    a = torch.randn([5, 5], generator=g, dtype=torch.float64)
    h = linalg.hessenberg(a, inplace=True)
    assert h is a
    assert (torch.tril(a, -2) == 0).all()


def test_hessenberg_packed_storage():
    g = torch.Generator().manual_seed(4)
    a = torch.randn([6, 6], generator=g, dtype=torch.float64)
    packed, tau = linalg.hessenberg_(a.clone())
    assert tau.shape == (4,)
    q = linalg.orghr_(packed, tau)
    h = packed.triu(-1)
    assert linalg.similarity_error(a, h, q) < 1e-12


def test_hessenberg_errors():
    with pytest.raises(ValueError):
        linalg.hessenberg(torch.zeros(3, 4))
    with pytest.raises(ValueError):
        linalg.hessenberg(torch.full([3, 3], float('inf')))


def test_hessenberg_then_sweep():
    # full reduction followed by a sweep: the accumulated factor still
    # relates the result to the original matrix
    g = torch.Generator().manual_seed(5)
    a = torch.randn([12, 12], generator=g, dtype=torch.float64)
    h, q = linalg.hessenberg(a, compute_q=True)
    shifts = torch.linalg.eigvals(h[-2:, -2:])
    t, z = linalg.multishift_sweep(h, shifts, z=q)
    assert linalg.orthogonality_error(z) < 1e-12
    assert linalg.similarity_error(a, t, z) < 1e-12
    assert linalg.hessenberg_error(t) < 1e-12
