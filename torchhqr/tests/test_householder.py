import pytest
import torch
from torchhqr.core import linalg

dtypes = (torch.float64, torch.complex128)


def _householder_vector(x):
    v = x.clone()
    v[..., 0] = 1
    return v


def _reflector_matrix(v, tau):
    eye = torch.eye(v.shape[-1], dtype=v.dtype)
    return eye - tau[..., None, None] * v[..., :, None] * v.conj()[..., None, :]


@pytest.mark.parametrize('dtype', dtypes)
@pytest.mark.parametrize('k', (1, 2, 3, 5))
def test_reflector_annihilates_tail(dtype, k):
    g = torch.Generator().manual_seed(k)
    x = torch.randn([4, k], generator=g, dtype=dtype)
    out, tau = linalg.reflector(x)
    beta = out[..., 0]
    h = _reflector_matrix(_householder_vector(out), tau)
    y = h.conj().transpose(-1, -2).matmul(x[..., None])[..., 0]
    assert torch.allclose(y[..., 0], beta)
    assert torch.allclose(y[..., 1:], torch.zeros_like(y[..., 1:]),
                          atol=1e-12)
    # beta is real, with norm ||x|| and the opposite sign of Re(x_0)
    assert torch.allclose(beta.abs(), x.abs().square().sum(-1).sqrt())
    if beta.is_complex():
        assert (beta.imag == 0).all()
        assert (beta.real * x[..., 0].real <= 0).all()
    elif k > 1:
        assert (beta * x[..., 0] <= 0).all()


@pytest.mark.parametrize('dtype', dtypes)
def test_reflector_is_unitary(dtype):
    g = torch.Generator().manual_seed(1)
    x = torch.randn([3, 4], generator=g, dtype=dtype)
    out, tau = linalg.reflector(x)
    h = _reflector_matrix(_householder_vector(out), tau)
    eye = torch.eye(4, dtype=dtype).expand(3, 4, 4)
    assert torch.allclose(h.conj().transpose(-1, -2).matmul(h), eye)


@pytest.mark.parametrize('dtype', dtypes)
def test_reflector_identity(dtype):
    x = torch.zeros(3, dtype=dtype)
    out, tau = linalg.reflector(x)
    assert tau == 0
    assert torch.equal(out, x)

    x = torch.tensor([2., 0., 0.], dtype=dtype)
    out, tau = linalg.reflector(x)
    assert tau == 0
    assert torch.equal(out, x)


def test_reflector_inplace():
    x = torch.tensor([3., 4.], dtype=torch.float64)
    out, tau = linalg.reflector(x, inplace=True)
    assert out is x
    assert torch.allclose(x[0], torch.tensor(-5., dtype=torch.float64))
    assert torch.allclose(tau, torch.tensor(1.6, dtype=torch.float64))


def test_reflector_non_finite():
    with pytest.raises(ValueError):
        linalg.reflector([1., float('nan')])
    out, tau = linalg.reflector([1., float('nan')], check_finite=False)
    assert not torch.isfinite(out).all()


@pytest.mark.parametrize('dtype', dtypes)
def test_reflector_apply(dtype):
    g = torch.Generator().manual_seed(2)
    a = torch.randn([5, 3], generator=g, dtype=dtype)
    v = torch.randn([5], generator=g, dtype=dtype)
    v[0] = 1
    tau = torch.randn([], generator=g, dtype=dtype)
    h = _reflector_matrix(v, tau)

    left = linalg.reflector_apply_(a.clone(), v, tau, side='left')
    assert torch.allclose(left, h.matmul(a))
    right = linalg.reflector_apply_(a.T.clone(), v, tau, side='right')
    assert torch.allclose(right, a.T.matmul(h))
    with pytest.raises(ValueError):
        linalg.reflector_apply_(a, v, tau, side='both')


def _qr_factor(a):
    n = a.shape[-1]
    tau = a.new_zeros(n)
    for i in range(n):
        x = a[i:, i]
        tau[i] = linalg.reflector_(x)
        v = _householder_vector(x)
        linalg.reflector_apply_(a[i:, i+1:], v, tau[i].conj(), side='left')
    return a, tau


@pytest.mark.parametrize('dtype', dtypes)
@pytest.mark.parametrize('shape', ((4, 4), (7, 3)))
def test_org2r(dtype, shape):
    g = torch.Generator().manual_seed(3)
    a0 = torch.randn(shape, generator=g, dtype=dtype)
    a, tau = _qr_factor(a0.clone())
    r = torch.triu(a)[:shape[-1]]
    q = linalg.org2r(a, tau)
    assert linalg.orthogonality_error(q) < 1e-12
    assert torch.allclose(q.matmul(r), a0)


def test_org2r_errors():
    with pytest.raises(ValueError):
        linalg.org2r(torch.zeros(2, 3), torch.zeros(2))
    with pytest.raises(ValueError):
        linalg.org2r(torch.zeros(3, 2), torch.zeros(3))
