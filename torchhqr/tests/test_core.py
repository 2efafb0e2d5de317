import pytest
import torch
from torchhqr.core import constants, utils
from torchhqr.core.options import Option, Validated
from torchhqr.core.linalg import SweepOptions
from torchhqr.core.optionals import numpy as np, try_import


@pytest.mark.parametrize('dtype,expected', [
    (torch.float32, 2 ** -23),
    (torch.complex64, 2 ** -23),
    (torch.float64, 2 ** -52),
    ('complex128', 2 ** -52),
    (torch.float16, 2 ** -10),
])
def test_eps(dtype, expected):
    assert constants.eps(dtype) == expected


@pytest.mark.skipif(np is None, reason='requires numpy')
def test_eps_numpy():
    assert constants.eps(np.float64) == 2 ** -52
    assert constants.eps(np.complex64) == 2 ** -23


def test_eps_unknown():
    with pytest.raises(NotImplementedError):
        constants.eps(torch.int32)


def test_dtypes():
    assert utils.complex_dtype(torch.float32) == torch.complex64
    assert utils.complex_dtype(torch.float64) == torch.complex128
    assert utils.complex_dtype(torch.complex64) == torch.complex64
    assert utils.float_dtype(torch.int64) == torch.get_default_dtype()


def test_as_tensor_nested():
    x = utils.as_tensor([torch.tensor([1, 2]),
                         torch.tensor([3., 4.], dtype=torch.float64)])
    assert x.shape == (2, 2)
    assert x.dtype == torch.float64


def test_abs1():
    x = torch.tensor([3 - 4j, -1 + 0j])
    assert torch.equal(utils.abs1(x), torch.tensor([7., 1.]))
    assert torch.equal(utils.abs1(torch.tensor([-2.])), torch.tensor([2.]))


class _Options(Option):
    count: int = Validated(1, lambda x: x > 0)
    name: str = 'default'
    tags: list = []


def test_options_defaults():
    opt = _Options()
    assert opt.keys() == ['count', 'name', 'tags']
    assert opt.count == 1 and opt.name == 'default'
    assert _Options(2, 'other').name == 'other'
    # mutable defaults are not shared
    opt.tags.append(1)
    assert _Options().tags == []


def test_options_validation():
    opt = _Options()
    with pytest.raises(ValueError):
        opt.count = 0
    with pytest.raises(ValueError):
        _Options(count=-1)
    with pytest.raises(KeyError):
        opt.unknown = 1
    with pytest.raises(KeyError):
        opt.update({'unknown': 1})


def test_options_update():
    opt = _Options().update({'count': 3}, name='x')
    assert opt.count == 3 and opt.name == 'x'
    other = _Options().update(opt)
    assert other == opt
    assert other == {'count': 3, 'name': 'x', 'tags': []}
    assert dict(other.items())['count'] == 3


def test_sweep_options():
    opt = SweepOptions()
    assert opt.want_t is True
    assert opt.block_size is None
    opt.block_size = 10
    with pytest.raises(ValueError):
        opt.block_size = 1
    assert 'block_size' in str(opt)
    copy = opt.copy()
    copy.want_t = False
    assert opt.want_t is True


def test_sweep_options_from_keywords():
    opt = SweepOptions(block_size=3, want_t=False)
    assert opt.block_size == 3 and opt.want_t is False
    opt = SweepOptions().update({'block_size': 5}, check_finite=False)
    assert opt.block_size == 5 and opt.check_finite is False
    assert SweepOptions().update(opt) == opt
    with pytest.raises(ValueError):
        SweepOptions(block_size=2)


def test_try_import():
    assert try_import('torch', 'float64') is torch.float64
    assert try_import('torch.linalg') is torch.linalg
    assert try_import('not_a_module_at_all') is None
    assert try_import('not_a_module_at_all', ['a', 'b']) == [None, None]
