import torch

from apgrpca.prox import singular_value_threshold, soft_threshold


def test_soft_threshold_shrinks_toward_zero():
    X = torch.tensor([[3.0, -3.0], [0.5, -0.5]], dtype=torch.float64)
    out = soft_threshold(X, 1.0)
    expected = torch.tensor([[2.0, -2.0], [0.0, 0.0]], dtype=torch.float64)
    assert torch.equal(out, expected)


def test_soft_threshold_zero_threshold_is_identity():
    X = torch.randn(4, 3, dtype=torch.float64)
    assert torch.allclose(soft_threshold(X, 0.0), X)


def test_singular_value_threshold_cuts_small_singular_values():
    U, _ = torch.linalg.qr(torch.randn(6, 3, dtype=torch.float64))
    V, _ = torch.linalg.qr(torch.randn(5, 3, dtype=torch.float64))
    s = torch.tensor([5.0, 2.0, 0.5], dtype=torch.float64)
    X = (U * s) @ V.T

    A, sigma = singular_value_threshold(X, 1.0)

    assert A.shape == X.shape
    assert torch.allclose(sigma[:3], s, atol=1e-10)
    assert torch.allclose(sigma[3:], torch.zeros(2, dtype=torch.float64), atol=1e-10)
    assert torch.linalg.matrix_rank(A).item() == 2
    shrunk = torch.linalg.svdvals(A)
    assert torch.allclose(shrunk[:2], torch.tensor([4.0, 1.0], dtype=torch.float64), atol=1e-10)


def test_singular_value_threshold_of_zero_matrix():
    A, sigma = singular_value_threshold(torch.zeros(3, 4, dtype=torch.float64), 0.0)
    assert torch.count_nonzero(A).item() == 0
    assert torch.count_nonzero(sigma).item() == 0


def test_singular_value_threshold_non_finite_gives_nan():
    X = torch.ones(4, 3, dtype=torch.float64)
    X[1, 2] = float("inf")
    A, sigma = singular_value_threshold(X, 0.5)
    assert A.shape == X.shape
    assert sigma.shape == (3,)
    assert torch.isnan(A).all()
    assert torch.isnan(sigma).all()
