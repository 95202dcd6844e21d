import numpy as np
import pytest
from numpy.testing import assert_allclose

from elastodg.fem.basis import dubiner_p, all_integer_sums
from elastodg.integration import quadrature as q


def integrate(rule, func):
    return sum(func(p) * w for p, w in zip(rule.points, rule.weights))


def test_gauss_jacobi_5_1_3():
    x, w = q.gauss_jacobi(5, 1.0, 3.0)
    assert_allclose(x, [0.86698568210542769702, 0.57652877512667440772, 0.17976783188823737401,
                        -0.25499675973326581341, -0.65399981510135937963], atol=1e-10)
    assert_allclose(w, [0.18915446768616357329, 0.58714974961811369751, 0.57657004957734461768,
                        0.22255926867518051648, 0.024566464443197594119], atol=1e-10)


def test_gauss_jacobi_rejects_bad_parameters():
    with pytest.raises(ValueError):
        q.gauss_jacobi(0, 0.0, 0.0)
    with pytest.raises(ValueError):
        q.gauss_jacobi(3, -1.0, 0.0)


def test_single_point_legendre():
    x, w = q.gauss_jacobi(1, 0.0, 0.0)
    assert_allclose(x, [0.0], atol=1e-14)
    assert_allclose(w, [2.0], rtol=1e-14)


def test_triangle_two_points_per_direction():
    pts, wts = q.triangle_quadrature(2)
    assert_allclose(pts[:, 0], [0.64494897427831780982, 0.64494897427831780982,
                                0.15505102572168219018, 0.15505102572168219018], atol=1e-10)
    assert_allclose(pts[:, 1], [0.28001991549907407200, 0.075031110222608118175,
                                0.66639024601470138669, 0.17855872826361642311], atol=1e-10)
    assert_allclose(wts, [0.090979309128011415315, 0.090979309128011415315,
                          0.15902069087198858472, 0.15902069087198858472], atol=1e-10)


def test_linear_exact_tri():
    # ∫_T (ξ0 + ξ1) dA over the reference triangle = 1/3
    rule = q.simplex_quadrature_rule(2, 1)
    assert rule.size == 1
    assert np.isclose(integrate(rule, lambda p: p[0] + p[1]), 1.0 / 3.0, rtol=1e-12)


@pytest.mark.parametrize("dim, volume", [(1, 1.0), (2, 0.5), (3, 1.0 / 6.0)])
def test_constant_volume(dim, volume):
    for n in range(1, 6):
        assert np.isclose(q.simplex_quadrature(dim, n).weights.sum(), volume, rtol=1e-12)


@pytest.mark.parametrize("n", [2, 3, 4])
def test_triangle_monomials(n):
    # ∫_T x^a y^b = a! b! / (a + b + 2)!
    from math import factorial
    rule = q.triangle_quadrature(n)
    for a in range(2 * n):
        for b in range(2 * n - a):
            exact = factorial(a) * factorial(b) / factorial(a + b + 2)
            val = integrate(rule, lambda p: p[0] ** a * p[1] ** b)
            assert np.isclose(val, exact, rtol=1e-12, atol=1e-15)


def test_tetrahedron_orthogonality():
    rule = q.tetrahedron_quadrature(3)
    idx = all_integer_sums(3, 2)
    for i, j in [(8, 9), (0, 9), (6, 3), (0, 1)]:
        val = rule.weights @ (dubiner_p(idx[i], rule.points) * dubiner_p(idx[j], rule.points))
        assert abs(val) < 1e-10


def test_simplex_rule_exactness_choice():
    assert q.simplex_quadrature_rule(2, 5).size == 9
    assert q.simplex_quadrature_rule(3, 4).size == 27
    with pytest.raises(ValueError):
        q.simplex_quadrature(4, 2)


def test_gauss_jacobi_chebyshev_parameters():
    # α + β = -1 hits the cancelled first recurrence coefficient
    x, w = q.gauss_jacobi(3, -0.5, -0.5)
    assert np.all(np.isfinite(x)) and np.all(np.isfinite(w))
    assert np.isclose(w.sum(), np.pi, rtol=1e-12)
    assert_allclose(x, [np.sqrt(3.0) / 2.0, 0.0, -np.sqrt(3.0) / 2.0], atol=1e-12)
    assert_allclose(w, np.pi / 3.0, rtol=1e-12)
    x, w = q.gauss_jacobi(4, -0.25, -0.75)
    # Γ(3/4) Γ(1/4) = π √2
    assert np.isclose(w.sum(), np.pi * np.sqrt(2.0), rtol=1e-12)
    assert np.all(np.isfinite(w)) and np.all(w > 0)
