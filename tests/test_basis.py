import numpy as np
import pytest
import sympy as sp
from numpy.testing import assert_allclose

from elastodg.fem.basis import (all_integer_sums, dubiner_p, grad_dubiner_p,
                                num_basis_functions, tabulate_dubiner)

x, y, z = sp.symbols("x y z")

TRI_POINTS = [(0.0, 0.0), (1.0, 0.0), (0.0, 1.0), (0.25, 0.25), (0.1, 0.1), (0.1, 0.2), (0.2, 0.1)]
TET_POINTS = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0),
              (0.25, 0.25, 0.25), (0.1, 0.1, 0.1), (0.1, 0.2, 0.3), (0.2, 0.1, 0.3)]

TRI_CLOSED_FORMS = {
    (0, 0): sp.Integer(1),
    (1, 0): -1 + 2 * x + y,
    (0, 1): -1 + 3 * y,
    (2, 0): 1 - 6 * x + 6 * x**2 - 2 * y + 6 * x * y + y**2,
    (1, 1): 1 - 2 * x - 6 * y + 10 * x * y + 5 * y**2,
    (0, 2): 1 - 8 * y + 10 * y**2,
}

TET_CLOSED_FORMS = {
    (0, 0, 0): sp.Integer(1),
    (1, 0, 0): -1 + 2 * x + y + z,
    (0, 1, 0): -1 + 3 * y + z,
    (0, 0, 1): -1 + 4 * z,
    (2, 0, 0): 1 - 6 * x + 6 * x**2 - 2 * y + 6 * x * y + y**2 - 2 * z + 6 * x * z + 2 * y * z + z**2,
    (1, 1, 0): 1 - 2 * x - 6 * y + 10 * x * y + 5 * y**2 - 2 * z + 2 * x * z + 6 * y * z + z**2,
    (0, 2, 0): 1 - 8 * y + 10 * y**2 - 2 * z + 8 * y * z + z**2,
    (1, 0, 1): 1 - 2 * x - y - 7 * z + 12 * x * z + 6 * y * z + 6 * z**2,
    (0, 1, 1): 1 - 3 * y - 7 * z + 18 * y * z + 6 * z**2,
    (0, 0, 2): 1 - 10 * z + 15 * z**2,
}


def _cases(forms, points, symbols):
    for index, expr in forms.items():
        f = sp.lambdify(symbols, expr, "numpy")
        g = [sp.lambdify(symbols, sp.diff(expr, s), "numpy") for s in symbols]
        for p in points:
            yield index, p, float(f(*p)), [float(gi(*p)) for gi in g]


@pytest.mark.parametrize("index, point, value, grad",
                         list(_cases(TRI_CLOSED_FORMS, TRI_POINTS, (x, y))))
def test_triangle_dubiner(index, point, value, grad):
    assert np.isclose(dubiner_p(index, point), value, atol=1e-12)
    assert_allclose(grad_dubiner_p(index, point), grad, atol=1e-12)


@pytest.mark.parametrize("index, point, value, grad",
                         list(_cases(TET_CLOSED_FORMS, TET_POINTS, (x, y, z))))
def test_tetrahedron_dubiner(index, point, value, grad):
    assert np.isclose(dubiner_p(index, point), value, atol=1e-12)
    assert_allclose(grad_dubiner_p(index, point), grad, atol=1e-12)


def test_index_ordering():
    assert all_integer_sums(2, 2) == tuple(TRI_CLOSED_FORMS)
    assert all_integer_sums(3, 2) == tuple(TET_CLOSED_FORMS)
    assert num_basis_functions(2, 4) == 15
    assert num_basis_functions(3, 3) == 20


def test_tabulate_shapes_and_values():
    pts = np.array(TRI_POINTS)
    E, D = tabulate_dubiner(2, 2, pts)
    assert E.shape == (6, len(pts))
    assert D.shape == (6, 2, len(pts))
    assert_allclose(E[1], -1 + 2 * pts[:, 0] + pts[:, 1], atol=1e-14)
    assert_allclose(D[2, 1], 3.0, atol=1e-14)


def test_gradient_finite_difference_degree_5():
    rng = np.random.default_rng(7)
    pts = rng.dirichlet(np.ones(4), size=5)[:, :3]
    h = 1e-6
    for index in all_integer_sums(3, 5)[-6:]:
        g = grad_dubiner_p(index, pts)
        for d in range(3):
            e = np.zeros(3)
            e[d] = h
            fd = (dubiner_p(index, pts + e) - dubiner_p(index, pts - e)) / (2 * h)
            assert_allclose(g[:, d], fd, rtol=1e-5, atol=1e-5)


def test_dimension_mismatch():
    with pytest.raises(ValueError):
        dubiner_p((1, 0), (0.1, 0.1, 0.1))
    with pytest.raises(ValueError):
        dubiner_p((1,), (0.1,))
