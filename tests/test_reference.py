import numpy as np
import pytest
from numpy.testing import assert_allclose

from elastodg.fem import FiniteElementFunction
from elastodg.fem.reference import (ModalRefElement, NodalRefElement, equispaced_nodes,
                                    get_reference)
from elastodg.integration import simplex_quadrature_rule


@pytest.mark.parametrize("dim", [2, 3])
@pytest.mark.parametrize("degree", [1, 2, 3])
def test_modal_mass_is_diagonal(dim, degree):
    ref = ModalRefElement(degree, dim)
    M = ref.mass_matrix()
    assert_allclose(M, np.diag(np.diag(M)), atol=1e-13)
    assert_allclose(ref.inverse_mass_matrix() @ M, np.eye(ref.num_basis_functions()), atol=1e-10)
    # P_0 = 1: its mass is the reference volume
    assert np.isclose(M[0, 0], 0.5 if dim == 2 else 1.0 / 6.0)


@pytest.mark.parametrize("dim", [2, 3])
@pytest.mark.parametrize("degree", [1, 2, 3])
def test_nodal_kronecker_property(dim, degree):
    ref = NodalRefElement(degree, dim)
    assert_allclose(ref.evaluate_basis_at(ref.nodes), np.eye(ref.num_basis_functions()), atol=1e-12)


@pytest.mark.parametrize("dim", [2, 3])
def test_nodal_partition_of_unity(dim):
    ref = NodalRefElement(2, dim)
    pts = simplex_quadrature_rule(dim, 4).points
    assert_allclose(ref.evaluate_basis_at(pts).sum(axis=0), 1.0, atol=1e-12)
    assert_allclose(ref.evaluate_gradient_at(pts).sum(axis=0), 0.0, atol=1e-11)


def test_nodal_interpolates_quadratic():
    ref = NodalRefElement(2, 2)
    f = lambda p: 1.0 + p[:, 0] - 2.0 * p[:, 1] + 3.0 * p[:, 0] * p[:, 1] + p[:, 1] ** 2
    pts = np.array([[0.2, 0.3], [0.6, 0.1], [0.05, 0.9]])
    assert_allclose(f(ref.nodes) @ ref.evaluate_basis_at(pts), f(pts), atol=1e-12)


def test_equispaced_nodes():
    assert_allclose(equispaced_nodes(2, 1), [[0, 0], [1, 0], [0, 1]])
    assert_allclose(equispaced_nodes(3, 0), [[0.25, 0.25, 0.25]])
    assert equispaced_nodes(3, 3).shape == (20, 3)


def test_reference_factory_caches():
    assert get_reference("modal", 2, 2) is get_reference("modal", 2, 2)
    assert isinstance(get_reference("nodal", 1, 3), NodalRefElement)
    with pytest.raises(KeyError):
        get_reference("serendipity", 1, 2)


def test_finite_element_function_layout():
    ref = get_reference("modal", 1, 2)
    u = FiniteElementFunction(ref, 2, 4)
    assert u.block_size() == 6
    u.block(3)[:] = np.arange(6.0)
    # quantity-major: index p * Nbf + i
    assert_allclose(u.values(3), [[0, 3], [1, 4], [2, 5]])
    vals = u.evaluate(3, [[0.0, 0.0]])
    E = ref.evaluate_basis_at([[0.0, 0.0]])[:, 0]
    assert_allclose(vals[0], [E @ [0, 1, 2], E @ [3, 4, 5]])
