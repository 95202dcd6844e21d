"""elastodg.fem.reference.nodal
Lagrange (nodal) reference element on equispaced simplex nodes.

The Lagrange functions are expressed in the Dubiner basis through the
generalised Vandermonde matrix V[n, j] = P_j(x_n), so L = V^{-T} P.
"""
from __future__ import annotations

import numpy as np

from elastodg.fem.basis import all_integer_sums, tabulate_dubiner
from elastodg.integration import simplex_quadrature_rule


def equispaced_nodes(dim: int, degree: int) -> np.ndarray:
    """Nodes i/N on the reference simplex; vertices first for degree 1."""
    if degree == 0:
        return np.full((1, dim), 1.0 / (dim + 1))
    return np.array(all_integer_sums(dim, degree), dtype=float) / degree


class NodalRefElement:
    """
    Interpolation basis of total degree ``degree``.  Used for the material
    coefficients and for the geometry map, independently of the order of the
    solution space.
    """

    def __init__(self, degree: int, dim: int):
        if degree < 0:
            raise ValueError("Polynomial degree must be non-negative.")
        self.degree = int(degree)
        self.dim = int(dim)
        self.nodes = equispaced_nodes(self.dim, self.degree)
        V = tabulate_dubiner(self.dim, self.degree, self.nodes)[0].T
        try:
            self._vinv_t = np.linalg.inv(V).T
        except np.linalg.LinAlgError:
            raise RuntimeError(f"Vandermonde matrix is singular for degree {degree}.") from None

        rule = simplex_quadrature_rule(self.dim, 2 * self.degree)
        E = self.evaluate_basis_at(rule.points)
        self._mass = (E * rule.weights) @ E.T
        self._inv_mass = np.linalg.inv(self._mass)

    def num_basis_functions(self) -> int:
        return self.nodes.shape[0]

    def evaluate_basis_at(self, points) -> np.ndarray:
        """(Nbf, nq)"""
        P = tabulate_dubiner(self.dim, self.degree, points)[0]
        return self._vinv_t @ P

    def evaluate_gradient_at(self, points) -> np.ndarray:
        """(Nbf, D, nq)"""
        dP = tabulate_dubiner(self.dim, self.degree, points)[1]
        return np.einsum("ij,jdq->idq", self._vinv_t, dP)

    def mass_matrix(self) -> np.ndarray:
        return self._mass.copy()

    def inverse_mass_matrix(self) -> np.ndarray:
        return self._inv_mass.copy()

    def __repr__(self):
        return f"<NodalRefElement dim={self.dim} degree={self.degree} nbf={self.num_basis_functions()}>"
