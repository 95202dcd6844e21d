"""elastodg.fem.reference.modal
Modal reference element spanned by the Dubiner basis.
"""
from __future__ import annotations

import numpy as np

from elastodg.fem.basis import all_integer_sums, tabulate_dubiner
from elastodg.integration import simplex_quadrature_rule


class ModalRefElement:
    """
    Orthogonal (modal) basis of total degree ``degree`` on the reference
    simplex of dimension ``dim``.
    """

    def __init__(self, degree: int, dim: int):
        if degree < 0:
            raise ValueError("Polynomial degree must be non-negative.")
        self.degree = int(degree)
        self.dim = int(dim)
        self.indices = all_integer_sums(self.dim, self.degree)

        rule = simplex_quadrature_rule(self.dim, 2 * self.degree)
        E = self.evaluate_basis_at(rule.points)
        M = (E * rule.weights) @ E.T
        # orthogonality makes M diagonal up to round-off
        M[np.abs(M) < 1e-14 * np.abs(M).max()] = 0.0
        self._mass = M
        self._inv_mass = np.linalg.inv(M)

    def num_basis_functions(self) -> int:
        return len(self.indices)

    def evaluate_basis_at(self, points) -> np.ndarray:
        """(Nbf, nq)"""
        return tabulate_dubiner(self.dim, self.degree, points)[0]

    def evaluate_gradient_at(self, points) -> np.ndarray:
        """(Nbf, D, nq)"""
        return tabulate_dubiner(self.dim, self.degree, points)[1]

    def mass_matrix(self) -> np.ndarray:
        return self._mass.copy()

    def inverse_mass_matrix(self) -> np.ndarray:
        return self._inv_mass.copy()

    def __repr__(self):
        return f"<ModalRefElement dim={self.dim} degree={self.degree} nbf={self.num_basis_functions()}>"
