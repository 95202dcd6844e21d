"""elastodg.fem.function
Element-wise discontinuous field: one coefficient block per element.
"""
from __future__ import annotations

import numpy as np


class FiniteElementFunction:
    """
    Coefficients of ``num_quantities`` fields in the space of ``ref_element``
    on ``num_elements`` elements.

    Storage is ``data[el, p, i]`` so that ``block(el)`` is the flat local
    vector with index ``p * Nbf + i`` used by the local operators.
    """

    def __init__(self, ref_element, num_quantities: int, num_elements: int):
        self.space = ref_element
        self.num_quantities = int(num_quantities)
        self.num_elements = int(num_elements)
        self.data = np.zeros((self.num_elements, self.num_quantities,
                              ref_element.num_basis_functions()))

    def num_basis_functions(self) -> int:
        return self.data.shape[2]

    def block_size(self) -> int:
        return self.num_quantities * self.num_basis_functions()

    def block(self, el: int) -> np.ndarray:
        """Flat (writable) view of the coefficients of element ``el``."""
        return self.data[el].reshape(-1)

    def values(self, el: int) -> np.ndarray:
        """(Nbf, num_quantities) view, one column per quantity."""
        return self.data[el].T

    def evaluate(self, el: int, points) -> np.ndarray:
        """Field values (nq, num_quantities) at reference ``points``."""
        E = self.space.evaluate_basis_at(points)
        return (self.data[el] @ E).T

    def __repr__(self):
        return (f"<FiniteElementFunction nelem={self.num_elements} "
                f"nbf={self.num_basis_functions()} nq={self.num_quantities}>")
