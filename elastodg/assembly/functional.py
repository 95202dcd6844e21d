"""elastodg.assembly.functional
User data evaluated at quadrature points.

A *pointwise* function maps one physical point x (ndarray of length D) to a
quantity vector (or a scalar when there is a single quantity).  The classes
below turn such functions into the single-method evaluators the local
operators call:

* ``VolumeFunctional(el_no, coords) -> (nq, Q)``
* ``FacetFunctional(fct_no, coords, normals) -> (nq, Q)``

``OrientedFacetFunctional`` adapts data authored for a fixed reference normal
to facets whose outward normal may point either way.
"""
from __future__ import annotations

from typing import Callable, Optional, Sequence

import numpy as np

__all__ = [
    "VolumeFunctional",
    "FacetFunctional",
    "OrientedFacetFunctional",
    "make_volume_functional",
    "make_facet_functional",
]


def _evaluate(fun, coords: np.ndarray, num_quantities: int) -> np.ndarray:
    nq = coords.shape[0]
    if fun is None:
        return np.zeros((nq, num_quantities))
    F = np.array([np.atleast_1d(fun(x)) for x in coords], dtype=float)
    if F.size != nq * num_quantities:
        raise ValueError(f"Functional returned {F.size // max(nq, 1)} values per point, "
                         f"expected {num_quantities}.")
    return F.reshape(nq, num_quantities)


class VolumeFunctional:
    def __init__(self, fun: Optional[Callable], num_quantities: int):
        self.fun = fun
        self.num_quantities = int(num_quantities)

    @classmethod
    def zero(cls, num_quantities: int) -> "VolumeFunctional":
        return cls(None, num_quantities)

    def __call__(self, el_no: int, coords: np.ndarray) -> np.ndarray:
        return _evaluate(self.fun, coords, self.num_quantities)


class FacetFunctional:
    def __init__(self, fun: Optional[Callable], num_quantities: int):
        self.fun = fun
        self.num_quantities = int(num_quantities)

    @classmethod
    def zero(cls, num_quantities: int) -> "FacetFunctional":
        return cls(None, num_quantities)

    def __call__(self, fct_no: int, coords: np.ndarray, normals: np.ndarray) -> np.ndarray:
        return _evaluate(self.fun, coords, self.num_quantities)


class OrientedFacetFunctional(FacetFunctional):
    """
    Data given with respect to ``ref_normal``.  At quadrature points where
    the facet's outward normal is antiparallel to it (negative dot product)
    the quantity vector changes sign.
    """

    def __init__(self, fun: Callable, num_quantities: int, ref_normal: Sequence[float]):
        super().__init__(fun, num_quantities)
        self.ref_normal = np.asarray(ref_normal, dtype=float)

    def __call__(self, fct_no: int, coords: np.ndarray, normals: np.ndarray) -> np.ndarray:
        F = super().__call__(fct_no, coords, normals)
        flip = normals @ self.ref_normal < 0.0
        F[flip] *= -1.0
        return F


def make_volume_functional(fun, num_quantities: int) -> VolumeFunctional:
    if isinstance(fun, VolumeFunctional):
        return fun
    return VolumeFunctional(fun, num_quantities)


def make_facet_functional(fun, num_quantities: int,
                          ref_normal: Optional[Sequence[float]] = None) -> FacetFunctional:
    if isinstance(fun, FacetFunctional):
        if ref_normal is not None:
            raise ValueError("A reference normal can only be attached to a pointwise function.")
        return fun
    if ref_normal is None or fun is None:
        return FacetFunctional(fun, num_quantities)
    return OrientedFacetFunctional(fun, num_quantities, ref_normal)
