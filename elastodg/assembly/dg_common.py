"""elastodg.assembly.dg_common
Geometry precomputation and penalty provider shared by DG local operators.

The provider owns the quadrature rules, tabulates the geometry map at volume
and facet points (for every local facet and every relative facet
orientation) and stores, per element and per facet, the quantities the
operators need at quadrature points.  Storage is columnar: one NumPy array
per quantity, indexed by element or facet number.
"""
from __future__ import annotations

import logging
from itertools import permutations
from typing import Dict, Sequence, Tuple

import numpy as np

from elastodg.core.options import DGOptions
from elastodg.integration import simplex_quadrature_rule

logger = logging.getLogger(__name__)

FacetKey = Tuple[int, Tuple[int, ...]]


class DGCurvilinearCommon:
    """
    Parameters
    ----------
    cl : Curvilinear
        Geometry evaluator.
    degree : int
        Polynomial degree of the solution space (enters the penalty and the
        default quadrature exactness).
    options : DGOptions, optional
    """

    def __init__(self, cl, degree: int, options: DGOptions | None = None):
        self.cl = cl
        self.dim = cl.dim
        self.degree = int(degree)
        self.options = options if options is not None else DGOptions()

        order = self.options.resolve_quad_order(self.degree)
        self.vol_rule = simplex_quadrature_rule(self.dim, order)
        self.fct_rule = simplex_quadrature_rule(self.dim - 1, order)

        self.identity = tuple(range(self.dim))
        self._facet_points: Dict[FacetKey, np.ndarray] = {}
        for f in range(self.dim + 1):
            for o in permutations(range(self.dim)):
                self._facet_points[(f, o)] = cl.facet_param(f, self.fct_rule.points, o)

        self._geo_E_Q = cl.evaluate_basis_at(self.vol_rule.points)
        self._geo_Dxi_Q = cl.evaluate_gradient_at(self.vol_rule.points)
        self._geo_fct = {key: (cl.evaluate_basis_at(p), cl.evaluate_gradient_at(p))
                         for key, p in self._facet_points.items()}

        self.begin_preparation(0, 0, 0)

    # ------------------------------------------------------------------
    # facet orientation helpers
    # ------------------------------------------------------------------
    def facet_key(self, local_no: int, orientation: Sequence[int] = ()) -> FacetKey:
        return int(local_no), tuple(orientation) if orientation else self.identity

    def facet_keys(self):
        return list(self._facet_points)

    def facet_points(self, local_no: int, orientation: Sequence[int] = ()) -> np.ndarray:
        """Reference-element coordinates (nq, D) of the facet quadrature points."""
        return self._facet_points[self.facet_key(local_no, orientation)]

    def side_keys(self, info) -> Tuple[FacetKey, FacetKey]:
        k0 = self.facet_key(info.local_no[0])
        if info.is_boundary:
            return k0, k0
        return k0, self.facet_key(info.local_no[1], info.orientation)

    # ------------------------------------------------------------------
    # preparation
    # ------------------------------------------------------------------
    def begin_preparation(self, num_elements: int, num_local_elements: int, num_local_facets: int):
        D = self.dim
        nQ, nq = self.vol_rule.size, self.fct_rule.size
        self.num_elements = int(num_elements)
        self.num_local_elements = int(num_local_elements)
        self.num_local_facets = int(num_local_facets)

        self.abs_det_j = np.zeros((num_elements, nQ))
        self.j_inv = np.zeros((num_elements, nQ, D, D))
        self.coords = np.zeros((num_elements, nQ, D))
        self._penalty = np.zeros(num_elements)

        self.fct_normal = np.zeros((num_local_facets, nq, D))
        self.fct_normal_length = np.zeros((num_local_facets, nq))
        self.fct_j_inv0 = np.zeros((num_local_facets, nq, D, D))
        self.fct_j_inv1 = np.zeros((num_local_facets, nq, D, D))
        self.fct_coords = np.zeros((num_local_facets, nq, D))
        if num_elements:
            logger.debug(f"Geometry storage: {num_elements} elements "
                         f"({num_local_elements} local), {num_local_facets} facets.")

    def prepare_volume(self, el: int, scratch):
        cl = self.cl
        D, nQ = self.dim, self.vol_rule.size
        with scratch.scope():
            J = cl.jacobian(el, self._geo_Dxi_Q, out=scratch.allocate(nQ, D, D))
            det = cl.det_jacobian(J)
            self.abs_det_j[el] = np.abs(det)
            self.j_inv[el] = cl.inverse_jacobian(J)
            self.coords[el] = cl.map(el, self._geo_E_Q)
            volume = self.vol_rule.weights @ self.abs_det_j[el]

            area = 0.0
            for f in range(D + 1):
                _, Dxi = self._geo_fct[self.facet_key(f)]
                Jf = cl.jacobian(el, Dxi, out=scratch.allocate(self.fct_rule.size, D, D))
                n = cl.normal(f, cl.det_jacobian(Jf), cl.inverse_jacobian(Jf))
                area += self.fct_rule.weights @ np.linalg.norm(n, axis=1)

        N = self.degree
        self._penalty[el] = self.options.penalty_scale * (N + 1) * (N + D) / D * area / volume

    def _prepare_side0(self, fct_no: int, info, key0: FacetKey, scratch):
        cl = self.cl
        E, Dxi = self._geo_fct[key0]
        el = info.up[0]
        J = cl.jacobian(el, Dxi, out=scratch.allocate(self.fct_rule.size, self.dim, self.dim))
        j_inv = cl.inverse_jacobian(J)
        n = cl.normal(info.local_no[0], cl.det_jacobian(J), j_inv)
        self.fct_j_inv0[fct_no] = j_inv
        self.fct_normal[fct_no] = n
        self.fct_normal_length[fct_no] = np.linalg.norm(n, axis=1)
        self.fct_coords[fct_no] = cl.map(el, E)

    def prepare_skeleton(self, fct_no: int, info, scratch):
        key0, key1 = self.side_keys(info)
        with scratch.scope():
            self._prepare_side0(fct_no, info, key0, scratch)
            _, Dxi = self._geo_fct[key1]
            J = self.cl.jacobian(info.up[1], Dxi,
                                 out=scratch.allocate(self.fct_rule.size, self.dim, self.dim))
            self.fct_j_inv1[fct_no] = self.cl.inverse_jacobian(J)

    def prepare_boundary(self, fct_no: int, info, scratch):
        key0, _ = self.side_keys(info)
        with scratch.scope():
            self._prepare_side0(fct_no, info, key0, scratch)
        self.fct_j_inv1[fct_no] = self.fct_j_inv0[fct_no]

    def prepare_volume_post_skeleton(self, el: int, scratch):
        pass

    # ------------------------------------------------------------------
    def penalty(self, el: int) -> float:
        """Reference penalty of element ``el``."""
        return float(self._penalty[el])
