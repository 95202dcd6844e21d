"""elastodg.core.geometry
Curvilinear reference → physical map of simplex elements.

Each element is represented by a Lagrange map of degree ``degree``: the
equispaced reference nodes are placed affinely between the element vertices
and then moved by an optional ``transform``, which bends the elements.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

import numpy as np

from elastodg.fem.reference import get_reference

logger = logging.getLogger(__name__)


def reference_vertices(dim: int) -> np.ndarray:
    return np.vstack([np.zeros((1, dim)), np.eye(dim)])


def reference_normals(dim: int) -> np.ndarray:
    """
    Outward normals of the reference facets scaled by the ratio of facet area
    to the area of the standard (D-1)-simplex: facet 0 is the slanted one.
    """
    n = np.zeros((dim + 1, dim))
    n[0] = 1.0
    n[1:] = -np.eye(dim)
    return n


class Curvilinear:
    """Geometry evaluator for a :class:`~elastodg.core.mesh.SimplexMesh`."""

    def __init__(self, mesh, transform: Optional[Callable[[np.ndarray], np.ndarray]] = None,
                 degree: int = 1):
        self.mesh = mesh
        self.dim = mesh.dim
        self.degree = int(degree)
        self.space = get_reference("nodal", self.degree, self.dim)
        self._ref_vertices = reference_vertices(self.dim)
        self._ref_normals = reference_normals(self.dim)

        verts = mesh.vertices[mesh.elements]                     # (nE, D+1, D)
        ref = self.space.nodes                                   # (Ng, D)
        X = verts[:, :1, :] + np.einsum("nk,ekd->end", ref, verts[:, 1:, :] - verts[:, :1, :])
        if transform is not None:
            X = np.array([[transform(x) for x in Xe] for Xe in X], dtype=float)
        self.element_nodes = X
        logger.info(f"Curvilinear geometry: {mesh.num_elements} elements, degree {self.degree}.")

    @property
    def num_elements(self) -> int:
        return self.element_nodes.shape[0]

    # ------------------------------------------------------------------
    def evaluate_basis_at(self, points) -> np.ndarray:
        return self.space.evaluate_basis_at(points)

    def evaluate_gradient_at(self, points) -> np.ndarray:
        return self.space.evaluate_gradient_at(points)

    def map(self, el: int, E: np.ndarray) -> np.ndarray:
        """Physical coordinates (nq, D) from tabulated geometry basis E (Ng, nq)."""
        return E.T @ self.element_nodes[el]

    def jacobian(self, el: int, Dxi: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
        """J[q, d, k] = ∂x_d/∂ξ_k from tabulated gradients Dxi (Ng, D, nq)."""
        return np.einsum("id,ikq->qdk", self.element_nodes[el], Dxi, out=out)

    @staticmethod
    def det_jacobian(J: np.ndarray) -> np.ndarray:
        return np.linalg.det(J)

    @staticmethod
    def inverse_jacobian(J: np.ndarray) -> np.ndarray:
        return np.linalg.inv(J)

    def normal(self, local_no: int, det_j: np.ndarray, j_inv: np.ndarray) -> np.ndarray:
        """
        Outward normal (nq, D) of local facet ``local_no`` whose length is the
        surface measure relative to the reference (D-1)-simplex (Nanson).
        """
        n_ref = self._ref_normals[local_no]
        return np.abs(det_j)[:, None] * np.einsum("qkd,k->qd", j_inv, n_ref)

    def facet_param(self, local_no: int, points, orientation: Optional[Sequence[int]] = None) -> np.ndarray:
        """
        Map points (nq, D-1) of the reference (D-1)-simplex onto local facet
        ``local_no`` of the reference element.  ``orientation`` permutes the
        facet vertices when the points are given in the neighbour's ordering.
        """
        points = np.atleast_2d(np.asarray(points, dtype=float))
        lam = np.hstack([1.0 - points.sum(axis=1, keepdims=True), points])
        if orientation:
            lam = lam[:, list(orientation)]
        facet = np.delete(self._ref_vertices, local_no, axis=0)
        return lam @ facet

    def __repr__(self):
        return f"<Curvilinear dim={self.dim} degree={self.degree} n_elems={self.num_elements}>"
