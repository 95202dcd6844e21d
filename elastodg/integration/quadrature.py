"""elastodg.integration.quadrature
Gauss–Jacobi rules in 1‑D and collapsed (Duffy) rules on the reference
interval, triangle and tetrahedron.

Reference simplex: vertices 0, e_1, …, e_D.  A rule with ``n`` points per
direction integrates every polynomial of total degree ≤ 2n−1 exactly.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from math import lgamma, exp, log

import numpy as np
from scipy.linalg import eigh_tridiagonal

__all__ = [
    "QuadratureRule",
    "gauss_jacobi",
    "interval_quadrature",
    "triangle_quadrature",
    "tetrahedron_quadrature",
    "simplex_quadrature",
    "simplex_quadrature_rule",
]


@dataclass(frozen=True, eq=False)
class QuadratureRule:
    points: np.ndarray      # (nq, D) – (nq,) for a 1‑D Gauss–Jacobi rule
    weights: np.ndarray     # (nq,)

    @property
    def size(self) -> int:
        return len(self.weights)

    def __iter__(self):
        yield self.points
        yield self.weights


# -------------------------------------------------------------------------
# 1‑D Gauss–Jacobi (Golub–Welsch)
# -------------------------------------------------------------------------
@lru_cache(maxsize=None)
def gauss_jacobi(n: int, alpha: float, beta: float) -> QuadratureRule:
    """
    n‑point Gauss rule for ∫_{-1}^{1} (1-x)^α (1+x)^β f(x) dx.

    The nodes are the eigenvalues of the symmetric tridiagonal Jacobi matrix
    of the monic Jacobi polynomials, the weights follow from the first
    component of the normalised eigenvectors.  Nodes are returned in
    descending order.
    """
    if n < 1:
        raise ValueError(f"Number of Gauss–Jacobi points must be positive, got {n}.")
    a, b = float(alpha), float(beta)
    if a <= -1.0 or b <= -1.0:
        raise ValueError(f"Jacobi parameters must be > -1, got alpha={a}, beta={b}.")
    ab = a + b

    k = np.arange(n, dtype=float)
    diag = np.empty(n)
    diag[0] = (b - a) / (ab + 2.0)
    if n > 1:
        kk = k[1:]
        diag[1:] = (b * b - a * a) / ((2 * kk + ab) * (2 * kk + ab + 2.0))

    # k = 1 with the (1 + α + β) factor cancelled; the general form is 0/0 at α + β = -1
    off = np.empty(max(n - 1, 0))
    if n > 1:
        off[0] = np.sqrt(4.0 * (1.0 + a) * (1.0 + b) / ((2.0 + ab) ** 2 * (3.0 + ab)))
    kk = k[2:]
    off[1:] = np.sqrt(4.0 * kk * (kk + a) * (kk + b) * (kk + ab)
                      / ((2 * kk + ab) ** 2 * (2 * kk + ab + 1.0) * (2 * kk + ab - 1.0)))

    mu0 = exp((ab + 1.0) * log(2.0) + lgamma(a + 1.0) + lgamma(b + 1.0) - lgamma(ab + 2.0))
    if n == 1:
        return QuadratureRule(diag.copy(), np.array([mu0]))

    nodes, vecs = eigh_tridiagonal(diag, off)
    weights = mu0 * vecs[0, :] ** 2

    order = np.argsort(nodes)[::-1]
    return QuadratureRule(nodes[order].copy(), weights[order].copy())


# -------------------------------------------------------------------------
# Collapsed simplex rules
# -------------------------------------------------------------------------
@lru_cache(maxsize=None)
def interval_quadrature(n: int) -> QuadratureRule:
    """Gauss–Legendre rule on [0, 1] with points of shape (n, 1)."""
    x, w = gauss_jacobi(n, 0.0, 0.0)
    return QuadratureRule(0.5 * (1.0 + x)[:, None], 0.5 * w)


@lru_cache(maxsize=None)
def triangle_quadrature(n: int) -> QuadratureRule:
    """
    n² point rule on the reference triangle (0,0)-(1,0)-(0,1).

    ξ0 = (1+x)/2 with x ~ GJ(n,1,0) absorbs the collapse factor (1-ξ0),
    ξ1 = (1-ξ0)(1+y)/2 with y ~ Gauss–Legendre.
    """
    x, wx = gauss_jacobi(n, 1.0, 0.0)
    y, wy = gauss_jacobi(n, 0.0, 0.0)
    pts = np.empty((n * n, 2))
    wts = np.empty(n * n)
    q = 0
    for i in range(n):
        xi0 = 0.5 * (1.0 + x[i])
        for j in range(n):
            pts[q, 0] = xi0
            pts[q, 1] = (1.0 - xi0) * 0.5 * (1.0 + y[j])
            wts[q] = 0.125 * wx[i] * wy[j]
            q += 1
    return QuadratureRule(pts, wts)


@lru_cache(maxsize=None)
def tetrahedron_quadrature(n: int) -> QuadratureRule:
    """n³ point rule on the reference tetrahedron, collapsed like the triangle."""
    x, wx = gauss_jacobi(n, 2.0, 0.0)
    y, wy = gauss_jacobi(n, 1.0, 0.0)
    z, wz = gauss_jacobi(n, 0.0, 0.0)
    pts = np.empty((n ** 3, 3))
    wts = np.empty(n ** 3)
    q = 0
    for i in range(n):
        xi0 = 0.5 * (1.0 + x[i])
        for j in range(n):
            xi1 = (1.0 - xi0) * 0.5 * (1.0 + y[j])
            for k in range(n):
                pts[q] = (xi0, xi1, (1.0 - xi0 - xi1) * 0.5 * (1.0 + z[k]))
                wts[q] = wx[i] * wy[j] * wz[k] / 64.0
                q += 1
    return QuadratureRule(pts, wts)


_SIMPLEX_RULES = {
    1: interval_quadrature,
    2: triangle_quadrature,
    3: tetrahedron_quadrature,
}


def simplex_quadrature(dim: int, n: int) -> QuadratureRule:
    try:
        return _SIMPLEX_RULES[dim](n)
    except KeyError:
        raise ValueError(f"No simplex quadrature for dimension {dim}.") from None


def simplex_quadrature_rule(dim: int, min_degree: int) -> QuadratureRule:
    """Smallest collapsed rule that is exact for total degree ``min_degree``."""
    n = max(1, min_degree // 2 + 1)
    return simplex_quadrature(dim, n)
