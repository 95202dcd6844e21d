"""elastodg.fem.basis
Dubiner (orthogonal) polynomials on the reference triangle and tetrahedron.

A basis function is addressed by a multi-index (i_0, …, i_{D-1}) of total
degree Σ i_d.  It is the product of D scaled Jacobi polynomials

    f_d = b_d^{i_d} P_{i_d}^{(α_d, 0)}(a_d / b_d),
    α_d = 2 (i_0 + … + i_{d-1}) + d,
    a_d = 2 ξ_d + Σ_{k>d} ξ_k − 1,   b_d = 1 − Σ_{k>d} ξ_k,

which is the collapsed-coordinate construction written without ever dividing
by the collapse factor b_d.  Gradients are the exact derivatives of the same
recursions.
"""
from __future__ import annotations

from functools import lru_cache
from itertools import product
from typing import Sequence, Tuple

import numpy as np

__all__ = [
    "all_integer_sums",
    "num_basis_functions",
    "scaled_jacobi",
    "dubiner_p",
    "grad_dubiner_p",
    "tabulate_dubiner",
]


@lru_cache(maxsize=None)
def all_integer_sums(dim: int, degree: int) -> Tuple[Tuple[int, ...], ...]:
    """Multi-indices with total degree ≤ degree, last index varying slowest."""
    idx = [i for i in product(range(degree + 1), repeat=dim) if sum(i) <= degree]
    idx.sort(key=lambda i: (sum(i), tuple(reversed(i))))
    return tuple(idx)


def num_basis_functions(dim: int, degree: int) -> int:
    return len(all_integer_sums(dim, degree))


def scaled_jacobi(n: int, alpha: float, beta: float, a, b):
    """
    Return (Q, dQ/da, dQ/db) for Q = b^n P_n^{(α,β)}(a/b).

    ``a`` and ``b`` broadcast against each other.
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    a, b = np.broadcast_arrays(a, b)
    one = np.ones_like(a)
    zero = np.zeros_like(a)
    if n == 0:
        return one, zero, zero

    q_m1, da_m1, db_m1 = one, zero, zero
    q = 0.5 * ((alpha - beta) * b + (alpha + beta + 2.0) * a)
    da = 0.5 * (alpha + beta + 2.0) * one
    db = 0.5 * (alpha - beta) * one
    for m in range(2, n + 1):
        s = 2.0 * m + alpha + beta
        c0 = 2.0 * m * (m + alpha + beta) * (s - 2.0)
        c1 = s - 1.0
        c2 = s * (s - 2.0)
        c3 = alpha * alpha - beta * beta
        c4 = 2.0 * (m + alpha - 1.0) * (m + beta - 1.0) * s
        lin = c2 * a + c3 * b
        q_new = (c1 * lin * q - c4 * b * b * q_m1) / c0
        da_new = (c1 * (c2 * q + lin * da) - c4 * b * b * da_m1) / c0
        db_new = (c1 * (c3 * q + lin * db) - c4 * (2.0 * b * q_m1 + b * b * db_m1)) / c0
        q_m1, da_m1, db_m1 = q, da, db
        q, da, db = q_new, da_new, db_new
    return q, da, db


def _factors(index: Sequence[int], xi: np.ndarray):
    """Per-direction factors f_d with their partials along ξ (…, D)."""
    dim = len(index)
    vals, grads = [], []
    offset = 0
    for d in range(dim):
        tail = xi[..., d + 1:].sum(axis=-1)
        a = 2.0 * xi[..., d] + tail - 1.0
        b = 1.0 - tail
        f, f_a, f_b = scaled_jacobi(index[d], 2.0 * offset + d, 0.0, a, b)
        g = np.zeros(xi.shape)
        g[..., d] = 2.0 * f_a
        for m in range(d + 1, dim):
            g[..., m] = f_a - f_b
        vals.append(f)
        grads.append(g)
        offset += index[d]
    return vals, grads


def _check_point(index, xi) -> np.ndarray:
    xi = np.asarray(xi, dtype=float)
    if xi.shape[-1] != len(index):
        raise ValueError(f"Multi-index {tuple(index)} does not match points of dimension {xi.shape[-1]}.")
    if len(index) not in (2, 3):
        raise ValueError(f"Dubiner basis is implemented for 2-D and 3-D, got {len(index)}-D.")
    return xi


def dubiner_p(index: Sequence[int], xi) -> np.ndarray:
    """Value of the Dubiner polynomial ``index`` at ξ (shape (D,) or (nq, D))."""
    xi = _check_point(index, xi)
    vals, _ = _factors(index, xi)
    out = vals[0]
    for f in vals[1:]:
        out = out * f
    return out


def grad_dubiner_p(index: Sequence[int], xi) -> np.ndarray:
    """Reference gradient of the Dubiner polynomial, shape (…, D)."""
    xi = _check_point(index, xi)
    vals, grads = _factors(index, xi)
    out = np.zeros(xi.shape)
    for d, g in enumerate(grads):
        rest = np.ones(xi.shape[:-1])
        for e, f in enumerate(vals):
            if e != d:
                rest = rest * f
        out += rest[..., None] * g
    return out


def tabulate_dubiner(dim: int, degree: int, points) -> Tuple[np.ndarray, np.ndarray]:
    """
    Values (Nbf, nq) and gradients (Nbf, D, nq) of the complete Dubiner basis
    of the given degree at ``points`` (nq, D).
    """
    points = np.atleast_2d(np.asarray(points, dtype=float))
    indices = all_integer_sums(dim, degree)
    nq = points.shape[0]
    E = np.empty((len(indices), nq))
    D = np.empty((len(indices), dim, nq))
    for i, index in enumerate(indices):
        E[i] = dubiner_p(index, points)
        D[i] = grad_dubiner_p(index, points).T
    return E, D
