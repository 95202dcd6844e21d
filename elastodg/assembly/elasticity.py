"""elastodg.assembly.elasticity
Local DG operator of linear elasticity on curvilinear simplices.

Bilinear form (interior-penalty, [[u]] = u0 − u1, {{·}} arithmetic mean,
n the outward normal of side 0, θ = ``options.symmetry``):

    a(u, v) = Σ_K ∫_K σ(u):∇v
            − Σ_F ∫_F {{σ(u)n}}·[[v]] + θ {{σ(v)n}}·[[u]] − δ [[u]]·[[v]]

with σ(u) = λ tr(∇u) I + μ (∇u + ∇uᵀ) and, per facet quadrature point,
δ = penalty(F) · {{λ + 2μ}}.  Dirichlet data g and fault slip S enter
through [[u]] → [[u]] − S (interior) and u0 → u0 − g (boundary).

Local blocks use the quantity-major layout ``p * Nbf + i``.  Every
``assemble_*``/``rhs_*`` call *adds* into the caller's block and returns
whether it produced a contribution.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

import numba
import numpy as np
from scipy.linalg import solve

from elastodg.assembly.functional import (FacetFunctional, VolumeFunctional,
                                          make_facet_functional, make_volume_functional)
from elastodg.core.scratch import LinearAllocator
from elastodg.core.topology import BC, FacetInfo
from elastodg.fem.function import FiniteElementFunction
from elastodg.fem.reference import get_reference

logger = logging.getLogger(__name__)

__all__ = ["Elasticity"]


# ---------------------------------------------------------------------------
# kernels
# ---------------------------------------------------------------------------
@numba.njit(cache=True, fastmath=True)
def _volume_kernel(G, lam_w_j, mu_w_j, A):
    """A[u*nbf+i, p*nbf+j] += ∫ σ(φ_j e_p) : ∇(φ_i e_u)"""
    nbf, dim, nq = G.shape
    for u in range(dim):
        for i in range(nbf):
            row = u * nbf + i
            for p in range(dim):
                for j in range(nbf):
                    acc = 0.0
                    for q in range(nq):
                        acc += lam_w_j[q] * G[j, p, q] * G[i, u, q] \
                            + mu_w_j[q] * G[j, u, q] * G[i, p, q]
                        if u == p:
                            dot = 0.0
                            for k in range(dim):
                                dot += G[j, k, q] * G[i, k, q]
                            acc += mu_w_j[q] * dot
                    A[row, p * nbf + j] += acc


@numba.njit(cache=True, fastmath=True)
def _traction_kernel(G, n, lam, mu, T):
    """T[j, p, u, q] = (σ(φ_j e_p) n)_u at facet point q."""
    nbf, dim, nq = G.shape
    for j in range(nbf):
        for q in range(nq):
            gn = 0.0
            for k in range(dim):
                gn += G[j, k, q] * n[q, k]
            for p in range(dim):
                for u in range(dim):
                    t = lam[q] * G[j, p, q] * n[q, u] + mu[q] * G[j, u, q] * n[q, p]
                    if u == p:
                        t += mu[q] * gn
                    T[j, p, u, q] = t


def _check_shape(name: str, arr: np.ndarray, shape):
    if arr.shape != tuple(shape):
        raise ValueError(f"{name} has shape {arr.shape}, expected {tuple(shape)}.")


def _stress(grad: np.ndarray, lam: np.ndarray, mu: np.ndarray) -> np.ndarray:
    """σ (nq, D, D) from displacement gradients grad[q, p, d] = ∂u_p/∂x_d."""
    dim = grad.shape[1]
    tr = np.trace(grad, axis1=1, axis2=2)
    sym = grad + grad.transpose(0, 2, 1)
    return lam[:, None, None] * tr[:, None, None] * np.eye(dim) + mu[:, None, None] * sym


# ---------------------------------------------------------------------------
class Elasticity:
    """
    Parameters
    ----------
    common : DGCurvilinearCommon
        Geometry/penalty provider; it also fixes degree and quadrature.
    lam, mu : callable
        Lamé parameters as pointwise functions of the physical point.
    material_degree : int, optional
        Degree of the nodal space carrying λ and μ (default: solution degree).
    """

    def __init__(self, common, lam, mu, *, material_degree: Optional[int] = None):
        self.common = common
        self.dim = common.dim
        self.num_quantities = common.dim
        self.degree = common.degree
        self.symmetry = float(common.options.symmetry)

        self.space = get_reference("modal", self.degree, self.dim)
        mdeg = self.degree if material_degree is None else int(material_degree)
        self.material_space = get_reference("nodal", mdeg, self.dim)

        vol_pts = common.vol_rule.points
        self.E_Q = self.space.evaluate_basis_at(vol_pts)
        self.Dxi_Q = self.space.evaluate_gradient_at(vol_pts)
        self.mat_E_Q = self.material_space.evaluate_basis_at(vol_pts)
        self.E_q, self.Dxi_q, self.mat_E_q = {}, {}, {}
        for key in common.facet_keys():
            pts = common.facet_points(*key)
            self.E_q[key] = self.space.evaluate_basis_at(pts)
            self.Dxi_q[key] = self.space.evaluate_gradient_at(pts)
            self.mat_E_q[key] = self.material_space.evaluate_basis_at(pts)
        # reference L2 projection onto the material space: M⁻¹ E_Q diag(W)
        self._mat_project = self.material_space.inverse_mass_matrix() @ self.mat_E_Q

        self.fun_lam = make_volume_functional(lam, 1)
        self.fun_mu = make_volume_functional(mu, 1)
        self.fun_force = VolumeFunctional.zero(self.num_quantities)
        self.fun_dirichlet = FacetFunctional.zero(self.num_quantities)
        self.fun_slip = FacetFunctional.zero(self.num_quantities)

        self.begin_preparation(0, 0, 0)
        logger.info(f"Elasticity operator: dim={self.dim}, degree={self.degree}, "
                    f"material degree={mdeg}, {self.common.vol_rule.size} volume / "
                    f"{self.common.fct_rule.size} facet quadrature points.")

    # ------------------------------------------------------------------
    # layout
    # ------------------------------------------------------------------
    def num_basis_functions(self) -> int:
        return self.space.num_basis_functions()

    def block_size(self) -> int:
        return self.num_basis_functions() * self.num_quantities

    def solution_prototype(self, num_local_elements: int) -> FiniteElementFunction:
        return FiniteElementFunction(self.space, self.num_quantities, num_local_elements)

    def coefficients_prototype(self, num_local_elements: int) -> FiniteElementFunction:
        return FiniteElementFunction(self.material_space, 2, num_local_elements)

    def traction_result_info(self):
        """Shape of the ``result`` array expected by :meth:`traction`."""
        return (self.common.fct_rule.size, self.num_quantities)

    def make_scratch(self) -> LinearAllocator:
        """Arena large enough for any single call of this operator."""
        nq = max(self.common.vol_rule.size, self.common.fct_rule.size)
        D, nbf = self.dim, max(self.num_basis_functions(), self.material_space.num_basis_functions())
        return LinearAllocator(4 * nbf * D * D * nq + (D + 2) * nq * D * D + 1024)

    # ------------------------------------------------------------------
    # user data
    # ------------------------------------------------------------------
    def set_force(self, fun):
        self.fun_force = make_volume_functional(fun, self.num_quantities)
        logger.debug("Force functional registered.")

    def set_dirichlet(self, fun, ref_normal: Optional[Sequence[float]] = None):
        self.fun_dirichlet = make_facet_functional(fun, self.num_quantities, ref_normal)
        logger.debug("Dirichlet functional registered.")

    def set_slip(self, fun, ref_normal: Optional[Sequence[float]] = None):
        self.fun_slip = make_facet_functional(fun, self.num_quantities, ref_normal)
        logger.debug("Slip functional registered.")

    # ------------------------------------------------------------------
    # preparation
    # ------------------------------------------------------------------
    def begin_preparation(self, num_elements: int, num_local_elements: int, num_local_facets: int):
        self.common.begin_preparation(num_elements, num_local_elements, num_local_facets)
        nmat = self.material_space.num_basis_functions()
        nQ, nq = self.common.vol_rule.size, self.common.fct_rule.size
        self.num_local_elements = int(num_local_elements)

        self.lam = np.zeros((num_elements, nmat))
        self.mu = np.zeros((num_elements, nmat))
        self.lam_w_j = np.zeros((num_local_elements, nQ))
        self.mu_w_j = np.zeros((num_local_elements, nQ))
        self.lam_q_0 = np.zeros((num_local_facets, nq))
        self.mu_q_0 = np.zeros((num_local_facets, nq))
        self.lam_q_1 = np.zeros((num_local_facets, nq))
        self.mu_q_1 = np.zeros((num_local_facets, nq))

    def prepare_volume(self, el_no: int, scratch):
        """
        Samples λ, μ at the mapped volume quadrature points.  Local elements
        keep λ·W·J and μ·W·J; every element keeps the L2 projection of the
        samples onto the material space, which feeds the facet passes.
        """
        self.common.prepare_volume(el_no, scratch)
        coords = self.common.coords[el_no]
        lam_q = self.fun_lam(el_no, coords)[:, 0]
        mu_q = self.fun_mu(el_no, coords)[:, 0]

        W = self.common.vol_rule.weights
        self.lam[el_no] = self._mat_project @ (W * lam_q)
        self.mu[el_no] = self._mat_project @ (W * mu_q)

        if el_no < self.num_local_elements:
            w_j = W * self.common.abs_det_j[el_no]
            self.lam_w_j[el_no] = lam_q * w_j
            self.mu_w_j[el_no] = mu_q * w_j

    def prepare_skeleton(self, fct_no: int, info: FacetInfo, scratch):
        self.common.prepare_skeleton(fct_no, info, scratch)
        self._prepare_facet_material(fct_no, info)

    def prepare_boundary(self, fct_no: int, info: FacetInfo, scratch):
        self.common.prepare_boundary(fct_no, info, scratch)
        self._prepare_facet_material(fct_no, info)

    def _prepare_facet_material(self, fct_no: int, info: FacetInfo):
        k0, k1 = self.common.side_keys(info)
        self.lam_q_0[fct_no] = self.lam[info.up[0]] @ self.mat_E_q[k0]
        self.mu_q_0[fct_no] = self.mu[info.up[0]] @ self.mat_E_q[k0]
        self.lam_q_1[fct_no] = self.lam[info.up[1]] @ self.mat_E_q[k1]
        self.mu_q_1[fct_no] = self.mu[info.up[1]] @ self.mat_E_q[k1]

    def prepare_volume_post_skeleton(self, el_no: int, scratch):
        """Second volume pass; the Lamé coefficients need nothing from the facets."""
        self.common.prepare_volume_post_skeleton(el_no, scratch)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def penalty(self, info: FacetInfo) -> float:
        return max(self.common.penalty(info.up[0]), self.common.penalty(info.up[1]))

    def _facet_delta(self, fct_no: int, info: FacetInfo) -> np.ndarray:
        """Penalty δ at the facet quadrature points."""
        z0 = self.lam_q_0[fct_no] + 2.0 * self.mu_q_0[fct_no]
        if info.is_boundary:
            return self.penalty(info) * z0
        z1 = self.lam_q_1[fct_no] + 2.0 * self.mu_q_1[fct_no]
        return self.penalty(info) * 0.5 * (z0 + z1)

    def _physical_gradient(self, Dxi: np.ndarray, j_inv: np.ndarray, scratch) -> np.ndarray:
        nbf, D, nq = Dxi.shape
        return np.einsum("ikq,qkd->idq", Dxi, j_inv, out=scratch.allocate(nbf, D, nq))

    def _side(self, fct_no: int, side: int, key, lam, mu, scratch):
        """Basis values, physical gradients and traction basis of one facet side."""
        j_inv = self.common.fct_j_inv0 if side == 0 else self.common.fct_j_inv1
        G = self._physical_gradient(self.Dxi_q[key], j_inv[fct_no], scratch)
        nbf, D, nq = G.shape
        T = scratch.allocate(nbf, D, D, nq)
        _traction_kernel(G, self.common.fct_normal[fct_no], lam, mu, T)
        return self.E_q[key], G, T

    def _add_block(self, A, E_s, T_s, E_t, T_t, c_avg: float, c_adj: float, c_pen: float,
                   w_pen: np.ndarray):
        """
        A[(u,i),(p,j)] += Σ_q w_q [ c_avg E_s[i] (T_t[j])_{p,u} + c_adj (T_s[i])_{u,p} E_t[j] ]
                          + δ_up c_pen Σ_q w_pen E_s[i] E_t[j]
        """
        w = self.common.fct_rule.weights
        D, nbf = self.dim, E_s.shape[0]
        K = c_avg * np.einsum("q,iq,jpuq->uipj", w, E_s, T_t) \
            + c_adj * np.einsum("q,iupq,jq->uipj", w, T_s, E_t)
        P = c_pen * (E_s * w_pen) @ E_t.T
        for u in range(D):
            K[u, :, u, :] += P
        A += K.reshape(D * nbf, D * nbf)

    # ------------------------------------------------------------------
    # bilinear form
    # ------------------------------------------------------------------
    def assemble_volume(self, el_no: int, A00: np.ndarray, scratch) -> bool:
        bs = self.block_size()
        _check_shape("A00", A00, (bs, bs))
        with scratch.scope():
            G = self._physical_gradient(self.Dxi_Q, self.common.j_inv[el_no], scratch)
            _volume_kernel(G, self.lam_w_j[el_no], self.mu_w_j[el_no], A00)
        return True

    def assemble_skeleton(self, fct_no: int, info: FacetInfo, A00: np.ndarray, A01: np.ndarray,
                          A10: np.ndarray, A11: np.ndarray, scratch) -> bool:
        bs = self.block_size()
        for name, A in (("A00", A00), ("A01", A01), ("A10", A10), ("A11", A11)):
            _check_shape(name, A, (bs, bs))
        k0, k1 = self.common.side_keys(info)
        theta = self.symmetry
        w_pen = self.common.fct_rule.weights * self._facet_delta(fct_no, info) \
            * self.common.fct_normal_length[fct_no]
        with scratch.scope():
            E0, _, T0 = self._side(fct_no, 0, k0, self.lam_q_0[fct_no], self.mu_q_0[fct_no], scratch)
            E1, _, T1 = self._side(fct_no, 1, k1, self.lam_q_1[fct_no], self.mu_q_1[fct_no], scratch)
            sides = ((E0, T0, 1.0), (E1, T1, -1.0))
            for s, (E_s, T_s, sgn_s) in enumerate(sides):
                for t, (E_t, T_t, sgn_t) in enumerate(sides):
                    A = ((A00, A01), (A10, A11))[s][t]
                    self._add_block(A, E_s, T_s, E_t, T_t,
                                    c_avg=-0.5 * sgn_s, c_adj=-0.5 * theta * sgn_t,
                                    c_pen=sgn_s * sgn_t, w_pen=w_pen)
        return True

    def assemble_boundary(self, fct_no: int, info: FacetInfo, A00: np.ndarray, scratch) -> bool:
        if info.bc not in (BC.DIRICHLET, BC.FAULT):
            return False
        bs = self.block_size()
        _check_shape("A00", A00, (bs, bs))
        k0, _ = self.common.side_keys(info)
        w_pen = self.common.fct_rule.weights * self._facet_delta(fct_no, info) \
            * self.common.fct_normal_length[fct_no]
        with scratch.scope():
            E0, _, T0 = self._side(fct_no, 0, k0, self.lam_q_0[fct_no], self.mu_q_0[fct_no], scratch)
            self._add_block(A00, E0, T0, E0, T0, c_avg=-1.0, c_adj=-self.symmetry,
                            c_pen=1.0, w_pen=w_pen)
        return True

    # ------------------------------------------------------------------
    # right-hand side
    # ------------------------------------------------------------------
    def rhs_volume(self, el_no: int, B: np.ndarray, scratch) -> bool:
        nbf = self.num_basis_functions()
        _check_shape("B", B, (self.block_size(),))
        F = self.fun_force(el_no, self.common.coords[el_no])
        w_j = self.common.vol_rule.weights * self.common.abs_det_j[el_no]
        B += ((self.E_Q * w_j) @ F).T.reshape(self.num_quantities * nbf)
        return True

    def _add_rhs(self, B, E_s, T_s, data, c_adj: float, c_pen: float, w_pen: np.ndarray):
        w = self.common.fct_rule.weights
        b = c_adj * np.einsum("q,iupq,qp->ui", w, T_s, data) \
            + c_pen * np.einsum("q,iq,qu->ui", w_pen, E_s, data)
        B += b.reshape(-1)

    def rhs_skeleton(self, fct_no: int, info: FacetInfo, B0: np.ndarray, B1: np.ndarray,
                     scratch) -> bool:
        if info.bc != BC.FAULT:
            return False
        bs = self.block_size()
        _check_shape("B0", B0, (bs,))
        _check_shape("B1", B1, (bs,))
        S = self.fun_slip(fct_no, self.common.fct_coords[fct_no], self.common.fct_normal[fct_no])
        k0, k1 = self.common.side_keys(info)
        w_pen = self.common.fct_rule.weights * self._facet_delta(fct_no, info) \
            * self.common.fct_normal_length[fct_no]
        with scratch.scope():
            E0, _, T0 = self._side(fct_no, 0, k0, self.lam_q_0[fct_no], self.mu_q_0[fct_no], scratch)
            E1, _, T1 = self._side(fct_no, 1, k1, self.lam_q_1[fct_no], self.mu_q_1[fct_no], scratch)
            self._add_rhs(B0, E0, T0, S, c_adj=-0.5 * self.symmetry, c_pen=1.0, w_pen=w_pen)
            self._add_rhs(B1, E1, T1, S, c_adj=-0.5 * self.symmetry, c_pen=-1.0, w_pen=w_pen)
        return True

    def _boundary_data(self, fct_no: int, info: FacetInfo) -> Optional[np.ndarray]:
        coords = self.common.fct_coords[fct_no]
        normal = self.common.fct_normal[fct_no]
        if info.bc == BC.DIRICHLET:
            return self.fun_dirichlet(fct_no, coords, normal)
        if info.bc == BC.FAULT:
            # symmetric half-space: the boundary carries half of the slip
            return 0.5 * self.fun_slip(fct_no, coords, normal)
        return None

    def rhs_boundary(self, fct_no: int, info: FacetInfo, B0: np.ndarray, scratch) -> bool:
        g = self._boundary_data(fct_no, info)
        if g is None:
            return False
        _check_shape("B0", B0, (self.block_size(),))
        k0, _ = self.common.side_keys(info)
        w_pen = self.common.fct_rule.weights * self._facet_delta(fct_no, info) \
            * self.common.fct_normal_length[fct_no]
        with scratch.scope():
            E0, _, T0 = self._side(fct_no, 0, k0, self.lam_q_0[fct_no], self.mu_q_0[fct_no], scratch)
            self._add_rhs(B0, E0, T0, g, c_adj=-self.symmetry, c_pen=1.0, w_pen=w_pen)
        return True

    # ------------------------------------------------------------------
    # post-processing
    # ------------------------------------------------------------------
    def traction(self, fct_no: int, info: FacetInfo, u0: np.ndarray, u1: np.ndarray,
                 result: np.ndarray, scratch=None):
        """
        Numerical traction {{σ(u)}}n̂ − δ([[u]] − S) at the facet quadrature
        points, written into ``result`` (nq, D).  On boundary facets the
        one-sided stress is used and the penalty acts against the Dirichlet
        data (or half the slip on fault boundaries); ``u1`` is ignored there.
        """
        bs, D, nbf = self.block_size(), self.dim, self.num_basis_functions()
        _check_shape("u0", u0, (bs,))
        _check_shape("u1", u1, (bs,))
        _check_shape("result", result, self.traction_result_info())
        k0, k1 = self.common.side_keys(info)
        n = self.common.fct_normal[fct_no]
        n_hat = n / self.common.fct_normal_length[fct_no][:, None]
        delta = self._facet_delta(fct_no, info)

        def side(u, key, j_inv, lam, mu):
            U = u.reshape(D, nbf)
            G = np.einsum("ikq,qkd->idq", self.Dxi_q[key], j_inv)
            grad = np.einsum("pj,jdq->qpd", U, G)
            sigma = _stress(grad, lam, mu)
            return (U @ self.E_q[key]).T, np.einsum("qus,qs->qu", sigma, n_hat)

        val0, t0 = side(u0, k0, self.common.fct_j_inv0[fct_no],
                        self.lam_q_0[fct_no], self.mu_q_0[fct_no])
        if info.is_boundary:
            t = t0
            g = self._boundary_data(fct_no, info)
            if g is not None:
                t = t - delta[:, None] * (val0 - g)
        else:
            val1, t1 = side(u1, k1, self.common.fct_j_inv1[fct_no],
                            self.lam_q_1[fct_no], self.mu_q_1[fct_no])
            jump = val0 - val1
            if info.bc == BC.FAULT:
                jump = jump - self.fun_slip(fct_no, self.common.fct_coords[fct_no], n)
            t = 0.5 * (t0 + t1) - delta[:, None] * jump
        result[...] = t

    def coefficients_volume(self, el_no: int, C: np.ndarray, scratch=None):
        """Nodal (λ, μ) of element ``el_no`` in the ``coefficients_prototype`` layout."""
        _check_shape("C", C, (self.material_space.num_basis_functions(), 2))
        C[:, 0] = self.lam[el_no]
        C[:, 1] = self.mu[el_no]

    def material_at_quadrature(self, el_no: int) -> np.ndarray:
        """(λ, μ) interpolated at the volume quadrature points, shape (nQ, 2)."""
        return np.column_stack([self.lam[el_no] @ self.mat_E_Q, self.mu[el_no] @ self.mat_E_Q])

    def project(self, el_no: int, fun, out: np.ndarray, scratch=None):
        """
        L2 projection of a pointwise vector function onto the solution space
        of element ``el_no``; requires ``prepare_volume`` for that element.
        """
        _check_shape("out", out, (self.block_size(),))
        F = make_volume_functional(fun, self.num_quantities)(el_no, self.common.coords[el_no])
        w_j = self.common.vol_rule.weights * self.common.abs_det_j[el_no]
        M = (self.E_Q * w_j) @ self.E_Q.T
        coeffs = solve(M, (self.E_Q * w_j) @ F, assume_a="pos")
        out[...] = coeffs.T.reshape(-1)
