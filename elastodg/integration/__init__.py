from .quadrature import (
    QuadratureRule,
    gauss_jacobi,
    interval_quadrature,
    triangle_quadrature,
    tetrahedron_quadrature,
    simplex_quadrature,
    simplex_quadrature_rule,
)

__all__ = [
    "QuadratureRule",
    "gauss_jacobi",
    "interval_quadrature",
    "triangle_quadrature",
    "tetrahedron_quadrature",
    "simplex_quadrature",
    "simplex_quadrature_rule",
]
