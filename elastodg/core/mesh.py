"""elastodg.core.mesh
Simplex mesh with facet topology.
"""
from dataclasses import replace
from math import factorial
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from elastodg.core.topology import BC, FacetInfo


class SimplexMesh:
    """
    Triangles (D=2) or tetrahedra (D=3) given by vertex coordinates and
    element-to-vertex connectivity.

    Local facet ``f`` of an element is the facet opposite to its local vertex
    ``f``; its vertices are the remaining ones in increasing local order.
    Every facet is stored once, as a :class:`FacetInfo` whose side 0 is the
    first element found to contain it.
    """

    def __init__(self, vertices: np.ndarray, elements: np.ndarray, *,
                 boundary_bc: BC = BC.DIRICHLET):
        self.vertices = np.asarray(vertices, dtype=float)
        self.elements = np.asarray(elements, dtype=np.int64)
        self.dim = self.vertices.shape[1]
        if self.elements.shape[1] != self.dim + 1:
            raise ValueError(f"A {self.dim}-D simplex needs {self.dim + 1} vertices, "
                             f"got elements of width {self.elements.shape[1]}.")
        self.facets: List[FacetInfo] = []
        self._facet_vertices: List[Tuple[int, ...]] = []
        self._element_facets = np.full((len(self.elements), self.dim + 1), -1, dtype=np.int64)
        self._build_topology(boundary_bc)

    # ------------------------------------------------------------------
    def local_facet_vertices(self, el: int, local_no: int) -> Tuple[int, ...]:
        return tuple(int(v) for k, v in enumerate(self.elements[el]) if k != local_no)

    def _build_topology(self, boundary_bc: BC):
        incidences: Dict[Tuple[int, ...], List[Tuple[int, int]]] = {}
        for el in range(len(self.elements)):
            for f in range(self.dim + 1):
                key = tuple(sorted(self.local_facet_vertices(el, f)))
                incidences.setdefault(key, []).append((el, f))

        for fct_no, sides in enumerate(incidences.values()):
            if len(sides) > 2:
                raise ValueError(f"Non-manifold facet shared by elements {[s[0] for s in sides]}.")
            e0, f0 = sides[0]
            g0 = self.local_facet_vertices(e0, f0)
            if len(sides) == 1:
                info = FacetInfo.boundary(e0, f0, boundary_bc)
            else:
                e1, f1 = sides[1]
                g1 = self.local_facet_vertices(e1, f1)
                info = FacetInfo(up=(e0, e1), local_no=(f0, f1), bc=BC.NONE,
                                 orientation=tuple(g0.index(v) for v in g1))
                self._element_facets[e1, f1] = fct_no
            self._element_facets[e0, f0] = fct_no
            self.facets.append(info)
            self._facet_vertices.append(g0)

    # ------------------------------------------------------------------
    @property
    def num_elements(self) -> int:
        return len(self.elements)

    @property
    def num_facets(self) -> int:
        return len(self.facets)

    def facet(self, fct_no: int) -> FacetInfo:
        if not 0 <= fct_no < len(self.facets):
            raise IndexError(f"Facet ID {fct_no} out of range.")
        return self.facets[fct_no]

    def element_facets(self, el: int) -> np.ndarray:
        return self._element_facets[el]

    def facet_vertices(self, fct_no: int) -> Tuple[int, ...]:
        """Global vertex ids of the facet in side 0's local order."""
        return self._facet_vertices[fct_no]

    def facet_centroid(self, fct_no: int) -> np.ndarray:
        return self.vertices[list(self._facet_vertices[fct_no])].mean(axis=0)

    def boundary_facets(self) -> List[int]:
        return [i for i, f in enumerate(self.facets) if f.is_boundary]

    def interior_facets(self) -> List[int]:
        return [i for i, f in enumerate(self.facets) if not f.is_boundary]

    def tag_boundary_facets(self, tag_functions: Dict[BC, Callable[[np.ndarray], bool]]):
        """Assign a BC to boundary facets whose centroid satisfies a predicate."""
        for fct_no, info in enumerate(self.facets):
            if not info.is_boundary:
                continue
            c = self.facet_centroid(fct_no)
            for bc, func in tag_functions.items():
                if func(c):
                    self.facets[fct_no] = replace(info, bc=bc)
                    break

    def tag_facets(self, func: Callable[[np.ndarray], Optional[BC]]):
        """
        Apply ``func(centroid) -> BC | None`` to every facet, interior or
        boundary (used e.g. to mark fault facets).
        """
        for fct_no, info in enumerate(self.facets):
            bc = func(self.facet_centroid(fct_no))
            if bc is not None:
                self.facets[fct_no] = replace(info, bc=bc)

    def volumes(self) -> np.ndarray:
        """Volumes of the straight-sided simplices."""
        v = self.vertices[self.elements]
        edges = v[:, 1:, :] - v[:, :1, :]
        return np.abs(np.linalg.det(edges)) / factorial(self.dim)

    def __repr__(self):
        return (f"<SimplexMesh dim={self.dim} n_vertices={len(self.vertices)} "
                f"n_elems={self.num_elements} n_facets={self.num_facets}>")
