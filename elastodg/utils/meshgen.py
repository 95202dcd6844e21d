"""elastodg.utils.meshgen
Simplex mesh generators for quick tests.
"""
from typing import Optional, Tuple

import numpy as np
from scipy.spatial import Delaunay

from elastodg.core.mesh import SimplexMesh
from elastodg.core.topology import BC

__all__ = ["delaunay_rectangle", "structured_triangles", "structured_tetrahedra"]

# Kuhn split of the unit cube: every tetrahedron walks 000 -> 111 along the
# cube edges, one axis at a time.
_KUHN_PATHS = ((0, 1, 2), (0, 2, 1), (1, 0, 2), (1, 2, 0), (2, 0, 1), (2, 1, 0))


def delaunay_rectangle(length: float, height: float, nx: int = 10, ny: int = 10,
                       boundary_bc: BC = BC.DIRICHLET) -> SimplexMesh:
    x = np.linspace(0.0, length, nx)
    y = np.linspace(0.0, height, ny)
    X, Y = np.meshgrid(x, y)
    pts = np.column_stack([X.ravel(), Y.ravel()])
    elems = Delaunay(pts).simplices.copy()

    # make triangles CCW
    a, b, c = pts[elems[:, 0]], pts[elems[:, 1]], pts[elems[:, 2]]
    cw = (b[:, 0] - a[:, 0]) * (c[:, 1] - a[:, 1]) - (b[:, 1] - a[:, 1]) * (c[:, 0] - a[:, 0]) < 0
    elems[cw] = elems[cw][:, [0, 2, 1]]
    return SimplexMesh(pts, elems, boundary_bc=boundary_bc)


def structured_triangles(Lx: float, Ly: float, *, nx_quads: int, ny_quads: int,
                         offset: Optional[Tuple[float, float]] = None,
                         boundary_bc: BC = BC.DIRICHLET) -> SimplexMesh:
    """
    Split an ``nx_quads`` x ``ny_quads`` grid of rectangles on
    [0, Lx] x [0, Ly] into two counter-clockwise triangles each.
    """
    if nx_quads < 1 or ny_quads < 1:
        raise ValueError("Need at least one quad in each direction.")
    x = np.linspace(0.0, Lx, nx_quads + 1)
    y = np.linspace(0.0, Ly, ny_quads + 1)
    X, Y = np.meshgrid(x, y)
    pts = np.column_stack([X.ravel(), Y.ravel()])
    if offset is not None:
        pts += np.asarray(offset, dtype=float)

    node = lambda ix, iy: iy * (nx_quads + 1) + ix
    elems = []
    for iy in range(ny_quads):
        for ix in range(nx_quads):
            v00, v10 = node(ix, iy), node(ix + 1, iy)
            v01, v11 = node(ix, iy + 1), node(ix + 1, iy + 1)
            elems.append((v00, v10, v11))
            elems.append((v00, v11, v01))
    return SimplexMesh(pts, np.array(elems), boundary_bc=boundary_bc)


def structured_tetrahedra(Lx: float, Ly: float, Lz: float, *, nx: int, ny: int, nz: int,
                          boundary_bc: BC = BC.DIRICHLET) -> SimplexMesh:
    """Box [0,Lx]x[0,Ly]x[0,Lz] split into hexahedra, six tetrahedra each."""
    if min(nx, ny, nz) < 1:
        raise ValueError("Need at least one cell in each direction.")
    axes = [np.linspace(0.0, L, n + 1) for L, n in ((Lx, nx), (Ly, ny), (Lz, nz))]
    Z, Y, X = np.meshgrid(axes[2], axes[1], axes[0], indexing="ij")
    pts = np.column_stack([X.ravel(), Y.ravel(), Z.ravel()])

    node = lambda i: (i[2] * (ny + 1) + i[1]) * (nx + 1) + i[0]
    elems = []
    for k in range(nz):
        for j in range(ny):
            for i in range(nx):
                for path in _KUHN_PATHS:
                    corner = [i, j, k]
                    tet = [node(corner)]
                    for axis in path:
                        corner[axis] += 1
                        tet.append(node(corner))
                    elems.append(tet)
    return SimplexMesh(pts, np.array(elems), boundary_bc=boundary_bc)
