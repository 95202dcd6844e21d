import numpy as np
import pytest
from numpy.testing import assert_allclose

from elastodg.core import BC, FacetInfo, SimplexMesh
from elastodg.utils.meshgen import delaunay_rectangle, structured_tetrahedra, structured_triangles


def test_two_triangle_topology():
    mesh = SimplexMesh([[0, 0], [1, 0], [1, 1], [0, 1]], [[0, 1, 2], [0, 2, 3]])
    assert mesh.num_facets == 5
    assert len(mesh.interior_facets()) == 1
    info = mesh.facet(mesh.interior_facets()[0])
    assert info.up == (0, 1)
    # shared edge {0, 2}: opposite vertex 1 in element 0 and vertex 3 (local 2) in element 1
    assert info.local_no == (1, 2)
    assert info.orientation == (0, 1)
    assert all(mesh.facet(f).bc == BC.DIRICHLET for f in mesh.boundary_facets())


def test_orientation_is_a_permutation_of_side0():
    mesh = SimplexMesh([[0, 0], [1, 0], [0, 1], [1, 1]], [[0, 1, 2], [3, 2, 1]])
    fct = mesh.interior_facets()[0]
    info = mesh.facet(fct)
    g0 = mesh.facet_vertices(fct)
    g1 = mesh.local_facet_vertices(info.up[1], info.local_no[1])
    assert [g0[k] for k in info.orientation] == list(g1)
    assert info.orientation == (1, 0)


@pytest.mark.parametrize("nx, ny", [(1, 1), (3, 2)])
def test_structured_triangle_counts(nx, ny):
    mesh = structured_triangles(1.0, 1.0, nx_quads=nx, ny_quads=ny)
    assert mesh.num_elements == 2 * nx * ny
    assert len(mesh.boundary_facets()) == 2 * (nx + ny)
    assert mesh.num_facets == 3 * nx * ny + nx + ny
    assert np.isclose(mesh.volumes().sum(), 1.0)
    for el in range(mesh.num_elements):
        assert np.all(mesh.element_facets(el) >= 0)


def test_structured_tetrahedra_conforming():
    mesh = structured_tetrahedra(1.0, 2.0, 1.0, nx=2, ny=2, nz=2)
    assert mesh.num_elements == 48
    assert np.isclose(mesh.volumes().sum(), 2.0)
    # every boundary face lies on the box surface; 2 triangles per cell face
    assert len(mesh.boundary_facets()) == 2 * 2 * (4 + 4 + 4)
    lo, hi = np.zeros(3), np.array([1.0, 2.0, 1.0])
    for f in mesh.boundary_facets():
        c = mesh.facet_centroid(f)
        assert np.any(np.isclose(c, lo) | np.isclose(c, hi))


def test_delaunay_rectangle_is_ccw():
    mesh = delaunay_rectangle(2.0, 1.0, nx=5, ny=4)
    v = mesh.vertices[mesh.elements]
    e1, e2 = v[:, 1] - v[:, 0], v[:, 2] - v[:, 0]
    assert np.all(e1[:, 0] * e2[:, 1] - e1[:, 1] * e2[:, 0] > -1e-12)
    assert np.isclose(mesh.volumes().sum(), 2.0)


def test_tag_boundary_and_fault_facets():
    mesh = structured_triangles(2.0, 1.0, nx_quads=2, ny_quads=1)
    mesh.tag_boundary_facets({BC.NATURAL: lambda c: np.isclose(c[1], 1.0)})
    mesh.tag_facets(lambda c: BC.FAULT if np.isclose(c[0], 1.0) else None)
    top = [f for f in mesh.boundary_facets() if np.isclose(mesh.facet_centroid(f)[1], 1.0)]
    assert top and all(mesh.facet(f).bc == BC.NATURAL for f in top)
    faults = [f for f in range(mesh.num_facets) if mesh.facet(f).bc == BC.FAULT]
    assert len(faults) == 1 and not mesh.facet(faults[0]).is_boundary


def test_facet_info_and_errors():
    info = FacetInfo.boundary(4, 2)
    assert info.is_boundary and info.up == (4, 4) and info.bc == BC.DIRICHLET
    mesh = structured_triangles(1.0, 1.0, nx_quads=1, ny_quads=1)
    with pytest.raises(IndexError):
        mesh.facet(99)
    with pytest.raises(ValueError):
        SimplexMesh([[0, 0], [1, 0], [0, 1]], [[0, 1]])
