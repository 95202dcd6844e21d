import matplotlib.pyplot as plt
import numpy as np
import pytest

from elastodg.core import BC, Curvilinear
from elastodg.io import plot_coefficients, plot_mesh
from elastodg.utils.meshgen import structured_tetrahedra, structured_triangles


@pytest.fixture
def curved():
    mesh = structured_triangles(1.0, 1.0, nx_quads=2, ny_quads=2)
    mesh.tag_boundary_facets({BC.NATURAL: lambda c: np.isclose(c[1], 1.0)})
    return Curvilinear(mesh, transform=lambda x: np.array([x[0], x[1] + 0.1 * x[0] ** 2]), degree=2)


def test_plot_mesh_colours_facets(curved):
    fig, ax = plt.subplots()
    out = plot_mesh(curved, show=False, ax=ax, resolution=4)
    assert out is ax
    lines = ax.collections[-1]
    assert len(lines.get_segments()) == curved.mesh.num_facets
    # bottom-right corner lies on the curve y = 0.1 x^2
    assert ax.get_ylim()[1] > 1.1
    plt.close(fig)


def test_plot_coefficients(curved):
    values = np.arange(curved.num_elements, dtype=float)
    ax = plot_coefficients(curved, values, label="lambda", show=False)
    poly = ax.collections[0]
    assert len(poly.get_paths()) == curved.num_elements
    assert np.allclose(poly.get_array(), values)
    plt.close(ax.figure)


def test_plot_rejects_bad_input(curved):
    with pytest.raises(ValueError):
        plot_coefficients(curved, np.zeros(3), show=False)
    with pytest.raises(ValueError):
        plot_mesh(Curvilinear(structured_tetrahedra(1.0, 1.0, 1.0, nx=1, ny=1, nz=1)), show=False)
