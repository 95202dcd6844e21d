"""elastodg.io.visualization"""
import numpy as np
import matplotlib.pyplot as plt
from matplotlib.collections import LineCollection, PolyCollection

from elastodg.core.topology import BC

_EDGE_COLOR = {
    BC.NONE: (0.1, 0.1, 0.1, 0.3),
    BC.NATURAL: "dimgray",
    BC.DIRICHLET: "black",
    BC.FAULT: "red",
}


def _element_outlines(cl, resolution: int):
    """Physical boundary polygons of the (possibly curved) 2-D elements of ``cl``."""
    t = np.linspace(0.0, 1.0, resolution, endpoint=False)
    corners = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
    ref = np.vstack([(1.0 - t)[:, None] * corners[k] + t[:, None] * corners[(k + 1) % 3]
                     for k in range(3)])
    E = cl.evaluate_basis_at(ref)
    return [cl.map(el, E) for el in range(cl.num_elements)]


def plot_mesh(cl, *, edge_colors=True, show=True, ax=None, resolution=8):
    """
    Plots a 2-D curvilinear simplex mesh; boundary and fault facets are
    coloured by their condition when ``edge_colors`` is set.

    Returns
    -------
    matplotlib.axes.Axes
    """
    if cl.dim != 2:
        raise ValueError("Only 2-D meshes can be plotted.")
    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 8))

    polys = _element_outlines(cl, resolution)
    ax.add_collection(PolyCollection(polys, facecolors=(0.9, 0.9, 0.9, 0.5),
                                     edgecolors="none", zorder=1))

    mesh = cl.mesh
    segments, colors = [], []
    for fct_no, info in enumerate(mesh.facets):
        el, f = info.up[0], info.local_no[0]
        # local facet f of a triangle runs between polygon sides (f+1) % 3
        start = ((f + 1) % 3) * resolution
        seg = np.vstack([polys[el][start:start + resolution],
                         polys[el][(start + resolution) % (3 * resolution)]])
        segments.append(seg)
        colors.append(_EDGE_COLOR[info.bc] if edge_colors else "black")
    ax.add_collection(LineCollection(segments, colors=colors, linewidths=0.9, zorder=2))

    _finalize(ax, np.vstack(polys), "Mesh Visualization")
    if show:
        plt.show()
    return ax


def plot_coefficients(cl, values, *, label="", cmap="viridis", show=True, ax=None, resolution=8):
    """
    Plots one value per element (e.g. a material coefficient averaged over
    the element) as a flat colour on each curved triangle.
    """
    if cl.dim != 2:
        raise ValueError("Only 2-D meshes can be plotted.")
    values = np.asarray(values, dtype=float)
    if values.shape != (cl.num_elements,):
        raise ValueError(f"Expected {cl.num_elements} element values, got shape {values.shape}.")
    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 8))

    polys = _element_outlines(cl, resolution)
    coll = PolyCollection(polys, array=values, cmap=cmap, edgecolors=(0.1, 0.1, 0.1, 0.2),
                          linewidths=0.5, zorder=1)
    ax.add_collection(coll)
    plt.colorbar(coll, ax=ax, label=label)

    _finalize(ax, np.vstack(polys), label or "Element Coefficients")
    if show:
        plt.show()
    return ax


def _finalize(ax, pts, title):
    ax.set_aspect('equal', 'box')
    xmin, ymin = pts.min(axis=0)
    xmax, ymax = pts.max(axis=0)
    xpad = (xmax - xmin) * 0.05 or 0.1
    ypad = (ymax - ymin) * 0.05 or 0.1
    ax.set_xlim(xmin - xpad, xmax + xpad)
    ax.set_ylim(ymin - ypad, ymax + ypad)
    ax.set_title(title)
    ax.set_xlabel("X-coordinate")
    ax.set_ylabel("Y-coordinate")
