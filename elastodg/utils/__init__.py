from .meshgen import delaunay_rectangle, structured_triangles, structured_tetrahedra

__all__ = ["delaunay_rectangle", "structured_triangles", "structured_tetrahedra"]
