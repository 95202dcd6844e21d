# elastodg.fem.reference
"""
Reference-element factory.
"""
from functools import lru_cache

from .modal import ModalRefElement
from .nodal import NodalRefElement, equispaced_nodes

__all__ = ["ModalRefElement", "NodalRefElement", "equispaced_nodes", "get_reference"]


@lru_cache(maxsize=None)
def get_reference(kind: str, degree: int, dim: int):
    """Shared, immutable reference element: ``kind`` is 'modal' or 'nodal'."""
    if kind == "modal":
        return ModalRefElement(degree, dim)
    if kind == "nodal":
        return NodalRefElement(degree, dim)
    raise KeyError(kind)
