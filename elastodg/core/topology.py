"""elastodg.core.topology
Facet descriptors shared by the mesh and the local operators.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class BC(Enum):
    """Condition carried by a facet."""
    NONE = "none"            # ordinary interior facet
    NATURAL = "natural"      # traction-free boundary
    DIRICHLET = "dirichlet"
    FAULT = "fault"          # slip imposed as displacement jump


@dataclass(frozen=True, slots=True)
class FacetInfo:
    up: Tuple[int, int]             # adjacent elements; up[0] == up[1] on the boundary
    local_no: Tuple[int, int]       # local facet number within up[0] / up[1]
    bc: BC = BC.NONE
    # orientation[k] = position in side 0's facet vertex list of the k-th
    # facet vertex of side 1
    orientation: Tuple[int, ...] = ()

    @property
    def is_boundary(self) -> bool:
        return self.up[0] == self.up[1]

    @classmethod
    def boundary(cls, el: int, local_no: int, bc: BC = BC.DIRICHLET) -> "FacetInfo":
        return cls(up=(el, el), local_no=(local_no, local_no), bc=bc)
