from .dg_common import DGCurvilinearCommon
from .elasticity import Elasticity
from .functional import (FacetFunctional, OrientedFacetFunctional, VolumeFunctional,
                         make_facet_functional, make_volume_functional)

__all__ = [
    "DGCurvilinearCommon",
    "Elasticity",
    "VolumeFunctional",
    "FacetFunctional",
    "OrientedFacetFunctional",
    "make_volume_functional",
    "make_facet_functional",
]
