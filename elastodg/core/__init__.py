from .topology import BC, FacetInfo
from .mesh import SimplexMesh
from .geometry import Curvilinear
from .scratch import LinearAllocator
from .options import DGOptions
__all__ = ['BC', 'FacetInfo', 'SimplexMesh', 'Curvilinear', 'LinearAllocator', 'DGOptions']
