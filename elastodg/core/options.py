# elastodg/core/options.py
from dataclasses import dataclass
from typing import Optional


@dataclass
class DGOptions:
    """
    Knobs of the interior-penalty discretisation.
    """
    # Multiplies the reference penalty of every element.
    penalty_scale: float = 1.0
    # Weight of the adjoint-consistency term: +1 symmetric (SIPG), -1 non-symmetric (NIPG).
    symmetry: float = 1.0
    # Minimum total degree the volume/facet rules must integrate exactly.
    # None selects 2 * degree + 1.
    quad_order: Optional[int] = None

    def resolve_quad_order(self, degree: int) -> int:
        return 2 * degree + 1 if self.quad_order is None else int(self.quad_order)
