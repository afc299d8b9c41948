"""
Configuration
=============
Numerical tolerances and safety factors used by the enumerator and the
placement stage.

Exports:
    DEFAULT_EPS (float): Relative inflation of the cutoff bound.
    DEFAULT_CUTOFF_SCALE (float): Safety scale of the perpendicular cutoff.
    DEFAULT_FACET_TOL (float): Distance below which a point lies on a facet.
    DEFAULT_SYMMETRY_TOL (float): Tolerance for comparing symmetry operations.
    DEFAULT_MAX_GROUP_ORDER (int): Upper limit of generated group orders.
    ProjectionSettings: Frozen bundle of the values above.
    DEFAULT_SETTINGS (ProjectionSettings): Shared default instance.
"""
from dataclasses import dataclass, replace

DEFAULT_EPS: float = 1e-5
DEFAULT_CUTOFF_SCALE: float = 1.01
DEFAULT_FACET_TOL: float = 1e-8
DEFAULT_SYMMETRY_TOL: float = 1e-8
DEFAULT_MAX_GROUP_ORDER: int = 192


@dataclass(frozen=True)
class ProjectionSettings:
    """Tunable constants of the cut-and-project pipeline.

    Attributes:
        eps: Relative tolerance applied to every cutoff bound, ``c0 * (1 + eps)``,
            so lattice points exactly on the ellipsoid surface survive rounding.
        cutoff_scale: Factor applied to the largest occupation-domain vertex
            norm to obtain the perpendicular cutoff radius.
        facet_tol: Absolute distance under which a point is reported as lying
            on a facet.
        symmetry_tol: Tolerance used when comparing rotations and translations.
        max_group_order: Closure of symmetry generators stops with an error
            beyond this many elements.
        check_exclusivity: Count every matching (rotation, fragment) pair and
            warn when a lattice point is accepted more than once.
    """
    eps: float = DEFAULT_EPS
    cutoff_scale: float = DEFAULT_CUTOFF_SCALE
    facet_tol: float = DEFAULT_FACET_TOL
    symmetry_tol: float = DEFAULT_SYMMETRY_TOL
    max_group_order: int = DEFAULT_MAX_GROUP_ORDER
    check_exclusivity: bool = False

    def __post_init__(self):
        if self.eps < 0:
            raise ValueError(f"eps must be non-negative, got {self.eps}")
        if self.cutoff_scale <= 0:
            raise ValueError(f"cutoff_scale must be positive, got {self.cutoff_scale}")
        if self.facet_tol < 0 or self.symmetry_tol < 0:
            raise ValueError("Tolerances must be non-negative")
        if self.max_group_order < 1:
            raise ValueError(f"max_group_order must be at least 1, got {self.max_group_order}")

    def with_updates(self, **changes) -> "ProjectionSettings":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


DEFAULT_SETTINGS = ProjectionSettings()
