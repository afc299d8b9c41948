"""
Cut and Project - Quasicrystal Structure Generator.

Generates physical atomic structures of quasicrystals from superspace models.
Lattice points inside the parallel and perpendicular cutoff ellipsoids are
enumerated exactly by incremental quadratic-form reduction and a zigzag
depth-first search; an atom is placed wherever a point's perpendicular image
falls inside a site-symmetry copy of an occupation domain.

Example:
    >>> from cut_and_project import load_model, generate_atoms
    >>>
    >>> model = load_model("fibonacci.json")
    >>> atoms = generate_atoms(model, r_cut_par=20.0)
    >>> species = {atom.species for atom in atoms}

    >>> # Enumerate lattice points of an ellipsoid directly
    >>> from cut_and_project import LatticePointEnumerator
    >>> sorted(LatticePointEnumerator([[2.0]])([0.0]))
    [(0,)]
"""

__version__ = "1.0.0"

# Configuration and errors
from .config import DEFAULT_SETTINGS, ProjectionSettings
from .errors import CutAndProjectError, DegenerateFormError, ModelError, ModelFormatError

# Enumeration
from .enumerator import (
    CutoffWindow,
    DualLatticePointEnumerator,
    LatticePointEnumerator,
    lattice_points,
    lattice_points_dual,
)
from .quadratic import (
    CascadeLevel,
    CoefficientCascade,
    feasible_interval,
    integer_range,
    intersect_intervals,
    real_roots_of_quad_eq,
)

# Data classes
from .geometry import Facet, FacetPosition, hypercube_vertices, simplex_facets, triangulate_convex
from .models import Atom, AtomSite, Fragment, OccupationDomain, QuasicrystalModel, SymmetryOperation

# Symmetry
from .symmetry import (
    generate_group,
    generate_orbit,
    position_perp_maps,
    site_orbit,
    site_point_group_perp,
)

# Placement and I/O
from .placement import StructureGenerator, generate_atoms
from .io import dump_model, load_model, model_from_dict, model_to_dict, write_atoms

__all__ = [
    # Version
    "__version__",
    # Configuration
    "ProjectionSettings",
    "DEFAULT_SETTINGS",
    # Errors
    "CutAndProjectError",
    "ModelError",
    "ModelFormatError",
    "DegenerateFormError",
    # Enumeration
    "CutoffWindow",
    "LatticePointEnumerator",
    "DualLatticePointEnumerator",
    "lattice_points",
    "lattice_points_dual",
    "CascadeLevel",
    "CoefficientCascade",
    "real_roots_of_quad_eq",
    "feasible_interval",
    "intersect_intervals",
    "integer_range",
    # Geometry
    "Facet",
    "FacetPosition",
    "simplex_facets",
    "triangulate_convex",
    "hypercube_vertices",
    # Data classes
    "Atom",
    "AtomSite",
    "Fragment",
    "OccupationDomain",
    "QuasicrystalModel",
    "SymmetryOperation",
    # Symmetry
    "generate_group",
    "generate_orbit",
    "site_orbit",
    "site_point_group_perp",
    "position_perp_maps",
    # Placement
    "StructureGenerator",
    "generate_atoms",
    # I/O
    "load_model",
    "dump_model",
    "model_from_dict",
    "model_to_dict",
    "write_atoms",
]
