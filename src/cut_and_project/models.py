"""
Data classes for superspace models of quasicrystals.
"""

from dataclasses import dataclass, field

import numpy as np

from .config import DEFAULT_FACET_TOL, DEFAULT_SYMMETRY_TOL
from .errors import ModelError
from .geometry import Facet, FacetPosition, simplex_facets, triangulate_convex

_ADMITTED = frozenset({FacetPosition.INSIDE_OF_FACET, FacetPosition.ON_FACET})


def _frozen_array(values, dtype=float, ndim: int | None = None) -> np.ndarray:
    arr = np.array(values, dtype=dtype)
    if ndim is not None and arr.ndim != ndim:
        raise ModelError(f"Expected a {ndim}D array, got shape {arr.shape}")
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class SymmetryOperation:
    """Superspace symmetry operation ``x -> rot @ x + trans``.

    Both parts are expressed in the fractional (lattice) basis, so ``rot``
    is an integer matrix.
    """
    rot: np.ndarray
    trans: np.ndarray

    def __post_init__(self):
        rot = np.asarray(self.rot, dtype=float)
        if rot.ndim != 2 or rot.shape[0] != rot.shape[1]:
            raise ModelError(f"Rotation must be a square matrix, got shape {rot.shape}")
        if not np.allclose(rot, np.round(rot), atol=DEFAULT_SYMMETRY_TOL):
            raise ModelError("Rotation in the lattice basis must be an integer matrix")
        trans = np.asarray(self.trans, dtype=float).reshape(-1)
        if trans.shape[0] != rot.shape[0]:
            raise ModelError(
                f"Translation length {trans.shape[0]} does not match rotation size {rot.shape[0]}"
            )
        object.__setattr__(self, 'rot', _frozen_array(np.round(rot), dtype=int))
        object.__setattr__(self, 'trans', _frozen_array(trans))

    @property
    def dim(self) -> int:
        return self.rot.shape[0]

    @classmethod
    def identity(cls, dim: int) -> "SymmetryOperation":
        return cls(np.eye(dim, dtype=int), np.zeros(dim))

    def apply(self, x: np.ndarray) -> np.ndarray:
        return self.rot @ np.asarray(x, dtype=float) + self.trans

    def compose(self, other: "SymmetryOperation") -> "SymmetryOperation":
        """The operation applying ``other`` first and then ``self``."""
        return SymmetryOperation(
            self.rot @ other.rot,
            self.rot @ other.trans + self.trans,
        )

    def __mul__(self, other: "SymmetryOperation") -> "SymmetryOperation":
        return self.compose(other)

    def inverse(self) -> "SymmetryOperation":
        rot_inv = np.round(np.linalg.inv(self.rot)).astype(int)
        return SymmetryOperation(rot_inv, -(rot_inv @ self.trans))

    def reduced(self, tol: float = DEFAULT_SYMMETRY_TOL) -> "SymmetryOperation":
        """Same operation with the translation reduced into ``[0, 1)``."""
        trans = self.trans - np.floor(self.trans + tol)
        return SymmetryOperation(self.rot, trans)

    def is_equivalent(self, other: "SymmetryOperation", tol: float = DEFAULT_SYMMETRY_TOL) -> bool:
        """Equal rotations and translations differing by a lattice vector."""
        if not np.array_equal(self.rot, other.rot):
            return False
        diff = self.trans - other.trans
        return bool(np.allclose(diff, np.round(diff), atol=tol))

    def to_dict(self) -> dict:
        return {'rot': self.rot.tolist(), 'trans': self.trans.tolist()}


@dataclass(frozen=True, eq=False)
class Fragment:
    """Simplex piece of an occupation domain in perpendicular space."""
    vertices: np.ndarray
    facets: tuple[Facet, ...] = field(init=False, repr=False)

    def __post_init__(self):
        vertices = np.asarray(self.vertices, dtype=float)
        if vertices.ndim == 1 and vertices.size == 0:
            vertices = vertices.reshape(1, 0)
        object.__setattr__(self, 'vertices', _frozen_array(vertices, ndim=2))
        object.__setattr__(self, 'facets', simplex_facets(self.vertices))

    @property
    def dim(self) -> int:
        return self.vertices.shape[1]

    def contains(self, point: np.ndarray, tol: float = DEFAULT_FACET_TOL) -> bool:
        """True when ``point`` is on or inside every facet."""
        return all(f.position(point, tol) in _ADMITTED for f in self.facets)

    def max_vertex_norm(self) -> float:
        return float(np.max(np.linalg.norm(self.vertices, axis=1)))


@dataclass(frozen=True, eq=False)
class OccupationDomain:
    """Acceptance region of one species, as a union of simplex fragments."""
    species: str
    fragments: tuple[Fragment, ...]

    def __post_init__(self):
        if not self.species:
            raise ModelError("Occupation domain needs a species symbol")
        fragments = tuple(
            f if isinstance(f, Fragment) else Fragment(f) for f in self.fragments
        )
        if not fragments:
            raise ModelError(f"Occupation domain of {self.species} has no fragments")
        dims = {f.dim for f in fragments}
        if len(dims) != 1:
            raise ModelError(f"Fragments of {self.species} have mixed dimensions {sorted(dims)}")
        object.__setattr__(self, 'fragments', fragments)

    @property
    def dim(self) -> int:
        return self.fragments[0].dim

    @classmethod
    def from_vertices(cls, species: str, vertices) -> "OccupationDomain":
        """Build a convex domain from its corner points."""
        return cls(species, tuple(Fragment(s) for s in triangulate_convex(vertices)))

    def max_vertex_norm(self) -> float:
        return max(f.max_vertex_norm() for f in self.fragments)

    def find_fragment(self, point: np.ndarray, tol: float = DEFAULT_FACET_TOL) -> int | None:
        """Index of the first fragment containing ``point``, or None."""
        for i, fragment in enumerate(self.fragments):
            if fragment.contains(point, tol):
                return i
        return None

    def to_dict(self) -> dict:
        return {
            'species': self.species,
            'fragments': [f.vertices.tolist() for f in self.fragments],
        }


@dataclass(frozen=True, eq=False)
class AtomSite:
    """Atom site: fractional superspace position and its occupation domains."""
    label: str
    pos_fract: np.ndarray
    occupation_domains: tuple[OccupationDomain, ...]

    def __post_init__(self):
        if not self.label:
            raise ModelError("Atom site needs a label")
        object.__setattr__(self, 'pos_fract', _frozen_array(self.pos_fract, ndim=1))
        domains = tuple(self.occupation_domains)
        if not domains:
            raise ModelError(f"Atom site {self.label} has no occupation domain")
        object.__setattr__(self, 'occupation_domains', domains)

    @property
    def dim(self) -> int:
        return self.pos_fract.shape[0]

    def max_vertex_norm(self) -> float:
        """Largest perpendicular-space norm of any domain vertex."""
        return max(od.max_vertex_norm() for od in self.occupation_domains)

    def to_dict(self) -> dict:
        return {
            'label': self.label,
            'pos_fract': self.pos_fract.tolist(),
            'occupation_domains': [od.to_dict() for od in self.occupation_domains],
        }


@dataclass(frozen=True)
class Atom:
    """Realized atom in physical (parallel) space."""
    label: str
    species: str
    r_par: tuple[float, ...]


@dataclass(frozen=True, eq=False)
class QuasicrystalModel:
    """Superspace description of a quasicrystal.

    Attributes:
        a_par_cartn: ``(dim_par, dim)`` matrix mapping fractional coordinates
            to parallel-space Cartesian coordinates
        a_perp_cartn: ``(dim_perp, dim)`` matrix mapping fractional coordinates
            to perpendicular-space Cartesian coordinates
        atom_sites: Independent atom sites
        symmetry_operations: Complete superspace group, identity first
        origin_fract: Fractional origin of the generated structure
    """
    a_par_cartn: np.ndarray
    a_perp_cartn: np.ndarray
    atom_sites: tuple[AtomSite, ...] = ()
    symmetry_operations: tuple[SymmetryOperation, ...] = ()
    origin_fract: np.ndarray | None = None
    b_par_cartn: np.ndarray = field(init=False, repr=False)
    b_perp_cartn: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        a_par = np.atleast_2d(np.asarray(self.a_par_cartn, dtype=float))
        dim = a_par.shape[1]
        a_perp = np.asarray(self.a_perp_cartn, dtype=float)
        a_perp = np.zeros((0, dim)) if a_perp.size == 0 else np.atleast_2d(a_perp)
        if a_perp.shape[1] != dim:
            raise ModelError(
                f"a_par_cartn {a_par.shape} and a_perp_cartn {a_perp.shape} disagree on dim"
            )
        dim_par, dim_perp = a_par.shape[0], a_perp.shape[0]
        if dim != dim_par + dim_perp:
            raise ModelError(
                f"dim ({dim}) must be equal to dim_par + dim_perp ({dim_par} + {dim_perp})"
            )

        a_cartn = np.vstack([a_par, a_perp])
        if np.linalg.matrix_rank(a_cartn) < dim:
            raise ModelError("Superspace basis is singular")
        b_cartn = np.linalg.inv(a_cartn)

        object.__setattr__(self, 'a_par_cartn', _frozen_array(a_par))
        object.__setattr__(self, 'a_perp_cartn', _frozen_array(a_perp))
        object.__setattr__(self, 'b_par_cartn', _frozen_array(b_cartn[:, :dim_par]))
        object.__setattr__(self, 'b_perp_cartn', _frozen_array(b_cartn[:, dim_par:]))

        origin = np.zeros(dim) if self.origin_fract is None else self.origin_fract
        origin = _frozen_array(origin, ndim=1)
        if origin.shape[0] != dim:
            raise ModelError(f"origin_fract must have length {dim}")
        object.__setattr__(self, 'origin_fract', origin)

        ops = tuple(self.symmetry_operations) or (SymmetryOperation.identity(dim),)
        for op in ops:
            if op.dim != dim:
                raise ModelError(f"Symmetry operation of dimension {op.dim} in a {dim}D model")
            if not self.is_superspace_operation(op):
                raise ModelError(
                    f"Rotation {op.rot.tolist()} mixes parallel and perpendicular spaces"
                )
        object.__setattr__(self, 'symmetry_operations', ops)

        sites = tuple(self.atom_sites)
        labels = [s.label for s in sites]
        if len(set(labels)) != len(labels):
            raise ModelError(f"Duplicate atom site labels in {labels}")
        for site in sites:
            if site.dim != dim:
                raise ModelError(
                    f"Atom site {site.label} has position of length {site.dim}, expected {dim}"
                )
            for od in site.occupation_domains:
                if od.dim != dim_perp:
                    raise ModelError(
                        f"Occupation domain of {site.label} lives in {od.dim}D, "
                        f"perpendicular space is {dim_perp}D"
                    )
        object.__setattr__(self, 'atom_sites', sites)

    @property
    def dim(self) -> int:
        return self.a_par_cartn.shape[1]

    @property
    def dim_par(self) -> int:
        return self.a_par_cartn.shape[0]

    @property
    def dim_perp(self) -> int:
        return self.a_perp_cartn.shape[0]

    def get_site(self, label: str) -> AtomSite:
        for site in self.atom_sites:
            if site.label == label:
                return site
        raise KeyError(f"Unknown atom site: {label}")

    def par_rotation(self, op: SymmetryOperation) -> np.ndarray:
        """Rotation part of ``op`` in parallel-space Cartesian coordinates."""
        return self.a_par_cartn @ op.rot @ self.b_par_cartn

    def perp_rotation(self, op: SymmetryOperation) -> np.ndarray:
        """Rotation part of ``op`` in perpendicular-space Cartesian coordinates."""
        return self.a_perp_cartn @ op.rot @ self.b_perp_cartn

    def is_superspace_operation(self, op: SymmetryOperation, tol: float = DEFAULT_SYMMETRY_TOL) -> bool:
        """True when ``op`` maps parallel space and perpendicular space onto themselves."""
        if self.dim_par == 0 or self.dim_perp == 0:
            return True
        perp_par = self.a_perp_cartn @ op.rot @ self.b_par_cartn
        par_perp = self.a_par_cartn @ op.rot @ self.b_perp_cartn
        return bool(np.allclose(perp_par, 0.0, atol=tol) and np.allclose(par_perp, 0.0, atol=tol))

    def project(self, x_fract) -> tuple[np.ndarray, np.ndarray]:
        """Parallel and perpendicular Cartesian images of a fractional point."""
        x = np.asarray(x_fract, dtype=float)
        return self.a_par_cartn @ x, self.a_perp_cartn @ x
