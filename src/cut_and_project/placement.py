"""
Structure Projection & Placement.

For every atom site, enumerates the superspace lattice translations whose
parallel image lies inside the parallel cutoff sphere and whose perpendicular
image lies near the occupation domains, then realizes an atom wherever the
perpendicular image, carried through one of the site-symmetry rotations,
falls inside a domain fragment.
"""

import logging
from dataclasses import dataclass
from typing import Iterator

import numpy as np

from .config import DEFAULT_SETTINGS, ProjectionSettings
from .enumerator import CutoffWindow, DualLatticePointEnumerator
from .errors import ModelError
from .models import Atom, AtomSite, QuasicrystalModel
from .symmetry import position_perp_maps, site_orbit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Match:
    """A (rotation, domain, fragment) combination accepting a lattice point."""
    rotation: int
    domain: int
    fragment: int


class SitePlacement:
    """Placement state of one atom site: cutoff window, enumerator, rotations.

    ``rotations[j]`` lists the perpendicular maps taking the domain copies of
    equivalent position ``j`` back onto the site's own occupation domains.
    """

    def __init__(
        self,
        model: QuasicrystalModel,
        site: AtomSite,
        r_cut_par: float,
        settings: ProjectionSettings = DEFAULT_SETTINGS,
    ):
        self.model = model
        self.site = site
        self.settings = settings

        self.r_perp_max = site.max_vertex_norm()
        self.r_cut_perp = self.r_perp_max * settings.cutoff_scale
        self.window = CutoffWindow.from_basis(
            model.a_par_cartn,
            model.a_perp_cartn,
            r_cut_par,
            self.r_cut_perp if model.dim_perp else None,
        )
        self.enumerator = DualLatticePointEnumerator(
            self.window.m_par, self.window.m_perp, settings
        )
        self.equivalent_positions = site_orbit(model, site, settings.symmetry_tol).points
        self.rotations = position_perp_maps(model, site, settings.symmetry_tol)

    def translations(self) -> Iterator[np.ndarray]:
        """Translation ``v = p - origin`` for each equivalent position ``p``."""
        for pos in self.equivalent_positions:
            yield pos - self.model.origin_fract

    def matches(self, lattice_fract, position_index: int = 0) -> list[Match]:
        """Every (rotation, domain, fragment) accepting a lattice point of one position."""
        v = self.equivalent_positions[position_index] - self.model.origin_fract
        x = np.asarray(lattice_fract, dtype=float) + v
        r_perp = -(self.model.a_perp_cartn @ x)
        tol = self.settings.facet_tol
        found = []
        for i, rot in enumerate(self.rotations[position_index]):
            r_rot = rot @ r_perp
            for j, od in enumerate(self.site.occupation_domains):
                for k, fragment in enumerate(od.fragments):
                    if fragment.contains(r_rot, tol):
                        found.append(Match(i, j, k))
        return found

    def first_match(self, r_perp: np.ndarray, position_index: int = 0):
        """Species of the first domain copy of a position accepting ``r_perp``."""
        tol = self.settings.facet_tol
        for rot in self.rotations[position_index]:
            r_rot = rot @ r_perp
            for od in self.site.occupation_domains:
                if od.find_fragment(r_rot, tol) is not None:
                    return od.species
        return None

    def place(self) -> Iterator[Atom]:
        """Yield the atoms realized by this site."""
        a_par = self.model.a_par_cartn
        a_perp = self.model.a_perp_cartn
        label = self.site.label
        check = self.settings.check_exclusivity

        for position_index, v in enumerate(self.translations()):
            n_visited = 0
            for lattice_fract in self.enumerator(v):
                n_visited += 1
                x = np.asarray(lattice_fract, dtype=float) + v
                r_perp = -(a_perp @ x)
                species = self.first_match(r_perp, position_index)
                if species is None:
                    continue
                if check:
                    n_match = len(self.matches(lattice_fract, position_index))
                    if n_match > 1:
                        logger.warning(
                            "Lattice point %s of site %s accepted by %d domain copies",
                            lattice_fract, label, n_match,
                        )
                yield Atom(label=label, species=species, r_par=tuple(float(c) for c in a_par @ x))
            logger.debug("Site %s, translation %s: %d lattice points visited", label, v, n_visited)


class StructureGenerator:
    """Cut-and-project generator of the physical structure of a model.

    Example:
        >>> gen = StructureGenerator(model, r_cut_par=10.0)
        >>> atoms = list(gen.generate())
    """

    def __init__(
        self,
        model: QuasicrystalModel,
        r_cut_par: float,
        settings: ProjectionSettings = DEFAULT_SETTINGS,
    ):
        if r_cut_par <= 0:
            raise ModelError(f"Parallel cutoff radius must be positive, got {r_cut_par}")
        self.model = model
        self.r_cut_par = r_cut_par
        self.settings = settings
        self._placements: dict[str, SitePlacement] = {}

    def site_placement(self, site: AtomSite) -> SitePlacement:
        """Cached placement state of ``site``."""
        if site.label not in self._placements:
            self._placements[site.label] = SitePlacement(
                self.model, site, self.r_cut_par, self.settings
            )
        return self._placements[site.label]

    def generate(self) -> Iterator[Atom]:
        """Lazily yield the atoms of every atom site."""
        for site in self.model.atom_sites:
            placement = self.site_placement(site)
            count = 0
            for atom in placement.place():
                count += 1
                yield atom
            logger.info("Atom site %s: %d atoms", site.label, count)

    def count_matches(self, site_label: str, lattice_fract, position_index: int = 0) -> list[Match]:
        """All domain copies accepting a lattice point of one equivalent position."""
        placement = self.site_placement(self.model.get_site(site_label))
        return placement.matches(lattice_fract, position_index)


def generate_atoms(
    model: QuasicrystalModel,
    r_cut_par: float,
    settings: ProjectionSettings = DEFAULT_SETTINGS,
) -> list[Atom]:
    """Generate all atoms of ``model`` within ``r_cut_par`` of the origin.

    Args:
        model: Superspace model
        r_cut_par: Parallel-space cutoff radius
        settings: Tolerances and perpendicular cutoff scale

    Returns:
        List of atoms
    """
    return list(StructureGenerator(model, r_cut_par, settings).generate())
