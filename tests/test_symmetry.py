"""
Test suite for group closure, orbits and site-symmetry groups.
"""

import numpy as np
import pytest

from cut_and_project import (
    AtomSite,
    ModelError,
    OccupationDomain,
    QuasicrystalModel,
    SymmetryOperation,
    generate_group,
    generate_orbit,
    position_perp_maps,
    site_orbit,
    site_point_group_perp,
)
from cut_and_project.symmetry import remove_duplicates

FOUR_FOLD = SymmetryOperation([[0, -1], [1, 0]], [0.0, 0.0])
MIRROR = SymmetryOperation([[-1, 0], [0, 1]], [0.0, 0.0])


def square_lattice_model(pos):
    """Periodic 2D crystal with point group 4mm and one site."""
    site = AtomSite('Na1', pos, (OccupationDomain('Na', ([[]],)),))
    return QuasicrystalModel(
        a_par_cartn=np.eye(2),
        a_perp_cartn=np.zeros((0, 2)),
        atom_sites=(site,),
        symmetry_operations=tuple(generate_group([FOUR_FOLD, MIRROR])),
    )


# =============================================================================
# Group Closure Tests
# =============================================================================

class TestGenerateGroup:
    """Test closing generators into a group."""

    def test_four_fold(self):
        group = generate_group([FOUR_FOLD])
        assert len(group) == 4
        assert np.array_equal(group[0].rot, np.eye(2))

    def test_inversion(self):
        assert len(generate_group([SymmetryOperation([[-1, 0], [0, -1]], [0, 0])])) == 2

    def test_4mm(self):
        group = generate_group([FOUR_FOLD, MIRROR])
        assert len(group) == 8
        rotations = {tuple(op.rot.ravel()) for op in group}
        assert len(rotations) == 8

    def test_glide_modulo_lattice(self):
        """A glide squares to a lattice translation, so the group has order 2."""
        glide = SymmetryOperation([[-1, 0], [0, 1]], [0.0, 0.5])
        group = generate_group([glide])
        assert len(group) == 2
        assert np.allclose(group[1].trans, [0.0, 0.5])

    def test_translations_reduced(self):
        op = SymmetryOperation([[-1]], [1.75])
        group = generate_group([op])
        assert all(0.0 <= t < 1.0 for g in group for t in g.trans)

    def test_closed_under_products(self):
        group = generate_group([FOUR_FOLD, MIRROR])
        for g1 in group:
            for g2 in group:
                product = g1 * g2
                assert any(product.is_equivalent(g) for g in group)

    def test_max_order(self):
        with pytest.raises(ModelError, match="max_order"):
            generate_group([FOUR_FOLD, MIRROR], max_order=4)

    def test_no_generators(self):
        with pytest.raises(ModelError, match="generator"):
            generate_group([])

    def test_mixed_dimensions(self):
        with pytest.raises(ModelError, match="dimension"):
            generate_group([FOUR_FOLD, SymmetryOperation.identity(3)])


# =============================================================================
# Orbit Tests
# =============================================================================

class TestOrbits:
    """Test orbits of points and site-symmetry groups."""

    def test_generic_orbit(self):
        """Integer images under a cyclic group of numbers."""
        orbit = generate_orbit([0, 1, 2, 3], 1, lambda x, g: (x * (g + 1)) % 4, lambda a, b: a == b)
        assert orbit.points == (1, 2, 3, 0)
        assert orbit.op_point == (0, 1, 2, 3)

    def test_repeated_images(self):
        orbit = generate_orbit([1, -1, 1, -1], 2, lambda x, g: x * g, lambda a, b: a == b)
        assert orbit.points == (2, -2)
        assert orbit.point_ops == ((0, 2), (1, 3))
        assert orbit.op_point == (0, 1, 0, 1)
        assert len(orbit) == 2

    @pytest.mark.parametrize('pos,size', [
        ([0.0, 0.0], 1),
        ([0.5, 0.5], 1),
        ([0.5, 0.0], 2),
        ([0.2, 0.0], 4),
        ([0.2, 0.2], 4),
        ([0.1, 0.23], 8),
    ])
    def test_site_orbit_sizes(self, pos, size):
        """Orbit size times stabilizer order equals the group order."""
        model = square_lattice_model(pos)
        orbit = site_orbit(model, model.atom_sites[0])
        assert len(orbit) == size
        assert len(orbit.point_ops[0]) * size == 8

    def test_site_orbit_starts_at_site(self):
        model = square_lattice_model([0.1, 0.23])
        orbit = site_orbit(model, model.atom_sites[0])
        assert np.allclose(orbit.points[0], [0.1, 0.23])

    def test_fibonacci_perp_group(self, fibonacci_model):
        """The origin is fixed by the inversion, so both perp rotations survive."""
        rotations = site_point_group_perp(fibonacci_model, fibonacci_model.atom_sites[0])
        assert len(rotations) == 2
        assert np.allclose(rotations[0], [[1.0]])
        assert np.allclose(rotations[1], [[-1.0]])

    def test_general_position_perp_group(self, fibonacci_model):
        site = AtomSite('Al2', [0.3, 0.1], fibonacci_model.atom_sites[0].occupation_domains)
        rotations = site_point_group_perp(fibonacci_model, site)
        assert len(rotations) == 1

    def test_periodic_perp_group(self):
        """Without perpendicular space all site rotations collapse to one."""
        model = square_lattice_model([0.0, 0.0])
        rotations = site_point_group_perp(model, model.atom_sites[0])
        assert len(rotations) == 1
        assert rotations[0].shape == (0, 0)

    def test_position_maps_general_site(self, fibonacci_model):
        """The image position under inversion pulls back through -1."""
        site = AtomSite('Al2', [0.3, 0.1], fibonacci_model.atom_sites[0].occupation_domains)
        maps = position_perp_maps(fibonacci_model, site)
        assert len(maps) == 2
        assert np.allclose(maps[0][0], [[1.0]])
        assert np.allclose(maps[1][0], [[-1.0]])

    def test_position_maps_special_site(self, fibonacci_model):
        """A single position keeps the whole site-symmetry group."""
        maps = position_perp_maps(fibonacci_model, fibonacci_model.atom_sites[0])
        assert len(maps) == 1
        assert len(maps[0]) == 2

    def test_remove_duplicates(self):
        assert remove_duplicates([1, 2, 1, 3, 2], lambda a, b: a == b) == [1, 2, 3]
