"""
Test suite for superspace model data classes.
"""

import numpy as np
import pytest

from cut_and_project import (
    AtomSite,
    ModelError,
    OccupationDomain,
    QuasicrystalModel,
    SymmetryOperation,
)

from conftest import TAU


def square_domain(species='Al', half=0.5):
    corners = [[-half, -half], [half, -half], [half, half], [-half, half]]
    return OccupationDomain.from_vertices(species, corners)


# =============================================================================
# Symmetry Operation Tests
# =============================================================================

class TestSymmetryOperation:
    """Test superspace symmetry operations."""

    def test_identity(self):
        op = SymmetryOperation.identity(3)
        x = np.array([0.1, 0.2, 0.3])
        assert np.allclose(op.apply(x), x)

    def test_integer_rotation(self):
        """Rotations are stored as integer matrices."""
        op = SymmetryOperation([[0.0, -1.0], [1.0, 0.0]], [0.5, 0.0])
        assert op.rot.dtype.kind == 'i'

    def test_non_integer_rotation(self):
        """A rotation that is not integral in the lattice basis is rejected."""
        with pytest.raises(ModelError, match="integer"):
            SymmetryOperation([[0.5, 0.0], [0.0, 1.0]], [0.0, 0.0])

    def test_translation_length(self):
        with pytest.raises(ModelError, match="does not match"):
            SymmetryOperation(np.eye(2), [0.0, 0.0, 0.0])

    def test_compose(self):
        """(g1 * g2)(x) == g1(g2(x))."""
        g1 = SymmetryOperation([[0, -1], [1, 0]], [0.5, 0.0])
        g2 = SymmetryOperation([[-1, 0], [0, 1]], [0.0, 0.25])
        x = np.array([0.3, -0.7])
        assert np.allclose((g1 * g2).apply(x), g1.apply(g2.apply(x)))

    def test_inverse(self):
        """g * g^-1 is the identity."""
        g = SymmetryOperation([[0, -1], [1, 1]], [0.5, 0.25])
        product = g * g.inverse()
        assert np.array_equal(product.rot, np.eye(2))
        assert np.allclose(product.trans, 0.0)
        x = np.array([0.3, -0.7])
        assert np.allclose(g.inverse().apply(g.apply(x)), x)

    def test_reduced_translation(self):
        """Translations are reduced into [0, 1)."""
        op = SymmetryOperation(np.eye(2), [1.25, -0.5]).reduced()
        assert np.allclose(op.trans, [0.25, 0.5])

    def test_reduce_near_one(self):
        """Translations within tolerance of 1 wrap to 0."""
        op = SymmetryOperation(np.eye(1), [1.0 - 1e-12]).reduced()
        assert op.trans[0] == pytest.approx(0.0, abs=1e-10)

    def test_equivalence_modulo_lattice(self):
        a = SymmetryOperation([[-1]], [0.5])
        b = SymmetryOperation([[-1]], [-1.5])
        c = SymmetryOperation([[1]], [0.5])
        assert a.is_equivalent(b)
        assert not a.is_equivalent(c)

    def test_to_dict(self):
        op = SymmetryOperation([[0, 1], [1, 0]], [0.0, 0.5])
        assert op.to_dict() == {'rot': [[0, 1], [1, 0]], 'trans': [0.0, 0.5]}


# =============================================================================
# Atom Site Tests
# =============================================================================

class TestAtomSite:
    """Test atom site validation."""

    def test_requires_label(self):
        with pytest.raises(ModelError, match="label"):
            AtomSite('', [0.0], (square_domain(),))

    def test_requires_domain(self):
        with pytest.raises(ModelError, match="no occupation domain"):
            AtomSite('Al1', [0.0, 0.0], ())

    def test_max_vertex_norm(self):
        site = AtomSite('Al1', [0, 0, 0, 0], (square_domain(half=0.5), square_domain('Cu', 1.0)))
        assert site.max_vertex_norm() == pytest.approx(np.sqrt(2.0))


# =============================================================================
# Model Tests
# =============================================================================

class TestQuasicrystalModel:
    """Test model construction and validation."""

    def test_dimensions(self, fibonacci_model):
        assert fibonacci_model.dim == 2
        assert fibonacci_model.dim_par == 1
        assert fibonacci_model.dim_perp == 1
        assert fibonacci_model.origin_fract.tolist() == [0.0, 0.0]

    def test_reciprocal_matrices(self, fibonacci_model):
        """b matrices invert the stacked basis."""
        a = np.vstack([fibonacci_model.a_par_cartn, fibonacci_model.a_perp_cartn])
        b = np.hstack([fibonacci_model.b_par_cartn, fibonacci_model.b_perp_cartn])
        assert np.allclose(a @ b, np.eye(2))
        assert fibonacci_model.b_par_cartn.shape == (2, 1)

    def test_default_identity(self):
        model = QuasicrystalModel([[1.0, TAU]], [[-TAU, 1.0]])
        assert len(model.symmetry_operations) == 1
        assert np.array_equal(model.symmetry_operations[0].rot, np.eye(2))

    def test_perp_rotation_of_inversion(self, fibonacci_model):
        inversion = fibonacci_model.symmetry_operations[1]
        assert np.allclose(fibonacci_model.perp_rotation(inversion), [[-1.0]])
        assert np.allclose(fibonacci_model.par_rotation(inversion), [[-1.0]])

    def test_project(self, fibonacci_model):
        r_par, r_perp = fibonacci_model.project([1, 1])
        a = 2.5
        assert r_par == pytest.approx([a * (1 + TAU)])
        assert r_perp == pytest.approx([a * (1 - TAU)])

    def test_mixing_operation_rejected(self):
        """Swapping the lattice vectors mixes par and perp for the Fibonacci basis."""
        swap = SymmetryOperation([[0, 1], [1, 0]], [0.0, 0.0])
        assert not QuasicrystalModel([[1.0, TAU]], [[-TAU, 1.0]]).is_superspace_operation(swap)
        with pytest.raises(ModelError, match="mixes"):
            QuasicrystalModel([[1.0, TAU]], [[-TAU, 1.0]], symmetry_operations=(swap,))

    def test_singular_basis(self):
        with pytest.raises(ModelError, match="singular"):
            QuasicrystalModel([[1.0, 2.0]], [[2.0, 4.0]])

    def test_dimension_mismatch(self):
        with pytest.raises(ModelError, match="dim_par"):
            QuasicrystalModel([[1.0, 0.0, 0.0]], [[0.0, 1.0, 0.0]])

    def test_column_mismatch(self):
        with pytest.raises(ModelError, match="disagree"):
            QuasicrystalModel([[1.0, 0.0]], [[0.0, 1.0, 0.0]])

    def test_duplicate_labels(self):
        domain = OccupationDomain('Al', ([[0.0], [1.0]],))
        sites = (AtomSite('Al1', [0, 0], (domain,)), AtomSite('Al1', [0.5, 0.5], (domain,)))
        with pytest.raises(ModelError, match="Duplicate"):
            QuasicrystalModel([[1.0, TAU]], [[-TAU, 1.0]], atom_sites=sites)

    def test_site_dimension(self):
        domain = OccupationDomain('Al', ([[0.0], [1.0]],))
        site = AtomSite('Al1', [0, 0, 0], (domain,))
        with pytest.raises(ModelError, match="length 3"):
            QuasicrystalModel([[1.0, TAU]], [[-TAU, 1.0]], atom_sites=(site,))

    def test_domain_dimension(self):
        site = AtomSite('Al1', [0, 0], (square_domain(),))
        with pytest.raises(ModelError, match="perpendicular space is 1D"):
            QuasicrystalModel([[1.0, TAU]], [[-TAU, 1.0]], atom_sites=(site,))

    def test_operation_dimension(self):
        with pytest.raises(ModelError, match="dimension 3"):
            QuasicrystalModel(
                [[1.0, TAU]], [[-TAU, 1.0]],
                symmetry_operations=(SymmetryOperation.identity(3),),
            )

    def test_get_site(self, fibonacci_model):
        assert fibonacci_model.get_site('Al1').label == 'Al1'
        with pytest.raises(KeyError):
            fibonacci_model.get_site('Zn1')

    def test_periodic_model(self, chain_model):
        """A model without perpendicular space is valid."""
        assert chain_model.dim_perp == 0
        assert chain_model.b_perp_cartn.shape == (1, 0)
        assert chain_model.a_perp_cartn.shape == (0, 1)

    def test_arrays_read_only(self, fibonacci_model):
        with pytest.raises(ValueError):
            fibonacci_model.a_par_cartn[0, 0] = 0.0
