"""Shared fixtures: small superspace models with known structures."""

import numpy as np
import pytest

from cut_and_project import (
    AtomSite,
    OccupationDomain,
    QuasicrystalModel,
    SymmetryOperation,
)

TAU = (1 + np.sqrt(5)) / 2
FIBONACCI_A = 2.5


def make_fibonacci_model(a: float = FIBONACCI_A) -> QuasicrystalModel:
    """Fibonacci chain: 2D superspace, inversion symmetry, asymmetric window."""
    half_width = a * (TAU + 1) / 2
    domain = OccupationDomain('Al', ([[0.0], [half_width]],))
    site = AtomSite('Al1', [0.0, 0.0], (domain,))
    ops = (
        SymmetryOperation.identity(2),
        SymmetryOperation([[-1, 0], [0, -1]], [0.0, 0.0]),
    )
    return QuasicrystalModel(
        a_par_cartn=[[a, a * TAU]],
        a_perp_cartn=[[-a * TAU, a]],
        atom_sites=(site,),
        symmetry_operations=ops,
    )


def make_chain_model(a: float = 1.0, pos: float = 0.0, inversion: bool = False) -> QuasicrystalModel:
    """Periodic 1D chain: no perpendicular space."""
    domain = OccupationDomain('Fe', ([[]],))
    site = AtomSite('Fe1', [pos], (domain,))
    ops = (SymmetryOperation.identity(1),)
    if inversion:
        ops = ops + (SymmetryOperation([[-1]], [0.0]),)
    return QuasicrystalModel(
        a_par_cartn=[[a]],
        a_perp_cartn=np.zeros((0, 1)),
        atom_sites=(site,),
        symmetry_operations=ops,
    )


@pytest.fixture
def fibonacci_model():
    return make_fibonacci_model()


@pytest.fixture
def chain_model():
    return make_chain_model(a=1.5)


@pytest.fixture
def fibonacci_dict():
    a = FIBONACCI_A
    return {
        'dim': 2,
        'a_par_cartn': [[a, a * TAU]],
        'a_perp_cartn': [[-a * TAU, a]],
        'symmetry_operations': [{'rot': [[-1, 0], [0, -1]], 'trans': [0, 0]}],
        'symmetry_generators': True,
        'atom_sites': [
            {
                'label': 'Al1',
                'pos_fract': [0, 0],
                'occupation_domains': [
                    {'species': 'Al', 'fragments': [[[0.0], [a * (TAU + 1) / 2]]]},
                ],
            },
        ],
    }
