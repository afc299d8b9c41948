"""
Superspace symmetry.

Group closure from generators, orbits of atom sites, and site-symmetry point
groups projected onto perpendicular space.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

import numpy as np

from .config import DEFAULT_MAX_GROUP_ORDER, DEFAULT_SYMMETRY_TOL
from .errors import ModelError
from .models import AtomSite, QuasicrystalModel, SymmetryOperation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Orbit:
    """Orbit of an object under a group.

    Attributes:
        points: Distinct images, in order of first appearance
        point_ops: For each image, indices of the operations producing it
        op_point: For each operation, index of the image it produces
    """
    points: tuple
    point_ops: tuple[tuple[int, ...], ...]
    op_point: tuple[int, ...]

    def __len__(self) -> int:
        return len(self.points)


def remove_duplicates(items: Sequence, eq: Callable) -> list:
    """Keep the first of every group of items considered equal by ``eq``."""
    unique = []
    for item in items:
        if all(not eq(u, item) for u in unique):
            unique.append(item)
    return unique


def generate_group(
    generators: Sequence[SymmetryOperation],
    max_order: int = DEFAULT_MAX_GROUP_ORDER,
    tol: float = DEFAULT_SYMMETRY_TOL,
) -> list[SymmetryOperation]:
    """Close a set of generators into a group (modulo lattice translations).

    The identity need not be among the generators; it is always the first
    element of the result. Translations are reduced into ``[0, 1)``.

    Args:
        generators: Generating operations, all of the same dimension
        max_order: Stop with an error beyond this many elements
        tol: Tolerance for comparing translations

    Returns:
        List of group elements

    Raises:
        ModelError: If the generators have mixed dimensions or the closure
            exceeds ``max_order``
    """
    generators = list(generators)
    if not generators:
        raise ModelError("At least one generator is required")
    dim = generators[0].dim
    if any(g.dim != dim for g in generators):
        raise ModelError("Generators must share the same dimension")

    elements = [SymmetryOperation.identity(dim)]
    j = 0
    while j < len(elements):
        for gen in generators:
            product = (elements[j] * gen).reduced(tol)
            if all(not product.is_equivalent(e, tol) for e in elements):
                elements.append(product)
                if len(elements) > max_order:
                    raise ModelError(
                        f"The number of group elements exceeds max_order ({max_order})"
                    )
        j += 1
    logger.debug("Generated group of order %d from %d generators", len(elements), len(generators))
    return elements


def generate_orbit(
    group: Sequence,
    x,
    apply: Callable,
    eq: Callable,
) -> Orbit:
    """Images of ``x`` under every element of ``group``.

    Args:
        group: Group elements
        x: Object to transform
        apply: ``apply(x, g)`` returns the image of ``x`` under ``g``
        eq: ``eq(a, b)`` decides whether two images coincide

    Returns:
        Orbit
    """
    points = []
    point_ops = []
    op_point = []
    for i, g in enumerate(group):
        xi = apply(x, g)
        for j, xj in enumerate(points):
            if eq(xi, xj):
                op_point.append(j)
                point_ops[j].append(i)
                break
        else:
            op_point.append(len(points))
            points.append(xi)
            point_ops.append([i])
    return Orbit(
        points=tuple(points),
        point_ops=tuple(tuple(ids) for ids in point_ops),
        op_point=tuple(op_point),
    )


def site_orbit(
    model: QuasicrystalModel,
    site: AtomSite,
    tol: float = DEFAULT_SYMMETRY_TOL,
) -> Orbit:
    """Positions equivalent to ``site`` modulo lattice translations.

    The first point is the site position itself, since the identity is the
    first group element.
    """
    def same_modulo_lattice(a, b):
        diff = a - b
        return bool(np.allclose(diff, np.round(diff), atol=tol))

    return generate_orbit(
        model.symmetry_operations,
        site.pos_fract,
        lambda x, g: g.apply(x),
        same_modulo_lattice,
    )


def site_point_group_perp(
    model: QuasicrystalModel,
    site: AtomSite,
    tol: float = DEFAULT_SYMMETRY_TOL,
) -> list[np.ndarray]:
    """Perpendicular-space rotations of the site-symmetry group of ``site``.

    The stabilizer of the first equivalent position is projected onto
    perpendicular space; duplicates are removed keeping the group order.
    """
    orbit = site_orbit(model, site, tol)
    ops = model.symmetry_operations
    rotations = [model.perp_rotation(ops[i]) for i in orbit.point_ops[0]]
    return remove_duplicates(rotations, lambda a, b: np.allclose(a, b, atol=tol))


def position_perp_maps(
    model: QuasicrystalModel,
    site: AtomSite,
    tol: float = DEFAULT_SYMMETRY_TOL,
) -> list[list[np.ndarray]]:
    """Perpendicular maps pulling each equivalent position back to the site.

    Equivalent position ``j`` carries the domain copies ``R(g) W`` for every
    operation ``g`` in ``orbit.point_ops[j]``. A perpendicular point ``y``
    lies in such a copy when ``R(g)^-1 y`` lies in ``W``, so entry ``j`` holds
    the distinct ``R(g)^-1``. Entry 0 is the site-symmetry group itself.
    """
    orbit = site_orbit(model, site, tol)
    ops = model.symmetry_operations
    maps = []
    for op_ids in orbit.point_ops:
        rotations = [model.perp_rotation(ops[i].inverse()) for i in op_ids]
        maps.append(remove_duplicates(rotations, lambda a, b: np.allclose(a, b, atol=tol)))
    return maps
