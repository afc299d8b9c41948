"""
Perpendicular-Space Geometry.

Half-space description of simplex fragments and triangulation of convex
occupation domains. Each half-space is defined by: normal . x <= offset.
"""

import enum
from dataclasses import dataclass
from itertools import product

import numpy as np
from scipy.spatial import ConvexHull, Delaunay, QhullError

from .config import DEFAULT_FACET_TOL
from .errors import ModelError


class FacetPosition(enum.Enum):
    """Position of a point relative to an oriented facet."""
    INSIDE_OF_FACET = "inside"
    ON_FACET = "on"
    OUTSIDE_OF_FACET = "outside"


@dataclass(frozen=True)
class Facet:
    """Bounding hyperplane of a convex fragment.

    Attributes:
        normal: Outward unit normal
        offset: Signed distance of the hyperplane from the origin
    """
    normal: np.ndarray
    offset: float

    def distance(self, point: np.ndarray) -> float:
        """Signed distance of ``point``; negative inside."""
        return float(np.dot(self.normal, point)) - self.offset

    def position(self, point: np.ndarray, tol: float = DEFAULT_FACET_TOL) -> FacetPosition:
        d = self.distance(point)
        if abs(d) <= tol:
            return FacetPosition.ON_FACET
        if d < 0:
            return FacetPosition.INSIDE_OF_FACET
        return FacetPosition.OUTSIDE_OF_FACET


def simplex_facets(vertices) -> tuple[Facet, ...]:
    """Compute the outward facets of a simplex.

    Uses the barycentric coordinates of the simplex: the facet opposite to
    vertex ``k`` is the zero set of the ``k``-th barycentric coordinate.

    Args:
        vertices: ``(d + 1) x d`` array of vertex coordinates

    Returns:
        Tuple of ``d + 1`` facets (none for ``d == 0``)

    Raises:
        ModelError: If the vertex count does not match the dimension or the
            simplex is degenerate
    """
    vertices = np.asarray(vertices, dtype=float)
    if vertices.ndim != 2 or vertices.shape[0] != vertices.shape[1] + 1:
        raise ModelError(
            "A simplex needs one more vertex than its dimension, "
            f"got vertex array of shape {vertices.shape}"
        )
    d = vertices.shape[1]
    if d == 0:
        return ()

    v0 = vertices[0]
    edges = (vertices[1:] - v0).T
    if np.linalg.matrix_rank(edges) < d:
        raise ModelError(f"Degenerate simplex with vertices {vertices.tolist()}")
    rows = np.linalg.inv(edges)

    facets = []
    total = rows.sum(axis=0)
    facets.append(_facet(total, 1.0 + total @ v0))
    for r in rows:
        facets.append(_facet(-r, -r @ v0))
    return tuple(facets)


def _facet(normal: np.ndarray, offset: float) -> Facet:
    norm = np.linalg.norm(normal)
    unit = normal / norm
    unit.flags.writeable = False
    return Facet(normal=unit, offset=float(offset / norm))


def triangulate_convex(vertices) -> list[np.ndarray]:
    """Split the convex hull of ``vertices`` into simplices.

    Args:
        vertices: ``N x d`` array of points spanning a convex polytope

    Returns:
        List of ``(d + 1) x d`` simplex vertex arrays
    """
    vertices = np.asarray(vertices, dtype=float)
    if vertices.ndim != 2:
        raise ModelError(f"Vertices must be a 2D array, got shape {vertices.shape}")
    d = vertices.shape[1]

    if d == 0:
        return [np.zeros((1, 0))]
    if d == 1:
        lo, hi = vertices[:, 0].min(), vertices[:, 0].max()
        if hi <= lo:
            raise ModelError("A 1D occupation domain needs two distinct end points")
        return [np.array([[lo], [hi]])]

    try:
        hull = ConvexHull(vertices)
        corners = vertices[hull.vertices]
        tri = Delaunay(corners)
    except QhullError as e:
        raise ModelError(f"Cannot triangulate occupation domain: {e}") from e

    # Cospherical corners can leave flat simplices in the triangulation
    scale = np.ptp(corners, axis=0).max() ** d
    simplices = []
    for simplex in tri.simplices:
        points = corners[simplex]
        volume = abs(np.linalg.det(points[1:] - points[0]))
        if volume > DEFAULT_FACET_TOL * scale:
            simplices.append(points)
    return simplices


def hypercube_vertices(half_edge: float, dim: int) -> np.ndarray:
    """Corners of the axis-aligned cube ``[-half_edge, half_edge]^dim``."""
    if dim == 0:
        return np.zeros((1, 0))
    return np.array(list(product((-half_edge, half_edge), repeat=dim)), dtype=float)
