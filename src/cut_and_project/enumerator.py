"""
Ellipsoid Lattice Enumerator.

Enumerates the integer vectors ``n`` with ``|m (n + v)| <= 1`` (single
constraint) or with both ``|m_par (n + v)| <= 1`` and
``|m_perp (n + v)| <= 1`` (dual constraint), by a zigzag depth-first search
over feasible intervals. Each depth visits the integers nearest the centre of
its interval first.

Example:
    >>> import numpy as np
    >>> enumerator = LatticePointEnumerator(np.array([[2.0]]))
    >>> sorted(enumerator([0.0]))
    [(0,)]
"""

import logging
from dataclasses import dataclass
from typing import Iterator

import numpy as np

from .config import DEFAULT_SETTINGS, ProjectionSettings
from .errors import ModelError
from .quadratic import (
    CoefficientCascade,
    feasible_interval,
    integer_range,
    intersect_intervals,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CutoffWindow:
    """Linear maps normalizing both cutoff spheres to unit radius.

    Attributes:
        m_par: ``(dim_par, dim)`` map into normalized parallel space
        m_perp: ``(dim_perp, dim)`` map into normalized perpendicular space
    """
    m_par: np.ndarray
    m_perp: np.ndarray

    def __post_init__(self):
        m_par = np.atleast_2d(np.asarray(self.m_par, dtype=float))
        m_perp = np.asarray(self.m_perp, dtype=float)
        dim = m_par.shape[1]
        if m_perp.size == 0:
            m_perp = np.zeros((0, dim))
        else:
            m_perp = np.atleast_2d(m_perp)
        if m_perp.shape[1] != dim:
            raise ModelError(
                f"Parallel and perpendicular maps disagree on dim: {m_par.shape} vs {m_perp.shape}"
            )
        if m_par.shape[0] + m_perp.shape[0] != dim:
            raise ModelError(
                f"dim ({dim}) must equal dim_par + dim_perp "
                f"({m_par.shape[0]} + {m_perp.shape[0]})"
            )
        object.__setattr__(self, 'm_par', m_par)
        object.__setattr__(self, 'm_perp', m_perp)

    @property
    def dim(self) -> int:
        return self.m_par.shape[1]

    @property
    def dim_par(self) -> int:
        return self.m_par.shape[0]

    @property
    def dim_perp(self) -> int:
        return self.m_perp.shape[0]

    @classmethod
    def from_basis(
        cls,
        a_par_cartn: np.ndarray,
        a_perp_cartn: np.ndarray,
        r_cut_par: float,
        r_cut_perp: float | None = None,
    ) -> "CutoffWindow":
        """Divide the basis matrices by their cutoff radii.

        Args:
            a_par_cartn: ``(dim_par, dim)`` parallel-space basis
            a_perp_cartn: ``(dim_perp, dim)`` perpendicular-space basis
            r_cut_par: Parallel cutoff radius
            r_cut_perp: Perpendicular cutoff radius, ignored when ``dim_perp == 0``

        Returns:
            CutoffWindow
        """
        if r_cut_par <= 0:
            raise ModelError(f"Parallel cutoff radius must be positive, got {r_cut_par}")
        a_perp_cartn = np.asarray(a_perp_cartn, dtype=float)
        if a_perp_cartn.size:
            if r_cut_perp is None or r_cut_perp <= 0:
                raise ModelError(
                    f"Perpendicular cutoff radius must be positive, got {r_cut_perp}"
                )
            m_perp = a_perp_cartn / r_cut_perp
        else:
            m_perp = a_perp_cartn
        return cls(np.asarray(a_par_cartn, dtype=float) / r_cut_par, m_perp)

    def enumerator(self, settings: ProjectionSettings = DEFAULT_SETTINGS) -> "DualLatticePointEnumerator":
        return DualLatticePointEnumerator(self.m_par, self.m_perp, settings)

    def contains(self, x, eps: float = 0.0) -> bool:
        """Whether the superspace point ``x`` lies in both normalized balls."""
        x = np.asarray(x, dtype=float)
        bound = 1.0 + eps
        r_par = self.m_par @ x
        if r_par @ r_par > bound:
            return False
        r_perp = self.m_perp @ x
        return bool(r_perp @ r_perp <= bound)


def _zigzag(dim: int, set_range) -> Iterator[tuple[int, ...]]:
    """Depth-first zigzag traversal over per-depth integer ranges.

    ``set_range(depth, current)`` returns the integer ``(min, max)`` range of
    coordinate ``depth`` given ``current[:depth]``.
    """
    current = [0] * dim
    next_increment = [0] * dim
    stop = [0] * dim

    def seed(depth):
        lo, hi = set_range(depth, current)
        diff = hi - lo
        current[depth] = lo + diff // 2
        next_increment[depth] = -1 if diff % 2 == 0 else 1
        stop[depth] = lo - 1

    depth = 0
    seed(depth)
    while True:
        if current[depth] != stop[depth]:
            if depth < dim - 1:
                depth += 1
                seed(depth)
                continue
            yield tuple(current)
        elif depth == 0:
            return
        else:
            depth -= 1
        current[depth] += next_increment[depth]
        if next_increment[depth] > 0:
            next_increment[depth] = -(next_increment[depth] + 1)
        else:
            next_increment[depth] = -(next_increment[depth] - 1)


class LatticePointEnumerator:
    """Integer vectors inside a single ellipsoid ``|m (n + v)|^2 <= 1 + eps``.

    The quadratic form ``m^T m`` is reduced once; every call with a new
    translation ``v`` starts an independent, single-pass traversal.
    """

    def __init__(self, m: np.ndarray, settings: ProjectionSettings = DEFAULT_SETTINGS):
        m = np.atleast_2d(np.asarray(m, dtype=float))
        if m.shape[0] != m.shape[1]:
            raise ModelError(f"Single-constraint map must be square, got shape {m.shape}")
        self.m = m
        self.dim = m.shape[1]
        self.settings = settings
        self.cascade = CoefficientCascade.from_form(m.T @ m)

    def __call__(self, v) -> Iterator[tuple[int, ...]]:
        return self.points(v)

    def points(self, v) -> Iterator[tuple[int, ...]]:
        """Lazily yield every lattice vector of the ellipsoid shifted by ``v``."""
        dim = self.dim
        inst = self.cascade.instance(v, self.settings.eps)

        def set_range(depth, current):
            lo, hi = feasible_interval(inst[dim - (depth + 1)], current, depth)
            return integer_range(lo, hi)

        return _zigzag(dim, set_range)


class DualLatticePointEnumerator:
    """Integer vectors inside the intersection of two cylinder-like regions.

    Accepts ``n`` when ``|m_par (n + v)|^2 <= 1 + eps`` and
    ``|m_perp (n + v)|^2 <= 1 + eps``. Neither form alone is positive-definite
    on the whole superspace, so the shallow levels of each cascade fall back
    to the sum of both forms with bound 2, which contains the intersection.
    """

    def __init__(
        self,
        m_par: np.ndarray,
        m_perp: np.ndarray,
        settings: ProjectionSettings = DEFAULT_SETTINGS,
    ):
        window = CutoffWindow(m_par, m_perp)
        self.window = window
        self.settings = settings
        self.dim = dim = window.dim
        dim_par = window.dim_par
        dim_perp = window.dim_perp

        self._single = None
        if dim_perp == 0:
            self._single = LatticePointEnumerator(window.m_par, settings)
            self.par_cascade = self._single.cascade
            self.perp_cascade = CoefficientCascade(dim, [])
            return

        g_par = window.m_par.T @ window.m_par
        g_perp = window.m_perp.T @ window.m_perp
        g = g_par + g_perp

        par_forms = []
        perp_forms = []
        for dim_d in range(dim):
            par_forms.append((g_par, 1.0) if dim_d < dim_par else (g, 2.0))
            if dim_d < dim_perp:
                perp_forms.append((g_perp, 1.0))
            elif dim_d < dim_par:
                perp_forms.append((g, 2.0))
        self.par_cascade = CoefficientCascade.from_forms(par_forms)
        self.perp_cascade = CoefficientCascade.from_forms(perp_forms)
        logger.debug(
            "Dual cascade built: dim=%d, dim_par=%d, dim_perp=%d",
            dim, dim_par, dim_perp,
        )

    def __call__(self, v) -> Iterator[tuple[int, ...]]:
        return self.points(v)

    def points(self, v) -> Iterator[tuple[int, ...]]:
        """Lazily yield every lattice vector of the shifted intersection."""
        if self._single is not None:
            return self._single.points(v)

        dim = self.dim
        eps = self.settings.eps
        inst_par = self.par_cascade.instance(v, eps)
        inst_perp = self.perp_cascade.instance(v, eps)
        n_perp = len(inst_perp)

        def set_range(depth, current):
            dim_d = dim - (depth + 1)
            interval = feasible_interval(inst_par[dim_d], current, depth)
            if dim_d < n_perp:
                interval = intersect_intervals(
                    interval, feasible_interval(inst_perp[dim_d], current, depth)
                )
            return integer_range(*interval)

        return _zigzag(dim, set_range)


def lattice_points(m, v, settings: ProjectionSettings = DEFAULT_SETTINGS) -> list[tuple[int, ...]]:
    """All lattice vectors of a single ellipsoid, as a list."""
    return list(LatticePointEnumerator(m, settings).points(v))


def lattice_points_dual(
    m_par, m_perp, v, settings: ProjectionSettings = DEFAULT_SETTINGS
) -> list[tuple[int, ...]]:
    """All lattice vectors of a parallel/perpendicular intersection, as a list."""
    return list(DualLatticePointEnumerator(m_par, m_perp, settings).points(v))
