"""
Quadratic Form Reduction.

Incremental Schur-complement reduction of a positive-definite quadratic form
``Q(y) = y^T g y`` into a per-coordinate cascade, its specialization to a
translation vector, and the feasible interval of one coordinate once the
leading coordinates are fixed.

The cascade is indexed by ``dim_d``, the number of trailing ("dependent")
coordinates minimized out of the form. Level ``dim_d`` bounds coordinate
``i = dim - (dim_d + 1)`` once coordinates ``0..i-1`` are fixed, so a
traversal at depth ``depth`` uses level ``dim - (depth + 1)``.
"""

import logging
import math
import warnings
from dataclasses import dataclass

import numpy as np
from scipy.linalg import LinAlgWarning, lu_factor, lu_solve

from .config import DEFAULT_EPS
from .errors import DegenerateFormError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CascadeLevel:
    """Reduced coefficients bounding one coordinate.

    With ``i`` the bounded coordinate and ``f = 0..i-1`` the coordinates fixed
    before it, the minimum of ``Q`` over the dependent coordinates equals
    ``vv * (y_i^2 - 2 y_i (vf . y_f) + y_f^T ff y_f)``.

    Attributes:
        vv: Reduced diagonal term (Schur complement of the dependent block).
        vf: Linear coupling to the fixed coordinates, length ``i``.
        ff: Reduced form over the fixed coordinates, ``i x i``.
        bound: Value of ``c0`` this level is instanced with.
    """
    vv: float
    vf: np.ndarray
    ff: np.ndarray
    bound: float = 1.0

    @property
    def index(self) -> int:
        """Coordinate bounded by this level."""
        return len(self.vf)


@dataclass(frozen=True)
class InstancedLevel:
    """A cascade level specialized to one translation vector.

    ``feasible_interval`` turns it into the quadratic
    ``x^2 - 2 b x + c`` with ``b = vc + vf . x_f`` and
    ``c = cc + x_f . (ff x_f + fc)``.
    """
    vc: float
    fc: tuple
    cc: float
    vf: tuple
    ff: tuple


def reduce_level(g: np.ndarray, dim_d: int, bound: float = 1.0) -> CascadeLevel:
    """Eliminate the ``dim_d`` trailing coordinates of ``g``.

    Args:
        g: Symmetric ``dim x dim`` matrix
        dim_d: Number of dependent (trailing) coordinates, ``0 <= dim_d < dim``
        bound: Target bound to attach to the level

    Returns:
        CascadeLevel for coordinate ``dim - (dim_d + 1)``

    Raises:
        DegenerateFormError: If the dependent block is singular or the reduced
            diagonal term is not positive
    """
    g = np.asarray(g, dtype=float)
    dim = g.shape[0]
    if not 0 <= dim_d < dim:
        raise ValueError(f"dim_d must be in [0, {dim}), got {dim_d}")
    i = dim - (dim_d + 1)

    g_vv = g[i, i]
    g_vf = g[i, :i]
    g_ff = g[:i, :i]

    if dim_d == 0:
        vv = g_vv
        s_vf = g_vf
        s_ff = g_ff
    else:
        g_dd = g[i + 1:, i + 1:]
        g_dv = g[i + 1:, i]
        g_df = g[i + 1:, :i]
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", LinAlgWarning)
            lu_piv = lu_factor(g_dd)
        pivots = np.abs(np.diag(lu_piv[0]))
        if pivots.min() <= np.finfo(float).eps * dim_d * max(np.abs(g_dd).max(), 1.0):
            raise DegenerateFormError(
                f"Dependent block of size {dim_d} is singular; "
                "the cutoff window is not positive-definite"
            )
        d_dv = lu_solve(lu_piv, g_dv)
        vv = g_vv - g_dv @ d_dv
        if i == 0:
            s_vf = np.zeros(0)
            s_ff = np.zeros((0, 0))
        else:
            d_df = lu_solve(lu_piv, g_df)
            s_vf = g_vf - g_dv @ d_df
            s_ff = g_ff - g_df.T @ d_df

    scale = max(np.abs(np.diag(g)).max(), 1.0)
    if not np.isfinite(vv) or vv <= np.finfo(float).eps * dim * scale:
        raise DegenerateFormError(
            f"Reduced diagonal term for coordinate {i} is not positive ({vv:g})"
        )

    vf = np.array(-s_vf / vv, dtype=float)
    ff = np.array(s_ff / vv, dtype=float)
    vf.flags.writeable = False
    ff.flags.writeable = False
    return CascadeLevel(vv=float(vv), vf=vf, ff=ff, bound=float(bound))


def instance_level(level: CascadeLevel, v, eps: float = DEFAULT_EPS) -> InstancedLevel:
    """Fold the translation ``v`` and the bound into ``level``.

    Specializes ``Q(x + v) <= bound * (1 + eps)`` to a form in ``x``.
    """
    i = level.index
    vf = level.vf
    ff = level.ff
    v_i = float(v[i])
    v_f = np.asarray(v[:i], dtype=float)

    vf_dot = float(vf @ v_f) if i else 0.0
    ff_v = ff @ v_f if i else np.zeros(0)

    vc = -v_i + vf_dot
    fc = -2.0 * v_i * vf + 2.0 * ff_v
    cc = (
        v_i * v_i
        - 2.0 * v_i * vf_dot
        + (float(v_f @ ff_v) if i else 0.0)
        - level.bound * (1.0 + eps) / level.vv
    )
    return InstancedLevel(
        vc=vc,
        fc=tuple(float(x) for x in fc),
        cc=cc,
        vf=tuple(float(x) for x in vf),
        ff=tuple(tuple(float(x) for x in row) for row in ff),
    )


class CoefficientCascade:
    """Per-coordinate reduction of one or more quadratic forms.

    ``levels[dim_d]`` bounds coordinate ``dim - (dim_d + 1)``. A cascade may be
    shorter than ``dim``; the missing levels are simply not constrained by it.
    """

    def __init__(self, dim: int, levels):
        levels = tuple(levels)
        if len(levels) > dim:
            raise ValueError(f"Cascade of dimension {dim} cannot hold {len(levels)} levels")
        for dim_d, level in enumerate(levels):
            if level.index != dim - (dim_d + 1):
                raise ValueError(f"Level {dim_d} bounds the wrong coordinate ({level.index})")
        self.dim = dim
        self.levels = levels

    def __len__(self) -> int:
        return len(self.levels)

    def __getitem__(self, dim_d: int) -> CascadeLevel:
        return self.levels[dim_d]

    @classmethod
    def from_form(cls, g, bound: float = 1.0) -> "CoefficientCascade":
        """Reduce a single positive-definite form for every coordinate."""
        g = _as_symmetric(g)
        dim = g.shape[0]
        levels = [reduce_level(g, dim_d, bound) for dim_d in range(dim)]
        logger.debug("Reduced %dx%d quadratic form (bound %g)", dim, dim, bound)
        return cls(dim, levels)

    @classmethod
    def from_forms(cls, forms) -> "CoefficientCascade":
        """Build a cascade whose level ``dim_d`` comes from ``forms[dim_d]``.

        Args:
            forms: Sequence of ``(g, bound)`` pairs, one per level

        Returns:
            CoefficientCascade with ``len(forms)`` levels
        """
        forms = list(forms)
        if not forms:
            raise ValueError("At least one form is required")
        dim = np.asarray(forms[0][0]).shape[0]
        levels = [
            reduce_level(_as_symmetric(g), dim_d, bound)
            for dim_d, (g, bound) in enumerate(forms)
        ]
        return cls(dim, levels)

    def instance(self, v, eps: float = DEFAULT_EPS) -> list:
        """Specialize every level to the translation ``v``."""
        v = np.asarray(v, dtype=float)
        if v.shape != (self.dim,):
            raise ValueError(f"Translation must have length {self.dim}, got shape {v.shape}")
        return [instance_level(level, v, eps) for level in self.levels]


def _as_symmetric(g) -> np.ndarray:
    g = np.asarray(g, dtype=float)
    if g.ndim != 2 or g.shape[0] != g.shape[1]:
        raise ValueError(f"Quadratic form must be a square matrix, got shape {g.shape}")
    if not np.allclose(g, g.T, rtol=1e-10, atol=1e-12):
        raise ValueError("Quadratic form must be symmetric")
    return 0.5 * (g + g.T)


def real_roots_of_quad_eq(b: float, c: float) -> tuple[float, float]:
    """Real roots of ``x^2 - 2 b x + c = 0`` in ascending order.

    The larger-magnitude root is computed first and the other one is derived
    from the product of roots to avoid cancellation. A non-positive
    discriminant returns the empty sentinel ``(b, b)``.
    """
    d = b * b - c
    if d <= 0:
        return b, b
    rtd = math.sqrt(d)
    if b > 0:
        x1 = b + rtd
        return c / x1, x1
    x0 = b - rtd
    return x0, c / x0


def feasible_interval(inst: InstancedLevel, current, depth: int) -> tuple[float, float]:
    """Real interval of coordinate ``depth`` given ``current[:depth]``."""
    vf = inst.vf
    ff = inst.ff
    fc = inst.fc
    b = inst.vc
    c = inst.cc
    for k in range(depth):
        x_k = current[k]
        b += vf[k] * x_k
        row = ff[k]
        s = 0.0
        for j in range(depth):
            s += row[j] * current[j]
        c += (s + fc[k]) * x_k
    return real_roots_of_quad_eq(b, c)


def intersect_intervals(par: tuple[float, float], perp: tuple[float, float]) -> tuple[float, float]:
    """Intersect two feasible intervals; an empty result has ``hi == lo``."""
    lo = max(par[0], perp[0])
    return lo, max(min(par[1], perp[1]), lo)


def integer_range(lo: float, hi: float) -> tuple[int, int]:
    """Integers strictly inside ``(lo, hi)`` as ``(min, max)``.

    ``max < min`` signals an empty range.
    """
    return math.floor(lo) + 1, math.ceil(hi) - 1
