"""
Numeric sampling engine.

Every operation here is pure: same inputs, bit-identical output. A single
point that fails to evaluate (exception, NaN, inf, complex) is dropped from
2D curves or stored as ``None`` in 3D grids; it never aborts the sample.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numdifftools as nd  # High-order numerical derivatives
import numpy as np
from scipy.integrate import quad
from scipy.optimize import root_scalar

from equation_classifier import EquationType, build_scope
from equation_parser import CompiledExpression, compile_expression, normalize

logger = logging.getLogger(__name__)

# ---------------------- Tunables ----------------------
# Imaginary parts at or below this are float noise (e.g. sqrt(-1e-16)), not a complex result
COMPLEX_TOLERANCE = 1e-10
# Sign changes with a bigger jump than this are asymptotes, not roots
ROOT_JUMP_GUARD = 10.0
ROOT_ZERO_TOLERANCE = 1e-10
DERIVATIVE_STEP = 0.001

DEFAULT_CURVE_POINTS = 1000
DEFAULT_CONIC_POINTS = 500
DEFAULT_SURFACE_RESOLUTION = 75
DEFAULT_INTEGRAL_RESOLUTION = 200
DEFAULT_ROOT_RESOLUTION = 200
HYPERBOLA_SPAN = 10.0


# ===========================================================================
# Data-classes
# ===========================================================================

@dataclass(frozen=True)
class Range:
    min: float
    max: float

    def __post_init__(self):
        if not (math.isfinite(self.min) and math.isfinite(self.max)):
            raise ValueError(f"Range bounds must be finite, got [{self.min}, {self.max}]")
        if self.min >= self.max:
            raise ValueError(f"min ({self.min}) must be < max ({self.max})")

    @classmethod
    def from_dict(cls, data, default=None):
        if not data:
            return default
        return cls(float(data["min"]), float(data["max"]))

    @property
    def width(self):
        return self.max - self.min

    def points(self, n):
        """``n`` equal steps, both ends included (n + 1 values)."""
        if n < 1:
            raise ValueError(f"Number of steps must be >= 1, got {n}")
        return np.linspace(self.min, self.max, n + 1)

    def to_dict(self):
        return {"min": self.min, "max": self.max}


@dataclass
class Curve:
    x: List[float] = field(default_factory=list)
    y: List[float] = field(default_factory=list)

    def to_dict(self):
        return {"x": self.x, "y": self.y}


@dataclass
class Trace(Curve):
    name: Optional[str] = None
    show_legend: bool = False

    def to_dict(self):
        return {"x": self.x, "y": self.y, "name": self.name, "showlegend": self.show_legend}


@dataclass
class Traces:
    traces: List[Trace] = field(default_factory=list)

    def to_dict(self):
        return {"traces": [t.to_dict() for t in self.traces]}


@dataclass
class Surface:
    x: List[float]
    y: List[float]
    z: List[List[Optional[float]]]  # z[row][col] is f(x[col], y[row])

    def to_dict(self):
        return {"x": self.x, "y": self.y, "z": self.z}


@dataclass
class IntegralShape(Curve):
    area: float = 0.0

    def to_dict(self):
        return {"x": self.x, "y": self.y, "area": self.area}


@dataclass
class Root:
    x: float
    y: float = 0.0


@dataclass
class RootSet:
    roots: List[Root] = field(default_factory=list)

    def to_dict(self):
        return {"roots": [{"x": r.x, "y": r.y} for r in self.roots]}


@dataclass
class TangentLine(Curve):
    x0: float = 0.0
    y0: float = 0.0
    slope: float = 0.0

    def to_dict(self):
        return {"x": self.x, "y": self.y, "x0": self.x0, "y0": self.y0, "slope": self.slope}


# ---------------------- Default domains ----------------------
def default_x_range(equation_type):
    if equation_type == EquationType.LOGARITHMIC:
        return Range(0.1, 10)
    if equation_type == EquationType.EXPONENTIAL:
        return Range(-5, 5)
    if equation_type in (EquationType.SINE, EquationType.COSINE, EquationType.TANGENT):
        return Range(-2 * math.pi, 2 * math.pi)
    return Range(-10, 10)


DEFAULT_RANGE = Range(-10, 10)
TRIG_RANGE = Range(-2 * math.pi, 2 * math.pi)


def adaptive_point_count(container_width=800):
    """About two samples per pixel, clamped to [500, 2000]."""
    return max(500, min(2000, int(container_width * 2)))


# ---------------------- Evaluation helpers ----------------------
def as_compiled(expression):
    """Accept compiled expressions or raw text (compiled through the normalizer)."""
    if isinstance(expression, CompiledExpression):
        return expression
    return compile_expression(normalize(expression))


def _finite_real(value):
    if isinstance(value, (bool, np.bool_, complex, np.complexfloating)):
        return None
    try:
        v = float(value)
    except (TypeError, ValueError):
        return None
    return v if math.isfinite(v) else None


def _real_within_tolerance(value, tolerance):
    """Real part of ``value`` if its imaginary part is negligible, else None."""
    if isinstance(value, (complex, np.complexfloating)):
        if abs(value.imag) > tolerance:
            return None
        value = value.real
    return _finite_real(value)


def _eval_real(compiled, scope):
    try:
        return _finite_real(compiled.evaluate(scope))
    except Exception as e:
        logger.debug("Evaluation failed at %s: %s", scope, e)
        return None


def _eval_surface(compiled, scope, tolerance):
    try:
        try:
            value = compiled.evaluate_complex(scope)
        except TypeError:
            # functions without a complex extension (floor, sign ...)
            value = compiled.evaluate(scope)
        return _real_within_tolerance(value, tolerance)
    except Exception as e:
        logger.debug("Surface evaluation failed at %s: %s", scope, e)
        return None


def _expired(deadline):
    return deadline is not None and time.monotonic() > deadline


def _with_x(scope, x):
    point = dict(scope)
    point["x"] = float(x)
    return point


def _dedupe_sorted(vals, tol=1e-9):
    """Sort and dedupe a list of floats without forcing rounding, using tolerance."""
    vs = sorted(float(v) for v in vals)
    out = []
    for v in vs:
        if not out or abs(v - out[-1]) > tol:
            out.append(v)
    return out


# ===========================================================================
# 2D curves
# ===========================================================================

def sample_explicit(compiled, scope, x_range=DEFAULT_RANGE, n=DEFAULT_CURVE_POINTS, deadline=None):
    """y = f(x) on ``n`` steps of ``x_range``; undefined points are omitted."""
    compiled = as_compiled(compiled)
    curve = Curve()
    for x in x_range.points(n):
        if _expired(deadline):
            logger.warning("Explicit sampling of %s stopped at x=%g: deadline passed", compiled.text, x)
            break
        y = _eval_real(compiled, _with_x(scope, x))
        if y is not None:
            curve.x.append(float(x))
            curve.y.append(y)
    return curve


def sample_trig(compiled, scope, x_range=None, n=DEFAULT_CURVE_POINTS, deadline=None):
    return sample_explicit(compiled, scope, x_range or TRIG_RANGE, n, deadline)


def _param(scope, name, default):
    # zero falls back as well: a zero radius/axis draws nothing useful
    return scope.get(name) or default


def _parametric_loop(h, k, a, b, n):
    theta = 2 * np.pi * np.arange(n + 1) / n
    return Curve((h + a * np.cos(theta)).tolist(), (k + b * np.sin(theta)).tolist())


def sample_circle(scope, n=DEFAULT_CONIC_POINTS):
    """x = h + r cos t, y = k + r sin t for t in [0, 2pi]; always n + 1 points."""
    r = _param(scope, "r", 5)
    return _parametric_loop(_param(scope, "h", 0), _param(scope, "k", 0), r, r, n)


def sample_ellipse(scope, n=DEFAULT_CONIC_POINTS):
    return _parametric_loop(
        _param(scope, "h", 0), _param(scope, "k", 0), _param(scope, "a", 5), _param(scope, "b", 3), n
    )


def sample_hyperbola(scope, n=DEFAULT_CONIC_POINTS):
    """Four traces from y^2 = b^2 (x^2/a^2 - 1): right/left branch, upper/lower half.

    Only the first trace carries a legend entry.
    """
    a = _param(scope, "a", 3)
    b = _param(scope, "b", 2)
    traces = []
    for side in (1, -1):
        xs, upper, lower = [], [], []
        for i in range(n + 1):
            x = side * (a + (i / n) * HYPERBOLA_SPAN)
            y_squared = (b * b) * ((x * x) / (a * a) - 1)
            if y_squared < 0:
                continue
            y = math.sqrt(y_squared)
            xs.append(x)
            upper.append(y)
            lower.append(-y)
        traces.append(Trace(xs, upper))
        traces.append(Trace(list(xs), lower))
    traces[0].name = "Hyperbola"
    traces[0].show_legend = True
    return Traces(traces)


# ===========================================================================
# 3D surfaces
# ===========================================================================

def _strip_z_assignment(text):
    text = normalize(text)
    if text.startswith("z=") and not text.startswith("z=="):
        text = text[2:]
    return text


def sample_3d(compiled, scope, x_range=DEFAULT_RANGE, y_range=DEFAULT_RANGE,
              resolution=DEFAULT_SURFACE_RESOLUTION, tolerance=COMPLEX_TOLERANCE, deadline=None):
    """z = f(x, y) on a (resolution + 1)^2 grid.

    Evaluation runs with complex inputs so that out-of-domain points show up
    as complex results; a cell is None when the imaginary part exceeds
    ``tolerance`` or the value is not finite. The grid is always rectangular.
    """
    if isinstance(compiled, str):
        compiled = compile_expression(_strip_z_assignment(compiled))
    xs = x_range.points(resolution).tolist()
    ys = y_range.points(resolution).tolist()

    z = []
    expired = False
    for y in ys:
        row = []
        for x in xs:
            if not expired and _expired(deadline):
                logger.warning("Surface sampling of %s stopped: deadline passed", compiled.text)
                expired = True
            if expired:
                row.append(None)
                continue
            point = dict(scope)
            point["x"] = x
            point["y"] = y
            row.append(_eval_surface(compiled, point, tolerance))
        z.append(row)
    return Surface(xs, ys, z)


# ===========================================================================
# Calculus on curves
# ===========================================================================

def sample_derivative(compiled, scope, x_range=DEFAULT_RANGE, n=DEFAULT_CURVE_POINTS,
                      h=DERIVATIVE_STEP, deadline=None):
    """Central difference (f(x+h) - f(x-h)) / 2h; skipped where either side is undefined."""
    compiled = as_compiled(compiled)
    curve = Curve()
    for x in x_range.points(n):
        if _expired(deadline):
            logger.warning("Derivative sampling of %s stopped at x=%g: deadline passed", compiled.text, x)
            break
        y_plus = _eval_real(compiled, _with_x(scope, x + h))
        y_minus = _eval_real(compiled, _with_x(scope, x - h))
        if y_plus is None or y_minus is None:
            continue
        curve.x.append(float(x))
        curve.y.append((y_plus - y_minus) / (2 * h))
    return curve


def sample_integral_shape(compiled, scope, x_range, resolution=DEFAULT_INTEGRAL_RESOLUTION, deadline=None):
    """Closed polygon under f over ``x_range`` plus a left-rectangle Riemann sum.

    The path is (min, 0), the samples, (max, 0), (min, 0).
    """
    if resolution < 1:
        raise ValueError(f"Integral resolution must be >= 1, got {resolution}")
    compiled = as_compiled(compiled)
    step = x_range.width / resolution
    shape = IntegralShape([x_range.min], [0.0])
    area = 0.0
    for i, x in enumerate(x_range.points(resolution)):
        if _expired(deadline):
            logger.warning("Integral sampling of %s stopped at x=%g: deadline passed", compiled.text, x)
            break
        y = _eval_real(compiled, _with_x(scope, x))
        if y is None:
            continue
        shape.x.append(float(x))
        shape.y.append(y)
        if i > 0:
            area += y * step
    shape.x.extend([x_range.max, x_range.min])
    shape.y.extend([0.0, 0.0])
    shape.area = area
    return shape


def find_roots(compiled, scope, x_range=DEFAULT_RANGE, resolution=DEFAULT_ROOT_RESOLUTION,
               jump_guard=ROOT_JUMP_GUARD, zero_tolerance=ROOT_ZERO_TOLERANCE, deadline=None):
    """Left-to-right sign-change scan with linear interpolation.

    A sign change whose jump is ``jump_guard`` or more is taken as an
    asymptote and ignored. A sample within ``zero_tolerance`` of zero is a
    root on its own.
    """
    compiled = as_compiled(compiled)
    found = []
    prev_x = prev_y = None
    for x in x_range.points(resolution):
        if _expired(deadline):
            logger.warning("Root scan of %s stopped at x=%g: deadline passed", compiled.text, x)
            break
        x = float(x)
        y = _eval_real(compiled, _with_x(scope, x))
        if y is not None and prev_y is not None:
            if np.sign(y) != np.sign(prev_y) and abs(y - prev_y) < jump_guard:
                slope = (y - prev_y) / (x - prev_x)
                found.append(prev_x - prev_y / slope)
            elif abs(y) < zero_tolerance:
                found.append(x)
        prev_x, prev_y = x, y
    return RootSet([Root(r) for r in _dedupe_sorted(found)])


# ---------------------- Refinements ----------------------
def _bisect_root(f_scalar, L, R):
    """Refine a root in [L,R] via Brent; fallback to secant."""
    try:
        if L == R:
            return L
        sol = root_scalar(f_scalar, bracket=[L, R], method='brentq', maxiter=100)
        if sol.converged:
            return sol.root
    except ValueError:
        pass
    try:
        sol = root_scalar(f_scalar, x0=L, x1=R, method='secant', maxiter=100)
        if sol.converged:
            return sol.root
    except (ValueError, ZeroDivisionError):
        pass
    return None


def refine_roots(compiled, scope, root_set, x_range, resolution=DEFAULT_ROOT_RESOLUTION):
    """Polish interpolated roots with Brent's method inside their sampling interval.

    A root that cannot be polished (no bracket, evaluation failure, or the
    polished value leaves the interval) keeps its interpolated position.
    """
    compiled = as_compiled(compiled)
    half = x_range.width / resolution

    def f_scalar(t):
        value = _eval_real(compiled, _with_x(scope, t))
        if value is None:
            raise ValueError(f"f undefined at {t}")
        return value

    refined = []
    for root in root_set.roots:
        L, R = max(x_range.min, root.x - half), min(x_range.max, root.x + half)
        polished = _bisect_root(f_scalar, L, R)
        refined.append(polished if polished is not None and L <= polished <= R else root.x)
    return RootSet([Root(r) for r in _dedupe_sorted(refined)])


def reference_area(compiled, scope, x_range):
    """Adaptive-quadrature integral over ``x_range``; None if quad fails."""
    compiled = as_compiled(compiled)

    def f(t):
        value = _eval_real(compiled, _with_x(scope, t))
        return 0.0 if value is None else value

    try:
        value, _ = quad(f, x_range.min, x_range.max, limit=200)
    except Exception as e:
        logger.info("Quadrature failed for %s: %s", compiled.text, e)
        return None
    return float(value) if math.isfinite(value) else None


def tangent_line(compiled, scope, x0, x_range=DEFAULT_RANGE, n=2):
    """Slope of f at ``x0`` (numdifftools) and the tangent sampled over ``x_range``.

    Returns None when f or its derivative is undefined at ``x0``.
    """
    compiled = as_compiled(compiled)
    y0 = _eval_real(compiled, _with_x(scope, x0))
    if y0 is None:
        return None

    def f(t):
        point = dict(scope)
        point["x"] = t
        return compiled.evaluate(point)

    try:
        with np.errstate(all="ignore"):
            slope = float(nd.Derivative(f)(x0))
    except Exception as e:
        logger.info("Tangent slope failed for %s at %g: %s", compiled.text, x0, e)
        return None
    if not math.isfinite(slope):
        return None
    xs = x_range.points(n).tolist()
    return TangentLine(xs, [y0 + slope * (x - x0) for x in xs], float(x0), y0, slope)


# ===========================================================================
# Dispatch per equation type
# ===========================================================================

EXPLICIT_TYPES = (
    EquationType.LINEAR, EquationType.QUADRATIC, EquationType.CUBIC,
    EquationType.EXPONENTIAL, EquationType.LOGARITHMIC, EquationType.UNKNOWN,
)
TRIG_TYPES = (EquationType.SINE, EquationType.COSINE, EquationType.TANGENT)


def generate_graph_data(compiled, equation_type, parameters=None, x_range=None, y_range=None,
                        n=None, resolution=None, tolerance=COMPLEX_TOLERANCE, deadline=None):
    """Sample set for one equation of ``equation_type``.

    ``x_range``/``y_range`` are the caller's viewport and override the
    per-type default domain.
    """
    equation_type = EquationType(equation_type)
    scope = build_scope(parameters)

    if equation_type is EquationType.CIRCLE:
        return sample_circle(scope, n or DEFAULT_CONIC_POINTS)
    if equation_type is EquationType.ELLIPSE:
        return sample_ellipse(scope, n or DEFAULT_CONIC_POINTS)
    if equation_type is EquationType.HYPERBOLA:
        return sample_hyperbola(scope, n or DEFAULT_CONIC_POINTS)
    if equation_type is EquationType.THREE_D:
        return sample_3d(compiled, scope, x_range or DEFAULT_RANGE, y_range or DEFAULT_RANGE,
                         resolution or DEFAULT_SURFACE_RESOLUTION, tolerance, deadline)
    if equation_type in TRIG_TYPES:
        return sample_trig(compiled, scope, x_range or TRIG_RANGE, n or DEFAULT_CURVE_POINTS, deadline)
    if equation_type in EXPLICIT_TYPES:
        return sample_explicit(compiled, scope, x_range or default_x_range(equation_type),
                               n or DEFAULT_CURVE_POINTS, deadline)
    raise ValueError(f"Unhandled equation type: {equation_type}")


def sample_kind(sample) -> str:
    kinds: Dict[type, str] = {Surface: "surface", Traces: "traces"}
    return kinds.get(type(sample), "curve")
