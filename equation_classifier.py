"""
Equation classification and parameter extraction.

``classify`` is a fast textual heuristic: an ordered list of
(predicate, type) rules run top to bottom over the normalized text and the
variable set. The rules overlap, so their order is the tie-break policy.
"""

import logging
import math
import re
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from equation_parser import compile_expression, parse_equation

logger = logging.getLogger(__name__)


class EquationType(str, Enum):
    LINEAR = "linear"
    QUADRATIC = "quadratic"
    CUBIC = "cubic"
    CIRCLE = "circle"
    ELLIPSE = "ellipse"
    HYPERBOLA = "hyperbola"
    EXPONENTIAL = "exponential"
    LOGARITHMIC = "logarithmic"
    SINE = "sine"
    COSINE = "cosine"
    TANGENT = "tangent"
    THREE_D = "three_d"
    UNKNOWN = "unknown"


# ---------------------- Classification ----------------------
CIRCLE_RE = re.compile(r"x\^2.*\+.*y\^2")
ELLIPSE_RE = re.compile(r"(?:x\^2|\(x\^2\))/.*\+.*(?:y\^2|\(y\^2\))/")
HYPERBOLA_RE = re.compile(r"(?:x\^2|\(x\^2\))/.*-.*(?:y\^2|\(y\^2\))/")
# implicit residual such as x^2+y^2-25
RESIDUAL_CONSTANT_RE = re.compile(r"-\d+(?:\.\d+)?$")


def _is_conic_candidate(text, variables):
    if not {"x", "y"} <= variables:
        return False
    return "=" in text or bool(RESIDUAL_CONSTANT_RE.search(text))


def _x_only(variables):
    return "x" in variables and "y" not in variables


Rule = Tuple[Callable[[str, set], bool], EquationType]

CLASSIFICATION_RULES: List[Rule] = [
    (lambda t, v: "z" in v or t.startswith("z="), EquationType.THREE_D),
    (lambda t, v: _is_conic_candidate(t, v) and bool(CIRCLE_RE.search(t)) and "/" not in t,
     EquationType.CIRCLE),
    (lambda t, v: _is_conic_candidate(t, v) and bool(ELLIPSE_RE.search(t)), EquationType.ELLIPSE),
    (lambda t, v: _is_conic_candidate(t, v) and bool(HYPERBOLA_RE.search(t)), EquationType.HYPERBOLA),
    (lambda t, v: {"x", "y"} <= v, EquationType.THREE_D),
    (lambda t, v: "sin(" in t, EquationType.SINE),
    (lambda t, v: "cos(" in t, EquationType.COSINE),
    (lambda t, v: "tan(" in t, EquationType.TANGENT),
    (lambda t, v: bool(re.search(r"exp\(|e\^", t)), EquationType.EXPONENTIAL),
    (lambda t, v: bool(re.search(r"log\(|log10\(|ln\(", t)), EquationType.LOGARITHMIC),
    (lambda t, v: _x_only(v) and "x^3" in t, EquationType.CUBIC),
    (lambda t, v: _x_only(v) and "x^2" in t, EquationType.QUADRATIC),
    (lambda t, v: _x_only(v) and bool(re.search(r"\bx\b", t)) and "x^" not in t, EquationType.LINEAR),
]


def classify(text: str, variables) -> EquationType:
    """Assign exactly one type to normalized ``text``; UNKNOWN is the catch-all."""
    variables = set(variables or ())
    for predicate, equation_type in CLASSIFICATION_RULES:
        if predicate(text, variables):
            return equation_type
    return EquationType.UNKNOWN


def classify_expression(raw: str) -> EquationType:
    """Normalize, parse and classify raw user input."""
    result = parse_equation(raw)
    if not result.success:
        return EquationType.UNKNOWN
    return classify(result.data.processed, result.data.variables)


# ---------------------- Parameters ----------------------
@dataclass
class Parameter:
    name: str
    label: str
    value: float
    min: float
    max: float
    step: float
    default: float

    def to_dict(self):
        return asdict(self)


# name -> (label, min, max, step, default) per type
PARAMETER_SPECS = {
    EquationType.LINEAR: [
        ("m", "Slope (m)", -10, 10, 0.1, 1),
        ("b", "Y-intercept (b)", -10, 10, 0.1, 0),
    ],
    EquationType.QUADRATIC: [
        ("a", "Coefficient a", -10, 10, 0.1, 1),
        ("b", "Coefficient b", -10, 10, 0.1, 0),
        ("c", "Constant c", -10, 10, 0.1, 0),
    ],
    EquationType.CUBIC: [
        ("a", "Coefficient a", -5, 5, 0.1, 1),
    ],
    EquationType.CIRCLE: [
        ("r", "Radius (r)", 0.5, 15, 0.5, 5),
    ],
    EquationType.ELLIPSE: [
        ("a", "Semi-major axis (a)", 0.5, 10, 0.1, 3),
        ("b", "Semi-minor axis (b)", 0.5, 10, 0.1, 2),
    ],
    EquationType.SINE: [
        ("a", "Amplitude (a)", -5, 5, 0.1, 1),
        ("b", "Frequency (b)", 0.1, 5, 0.1, 1),
    ],
    EquationType.EXPONENTIAL: [
        ("a", "Coefficient (a)", -5, 5, 0.1, 1),
    ],
    EquationType.LOGARITHMIC: [
        ("a", "Coefficient (a)", -5, 5, 0.1, 1),
    ],
}
PARAMETER_SPECS[EquationType.HYPERBOLA] = PARAMETER_SPECS[EquationType.ELLIPSE]
PARAMETER_SPECS[EquationType.COSINE] = PARAMETER_SPECS[EquationType.SINE]
PARAMETER_SPECS[EquationType.TANGENT] = PARAMETER_SPECS[EquationType.SINE]

TRIG_FUNCTIONS = {
    EquationType.SINE: "sin",
    EquationType.COSINE: "cos",
    EquationType.TANGENT: "tan",
}


def _build(equation_type, values):
    params = []
    for name, label, lo, hi, step, default in PARAMETER_SPECS[equation_type]:
        value = values.get(name)
        params.append(Parameter(name, label, default if value is None else value, lo, hi, step, default))
    return params


def extract_coefficient(text, pattern, default=1.0, implicit=None):
    """First capture group of ``pattern`` as a float, ``default`` when absent.

    An empty capture (or a lone ``+``) stands for ``implicit`` and a lone ``-``
    for its negation; ``implicit`` defaults to ``default``.
    """
    match = re.search(pattern, text)
    if not match:
        return default
    raw = re.sub(r"\s+", "", match.group(1))
    if implicit is None:
        implicit = default
    if raw in ("", "+"):
        return implicit
    if raw == "-":
        return implicit if implicit is None else -implicit
    try:
        return float(raw)
    except ValueError:
        return default


def _evaluate_at(text, points):
    """Evaluate the expression at sentinel x values; None when unusable."""
    if "=" in text:
        return None
    try:
        compiled = compile_expression(text)
        values = [float(compiled.evaluate({"x": x, "e": math.e, "pi": math.pi})) for x in points]
    except Exception as e:
        logger.debug("Point evaluation failed for %r: %s", text, e)
        return None
    if not all(math.isfinite(v) for v in values):
        return None
    return values


# constant term (signed, or leading right after "="), not part of a longer number or an x coefficient
SIGNED_CONSTANT_RE = r"((?:(?<==)|[+-])\d+\.?\d*)(?![\d.])(?!\*?x)"


def _linear_values(text):
    evaluated = _evaluate_at(text, (0.0, 1.0))
    if evaluated is not None:
        f0, f1 = evaluated
        return {"m": f1 - f0, "b": f0}
    return {
        "m": extract_coefficient(text, r"(-?\d*\.?\d*)\*?x", 1),
        "b": extract_coefficient(text, SIGNED_CONSTANT_RE, 0),
    }


def _quadratic_values(text):
    evaluated = _evaluate_at(text, (0.0, 1.0, -1.0))
    if evaluated is not None:
        f0, f1, fm1 = evaluated
        return {"a": (f1 + fm1 - 2 * f0) / 2, "b": (f1 - fm1) / 2, "c": f0}
    return {
        "a": extract_coefficient(text, r"(-?\d*\.?\d*)\*?x\^2", 1),
        "b": extract_coefficient(text, r"([+-]\d*\.?\d*)\*?x(?!\^)", 0, implicit=1),
        "c": extract_coefficient(text, r"([+-]\d+\.?\d*)$", 0),
    }


def _cubic_values(text):
    # TODO: evaluate the x^2, x and constant terms as well; only the leading coefficient is recovered
    return {"a": extract_coefficient(text, r"(-?\d*\.?\d*)\*?x\^3", 1)}


def _circle_values(text):
    r_squared = extract_coefficient(text, r"=\s*(\d+\.?\d*)", None)
    if r_squared is None:
        r_squared = extract_coefficient(text, r"-(\d+\.?\d*)$", None)
    if r_squared is None:
        return {}
    return {"r": math.sqrt(abs(r_squared))}


def _conic_axes_values(text):
    values = {}
    a_squared = extract_coefficient(text, r"(?:x\^2|\(x\^2\))/(\d+\.?\d*)", None)
    b_squared = extract_coefficient(text, r"(?:y\^2|\(y\^2\))/(\d+\.?\d*)", None)
    if a_squared is not None:
        values["a"] = math.sqrt(abs(a_squared))
    if b_squared is not None:
        values["b"] = math.sqrt(abs(b_squared))
    return values


def _trig_values(text, func):
    return {
        "a": extract_coefficient(text, rf"(-?\d*\.?\d*)\*?{func}", 1),
        "b": extract_coefficient(text, rf"{func}\((-?\d*\.?\d*)\*?x", 1),
    }


def _exponential_values(text):
    return {"a": extract_coefficient(text, r"(-?\d*\.?\d*)\*?(?:exp|e\^)", 1)}


def _logarithmic_values(text):
    return {"a": extract_coefficient(text, r"(-?\d*\.?\d*)\*?(?:log|ln)", 1)}


def extract_parameters(text: str, equation_type: EquationType) -> List[Parameter]:
    """Named coefficients with slider bounds for ``text`` of ``equation_type``.

    Never raises; anything that cannot be recovered keeps its default.
    """
    equation_type = EquationType(equation_type)
    if equation_type not in PARAMETER_SPECS:
        return []
    try:
        if equation_type is EquationType.LINEAR:
            values = _linear_values(text)
        elif equation_type is EquationType.QUADRATIC:
            values = _quadratic_values(text)
        elif equation_type is EquationType.CUBIC:
            values = _cubic_values(text)
        elif equation_type is EquationType.CIRCLE:
            values = _circle_values(text)
        elif equation_type in (EquationType.ELLIPSE, EquationType.HYPERBOLA):
            values = _conic_axes_values(text)
        elif equation_type in TRIG_FUNCTIONS:
            values = _trig_values(text, TRIG_FUNCTIONS[equation_type])
        elif equation_type is EquationType.EXPONENTIAL:
            values = _exponential_values(text)
        else:
            values = _logarithmic_values(text)
    except Exception as e:
        logger.debug("Parameter extraction failed for %r (%s): %s", text, equation_type.value, e)
        values = {}
    return _build(equation_type, values)


def build_scope(parameters: Optional[List[Parameter]] = None, **variables):
    """Evaluator scope: parameter values, independent variables, e and pi.

    ``parameters`` is a list of Parameter or a plain ``{name: value}`` mapping.
    """
    if isinstance(parameters, dict):
        scope = dict(parameters)
    else:
        scope = {p.name: p.value for p in (parameters or [])}
    scope.update(variables)
    scope.update({"e": math.e, "pi": math.pi})
    return scope


# ---------------------- Static reference data ----------------------
EQUATION_DESCRIPTIONS = {
    EquationType.LINEAR: {
        "name": "Linear Function",
        "description": "A straight line representing a constant rate of change.",
        "standardForm": "y = mx + b",
    },
    EquationType.QUADRATIC: {
        "name": "Quadratic Function",
        "description": "A parabola; the vertex is its maximum or minimum point.",
        "standardForm": "y = ax² + bx + c",
    },
    EquationType.CUBIC: {
        "name": "Cubic Function",
        "description": "A polynomial of degree 3 with up to two turning points.",
        "standardForm": "y = ax³ + bx² + cx + d",
    },
    EquationType.CIRCLE: {
        "name": "Circle",
        "description": "The set of all points equidistant from a center point.",
        "standardForm": "x² + y² = r²",
    },
    EquationType.ELLIPSE: {
        "name": "Ellipse",
        "description": "An oval with two focal points, the shape of planetary orbits.",
        "standardForm": "x²/a² + y²/b² = 1",
    },
    EquationType.HYPERBOLA: {
        "name": "Hyperbola",
        "description": "Two mirror-image curves approaching a pair of asymptotes.",
        "standardForm": "x²/a² - y²/b² = 1",
    },
    EquationType.EXPONENTIAL: {
        "name": "Exponential Function",
        "description": "Growth or decay at a rate proportional to the current value.",
        "standardForm": "y = a·eᵇˣ",
    },
    EquationType.LOGARITHMIC: {
        "name": "Logarithmic Function",
        "description": "The inverse of the exponential; grows quickly then levels off.",
        "standardForm": "y = a·log(bx)",
    },
    EquationType.SINE: {
        "name": "Sine Wave",
        "description": "Periodic oscillation repeating every 2π/b units.",
        "standardForm": "y = a·sin(bx + c) + d",
    },
    EquationType.COSINE: {
        "name": "Cosine Wave",
        "description": "The sine wave shifted by π/2.",
        "standardForm": "y = a·cos(bx + c) + d",
    },
    EquationType.TANGENT: {
        "name": "Tangent Function",
        "description": "The ratio of sine to cosine, with vertical asymptotes.",
        "standardForm": "y = a·tan(bx + c) + d",
    },
    EquationType.THREE_D: {
        "name": "3D Surface",
        "description": "A function of two variables z = f(x, y).",
        "standardForm": "z = f(x, y)",
    },
}

PRESET_EQUATIONS = [
    (EquationType.QUADRATIC, "x^2", "Basic Parabola", "Quadratic"),
    (EquationType.QUADRATIC, "x^2-4", "Shifted Parabola", "Quadratic"),
    (EquationType.QUADRATIC, "2*x^2+3*x-5", "General Quadratic", "Quadratic"),
    (EquationType.LINEAR, "2*x+1", "Linear Function", "Linear"),
    (EquationType.LINEAR, "-x+3", "Negative Slope", "Linear"),
    (EquationType.CUBIC, "x^3", "Basic Cubic", "Cubic"),
    (EquationType.CUBIC, "x^3-2*x^2+x-1", "General Cubic", "Cubic"),
    (EquationType.CIRCLE, "x^2+y^2-25", "Circle r=5", "Conic"),
    (EquationType.CIRCLE, "x^2+y^2-16", "Circle r=4", "Conic"),
    (EquationType.EXPONENTIAL, "e^x", "Natural Exponential", "Exponential"),
    (EquationType.EXPONENTIAL, "2*e^x", "Scaled Exponential", "Exponential"),
    (EquationType.EXPONENTIAL, "e^(-x)", "Decay Function", "Exponential"),
    (EquationType.LOGARITHMIC, "log(x)", "Common Log", "Logarithmic"),
    (EquationType.LOGARITHMIC, "ln(x)", "Natural Log", "Logarithmic"),
    (EquationType.SINE, "sin(x)", "Sine Wave", "Trigonometric"),
    (EquationType.SINE, "2*sin(3*x)", "Amplitude & Frequency", "Trigonometric"),
    (EquationType.COSINE, "cos(x)", "Cosine Wave", "Trigonometric"),
    (EquationType.COSINE, "3*cos(2*x)", "Scaled Cosine", "Trigonometric"),
    (EquationType.THREE_D, "sin(x)*cos(y)", "3D Wave", "3D Surfaces"),
    (EquationType.THREE_D, "x^2+y^2", "Paraboloid", "3D Surfaces"),
    (EquationType.THREE_D, "x^2-y^2", "Saddle Point", "3D Surfaces"),
    (EquationType.THREE_D, "sin(sqrt(x^2+y^2))", "Ripple Effect", "3D Surfaces"),
    (EquationType.ELLIPSE, "(x^2)/16+(y^2)/9-1", "Ellipse", "Conic"),
    (EquationType.HYPERBOLA, "(x^2)/4-(y^2)/9-1", "Hyperbola", "Conic"),
]
