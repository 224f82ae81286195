"""Descriptive properties (vertex, period, eccentricity ...) per equation type."""

import math

from equation_classifier import EquationType


def fmt(x, digits=2):
    return f"{x:.{digits}f}"


def parameter_map(parameters):
    """``{name: value}`` from Parameter objects, dicts or an existing mapping."""
    if not parameters:
        return {}
    if isinstance(parameters, dict):
        return dict(parameters)
    out = {}
    for p in parameters:
        if isinstance(p, dict):
            out[p["name"]] = float(p["value"])
        else:
            out[p.name] = p.value
    return out


def linear_properties(m=1, b=0, **_):
    direction = "Increasing" if m > 0 else "Decreasing" if m < 0 else "Horizontal"
    return {
        "slope": fmt(m),
        "yIntercept": fmt(b),
        "xIntercept": fmt(-b / m) if m != 0 else "undefined",
        "direction": direction,
        "angle": fmt(math.degrees(math.atan(m))) + "°",
    }


def quadratic_roots(a, b, c):
    """Real roots of ax^2 + bx + c (a != 0), largest first."""
    d = b * b - 4 * a * c
    if d > 0:
        return [(-b + math.sqrt(d)) / (2 * a), (-b - math.sqrt(d)) / (2 * a)]
    if d == 0:
        return [-b / (2 * a)]
    return []


def quadratic_properties(a=1, b=0, c=0, **_):
    if a == 0:
        return linear_properties(m=b, b=c)
    h = -b / (2 * a)
    k = a * h * h + b * h + c
    roots = quadratic_roots(a, b, c)
    if len(roots) == 2:
        roots_text = f"x = {fmt(roots[0])}, x = {fmt(roots[1])}"
    elif roots:
        roots_text = f"x = {fmt(roots[0])} (double root)"
    else:
        roots_text = "No real roots"
    return {
        "vertex": f"({fmt(h)}, {fmt(k)})",
        "axisOfSymmetry": f"x = {fmt(h)}",
        "direction": "Opens upward" if a > 0 else "Opens downward",
        "discriminant": fmt(b * b - 4 * a * c),
        "roots": roots_text,
        "yIntercept": fmt(c),
        "vertexType": "Minimum" if a > 0 else "Maximum",
    }


def cubic_properties(a=1, b=0, c=0, d=0, **_):
    if a == 0:
        return {}
    ix = -b / (3 * a)
    iy = a * ix ** 3 + b * ix ** 2 + c * ix + d
    return {
        "inflectionPoint": f"({fmt(ix)}, {fmt(iy)})",
        "yIntercept": fmt(d),
        "endBehavior": "Falls left, rises right" if a > 0 else "Rises left, falls right",
        "degree": "3 (cubic)",
    }


def circle_properties(r=5, h=0, k=0, **_):
    return {
        "center": f"({fmt(h)}, {fmt(k)})",
        "radius": fmt(r),
        "diameter": fmt(2 * r),
        "circumference": fmt(2 * math.pi * r),
        "area": fmt(math.pi * r * r),
    }


def ellipse_properties(a=5, b=3, h=0, k=0, **_):
    c = math.sqrt(abs(a * a - b * b))
    return {
        "center": f"({fmt(h)}, {fmt(k)})",
        "semiMajorAxis": fmt(max(a, b)),
        "semiMinorAxis": fmt(min(a, b)),
        "focalDistance": fmt(c),
        "eccentricity": fmt(c / max(a, b), 3),
        "area": fmt(math.pi * a * b),
    }


def hyperbola_properties(a=3, b=2, **_):
    c = math.sqrt(a * a + b * b)
    return {
        "center": "(0, 0)",
        "vertices": f"(±{fmt(a)}, 0)",
        "foci": f"(±{fmt(c)}, 0)",
        "asymptotes": f"y = ±{fmt(b / a)}x",
        "eccentricity": fmt(c / a, 3),
        "transverseAxis": fmt(2 * a),
    }


def exponential_properties(a=1, b=1, **_):
    return {
        "coefficient": fmt(a),
        "growthRate": "Growth" if b > 0 else "Decay",
        "yIntercept": fmt(a),
        "horizontalAsymptote": "y = 0",
        "domain": "All real numbers",
        "range": "y > 0" if a > 0 else "y < 0",
    }


def logarithmic_properties(a=1, **_):
    return {
        "coefficient": fmt(a),
        "verticalAsymptote": "x = 0",
        "domain": "x > 0",
        "range": "All real numbers",
        "xIntercept": "1",
        "behavior": "Increasing" if a > 0 else "Decreasing",
    }


def wave_properties(a=1, b=1, c=0, d=0, base_period=2 * math.pi, **_):
    amplitude = abs(a)
    return {
        "amplitude": fmt(amplitude),
        "period": fmt(base_period / abs(b)),
        "frequency": fmt(b),
        "phaseShift": fmt(-c / b),
        "verticalShift": fmt(d),
        "range": f"[{fmt(d - amplitude)}, {fmt(d + amplitude)}]",
        "midline": f"y = {fmt(d)}",
    }


def tangent_properties(a=1, b=1, c=0, d=0, **_):
    props = wave_properties(a, b, c, d, base_period=math.pi)
    props["range"] = "All real numbers"
    props["asymptotes"] = f"x = {fmt(math.pi / (2 * abs(b)))} + n·{fmt(math.pi / abs(b))}"
    return props


PROPERTY_CALCULATORS = {
    EquationType.LINEAR: linear_properties,
    EquationType.QUADRATIC: quadratic_properties,
    EquationType.CUBIC: cubic_properties,
    EquationType.CIRCLE: circle_properties,
    EquationType.ELLIPSE: ellipse_properties,
    EquationType.HYPERBOLA: hyperbola_properties,
    EquationType.EXPONENTIAL: exponential_properties,
    EquationType.LOGARITHMIC: logarithmic_properties,
    EquationType.SINE: wave_properties,
    EquationType.COSINE: wave_properties,
    EquationType.TANGENT: tangent_properties,
}


def calculate_properties(equation_type, parameters):
    """Formatted properties for ``equation_type``; {} for 3D/unknown or degenerate values."""
    calculator = PROPERTY_CALCULATORS.get(EquationType(equation_type))
    if calculator is None:
        return {}
    try:
        return calculator(**parameter_map(parameters))
    except (ZeroDivisionError, ValueError):
        return {}
