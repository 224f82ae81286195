"""
Step-by-step explanations for the classified equation.

Each generator returns ``{"title": ..., "steps": [{"step", "explanation", "formula"}]}``.
"""

import logging
import math

from equation_classifier import EquationType
from properties import fmt, parameter_map, quadratic_roots

logger = logging.getLogger(__name__)


def _step(step, explanation, formula):
    return {"step": step, "explanation": explanation, "formula": formula}


def linear_solution(m=1, b=0, **_):
    x_int = fmt(-b / m) if m != 0 else "undefined"
    if m > 0:
        interpretation, direction = "Since m > 0, the line rises from left to right.", "Increasing ↗"
    elif m < 0:
        interpretation, direction = "Since m < 0, the line falls from left to right.", "Decreasing ↘"
    else:
        interpretation, direction = "Since m = 0, the line is horizontal.", "Horizontal →"
    return "Linear Equation Solution", [
        _step("Identify the equation form",
              "A linear equation has the form y = mx + b, where m is the slope and b is the y-intercept.",
              "y = mx + b"),
        _step("Extract the slope (m)",
              f"The slope m determines how steep the line is. Here, m = {fmt(m)}.", f"m = {fmt(m)}"),
        _step("Extract the y-intercept (b)",
              f"The y-intercept b is where the line crosses the y-axis. Here, b = {fmt(b)}.", f"b = {fmt(b)}"),
        _step("Find the x-intercept", "Set y = 0 and solve for x: 0 = mx + b → x = -b/m",
              f"x-intercept = {x_int}"),
        _step("Determine the angle with x-axis", "The angle θ = arctan(m)",
              f"θ = {fmt(math.degrees(math.atan(m)))}°"),
        _step("Interpret the slope", interpretation, f"Direction: {direction}"),
    ]


def quadratic_solution(a=1, b=0, c=0, **_):
    discriminant = b * b - 4 * a * c
    h = -b / (2 * a)
    k = a * h * h + b * h + c
    roots = quadratic_roots(a, b, c)
    if len(roots) == 2:
        roots_step = ("Since D > 0, there are two distinct real roots.",
                      f"x₁ = {fmt(roots[0])}, x₂ = {fmt(roots[1])}")
    elif roots:
        roots_step = ("Since D = 0, there is exactly one real root (double root).",
                      f"x = {fmt(roots[0])} (double root)")
    else:
        roots_step = ("Since D < 0, there are no real roots (complex roots only).", "No real solutions")
    return "Quadratic Equation Solution", [
        _step("Identify the standard form",
              "A quadratic equation has the form y = ax² + bx + c, where a ≠ 0.", "y = ax² + bx + c"),
        _step("Extract coefficients", "Identify a, b, and c from your equation.",
              f"a = {fmt(a)}, b = {fmt(b)}, c = {fmt(c)}"),
        _step("Calculate the discriminant",
              "The discriminant D = b² - 4ac determines the nature of roots.",
              f"D = ({fmt(b)})² - 4({fmt(a)})({fmt(c)}) = {fmt(discriminant)}"),
        _step("Find the roots using quadratic formula", *roots_step),
        _step("Find the vertex", "The vertex (h, k) is at h = -b/(2a) and k = f(h).",
              f"Vertex = ({fmt(h)}, {fmt(k)})"),
        _step("Determine the axis of symmetry",
              "The parabola is symmetric about the vertical line x = h.", f"x = {fmt(h)}"),
        _step("Determine opening direction",
              "Since a > 0, the parabola opens upward (vertex is minimum)." if a > 0
              else "Since a < 0, the parabola opens downward (vertex is maximum).",
              f"Opens {'upward ⌣' if a > 0 else 'downward ⌢'}"),
        _step("Find the y-intercept", "The y-intercept is the value of y when x = 0, which is c.",
              f"y-intercept = {fmt(c)}"),
    ]


def cubic_solution(a=1, b=0, c=0, d=0, **_):
    ix = -b / (3 * a)
    iy = a * ix ** 3 + b * ix ** 2 + c * ix + d
    return "Cubic Equation Solution", [
        _step("Identify the standard form", "A cubic equation has the form y = ax³ + bx² + cx + d.",
              "y = ax³ + bx² + cx + d"),
        _step("Extract coefficients", "Identify the coefficients from your equation.",
              f"a = {fmt(a)}, b = {fmt(b)}, c = {fmt(c)}, d = {fmt(d)}"),
        _step("Find the inflection point",
              "The inflection point is where the curve changes concavity. x = -b/(3a)",
              f"Inflection point = ({fmt(ix)}, {fmt(iy)})"),
        _step("Determine end behavior",
              "Since a > 0: as x → -∞, y → -∞ and as x → +∞, y → +∞" if a > 0
              else "Since a < 0: as x → -∞, y → +∞ and as x → +∞, y → -∞",
              "Falls left ↙, Rises right ↗" if a > 0 else "Rises left ↖, Falls right ↘"),
        _step("Find the y-intercept", "The y-intercept is the value when x = 0.",
              f"y-intercept = {fmt(d)}"),
    ]


def circle_solution(r=5, h=0, k=0, **_):
    return "Circle Equation Solution", [
        _step("Identify the standard form",
              "A circle has the form (x - h)² + (y - k)² = r², where (h, k) is the center.",
              "(x - h)² + (y - k)² = r²"),
        _step("Find the center", "The center (h, k) is the point from which all points are equidistant.",
              f"Center = ({fmt(h)}, {fmt(k)})"),
        _step("Find the radius", "The radius r is the distance from the center to any point on the circle.",
              f"Radius = {fmt(r)}"),
        _step("Calculate the diameter", "The diameter is twice the radius: d = 2r",
              f"Diameter = {fmt(2 * r)}"),
        _step("Calculate the circumference", "The circumference is C = 2πr",
              f"Circumference = 2π({fmt(r)}) = {fmt(2 * math.pi * r)}"),
        _step("Calculate the area", "The area is A = πr²",
              f"Area = π({fmt(r)})² = {fmt(math.pi * r * r)}"),
    ]


def ellipse_solution(a=5, b=3, h=0, k=0, **_):
    c = math.sqrt(abs(a * a - b * b))
    if a >= b:
        foci = f"Foci at ({fmt(h - c)}, {fmt(k)}) and ({fmt(h + c)}, {fmt(k)})"
    else:
        foci = f"Foci at ({fmt(h)}, {fmt(k - c)}) and ({fmt(h)}, {fmt(k + c)})"
    return "Ellipse Equation Solution", [
        _step("Identify the standard form", "An ellipse has the form (x-h)²/a² + (y-k)²/b² = 1",
              "(x-h)²/a² + (y-k)²/b² = 1"),
        _step("Find the center", "The center is at (h, k).", f"Center = ({fmt(h)}, {fmt(k)})"),
        _step("Find the semi-axes", "a and b are the semi-major and semi-minor axes.",
              f"a = {fmt(a)}, b = {fmt(b)}"),
        _step("Calculate the focal distance", "c = √|a² - b²|",
              f"c = √|{fmt(a)}² - {fmt(b)}²| = {fmt(c)}"),
        _step("Find the foci",
              "For a horizontal ellipse, foci are at (h ± c, k)" if a >= b
              else "For a vertical ellipse, foci are at (h, k ± c)",
              foci),
        _step("Calculate eccentricity", 'Eccentricity e = c/a measures how "stretched" the ellipse is.',
              f"e = {fmt(c / max(a, b), 3)}"),
        _step("Calculate the area", "Area = πab",
              f"Area = π({fmt(a)})({fmt(b)}) = {fmt(math.pi * a * b)}"),
    ]


def hyperbola_solution(a=3, b=2, **_):
    c = math.sqrt(a * a + b * b)
    return "Hyperbola Equation Solution", [
        _step("Identify the standard form",
              "A hyperbola has the form x²/a² - y²/b² = 1 (horizontal) or y²/a² - x²/b² = 1 (vertical)",
              "x²/a² - y²/b² = 1"),
        _step("Find the center", "The center is at the origin (0, 0) for standard form.", "Center = (0, 0)"),
        _step("Find the vertices", "Vertices are at (±a, 0) for horizontal hyperbola.",
              f"Vertices at (±{fmt(a)}, 0)"),
        _step("Calculate the focal distance", "c = √(a² + b²) for hyperbola",
              f"c = √({fmt(a)}² + {fmt(b)}²) = {fmt(c)}"),
        _step("Find the foci", "Foci are at (±c, 0) for horizontal hyperbola.", f"Foci at (±{fmt(c)}, 0)"),
        _step("Find the asymptotes", "Asymptotes are lines the hyperbola approaches but never touches.",
              f"y = ±({fmt(b / a)})x"),
        _step("Calculate eccentricity", "Eccentricity e = c/a. For hyperbola, e > 1.",
              f"e = {fmt(c / a, 3)}"),
    ]


def exponential_solution(a=1, b=1, **_):
    return "Exponential Equation Solution", [
        _step("Identify the standard form",
              "An exponential function has the form y = a·e^(bx) or y = a·b^x", "y = a·e^(bx)"),
        _step("Find the initial value", "When x = 0, y = a·e^0 = a. This is the y-intercept.",
              f"y-intercept = {fmt(a)}"),
        _step("Determine growth or decay",
              "Since b > 0, this is exponential GROWTH." if b > 0 else "Since b < 0, this is exponential DECAY.",
              f"Type: {'Growth' if b > 0 else 'Decay'}"),
        _step("Find the horizontal asymptote", "The curve approaches but never reaches y = 0.",
              "Horizontal asymptote: y = 0"),
        _step("Determine the domain and range",
              "Exponential functions are defined for all x, but output is restricted.",
              f"Domain: All real numbers\nRange: {'y > 0' if a > 0 else 'y < 0'}"),
        _step("Find the growth/decay rate",
              "The constant b determines how fast the function grows or decays.", f"Rate constant = {fmt(b)}"),
    ]


def logarithmic_solution(a=1, **_):
    return "Logarithmic Equation Solution", [
        _step("Identify the standard form", "A logarithmic function has the form y = a·ln(x)", "y = a·ln(x)"),
        _step("Find the x-intercept", "When y = 0, ln(x) = 0, so x = 1.", "x-intercept = 1"),
        _step("Find the vertical asymptote",
              "The logarithm is undefined for x ≤ 0, so x = 0 is a vertical asymptote.",
              "Vertical asymptote: x = 0"),
        _step("Determine the domain and range", "Logarithmic functions are only defined for positive x.",
              "Domain: x > 0\nRange: All real numbers"),
        _step("Determine increasing or decreasing",
              "Since a > 0, the function is increasing." if a > 0 else "Since a < 0, the function is decreasing.",
              f"Behavior: {'Increasing ↗' if a > 0 else 'Decreasing ↘'}"),
        _step("Understand the inverse relationship",
              "Logarithmic functions are inverses of exponential functions.", "If y = ln(x), then x = e^y"),
    ]


def trig_solution(func, a=1, b=1, c=0, d=0, **_):
    name = {"sin": "Sine", "cos": "Cosine", "tan": "Tangent"}[func]
    amplitude = abs(a)
    base = math.pi if func == "tan" else 2 * math.pi
    base_text = "π" if func == "tan" else "2π"
    phase = -c / b
    steps = [
        _step("Identify the standard form",
              f"A {name.lower()} function has the form y = a·{func}(bx + c) + d", f"y = a·{func}(bx + c) + d"),
        _step("Find the amplitude", "Amplitude |a| determines the height of the wave.",
              f"Amplitude = |{fmt(a)}| = {fmt(amplitude)}"),
        _step("Calculate the period",
              f"Period = {base_text}/|b| is the horizontal length of one complete cycle.",
              f"Period = {base_text}/{fmt(abs(b))} = {fmt(base / abs(b))}"),
        _step("Find the frequency", "Frequency = |b| determines how many cycles occur in 2π.",
              f"Frequency = {fmt(abs(b))}"),
        _step("Calculate the phase shift", "Phase shift = -c/b moves the graph horizontally.",
              f"Phase shift = {fmt(phase)} ({'right' if phase > 0 else 'left'})"),
        _step("Find the vertical shift", "Vertical shift d moves the entire wave up or down.",
              f"Vertical shift = {fmt(d)}"),
    ]
    if func == "tan":
        steps.append(_step("Find the asymptotes", "Tangent is undefined wherever bx + c = π/2 + nπ.",
                           f"x = {fmt(math.pi / (2 * abs(b)))} + n·{fmt(base / abs(b))}"))
    else:
        steps.append(_step("Determine the range", "The wave oscillates between min and max values.",
                           f"Range: [{fmt(d - amplitude)}, {fmt(d + amplitude)}]"))
        steps.append(_step("Find the midline", "The midline is the horizontal line y = d.",
                           f"Midline: y = {fmt(d)}"))
    return f"{name} Wave Solution", steps


SOLUTION_GENERATORS = {
    EquationType.LINEAR: linear_solution,
    EquationType.QUADRATIC: quadratic_solution,
    EquationType.CUBIC: cubic_solution,
    EquationType.CIRCLE: circle_solution,
    EquationType.ELLIPSE: ellipse_solution,
    EquationType.HYPERBOLA: hyperbola_solution,
    EquationType.EXPONENTIAL: exponential_solution,
    EquationType.LOGARITHMIC: logarithmic_solution,
    EquationType.SINE: lambda **p: trig_solution("sin", **p),
    EquationType.COSINE: lambda **p: trig_solution("cos", **p),
    EquationType.TANGENT: lambda **p: trig_solution("tan", **p),
}


def generate_solution(equation_type, parameters, equation=""):
    """Title and ordered steps explaining ``equation``. Never raises."""
    generator = SOLUTION_GENERATORS.get(EquationType(equation_type))
    if generator is None:
        return {
            "title": "Equation Analysis",
            "steps": [_step("Equation recognized", "This equation type requires manual analysis.", equation)],
        }
    try:
        title, steps = generator(**parameter_map(parameters))
    except (ZeroDivisionError, ValueError, TypeError) as e:
        logger.info("Solution generation failed for %r: %s", equation, e)
        return {
            "title": "Solution Error",
            "steps": [_step("Unable to generate solution", str(e) or "An error occurred.", equation)],
        }
    return {"title": title, "steps": steps}
