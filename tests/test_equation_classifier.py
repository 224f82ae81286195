import pytest

from equation_classifier import (
    PARAMETER_SPECS,
    PRESET_EQUATIONS,
    EquationType,
    build_scope,
    classify_expression,
    extract_coefficient,
    extract_parameters,
)
from equation_parser import normalize


def _values(raw, equation_type):
    return {p.name: p.value for p in extract_parameters(normalize(raw), equation_type)}


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        ("sin(x)", EquationType.SINE),
        ("2*sin(3*x)", EquationType.SINE),
        ("cos(x)", EquationType.COSINE),
        ("tan(x)", EquationType.TANGENT),
        ("x^2+y^2-25", EquationType.CIRCLE),
        ("x^2+y^2=25", EquationType.CIRCLE),
        ("x^2/25+y^2/9-1", EquationType.ELLIPSE),
        ("x^2/16-y^2/9-1", EquationType.HYPERBOLA),
        ("2*x+1", EquationType.LINEAR),
        ("y=2*x+1", EquationType.LINEAR),
        ("x^2-4", EquationType.QUADRATIC),
        ("x^3-2*x^2+x-1", EquationType.CUBIC),
        ("e^x", EquationType.EXPONENTIAL),
        ("ln(x)", EquationType.LOGARITHMIC),
        ("log10(x)", EquationType.LOGARITHMIC),
        ("e^-x^2", EquationType.EXPONENTIAL),
        ("sin(x)*cos(y)", EquationType.THREE_D),
        ("x^2+y^2", EquationType.THREE_D),
        ("z=x+y", EquationType.THREE_D),
        ("1", EquationType.UNKNOWN),
    ],
)
def test_classification_table(expression, expected):
    assert classify_expression(expression) == expected


@pytest.mark.parametrize("expression", ["", "???", "x^^2", "sin(", "((x)", "=", "y==x==1"])
def test_classification_is_total(expression):
    assert isinstance(classify_expression(expression), EquationType)


@pytest.mark.parametrize("expression", ["sin(x)", "x^2+y^2-25", "2*x+1", "garbage+"])
def test_classification_is_deterministic(expression):
    assert classify_expression(expression) == classify_expression(expression)


def test_presets_classify_as_labelled():
    for equation_type, equation, _label, _category in PRESET_EQUATIONS:
        assert classify_expression(equation) == equation_type, equation


# ---------------------- parameters ----------------------

def test_linear_point_evaluation_is_exact():
    values = _values("2*x+1", EquationType.LINEAR)
    assert values["m"] == pytest.approx(2, abs=1e-9)
    assert values["b"] == pytest.approx(1, abs=1e-9)


def test_linear_point_evaluation_ignores_textual_form():
    values = _values("2*(x+1)-1", EquationType.LINEAR)
    assert values["m"] == pytest.approx(2, abs=1e-9)
    assert values["b"] == pytest.approx(1, abs=1e-9)


def test_linear_assignment_uses_text_fallback():
    values = _values("y=-3*x+4", EquationType.LINEAR)
    assert values == pytest.approx({"m": -3, "b": 4})


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        ("y=2*x-3", {"m": 2, "b": -3}),
        ("y=-x-0.5", {"m": -1, "b": -0.5}),
        ("y=-12*x+4", {"m": -12, "b": 4}),
        ("y=3-2*x", {"m": -2, "b": 3}),
    ],
)
def test_linear_text_fallback_keeps_signs(expression, expected):
    assert _values(expression, EquationType.LINEAR) == pytest.approx(expected)


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        ("y=x^2-4", {"a": 1, "b": 0, "c": -4}),
        ("y=x^2-x+2", {"a": 1, "b": -1, "c": 2}),
        ("y=2*x^2+x-1", {"a": 2, "b": 1, "c": -1}),
        ("y=-x^2-3*x", {"a": -1, "b": -3, "c": 0}),
    ],
)
def test_quadratic_text_fallback_keeps_signs(expression, expected):
    assert _values(expression, EquationType.QUADRATIC) == pytest.approx(expected)


def test_quadratic_point_evaluation():
    values = _values("2*x^2+3*x-5", EquationType.QUADRATIC)
    assert values == pytest.approx({"a": 2, "b": 3, "c": -5})


def test_quadratic_falls_back_to_text_for_unknown_symbols():
    # k is not in the evaluation scope
    values = _values("3*x^2+k", EquationType.QUADRATIC)
    assert values["a"] == pytest.approx(3)


def test_cubic_leading_coefficient():
    assert _values("-x^3+x", EquationType.CUBIC) == {"a": -1}
    assert _values("4*x^3", EquationType.CUBIC) == {"a": 4}


@pytest.mark.parametrize(("expression", "radius"), [("x^2+y^2=25", 5), ("x^2+y^2-16", 4), ("x^2+y^2", 5)])
def test_circle_radius(expression, radius):
    assert _values(expression, EquationType.CIRCLE)["r"] == pytest.approx(radius)


def test_ellipse_axes():
    assert _values("x^2/25+y^2/9-1", EquationType.ELLIPSE) == pytest.approx({"a": 5, "b": 3})


def test_hyperbola_defaults_when_missing():
    assert _values("x^2-y^2-1", EquationType.HYPERBOLA) == {"a": 3, "b": 2}


def test_trig_amplitude_and_frequency():
    assert _values("2*sin(3*x)", EquationType.SINE) == pytest.approx({"a": 2, "b": 3})
    assert _values("-cos(x)", EquationType.COSINE) == pytest.approx({"a": -1, "b": 1})


def test_exponential_and_log_coefficients():
    assert _values("2*e^x", EquationType.EXPONENTIAL) == {"a": 2}
    assert _values("ln(x)", EquationType.LOGARITHMIC) == {"a": 1}


def test_no_parameters_for_surfaces_and_unknown():
    assert extract_parameters("x+y", EquationType.THREE_D) == []
    assert extract_parameters("1", EquationType.UNKNOWN) == []


@pytest.mark.parametrize("equation_type", list(PARAMETER_SPECS))
def test_parameter_bounds_are_ordered(equation_type):
    for p in extract_parameters("x", equation_type):
        assert p.min < p.max
        assert p.min <= p.default <= p.max
        assert p.step > 0


def test_extract_coefficient_signs():
    assert extract_coefficient("x^2", r"(-?\d*)x", 1) == 1
    assert extract_coefficient("-x^2", r"(-?\d*)x", 1) == -1
    assert extract_coefficient("7x", r"(-?\d*)x", 1) == 7
    assert extract_coefficient("y", r"(-?\d*)x", None) is None
    assert extract_coefficient("-x", r"([+-]\d*)x", 0, implicit=1) == -1
    assert extract_coefficient("+x", r"([+-]\d*)x", 0, implicit=1) == 1
    assert extract_coefficient("y", r"([+-]\d*)x", 0, implicit=1) == 0


def test_build_scope_accepts_mapping_and_parameters():
    params = extract_parameters("2*x+1", EquationType.LINEAR)
    scope = build_scope(params, x=3.0)
    assert scope["m"] == pytest.approx(2)
    assert scope["x"] == 3.0
    assert "pi" in scope and "e" in scope
    assert build_scope({"r": 4})["r"] == 4
