import math

import pytest

from equation_parser import (
    is_assignment,
    normalize,
    parse_equation,
    sanitize_input,
    validate_equation,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("sin^2(x)", "(sin(x))^2"),
        ("e^x", "exp(x)"),
        ("e^(2*x)", "exp(2*x)"),
        ("2*e^-x", "2*exp(-x)"),
        ("e^-x^2", "exp(-x^2)"),
        ("e^x^2", "exp(x^2)"),
        ("e^2^x+1", "exp(2^x)+1"),
        ("ln(x)", "log(x)"),
        ("X ^ 2", "x^2"),
        ("x\u00a0+\u200b1", "x+1"),
        ("x^2+y^2=25", "x^2+y^2==25"),
        ("y=2*x+1", "y=2*x+1"),
        ("f(x)=x^2", "f(x)=x^2"),
    ],
)
def test_normalize_rewrites_calculator_syntax(raw, expected):
    assert normalize(raw) == expected


def test_sanitize_strips_script_tags():
    assert sanitize_input("<script>x</script>") == "x"
    assert sanitize_input(None) == ""


def test_is_assignment():
    assert is_assignment("y=x")
    assert is_assignment("f(x)=x^2")
    assert not is_assignment("x^2+y^2=25")


# ---------------------- validation ----------------------

def test_validate_accepts_well_formed_input():
    result = validate_equation("x^2+2*x")
    assert result.valid
    assert result.error is None


def test_validate_rejects_empty():
    result = validate_equation("   ")
    assert not result.valid
    assert result.error == "Please enter an equation"


def test_validate_rejects_uppercase_with_correction():
    result = validate_equation("Sin(X)")
    assert not result.valid
    assert "S, X" in result.error
    assert result.corrected == "sin(x)"


def test_validate_rejects_whitespace_with_correction():
    result = validate_equation("x + 1")
    assert not result.valid
    assert "2 space" in result.error
    assert result.corrected == "x+1"


def test_validate_rejects_unsafe_characters():
    assert not validate_equation("x$2").valid


def test_validate_requires_a_variable():
    result = validate_equation("2+3")
    assert not result.valid
    assert "x, y, or z" in result.error


def test_validate_length_limit():
    assert not validate_equation("x" * 201).valid
    assert validate_equation("x" * 20, max_length=20).valid


# ---------------------- parse / compile ----------------------

def test_parse_failure_is_structured():
    result = parse_equation("x^2+")
    assert not result.success
    assert result.data is None
    assert result.error.startswith("Parse error")


def test_equality_compiles_to_residual():
    result = parse_equation("x^2+y^2=25")
    assert result.success
    assert result.data.variables == {"x", "y"}
    assert result.data.compiled.evaluate({"x": 3.0, "y": 4.0}) == pytest.approx(0.0)
    assert result.data.compiled.evaluate({"x": 0.0, "y": 0.0}) == pytest.approx(-25.0)


def test_assignment_target_is_not_a_variable():
    parsed = parse_equation("y=2*x+1").data
    assert parsed.assigned == "y"
    assert parsed.variables == {"x"}
    assert parsed.compiled.evaluate({"x": 2.0}) == pytest.approx(5.0)


def test_function_definition():
    parsed = parse_equation("f(x)=x^2").data
    assert parsed.assigned == "f"
    assert parsed.variables == {"x"}


def test_implicit_multiplication():
    parsed = parse_equation("2x").data
    assert parsed.compiled.evaluate({"x": 3.0}) == pytest.approx(6.0)


def test_constants_are_not_variables():
    parsed = parse_equation("e^x+pi").data
    assert parsed.variables == {"x"}
    assert parsed.compiled.evaluate({"x": 0.0}) == pytest.approx(1 + 3.141592653589793)


def test_missing_scope_name_raises():
    compiled = parse_equation("x+y").data.compiled
    with pytest.raises(KeyError):
        compiled.evaluate({"x": 1.0})


def test_exponent_power_chain_stays_inside_exp():
    compiled = parse_equation("e^-x^2").data.compiled
    values = [float(compiled.evaluate({"x": x})) for x in (1.0, 2.0)]
    assert values == pytest.approx([math.exp(-1), math.exp(-4)])
