"""
Input normalization and the SymPy-backed expression engine.

Raw text typed by the user goes through ``normalize`` (calculator shorthand
to engine syntax), then ``parse_equation`` builds a SymPy tree plus a
compiled evaluator. Nothing here raises past ``parse_equation``: failures
come back as ``ParseResult(success=False, error=...)``.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

import numpy as np
import sympy as sp
from sympy import Abs, Eq, Symbol, lambdify
from sympy.parsing.sympy_parser import (
    implicit_multiplication_application,
    parse_expr,
    standard_transformations,
)

logger = logging.getLogger(__name__)

TRANSFORMS = standard_transformations + (implicit_multiplication_application,)

# Names the engine binds to constants/functions rather than free symbols
ENGINE_LOCALS = {
    "e": sp.E,
    "pi": sp.pi,
    "exp": sp.exp,
    "log": sp.log,
    "ln": sp.log,
    "log10": lambda arg: sp.log(arg, 10),
    "abs": Abs,
    "Abs": Abs,
    "sqrt": sp.sqrt,
}
RESERVED_CONSTANTS = ("e", "pi")

WHITESPACE_RE = re.compile(r"[\s\u00a0\u200b\u2000-\u200f\u2028-\u202f\u205f\u3000\ufeff]")
SAFE_CHARS_RE = re.compile(r"^[a-z0-9+\-*/^().,=]+$")
TRIG_POWER_RE = re.compile(r"\b(sin|cos|tan|sec|csc|cot|asin|acos|atan)\^(\d+)\((.*?)\)")
E_POWER_PAREN_RE = re.compile(r"(?<![a-z])e\^\(")
E_POWER_ATOM_RE = re.compile(r"(?<![a-z])e\^(-?[\w.]+(?:\^-?[\w.]+)*)")
ASSIGNMENT_RE = re.compile(r"^([a-z]\w*)=(?!=)")
FUNCTION_DEF_RE = re.compile(r"^([a-z]\w*)\([a-z,]+\)=(?!=)")
BARE_EQUALS_RE = re.compile(r"(?<![=<>!])=(?!=)")


# ---------------------- Normalizer ----------------------
def sanitize_input(raw):
    """Lower-case, drop every whitespace character and script tags."""
    if not raw:
        return ""
    text = WHITESPACE_RE.sub("", raw.lower())
    return text.replace("<script>", "").replace("</script>", "")


def is_assignment(text):
    return bool(ASSIGNMENT_RE.match(text) or FUNCTION_DEF_RE.match(text))


def normalize(raw: str) -> str:
    """Rewrite calculator-friendly input into engine syntax.

    ``sin^2(x)`` -> ``(sin(x))^2``, ``e^x`` -> ``exp(x)``, ``ln(`` -> ``log(``.
    A bare ``=`` that is not a simple assignment becomes ``==`` so that
    implicit forms such as ``x^2+y^2=25`` evaluate as one residual.
    """
    text = sanitize_input(raw)
    text = TRIG_POWER_RE.sub(r"(\1(\3))^\2", text)
    text = E_POWER_PAREN_RE.sub("exp(", text)
    text = E_POWER_ATOM_RE.sub(r"exp(\1)", text)
    text = text.replace("ln(", "log(")
    if "=" in text and not is_assignment(text):
        text = BARE_EQUALS_RE.sub("==", text)
    return text


# ---------------------- Validation ----------------------
@dataclass
class ValidationResult:
    valid: bool
    error: Optional[str] = None
    suggestion: Optional[str] = None
    corrected: Optional[str] = None

    def to_dict(self):
        return {
            "valid": self.valid,
            "error": self.error,
            "suggestion": self.suggestion,
            "corrected": self.corrected,
        }


def validate_equation(raw, max_length=200):
    """Strict, advisory check of what the user typed (normalize auto-corrects anyway)."""
    if not raw or not raw.strip():
        return ValidationResult(False, "Please enter an equation")

    if len(raw) > max_length:
        return ValidationResult(False, f"Equation too long (max {max_length} characters)")

    upper = sorted(set(re.findall(r"[A-Z]", raw)))
    if upper:
        return ValidationResult(
            False,
            f"Uppercase letters not allowed. Found: {', '.join(upper)}",
            "Use lowercase only (e.g., sin(x), cos(x), log(x))",
            raw.lower(),
        )

    spaces = WHITESPACE_RE.findall(raw)
    if spaces:
        return ValidationResult(
            False,
            f"Whitespace not allowed. Found {len(spaces)} space character(s)",
            "Remove all spaces (e.g., x^2+2*x not x^2 + 2*x)",
            WHITESPACE_RE.sub("", raw),
        )

    if not SAFE_CHARS_RE.match(raw):
        return ValidationResult(
            False, "Invalid characters detected. Use only: a-z, 0-9, +, -, *, /, ^, (, ), ="
        )

    if not re.search(r"[xyz]", raw):
        return ValidationResult(
            False,
            "Equation must contain variable x, y, or z",
            "Add a variable to your equation (e.g., x^2, sin(x), z=x+y)",
        )

    return ValidationResult(True)


# ---------------------- Expression engine ----------------------
class CompiledExpression:
    """A SymPy expression lambdified once and evaluated many times.

    Arguments are looked up by symbol name in the scope passed to
    ``evaluate``; a missing name raises ``KeyError``. Domain errors come back
    as NaN/inf (real inputs) or complex values (``evaluate_complex``), and
    Python-level arithmetic errors such as ``ZeroDivisionError`` propagate.
    """

    def __init__(self, expr, text=""):
        self.expr = expr
        self.text = text
        self.symbols = tuple(sorted(expr.free_symbols, key=lambda s: s.name))
        self.names = tuple(s.name for s in self.symbols)
        self._func = lambdify(self.symbols, expr, modules=["numpy"])

    def evaluate(self, scope):
        args = [scope[name] for name in self.names]
        with np.errstate(all="ignore"):
            return self._func(*args)

    def evaluate_complex(self, scope):
        args = [complex(scope[name]) for name in self.names]
        with np.errstate(all="ignore"):
            return self._func(*args)

    def __repr__(self):
        return f"CompiledExpression({self.expr})"


def _to_engine_syntax(text):
    return text.replace("^", "**")


def _parse_side(text):
    return parse_expr(_to_engine_syntax(text), local_dict=ENGINE_LOCALS, transformations=TRANSFORMS)


def parse(text):
    """Parse normalized text into ``(tree, assigned_name)``.

    ``lhs==rhs`` gives an unevaluated ``Eq``; ``y=...`` / ``f(x)=...`` gives
    the right-hand side and the assigned name.
    """
    if "==" in text:
        sides = text.split("==")
        if len(sides) != 2:
            raise ValueError("Only one '=' is supported")
        return Eq(_parse_side(sides[0]), _parse_side(sides[1]), evaluate=False), None

    match = FUNCTION_DEF_RE.match(text) or ASSIGNMENT_RE.match(text)
    if match:
        rhs = text[match.end():]
        return _parse_side(rhs), match.group(1)

    return _parse_side(text), None


def compile_tree(tree, text=""):
    """Compile a tree; an equality compiles to its residual ``lhs - rhs``."""
    expr = tree.lhs - tree.rhs if isinstance(tree, Eq) else tree
    if not isinstance(expr, sp.Expr):
        raise ValueError("Expression does not evaluate to a number")
    return CompiledExpression(expr, text)


def compile_expression(text):
    tree, _ = parse(text)
    return compile_tree(tree, text)


def extract_variables(tree, exclude=()):
    """Names of the free symbols in ``tree``, minus e, pi and ``exclude``."""
    names = {s.name for s in tree.free_symbols if isinstance(s, Symbol)}
    return names - set(RESERVED_CONSTANTS) - set(exclude)


@dataclass
class ParsedEquation:
    original: str
    processed: str
    tree: object
    compiled: CompiledExpression
    assigned: Optional[str] = None

    @property
    def variables(self):
        exclude = (self.assigned,) if self.assigned else ()
        return extract_variables(self.tree, exclude)


@dataclass
class ParseResult:
    success: bool
    data: Optional[ParsedEquation] = None
    error: Optional[str] = None


def parse_equation(raw):
    """Normalize + parse + compile. Never raises."""
    processed = normalize(raw)
    try:
        tree, assigned = parse(processed)
        compiled = compile_tree(tree, processed)
    except Exception as e:
        logger.debug("Parse failed for %r: %s", raw, e)
        return ParseResult(False, None, f"Parse error: {e}")
    return ParseResult(True, ParsedEquation(raw, processed, tree, compiled, assigned), None)
