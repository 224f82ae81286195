# Equation visualizer backend: parse, classify and sample user equations for plotting.
# SymPy for parsing; NumPy / SciPy / numdifftools for the numeric side.
#   • /graph samples any supported type (curves, conics, 3D surfaces)
#   • /derivative, /integral, /roots, /tangent work on y = f(x)
#   • /properties and /solution explain the classified equation

import logging
import time

from flask import Flask, request, jsonify
from flask_cors import CORS

from equation_classifier import (
    EQUATION_DESCRIPTIONS,
    PRESET_EQUATIONS,
    EquationType,
    build_scope,
    classify,
    extract_parameters,
)
from equation_parser import parse_equation, validate_equation
from graph_sampler import (
    Range,
    adaptive_point_count,
    default_x_range,
    find_roots,
    generate_graph_data,
    reference_area,
    refine_roots,
    sample_derivative,
    sample_integral_shape,
    sample_kind,
    tangent_line,
)
from plot_scheduler import PlotScheduler
from properties import calculate_properties
from settings import load_settings
from solution_steps import generate_solution

settings = load_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)

scheduler = PlotScheduler(max_workers=settings.max_workers, timeout=settings.request_timeout)

CONIC_TYPES = (EquationType.CIRCLE, EquationType.ELLIPSE, EquationType.HYPERBOLA)
INTEGRAL_RANGE = Range(0, 2)
ROOT_RANGE = Range(-20, 20)
ROOT_RESOLUTION = 500
DERIVATIVE_POINTS = 500

# ---------------------- Precision helpers ----------------------
def _maybe_round(x, round_final=True):
    """Return 3-decimal value only if round_final=True; else full precision float."""
    if x is None:
        return None
    xf = float(x)
    return float(f"{xf:.3f}") if round_final else xf

def _bool(data, key, default=True):
    v = data.get(key, default)
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "y", "t")
    return bool(v)

def _deadline():
    return time.monotonic() + settings.request_timeout

# ---------------------- Request helpers ----------------------
def _body():
    return request.get_json(silent=True) or {}

def _equation(d):
    """Parse the request's 'expression'; raises ValueError with a user-facing message."""
    expression = d.get("expression")
    if not expression:
        raise ValueError("Invalid request. Please provide an 'expression'.")
    if len(expression) > settings.max_input_length:
        raise ValueError(f"Equation too long (max {settings.max_input_length} characters)")
    result = parse_equation(expression)
    if not result.success:
        raise ValueError(result.error)
    return result.data

def _equation_type(d, parsed):
    forced = d.get("type")
    if forced:
        return EquationType(forced)
    return classify(parsed.processed, parsed.variables)

def _parameters(d, parsed, equation_type):
    """Extracted parameters with the request's {name: value} overrides applied.

    Returns the Parameter list (for sliders) and the value mapping used for
    evaluation; overrides for names the extractor does not know (h, k, c, d
    ...) are kept in the mapping.
    """
    params = extract_parameters(parsed.processed, equation_type)
    values = {p.name: p.value for p in params}
    overrides = d.get("parameters") or {}
    for name, value in overrides.items():
        values[name] = float(value)
    for p in params:
        p.value = values[p.name]
    return params, values

def _explicit_only(parsed):
    if {"y", "z"} & parsed.variables:
        raise ValueError("This operation needs an explicit function of x (y = f(x))")

def _range(d, key, default):
    return Range.from_dict(d.get(key), default)

# ---------------------- Health Check ----------------------
@app.route('/', methods=['GET'])
def health_check():
    return jsonify({"status": "Equation visualizer is online and ready!"})

# ---------------------- Validate / Classify / Parameters ----------------------
@app.route('/validate', methods=['POST'])
def validate():
    d = _body()
    result = validate_equation(d.get("expression") or "", settings.max_input_length)
    return jsonify(result.to_dict())

@app.route('/classify', methods=['POST'])
def classify_endpoint():
    d = _body()
    try:
        parsed = _equation(d)
        equation_type = classify(parsed.processed, parsed.variables)
        return jsonify({
            "type": equation_type.value,
            "processed": parsed.processed,
            "variables": sorted(parsed.variables),
            "description": EQUATION_DESCRIPTIONS.get(equation_type),
        })
    except Exception as e:
        return jsonify({"error": f"Classification failed: {e}"}), 400

@app.route('/parameters', methods=['POST'])
def parameters_endpoint():
    d = _body()
    try:
        parsed = _equation(d)
        equation_type = _equation_type(d, parsed)
        params = extract_parameters(parsed.processed, equation_type)
        return jsonify({"type": equation_type.value, "parameters": [p.to_dict() for p in params]})
    except Exception as e:
        return jsonify({"error": f"Parameter extraction failed: {e}"}), 400

# ---------------------- Graph (type dispatch) ----------------------
@app.route('/graph', methods=['POST'])
def graph():
    d = _body()
    try:
        parsed = _equation(d)
        equation_type = _equation_type(d, parsed)
        params, values = _parameters(d, parsed, equation_type)

        n = d.get("n")
        if n is None and d.get("container_width") is not None:
            n = adaptive_point_count(float(d["container_width"]))
        if n is None:
            n = settings.conic_points if equation_type in CONIC_TYPES else settings.curve_points
        resolution = int(d.get("resolution", settings.surface_resolution))

        job_args = (parsed.compiled, equation_type, values)
        job_kwargs = dict(
            x_range=_range(d, "x_range", None),
            y_range=_range(d, "y_range", None),
            n=int(n),
            resolution=resolution,
            tolerance=settings.complex_tolerance,
        )

        plot_id = d.get("plot_id")
        if plot_id:
            result = scheduler.request(str(plot_id), generate_graph_data, *job_args, **job_kwargs)
            if result.stale:
                return jsonify({"plot_id": result.plot_id, "generation": result.generation, "stale": True})
            if result.error:
                return jsonify({"error": f"Graph failed: {result.error}"}), 400
            sample = result.data
        else:
            sample = generate_graph_data(*job_args, deadline=_deadline(), **job_kwargs)

        response = {
            "type": equation_type.value,
            "kind": sample_kind(sample),
            "data": sample.to_dict(),
            "parameters": [p.to_dict() for p in params],
        }
        if plot_id:
            response.update({"plot_id": result.plot_id, "generation": result.generation, "stale": False})
        return jsonify(response)
    except Exception as e:
        return jsonify({"error": f"Graph failed: {e}"}), 400

# ---------------------- Calculus on y = f(x) ----------------------
@app.route('/derivative', methods=['POST'])
def derivative():
    d = _body()
    try:
        parsed = _equation(d)
        _explicit_only(parsed)
        equation_type = _equation_type(d, parsed)
        _, values = _parameters(d, parsed, equation_type)
        curve = sample_derivative(
            parsed.compiled, build_scope(values),
            x_range=_range(d, "x_range", default_x_range(equation_type)),
            n=int(d.get("n", DERIVATIVE_POINTS)),
            h=settings.derivative_step,
            deadline=_deadline(),
        )
        return jsonify(curve.to_dict())
    except Exception as e:
        return jsonify({"error": f"Derivative failed: {e}"}), 400

@app.route('/integral', methods=['POST'])
def integral():
    d = _body()
    round_final = _bool(d, "round_final", True)
    try:
        parsed = _equation(d)
        _explicit_only(parsed)
        equation_type = _equation_type(d, parsed)
        _, values = _parameters(d, parsed, equation_type)
        scope = build_scope(values)
        x_range = _range(d, "x_range", INTEGRAL_RANGE)
        shape = sample_integral_shape(
            parsed.compiled, scope, x_range,
            resolution=int(d.get("resolution", 200)),
            deadline=_deadline(),
        )
        out = shape.to_dict()
        out["area"] = _maybe_round(shape.area, round_final)
        if _bool(d, "reference", True):
            out["reference_area"] = _maybe_round(reference_area(parsed.compiled, scope, x_range), round_final)
        return jsonify(out)
    except Exception as e:
        return jsonify({"error": f"Integral failed: {e}"}), 400

@app.route('/roots', methods=['POST'])
def roots():
    d = _body()
    round_final = _bool(d, "round_final", True)
    try:
        parsed = _equation(d)
        _explicit_only(parsed)
        equation_type = _equation_type(d, parsed)
        _, values = _parameters(d, parsed, equation_type)
        scope = build_scope(values)
        x_range = _range(d, "x_range", ROOT_RANGE)
        resolution = int(d.get("resolution", ROOT_RESOLUTION))
        found = find_roots(
            parsed.compiled, scope, x_range, resolution,
            jump_guard=settings.root_jump_guard,
            deadline=_deadline(),
        )
        if _bool(d, "refine", True):
            found = refine_roots(parsed.compiled, scope, found, x_range, resolution)
        return jsonify({"roots": [{"x": _maybe_round(r.x, round_final), "y": r.y} for r in found.roots]})
    except Exception as e:
        return jsonify({"error": f"Root-finding failed: {e}"}), 400

@app.route('/tangent', methods=['POST'])
def tangent():
    d = _body()
    round_final = _bool(d, "round_final", True)
    x0 = d.get("x0")
    if x0 is None:
        return jsonify({"error": "Provide 'expression' and 'x0'."}), 400
    try:
        parsed = _equation(d)
        _explicit_only(parsed)
        equation_type = _equation_type(d, parsed)
        _, values = _parameters(d, parsed, equation_type)
        line = tangent_line(
            parsed.compiled, build_scope(values), float(x0),
            x_range=_range(d, "x_range", default_x_range(equation_type)),
        )
        if line is None:
            return jsonify({"error": f"Tangent is undefined at x = {x0}"}), 400
        out = line.to_dict()
        out["slope"] = _maybe_round(line.slope, round_final)
        out["y0"] = _maybe_round(line.y0, round_final)
        return jsonify(out)
    except Exception as e:
        return jsonify({"error": f"Tangent failed: {e}"}), 400

# ---------------------- Properties & Solution ----------------------
@app.route('/properties', methods=['POST'])
def properties():
    d = _body()
    try:
        parsed = _equation(d)
        equation_type = _equation_type(d, parsed)
        _, values = _parameters(d, parsed, equation_type)
        return jsonify({"type": equation_type.value, "properties": calculate_properties(equation_type, values)})
    except Exception as e:
        return jsonify({"error": f"Properties failed: {e}"}), 400

@app.route('/solution', methods=['POST'])
def solution():
    d = _body()
    try:
        parsed = _equation(d)
        equation_type = _equation_type(d, parsed)
        _, values = _parameters(d, parsed, equation_type)
        out = generate_solution(equation_type, values, parsed.original)
        out["type"] = equation_type.value
        return jsonify(out)
    except Exception as e:
        return jsonify({"error": f"Solution failed: {e}"}), 400

# ---------------------- Presets ----------------------
@app.route('/presets', methods=['GET'])
def presets():
    category = request.args.get("category")
    items = [
        {"type": t.value, "equation": equation, "label": label, "category": cat}
        for t, equation, label, cat in PRESET_EQUATIONS
        if not category or cat == category
    ]
    return jsonify({"presets": items})


# ---------------------- Run ----------------------
if __name__ == '__main__':
    # Behind Gunicorn this block is ignored.
    app.run(host='0.0.0.0', port=5000)
