import pytest

from app import app


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


def test_health(client):
    res = client.get("/")
    assert res.status_code == 200
    assert "online" in res.get_json()["status"]


def test_validate_reports_problems(client):
    data = client.post("/validate", json={"expression": "Sin(x)"}).get_json()
    assert data["valid"] is False
    assert data["corrected"] == "sin(x)"
    assert client.post("/validate", json={"expression": "x^2"}).get_json()["valid"] is True


def test_classify(client):
    data = client.post("/classify", json={"expression": "x^2+y^2=25"}).get_json()
    assert data["type"] == "circle"
    assert data["variables"] == ["x", "y"]
    assert data["description"]["name"] == "Circle"


def test_missing_expression_is_400(client):
    res = client.post("/classify", json={})
    assert res.status_code == 400
    assert "expression" in res.get_json()["error"]


def test_parse_error_is_400(client):
    res = client.post("/graph", json={"expression": "x^2+"})
    assert res.status_code == 400
    assert "Parse error" in res.get_json()["error"]


def test_parameters(client):
    data = client.post("/parameters", json={"expression": "2*x+1"}).get_json()
    assert data["type"] == "linear"
    values = {p["name"]: p["value"] for p in data["parameters"]}
    assert values == pytest.approx({"m": 2, "b": 1})


def test_parameters_keep_negative_intercept(client):
    data = client.post("/parameters", json={"expression": "y=2*x-3"}).get_json()
    values = {p["name"]: p["value"] for p in data["parameters"]}
    assert values == pytest.approx({"m": 2, "b": -3})
    props = client.post("/properties", json={"expression": "y=2*x-3"}).get_json()["properties"]
    assert props["yIntercept"] == "-3.00"
    assert props["xIntercept"] == "1.50"


def test_graph_curve(client):
    data = client.post("/graph", json={"expression": "x^2", "x_range": {"min": -1, "max": 1}, "n": 4}).get_json()
    assert data["type"] == "quadratic"
    assert data["kind"] == "curve"
    assert data["data"]["x"] == [-1.0, -0.5, 0.0, 0.5, 1.0]


def test_graph_circle_respects_parameter_override(client):
    data = client.post("/graph", json={"expression": "x^2+y^2=25", "parameters": {"r": 2}, "n": 4}).get_json()
    assert data["kind"] == "curve"
    assert data["data"]["x"][0] == pytest.approx(2)
    assert [p["value"] for p in data["parameters"]] == [2]


def test_graph_surface(client):
    data = client.post("/graph", json={"expression": "sqrt(1-x^2-y^2)", "resolution": 4,
                                       "x_range": {"min": 0, "max": 2}, "y_range": {"min": 0, "max": 2}}).get_json()
    assert data["kind"] == "surface"
    assert data["data"]["z"][0][0] == pytest.approx(1)
    assert data["data"]["z"][-1][-1] is None


def test_graph_with_plot_id(client):
    data = client.post("/graph", json={"expression": "sin(x)", "plot_id": "main", "n": 10}).get_json()
    assert data["stale"] is False
    assert data["plot_id"] == "main"
    assert len(data["data"]["x"]) == 11


def test_graph_adaptive_point_count(client):
    data = client.post("/graph", json={"expression": "x", "container_width": 100}).get_json()
    assert len(data["data"]["x"]) == 501


def test_graph_rejects_bad_range(client):
    res = client.post("/graph", json={"expression": "x", "x_range": {"min": 2, "max": 1}})
    assert res.status_code == 400


def test_derivative(client):
    data = client.post("/derivative", json={"expression": "x^2", "x_range": {"min": 0, "max": 1}, "n": 2}).get_json()
    assert data["y"] == pytest.approx([0, 1, 2], abs=1e-6)


def test_integral(client):
    data = client.post("/integral", json={"expression": "x^2", "x_range": {"min": 0, "max": 3}}).get_json()
    assert data["reference_area"] == pytest.approx(9)
    assert data["area"] == pytest.approx(9, abs=0.1)
    assert data["x"][-1] == 0 and data["x"][-2] == 3


def test_integral_rejects_zero_resolution(client):
    res = client.post("/integral", json={"expression": "x", "resolution": 0})
    assert res.status_code == 400
    assert "resolution" in res.get_json()["error"]


def test_roots(client):
    data = client.post("/roots", json={"expression": "x^2-4"}).get_json()
    assert [r["x"] for r in data["roots"]] == [-2.0, 2.0]


def test_roots_require_explicit_function(client):
    res = client.post("/roots", json={"expression": "x^2+y^2=25"})
    assert res.status_code == 400


def test_tangent(client):
    data = client.post("/tangent", json={"expression": "x^2", "x0": 1}).get_json()
    assert data["slope"] == 2.0
    assert data["y0"] == 1.0


def test_tangent_requires_point(client):
    assert client.post("/tangent", json={"expression": "x^2"}).status_code == 400


def test_tangent_undefined(client):
    res = client.post("/tangent", json={"expression": "log(x)", "x0": -1})
    assert res.status_code == 400


def test_properties(client):
    data = client.post("/properties", json={"expression": "x^2-4"}).get_json()
    assert data["type"] == "quadratic"
    assert data["properties"]["roots"] == "x = 2.00, x = -2.00"


def test_solution(client):
    data = client.post("/solution", json={"expression": "sin(x)"}).get_json()
    assert data["type"] == "sine"
    assert data["title"] == "Sine Wave Solution"


def test_forced_type(client):
    data = client.post("/properties", json={"expression": "x", "type": "circle"}).get_json()
    assert data["type"] == "circle"
    assert data["properties"]["radius"] == "5.00"


def test_presets(client):
    presets = client.get("/presets").get_json()["presets"]
    assert any(p["equation"] == "sin(x)" for p in presets)
    conics = client.get("/presets?category=Conic").get_json()["presets"]
    assert conics and all(p["category"] == "Conic" for p in conics)
