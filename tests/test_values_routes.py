from flask.testing import FlaskClient

BASE = "/chronopick/v1"


def test_formats_resolve_from_props(client: FlaskClient):
    response = client.post(
        f"{BASE}/formats:resolve",
        json={"dateFormat": "YYYY/MM/DD", "divider": " | ", "timeFormat": "12"},
    )

    assert response.status_code == 200
    assert response.get_json() == {"format": "YYYY/MM/DD | hh:mm A"}
    assert "X-Response-Time-Ms" in response.headers


def test_formats_resolve_rejects_unknown_time_format(client: FlaskClient):
    response = client.post(f"{BASE}/formats:resolve", json={"timeFormat": "36"})

    assert response.status_code == 422
    assert "error" in response.get_json()


def test_values_parse(client: FlaskClient):
    response = client.post(f"{BASE}/values:parse", json={"value": "05-03-2024 14:30"})

    assert response.status_code == 200
    data = response.get_json()
    assert data["format"] == "DD-MM-YYYY HH:mm"
    assert data["value"] == {"year": 2024, "month": 2, "day": 5, "hour": 14, "minute": 30}
    assert data["values"] == [data["value"]]


def test_values_parse_failure_is_null(client: FlaskClient):
    response = client.post(
        f"{BASE}/values:parse",
        json={"value": ["nope", "2024-03-05"], "format": "YYYY-MM-DD"},
    )

    assert response.status_code == 200
    data = response.get_json()
    assert data["value"] == {"year": 2024, "month": 2, "day": 5}
    assert len(data["values"]) == 1

    response = client.post(f"{BASE}/values:parse", json={"value": "31-02-2024 10:00"})
    assert response.get_json()["value"] is None


def test_values_parse_uses_locale(client: FlaskClient):
    response = client.post(
        f"{BASE}/values:parse",
        json={"value": "5 März 2024", "format": "D MMMM YYYY", "localization": "de"},
    )

    assert response.get_json()["value"] == {"year": 2024, "month": 2, "day": 5}


def test_values_serialize(client: FlaskClient):
    response = client.post(
        f"{BASE}/values:serialize",
        json={"value": {"year": 2024, "month": 2, "day": 5}, "format": "dddd, MMMM D YYYY"},
    )

    assert response.status_code == 200
    assert response.get_json()["value"] == "Tuesday, March 5 2024"


def test_values_serialize_requires_object(client: FlaskClient):
    assert client.post(f"{BASE}/values:serialize", json={"format": "YYYY"}).status_code == 422
    assert client.post(f"{BASE}/values:serialize", json={"value": "2024"}).status_code == 422


def test_constraints_evaluate(client: FlaskClient):
    february = [f"2024-02-{day:02d}" for day in range(1, 30)]
    response = client.post(
        f"{BASE}/constraints:evaluate",
        json={
            "format": "YYYY-MM-DD",
            "disable": february + ["garbage"],
            "years": [2024],
            "candidate": "2024-02-10",
            "mode": "month",
        },
    )

    assert response.status_code == 200
    data = response.get_json()
    assert len(data["disabled"]) == 29
    assert data["disabled"][0] == {"year": 2024, "month": 1, "day": 1}
    assert data["monthsFullyDisabled"] == [{"year": 2024, "month": 1}]
    assert data["yearsFullyDisabled"] == []
    assert data["selectable"] is False


def test_constraints_evaluate_bounds(client: FlaskClient):
    response = client.post(
        f"{BASE}/constraints:evaluate",
        json={
            "format": "YYYY-MM-DD",
            "minDate": "2024-01-10",
            "maxDate": "2024-01-20",
            "candidate": "2024-01-15",
        },
    )

    assert response.status_code == 200
    assert response.get_json()["selectable"] is True


def test_constraints_evaluate_inverted_bounds(client: FlaskClient):
    response = client.post(
        f"{BASE}/constraints:evaluate",
        json={"format": "YYYY-MM-DD", "minDate": "2024-01-20", "maxDate": "2024-01-10"},
    )

    assert response.status_code == 422
    assert response.get_json()["error"] == "Invalid Configuration"


def test_constraints_evaluate_rejects_bad_input(client: FlaskClient):
    response = client.post(f"{BASE}/constraints:evaluate", json={"years": ["2024"]})
    assert response.status_code == 422

    response = client.post(
        f"{BASE}/constraints:evaluate", json={"candidate": "05-03-2024 10:00", "mode": "week"}
    )
    assert response.status_code == 422


def test_missing_json_body(client: FlaskClient):
    response = client.post(
        f"{BASE}/values:parse", data="not json", content_type="application/json"
    )

    assert response.status_code == 400


def test_unknown_route_returns_json(client: FlaskClient):
    response = client.get(f"{BASE}/nothing-here")

    assert response.status_code == 404
    assert response.get_json()["error"] == "Not Found"
