from __future__ import annotations

import pytest
from sqlalchemy import text

from region_picker.api_server import create_app
from region_picker.services.shape_service import ShapeService


@pytest.fixture
def client(shape_repository):
    app = create_app(ShapeService(shape_repository))
    app.config["TESTING"] = True
    return app.test_client()


def _rows(n):
    return [
        {"file_name": "photo.jpg", "x": i, "y": 2 * i, "R": 255, "G": 0, "B": i, "T": "2024-03-04 05:06:07"}
        for i in range(n)
    ]


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.get_json()["status"] == "healthy"


def test_empty_rows(client):
    response = client.post("/api/save-shape", json={"rows": []})
    assert response.status_code == 200
    assert response.get_json() == {"success": False, "error": "Empty rows"}


@pytest.mark.parametrize("body", [b"", b"not json", b"{}", b'{"rows": null}'])
def test_missing_rows(client, body):
    response = client.post("/api/save-shape", data=body, content_type="application/json")
    assert response.status_code == 200
    assert response.get_json() == {"success": False, "error": "No rows provided"}


def test_three_rows_are_stored(client, shape_repository):
    response = client.post("/api/save-shape", json={"rows": _rows(3)})

    assert response.get_json() == {"success": True, "inserted": 3}
    assert response.mimetype == "application/json"
    stored = shape_repository.fetch_rows()
    assert len(stored) == 3
    assert [(r.x, r.y, r.R, r.G, r.B) for r in stored] == [(0, 0, 255, 0, 0), (1, 2, 255, 0, 1), (2, 4, 255, 0, 2)]
    assert {r.file_name for r in stored} == {"photo.jpg"}


def test_second_row_failure_rolls_back(client, shape_repository):
    with shape_repository.engine.begin() as conn:
        conn.execute(text(
            "CREATE TRIGGER reject_second BEFORE INSERT ON shape_data WHEN NEW.x = 1 "
            "BEGIN SELECT RAISE(ABORT, 'no room'); END;"
        ))

    response = client.post("/api/save-shape", json={"rows": _rows(3)})
    body = response.get_json()

    assert response.status_code == 200
    assert body["success"] is False
    assert body["error"].startswith("Insert failed: ")
    assert shape_repository.count_rows() == 0


def test_rows_are_normalised_server_side(client, shape_repository):
    response = client.post("/api/save-shape", json={"rows": [{"file_name": "é" * 300, "R": 400, "G": "-9"}]})

    assert response.get_json() == {"success": True, "inserted": 1}
    row = shape_repository.fetch_rows()[0]
    assert row.file_name == "é" * 255
    assert (row.x, row.y, row.R, row.G, row.B) == (0, 0, 255, 0, 0)
    assert len(row.T) == 19
