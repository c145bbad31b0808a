from __future__ import annotations

import re

import pytest
from sqlalchemy import text

from region_picker.exceptions import InsertError, ValidationError
from region_picker.models.geometry import Rectangle
from region_picker.models.shape_row import ShapeRow
from region_picker.services.region_service import RegionService
from region_picker.services.shape_service import ShapeService, clamp_channel, to_int

TIMESTAMP = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")


def _row(x, **overrides):
    row = {"file_name": "img.png", "x": x, "y": 1, "R": 10, "G": 20, "B": 30, "T": "2024-01-02 03:04:05"}
    row.update(overrides)
    return row


def _fail_on_x(repository, x):
    with repository.engine.begin() as conn:
        conn.execute(text(
            f"CREATE TRIGGER reject_x BEFORE INSERT ON shape_data WHEN NEW.x = {x} "
            "BEGIN SELECT RAISE(ABORT, 'rejected pixel'); END;"
        ))


@pytest.mark.parametrize(
    "value, expected",
    [(7, 7), (7.9, 7), (-3.2, -3), ("42px", 42), (" -5", -5), ("abc", 0), (True, 1),
     (float("nan"), 0), (None, 0), ([1], 0),
     ("99999999999999999999", 2 ** 63 - 1), ("-99999999999999999999", -(2 ** 63)),
     (10 ** 30, 2 ** 63 - 1), (-1e30, -(2 ** 63))],
)
def test_to_int(value, expected):
    assert to_int(value) == expected


def test_clamp_channel():
    assert clamp_channel(-20) == 0
    assert clamp_channel(300) == 255
    assert clamp_channel("128") == 128


def test_normalize_row_defaults():
    row = ShapeService.normalize_row({"x": None})
    assert (row.file_name, row.x, row.y, row.R, row.G, row.B) == ("", 0, 0, 0, 0, 0)
    assert TIMESTAMP.match(row.T)


def test_normalize_row_truncates_and_clamps():
    row = ShapeService.normalize_row(
        {"file_name": "a" * 300, "x": "12", "y": 3.7, "R": 999, "G": -1, "B": "77", "T": "2020-05-05 10:00:00"}
    )
    assert len(row.file_name) == 255
    assert (row.x, row.y, row.R, row.G, row.B) == (12, 3, 255, 0, 77)
    assert row.T == "2020-05-05 10:00:00"


def test_non_dict_row_gets_all_defaults():
    row = ShapeService.normalize_row(17)
    assert (row.file_name, row.x, row.R) == ("", 0, 0)


@pytest.mark.parametrize(
    "data, message",
    [
        (None, "No rows provided"),
        ({}, "No rows provided"),
        ({"rows": None}, "No rows provided"),
        ([1, 2], "No rows provided"),
        ({"rows": []}, "Empty rows"),
        ({"rows": {"x": 1}}, "Empty rows"),
        ({"rows": "x"}, "Empty rows"),
    ],
)
def test_parse_rows_validation(shape_repository, data, message):
    with pytest.raises(ValidationError) as excinfo:
        ShapeService(shape_repository).parse_rows(data)
    assert excinfo.value.message == message


def test_save_three_rows(shape_repository):
    service = ShapeService(shape_repository)
    result = service.save_payload({"rows": [_row(0), _row(1), _row(2)]})

    assert result == {"success": True, "inserted": 3}
    stored = shape_repository.fetch_rows()
    assert [r.x for r in stored] == [0, 1, 2]
    assert stored[0] == ShapeRow("img.png", 0, 1, 10, 20, 30, "2024-01-02 03:04:05")


def test_failed_row_rolls_back_whole_batch(shape_repository):
    _fail_on_x(shape_repository, 1)
    service = ShapeService(shape_repository)

    result = service.save_payload({"rows": [_row(0), _row(1), _row(2)]})

    assert result["success"] is False
    assert result["error"].startswith("Insert failed: ")
    assert "rejected pixel" in result["error"]
    assert shape_repository.count_rows() == 0


def test_insert_error_reports_failing_row(shape_repository):
    _fail_on_x(shape_repository, 1)
    rows = [ShapeService.normalize_row(_row(x)) for x in range(3)]
    with pytest.raises(InsertError) as excinfo:
        shape_repository.insert_rows(rows)
    assert excinfo.value.row_index == 1


def test_oversized_coordinate_is_saturated_and_stored(shape_repository):
    service = ShapeService(shape_repository)
    result = service.save_payload({"rows": [_row(1), _row("99999999999999999999"), _row(2)]})

    assert result == {"success": True, "inserted": 3}
    assert [r.x for r in shape_repository.fetch_rows()] == [1, 2 ** 63 - 1, 2]


def test_driver_error_on_a_row_is_an_insert_failure(shape_repository):
    rows = [ShapeService.normalize_row(_row(0)), ShapeRow("img.png", 2 ** 70, 1, 0, 0, 0, "2024-01-02 03:04:05")]
    with pytest.raises(InsertError) as excinfo:
        shape_repository.insert_rows(rows)

    assert excinfo.value.row_index == 1
    assert shape_repository.count_rows() == 0


def test_previous_batches_survive_a_rollback(shape_repository):
    service = ShapeService(shape_repository)
    assert service.save_payload({"rows": [_row(5)]})["success"]
    _fail_on_x(shape_repository, 1)
    assert not service.save_payload({"rows": [_row(0), _row(1)]})["success"]
    assert [r.x for r in shape_repository.fetch_rows()] == [5]


def test_unexpected_error_becomes_failure_response(shape_repository, monkeypatch):
    def explode(_rows):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(shape_repository, "insert_rows", explode)
    result = ShapeService(shape_repository).save_payload({"rows": [_row(0)]})
    assert result == {"success": False, "error": "disk on fire"}


def test_build_rows_from_sample(gradient_image):
    sample = RegionService.sample(Rectangle(1, 1, 2, 2), gradient_image)
    rows = ShapeService.build_rows(sample, gradient_image.file_name, timestamp="2024-06-01 12:00:00")

    assert [(r.x, r.y) for r in rows] == [(1, 1), (2, 1), (1, 2), (2, 2)]
    assert rows[0] == ShapeRow("gradient.png", 1, 1, 10, 10, 2, "2024-06-01 12:00:00")
    assert {r.T for r in rows} == {"2024-06-01 12:00:00"}


def test_build_rows_defaults(gradient_image):
    sample = RegionService.sample(Rectangle(0, 0, 0, 0), gradient_image)
    rows = ShapeService.build_rows(sample, "")
    assert rows[0].file_name == "unknown"
    assert TIMESTAMP.match(rows[0].T)
