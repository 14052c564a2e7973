"""
Тесты выбора первого непустого поля.
"""

import pytest

from mathocr.services.lookup import (
    JOB_ID_FIELDS,
    RESULT_FIELDS,
    find_error,
    find_job_id,
    find_result,
    first_present,
)


def test_precedence_tables():
    assert JOB_ID_FIELDS == ("job_id", "id", "pdf_id")
    assert RESULT_FIELDS == ("data.value", "markdown", "html", "text")


@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"a": 1, "b": 2}, 1),
        ({"a": None, "b": 2}, 2),
        ({"a": "", "b": 2}, 2),
        ({"b": 0}, 0),
        ({}, None),
    ],
)
def test_first_present_skips_missing_and_empty(payload, expected):
    assert first_present(payload, ("a", "b")) == expected


def test_nested_paths():
    assert first_present({"data": {"value": "v"}}, ("data.value",)) == "v"
    assert first_present({"data": "flat"}, ("data.value",)) is None
    assert first_present({"data": None}, ("data.value",)) is None


def test_non_dict_payload_finds_nothing():
    assert first_present("plain text", JOB_ID_FIELDS) is None
    assert first_present(None, JOB_ID_FIELDS) is None
    assert first_present([{"job_id": "x"}], JOB_ID_FIELDS) is None


def test_find_job_id_stringifies_numbers():
    assert find_job_id({"id": 42}) == "42"
    assert find_job_id({"success": True}) is None


def test_find_result_and_error():
    assert find_result({"html": "<b>x</b>", "text": "x"}) == "<b>x</b>"
    assert find_error({"detail": {"message": "bad"}, "error": "code"}) == "bad"
    assert find_error({"error": "OCR timeout"}) == "OCR timeout"
    assert find_error({}) is None
