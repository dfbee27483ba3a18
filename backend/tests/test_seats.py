"""
Tests for seat label parsing and partitioning.
"""

import pytest

from booking_engine.core.exceptions import InvalidSeatSelection, TooManySeats
from booking_engine.domain.seats import SeatSelection
from booking_engine.services.seat_ledger import normalize_request


def test_parse_comma_separated():
    selection = SeatSelection.parse(" A1, A2 ,A3 ")
    assert selection.as_list() == ["A1", "A2", "A3"]


def test_parse_list():
    assert SeatSelection.parse(["B1", " B2 "]).as_list() == ["B1", "B2"]


def test_parse_drops_blanks_and_duplicates_keeping_order():
    selection = SeatSelection.parse("A2,,A1, ,A2,A1,A3")
    assert selection.as_list() == ["A2", "A1", "A3"]


@pytest.mark.parametrize("raw", [None, "", " , ,", []])
def test_parse_empty(raw):
    selection = SeatSelection.parse(raw)
    assert not selection
    assert len(selection) == 0


def test_labels_are_case_sensitive():
    assert SeatSelection.parse("a1,A1").as_list() == ["a1", "A1"]


def test_partition_keeps_request_order():
    selection = SeatSelection.parse("A1,A2,A3,A4")
    free, taken = selection.partition({"A3", "A1", "Z9"})
    assert free.as_list() == ["A2", "A4"]
    assert taken.as_list() == ["A1", "A3"]


def test_str_and_membership():
    selection = SeatSelection.parse("A1,A2")
    assert str(selection) == "A1, A2"
    assert "A2" in selection
    assert "A3" not in selection


def test_normalize_request_rejects_empty():
    with pytest.raises(InvalidSeatSelection):
        normalize_request(" , ", max_seats=5)


def test_normalize_request_caps_distinct_seats():
    with pytest.raises(TooManySeats) as exc_info:
        normalize_request("A1,A2,A3,A4,A5,A6", max_seats=5)
    assert exc_info.value.detail["requested"] == 6
    assert exc_info.value.detail["limit"] == 5


def test_normalize_request_counts_after_dedupe():
    # Six labels, five distinct: within the cap
    selection = normalize_request("A1,A2,A3,A4,A5,A1", max_seats=5)
    assert len(selection) == 5


def test_normalize_request_rejects_overlong_labels():
    with pytest.raises(InvalidSeatSelection) as exc_info:
        normalize_request(["A1", "X" * 21], max_seats=5)
    assert "X" * 21 in exc_info.value.message


def test_normalize_request_accepts_label_at_column_width():
    selection = normalize_request(["Y" * 20], max_seats=5)
    assert selection.as_list() == ["Y" * 20]


def test_normalize_request_zero_cap_is_honored():
    with pytest.raises(TooManySeats):
        normalize_request("A1", max_seats=0)
