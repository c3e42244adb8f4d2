# tests/unit/test_seat_labels.py

import pytest

from src.domain.seat_labels import generate_seat_labels, seat_label_sort_key


def test_full_rows_of_ten():
    labels = generate_seat_labels(20)

    assert labels[:10] == [f"A{n}" for n in range(1, 11)]
    assert labels[10:] == [f"B{n}" for n in range(1, 11)]


def test_last_row_holds_remainder():
    labels = generate_seat_labels(25)

    assert len(labels) == 25
    assert labels[-5:] == ["C1", "C2", "C3", "C4", "C5"]


def test_small_section():
    assert generate_seat_labels(3) == ["A1", "A2", "A3"]


def test_rows_past_z():
    labels = generate_seat_labels(270)

    assert labels[250] == "Z1"
    assert labels[260] == "AA1"
    assert len(set(labels)) == 270


@pytest.mark.parametrize("total", [0, -4])
def test_total_must_be_positive(total):
    with pytest.raises(ValueError):
        generate_seat_labels(total)


def test_sort_key_orders_numerically_within_row():
    labels = ["A10", "B1", "A2", "A1", "AA1", "Z3"]

    assert sorted(labels, key=seat_label_sort_key) == ["A1", "A2", "A10", "B1", "Z3", "AA1"]
