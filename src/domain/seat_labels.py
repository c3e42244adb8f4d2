# src/domain/seat_labels.py

import re
from string import ascii_uppercase

SEATS_PER_ROW = 10

_LABEL_PATTERN = re.compile(r"^([A-Z]+)(\d+)$")


def _row_name(index: int) -> str:
    # A..Z, then AA, AB, ... for very large sections.
    name = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        name = ascii_uppercase[remainder] + name
    return name


def generate_seat_labels(total_seats: int, seats_per_row: int = SEATS_PER_ROW) -> list[str]:
    """
    Row-major labels: A1..A10, B1..B10, ... with the remainder in the last row.
    """
    if total_seats <= 0:
        raise ValueError("total_seats must be positive")

    labels = []
    rows = -(-total_seats // seats_per_row)
    for row in range(rows):
        seats_in_row = min(seats_per_row, total_seats - row * seats_per_row)
        row_name = _row_name(row)
        labels.extend(f"{row_name}{seat}" for seat in range(1, seats_in_row + 1))
    return labels


def seat_label_sort_key(label: str) -> tuple[int, str, int]:
    match = _LABEL_PATTERN.match(label)
    if not match:
        return (1, label, 0)
    row, number = match.groups()
    return (0, row.rjust(3), int(number))
