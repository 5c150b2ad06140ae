"""Parsing and repair of latitude/longitude values from untrusted sources.

Two kinds of damage show up in the municipal container data:

* CSV exports that use ``.`` as a thousands separator, so ``40.399762`` is
  written as ``40.399.762.223.622`` and the decimal point is lost.
* Rows that were imported with the decimal point one place too far left,
  which turns a Madrid latitude of ``40.40`` into ``4.04``.

``clean_coordinate`` handles the first case on the way in;
``correct_decimal_shift`` patches the second case on the way out.
"""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

_DIGITS_RE = re.compile(r"^(-?)(\d+)$")
_SINGLE_DECIMAL_RE = re.compile(r"^-?\d+[.,]\d+$")


class Axis(str, Enum):
    LATITUDE = "latitude"
    LONGITUDE = "longitude"

    @property
    def bound(self) -> float:
        return 90.0 if self is Axis.LATITUDE else 180.0

    @property
    def default_integer_digits(self) -> int:
        return 2 if self is Axis.LATITUDE else 1


def _within(value: float, axis: Axis) -> bool:
    return math.isfinite(value) and abs(value) <= axis.bound


def parse_coordinate(value: Any) -> float | None:
    """Convert a number or numeric string to float; ``None`` when unusable."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):  # noqa: UP038
        number = float(value)
    else:
        text = str(value).strip().replace(",", ".")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    return number


def clean_coordinate(
    raw: str | None, *, axis: Axis, integer_digits: int | None = None
) -> float | None:
    """Repair a coordinate string whose decimal point was lost.

    Values that already carry a single decimal separator and fall inside the
    axis bounds are taken as they are. Otherwise all separators are dropped and
    the decimal point is reinserted after ``integer_digits`` digits (2 for
    latitude, 1 for longitude unless configured otherwise).

    Returns ``None`` for empty input, non-numeric input, zero and anything
    outside the axis bounds.
    """

    if raw is None:
        return None
    text = str(raw).strip().replace(" ", "")
    if not text:
        return None

    if _SINGLE_DECIMAL_RE.match(text):
        value = float(text.replace(",", "."))
        if value != 0 and _within(value, axis):
            return value

    digits_only = text.replace(".", "").replace(",", "")
    match = _DIGITS_RE.match(digits_only)
    if match is None:
        return None

    sign, digits = match.groups()
    width = integer_digits or axis.default_integer_digits
    if len(digits) > width:
        repaired = f"{sign}{digits[:width]}.{digits[width:]}"
    else:
        repaired = f"{sign}{digits}"

    value = float(repaired)
    if value == 0 or not _within(value, axis):
        return None
    return value


def correct_decimal_shift(latitude: float, longitude: float) -> tuple[float, bool]:
    """Multiply a latitude in (1, 10) by ten when the longitude is set.

    Returns the (possibly corrected) latitude and whether it changed.
    """

    if 1.0 < latitude < 10.0 and abs(longitude) > 0:
        corrected = latitude * 10.0
        logger.warning(
            "decimal_shift_corrected",
            latitude=round(latitude, 6),
            corrected=round(corrected, 6),
        )
        return corrected, True
    return latitude, False


def is_valid_coordinate(latitude: float | None, longitude: float | None) -> bool:
    if latitude is None or longitude is None:
        return False
    if latitude == 0 or longitude == 0:
        return False
    return _within(latitude, Axis.LATITUDE) and _within(longitude, Axis.LONGITUDE)


def normalize_point_coordinates(
    raw_latitude: Any, raw_longitude: Any, *, correct_shift: bool = True
) -> tuple[float, float] | None:
    """Parse, repair and validate a stored point; ``None`` means skip it."""

    latitude = parse_coordinate(raw_latitude)
    longitude = parse_coordinate(raw_longitude)
    if latitude is None or longitude is None:
        return None

    if correct_shift:
        latitude, _ = correct_decimal_shift(latitude, longitude)

    if not is_valid_coordinate(latitude, longitude):
        return None
    return latitude, longitude


__all__ = [
    "Axis",
    "clean_coordinate",
    "correct_decimal_shift",
    "is_valid_coordinate",
    "normalize_point_coordinates",
    "parse_coordinate",
]
