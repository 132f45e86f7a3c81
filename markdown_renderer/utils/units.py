"""Unit conversion helpers for typographic and WordprocessingML measurements."""
from __future__ import annotations

TWIPS_PER_POINT = 20
EIGHTHS_PER_POINT = 8


def points_to_eighths(value: float) -> int:
    """Convert points to eighths of a point, the unit of border widths."""
    return int(round(value * EIGHTHS_PER_POINT))


def points_to_twips(value: float) -> int:
    """Convert points to twips (1/20th of a point)."""
    return int(round(value * TWIPS_PER_POINT))
