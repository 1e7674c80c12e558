"""Coordinate normalization for weather lookups."""

from typing import Sequence, Union

from geopy import units


def normalize_coordinate(coordinate: Union[float, Sequence[float]]) -> float:
    """Convert a coordinate to signed decimal degrees.

    Accepts decimal degrees, either bare or as a one-element sequence, or a
    degrees/minutes/seconds sequence where minutes and seconds default to
    zero. The sign is taken from the degrees component only.

    Args:
        coordinate: Decimal degrees or [degrees, minutes, seconds]

    Returns:
        sign(degrees) * (|degrees| + |minutes| / 60 + |seconds| / 3600)

    Raises:
        ValueError: If the sequence is empty or longer than three elements
    """
    if isinstance(coordinate, (int, float)):
        parts = [coordinate]
    else:
        parts = list(coordinate)

    if not 1 <= len(parts) <= 3:
        raise ValueError(f"Coordinate must have 1 to 3 components, got {len(parts)}")

    degrees, minutes, seconds = (parts + [0, 0])[:3]
    sign = (degrees > 0) - (degrees < 0)

    return sign * (
        abs(degrees)
        + units.degrees(arcminutes=abs(minutes))
        + units.degrees(arcseconds=abs(seconds))
    )
