"""
Axis assignment for geo reinterpretation of raw model coordinates.

A raw model stores positions as (x, y, z). To read them as geodetic values the
user picks which raw axis holds longitude, which holds latitude and which holds
height. The three picks must be a permutation of (0, 1, 2).
"""

from dataclasses import dataclass
from itertools import permutations
from typing import Iterable, Tuple

from .errors import InvalidMapping

AXIS_NAMES = ("x", "y", "z")

VALID_MAPPINGS = frozenset(permutations(range(3)))


@dataclass(frozen=True)
class AxisMapping:
    """Raw axis index for each of longitude, latitude and height."""
    lon: int = 0
    lat: int = 1
    height: int = 2

    def __post_init__(self):
        if self.as_tuple() not in VALID_MAPPINGS:
            raise InvalidMapping(
                f"Axis mapping must be a permutation of (0, 1, 2), "
                f"got lon={self.lon!r}, lat={self.lat!r}, height={self.height!r}"
            )

    @classmethod
    def parse(cls, values: Iterable) -> "AxisMapping":
        """
        Build a mapping from three axis indices given as (lon, lat, height).

        Accepts ints or integer strings ("0", "2", "1" from a form or CLI).

        Raises:
            InvalidMapping: wrong count, non-integer, out of range or repeated
        """
        if isinstance(values, AxisMapping):
            return values
        try:
            items = list(values)
        except TypeError:
            raise InvalidMapping(f"Axis mapping must be three indices, got {values!r}") from None
        if len(items) != 3:
            raise InvalidMapping(f"Axis mapping needs exactly 3 indices, got {len(items)}")

        indices = []
        for item in items:
            if isinstance(item, bool):
                raise InvalidMapping(f"Axis index must be an integer, got {item!r}")
            try:
                index = int(item)
            except (TypeError, ValueError):
                raise InvalidMapping(f"Axis index must be an integer, got {item!r}") from None
            if isinstance(item, float) and item != index:
                raise InvalidMapping(f"Axis index must be an integer, got {item!r}")
            indices.append(index)

        return cls(*indices)

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.lon, self.lat, self.height)

    def describe(self) -> str:
        """Human readable form, e.g. 'lon=x lat=z height=y'."""
        return (f"lon={AXIS_NAMES[self.lon]} lat={AXIS_NAMES[self.lat]} "
                f"height={AXIS_NAMES[self.height]}")


DEFAULT_MAPPING = AxisMapping()
