"""
Error taxonomy.

Only InvalidMapping, UnsupportedFormat and DecodeFailure are ever raised.
DegenerateBounds and UnresolvedTexture are recovered locally and only show up
as the `category` of a logged warning.
"""


class GeoViewerError(Exception):
    """Base class for all geoviewer errors."""


class InvalidMapping(GeoViewerError, ValueError):
    """Axis mapping is not a permutation of (0, 1, 2)."""


class UnsupportedFormat(GeoViewerError):
    """The model file type is not one the decoder understands."""


class DecodeFailure(GeoViewerError):
    """The decoder failed, or produced nothing usable."""


class DegenerateBounds(GeoViewerError):
    """Bounding box with zero or non-finite extent."""


class UnresolvedTexture(GeoViewerError):
    """Referenced image has no matching file."""
