"""Route registry and path patterns."""

from .pattern import PathPattern, Segment, SegmentKind, split_path
from .registry import RouteEntry, RouteMatch, RouteRegistry


__all__ = [
    "PathPattern",
    "Segment",
    "SegmentKind",
    "split_path",
    "RouteEntry",
    "RouteMatch",
    "RouteRegistry",
]
