"""Route path patterns: parsing, normalization, specificity and matching.

Pattern syntax::

    /items/recent        literal segments
    /items/{id}          named variable, matches one non-empty segment
    /static/*            trailing wildcard, bound under "*"
    /files/{rest:path}   trailing named wildcard

A trailing wildcard matches any remaining suffix, including an empty one.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any
from urllib.parse import unquote

from dispatchkit.core.errors import InvalidRoutePatternError


ANONYMOUS_WILDCARD = "*"


class SegmentKind(IntEnum):
    """Segment kinds, ordered by how specific they are."""

    WILDCARD = 1
    VARIABLE = 2
    LITERAL = 3


@dataclass(frozen=True, slots=True)
class Segment:
    kind: SegmentKind
    value: str  # literal text, or the bound name for variables and wildcards

    @property
    def normalized(self) -> str:
        if self.kind is SegmentKind.LITERAL:
            return self.value
        if self.kind is SegmentKind.VARIABLE:
            return "{}"
        return "*"

    def __str__(self) -> str:
        if self.kind is SegmentKind.LITERAL:
            return self.value
        if self.kind is SegmentKind.VARIABLE:
            return "{" + self.value + "}"
        if self.value == ANONYMOUS_WILDCARD:
            return "*"
        return "{" + self.value + ":path}"


def split_path(path: str) -> tuple[str, ...]:
    """Split a request path into percent-decoded, non-empty segments."""
    return tuple(unquote(part) for part in path.split("/") if part)


def _parse_segment(raw_pattern: str, part: str) -> Segment:
    if part in ("*", "**"):
        return Segment(SegmentKind.WILDCARD, ANONYMOUS_WILDCARD)

    if part.startswith("{") and part.endswith("}"):
        inner = part[1:-1].strip()
        name, sep, converter = inner.partition(":")
        name = name.strip()
        if not name:
            raise InvalidRoutePatternError(raw_pattern, "empty variable name")
        if not name.isidentifier():
            raise InvalidRoutePatternError(
                raw_pattern, f"variable name '{name}' is not an identifier"
            )
        if sep:
            if converter.strip() != "path":
                raise InvalidRoutePatternError(
                    raw_pattern, f"unknown converter '{converter.strip()}'"
                )
            return Segment(SegmentKind.WILDCARD, name)
        return Segment(SegmentKind.VARIABLE, name)

    if "{" in part or "}" in part or "*" in part:
        raise InvalidRoutePatternError(
            raw_pattern, f"segment '{part}' mixes literal text and placeholders"
        )
    return Segment(SegmentKind.LITERAL, unquote(part))


@dataclass(frozen=True, slots=True)
class PathPattern:
    """A parsed route pattern."""

    raw: str
    segments: tuple[Segment, ...]

    @classmethod
    def parse(cls, raw: str) -> "PathPattern":
        segments = tuple(
            _parse_segment(raw, part) for part in raw.strip().split("/") if part
        )

        seen: set[str] = set()
        for index, segment in enumerate(segments):
            if segment.kind is SegmentKind.LITERAL:
                continue
            if segment.kind is SegmentKind.WILDCARD and index != len(segments) - 1:
                raise InvalidRoutePatternError(
                    raw, "a wildcard is only allowed as the last segment"
                )
            if segment.value in seen:
                raise InvalidRoutePatternError(
                    raw, f"variable '{segment.value}' is bound twice"
                )
            seen.add(segment.value)

        return cls(raw=raw, segments=segments)

    @property
    def normalized(self) -> str:
        """Pattern with variable names erased; equal for equally specific patterns."""
        return "/" + "/".join(segment.normalized for segment in self.segments)

    @property
    def has_wildcard(self) -> bool:
        return bool(self.segments) and self.segments[-1].kind is SegmentKind.WILDCARD

    @property
    def literal_count(self) -> int:
        return sum(1 for s in self.segments if s.kind is SegmentKind.LITERAL)

    @property
    def variable_names(self) -> tuple[str, ...]:
        return tuple(
            s.value for s in self.segments if s.kind is not SegmentKind.LITERAL
        )

    def precedence_key(self) -> tuple[Any, ...]:
        """Sort key; a larger key is the more specific pattern.

        Wildcard-free patterns first, then more literal segments, then the
        kinds position by position (literal > variable > wildcard).
        """
        return (
            not self.has_wildcard,
            self.literal_count,
            tuple(int(s.kind) for s in self.segments),
        )

    def match(self, path_segments: tuple[str, ...]) -> dict[str, str] | None:
        """Bind the pattern against split path segments, or return None."""
        bindings: dict[str, str] = {}
        for index, segment in enumerate(self.segments):
            if segment.kind is SegmentKind.WILDCARD:
                bindings[segment.value] = "/".join(path_segments[index:])
                return bindings
            if index >= len(path_segments):
                return None
            value = path_segments[index]
            if segment.kind is SegmentKind.LITERAL:
                if segment.value != value:
                    return None
            else:
                bindings[segment.value] = value

        if len(path_segments) != len(self.segments):
            return None
        return bindings

    def __str__(self) -> str:
        return "/" + "/".join(str(segment) for segment in self.segments)
