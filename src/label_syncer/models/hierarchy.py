"""Nested label paths.

Gmail encodes nesting in the label name itself: "A/B/C" is a child of
"A/B", which is a child of "A". The path is parsed once into segments so
ancestor enumeration never re-splits strings.
"""

from dataclasses import dataclass

SEPARATOR = "/"


@dataclass(frozen=True)
class HierarchyPath:
    """A label name decomposed into its ordered path segments."""

    segments: tuple[str, ...]

    @classmethod
    def parse(cls, name: str) -> "HierarchyPath":
        """
        Parse a "/"-separated label name.

        Raises:
            ValueError: If the name is empty or has an empty segment
        """
        if not name:
            raise ValueError("Label name cannot be empty")

        segments = tuple(name.split(SEPARATOR))
        if any(segment == "" for segment in segments):
            raise ValueError(f'Label name "{name}" has an empty path segment')

        return cls(segments)

    @property
    def name(self) -> str:
        """The wire representation, segments joined by "/"."""
        return SEPARATOR.join(self.segments)

    @property
    def depth(self) -> int:
        return len(self.segments)

    @property
    def is_nested(self) -> bool:
        return self.depth > 1

    @property
    def leaf(self) -> str:
        return self.segments[-1]

    @property
    def parent(self) -> "HierarchyPath | None":
        if not self.is_nested:
            return None
        return HierarchyPath(self.segments[:-1])

    def ancestors(self) -> list[str]:
        """
        Proper ancestor names, shallowest first.

        Example:
            >>> HierarchyPath.parse("A/B/C").ancestors()
            ['A', 'A/B']
        """
        return [
            SEPARATOR.join(self.segments[:depth])
            for depth in range(1, self.depth)
        ]

    def __str__(self) -> str:
        return self.name
