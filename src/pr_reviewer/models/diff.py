from dataclasses import dataclass, field
from enum import Enum


class LineKind(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    CONTEXT = "context"


@dataclass
class LineRecord:
    """One body line of a hunk with its coordinates in the old/new file."""
    kind: LineKind
    text: str
    old_line: int | None = None
    new_line: int | None = None


@dataclass
class DiffAnalysis:
    """Changed-line coordinates of a single file's diff."""
    added_lines: list[int] = field(default_factory=list)
    removed_lines: list[int] = field(default_factory=list)
    changed_content: dict[int, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.added_lines and not self.removed_lines

    @property
    def changed_set(self) -> frozenset[int]:
        return frozenset(self.added_lines)


@dataclass
class BlockLine:
    number: int
    text: str
    changed: bool


@dataclass
class ChangedBlock:
    start: int
    end: int
    lines: list[BlockLine] = field(default_factory=list)
