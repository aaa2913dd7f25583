from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple, Union

PathPart = Union[str, int]


def format_path(path: Sequence[PathPart]) -> str:
    """Render a path tuple as ``cells[0].outputs[1].name``."""
    out = ""
    for part in path:
        if isinstance(part, int):
            out += f"[{part}]"
        elif out:
            out += f".{part}"
        else:
            out = part
    return out or "<root>"


class NotebookFormatError(ValueError):
    """A single violation found while validating a notebook document.

    Violations are collected, not raised: the validator returns every one it
    finds. ``path`` locates the offending value inside the wire document.
    """

    kind = "FormatError"

    def __init__(self, message: str, path: Iterable[PathPart] = ()):
        self.message = message
        self.path: Tuple[PathPart, ...] = tuple(path)
        super().__init__(f"{self.location}: {message}")

    @property
    def location(self) -> str:
        return format_path(self.path)


class StructuralError(NotebookFormatError):
    """Required field missing or of the wrong JSON type."""

    kind = "StructuralError"


class DiscriminantError(NotebookFormatError):
    """``cell_type`` or ``output_type`` outside its closed set."""

    kind = "DiscriminantError"


class UniquenessError(NotebookFormatError):
    """Duplicate id, name or tag.

    ``indices`` holds the colliding cell indices (empty for tag problems,
    which are local to one cell).
    """

    kind = "UniquenessError"

    def __init__(
        self,
        message: str,
        path: Iterable[PathPart] = (),
        indices: Iterable[int] = (),
    ):
        self.indices: Tuple[int, ...] = tuple(indices)
        super().__init__(message, path)


class EncodingError(NotebookFormatError):
    """A multiline field that is neither a string nor a list of strings."""

    kind = "EncodingError"


class NotebookValidationError(ValueError):
    """Raised by the raising entry points with the complete violation list."""

    def __init__(self, violations: List[NotebookFormatError]):
        self.violations = list(violations)
        count = len(self.violations)
        head = f"{count} violation{'s' if count != 1 else ''}"
        lines = [head] + [f"  {v.kind}: {v}" for v in self.violations]
        super().__init__("\n".join(lines))


class ConfigError(ValueError):
    """Invalid configuration file or value."""
