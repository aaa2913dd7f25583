from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from .config import Policy
from .errors import NotebookFormatError, PathPart, StructuralError, UniquenessError
from .model import Notebook


def check_tags(tags: Any, path: Tuple[PathPart, ...]) -> List[NotebookFormatError]:
    """Tags must be a list of strings, unique, none containing a comma."""
    if not isinstance(tags, list):
        return [StructuralError(f"tags must be an array, got {type(tags).__name__}", path)]
    errors: List[NotebookFormatError] = []
    seen = set()
    for i, tag in enumerate(tags):
        if not isinstance(tag, str):
            errors.append(StructuralError(f"tag must be a string, got {type(tag).__name__}", path + (i,)))
            continue
        if "," in tag:
            errors.append(UniquenessError(f"tag {tag!r} contains a comma", path + (i,)))
        if tag in seen:
            errors.append(UniquenessError(f"duplicate tag {tag!r}", path + (i,)))
        seen.add(tag)
    return errors


class UniqueRegistry:
    """Running set of cell-level values that must be unique in a notebook.

    Each repeat is reported against the first cell that used the value.
    """

    def __init__(self, what: str, field_path: Tuple[PathPart, ...]):
        self.what = what
        self.field_path = field_path
        self.first: Dict[str, int] = {}

    def add(self, value: str, index: int) -> Optional[UniquenessError]:
        if value not in self.first:
            self.first[value] = index
            return None
        first = self.first[value]
        return UniquenessError(
            f"duplicate cell {self.what} {value!r} (cells {first} and {index})",
            ("cells", index) + self.field_path,
            indices=(first, index),
        )


def check_unique(
    values: Iterable[Tuple[int, str]], what: str, field_path: Tuple[PathPart, ...]
) -> List[UniquenessError]:
    """Report every repeated value in ``(cell_index, value)`` pairs."""
    reg = UniqueRegistry(what, field_path)
    out: List[UniquenessError] = []
    for index, value in values:
        err = reg.add(value, index)
        if err is not None:
            out.append(err)
    return out


def validate(nb: Notebook, policy: Optional[Policy] = None) -> List[NotebookFormatError]:
    """Check a Notebook value, e.g. one built programmatically.

    The notebook is written to its wire form and read back, so a value
    passes exactly when its serialized document would parse.
    """
    from .parse import parse_dict
    from .serialize import to_dict

    return parse_dict(to_dict(nb), policy=policy).violations
