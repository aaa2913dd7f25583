from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Union

# mimetype -> joined string payload
Mimebundle = Dict[str, str]
Attachments = Dict[str, Mimebundle]


# ---------- Outputs ----------


@dataclass(frozen=True)
class ExecuteResult:
    """Result of executing a code cell.

    execution_count: prompt number, None when the kernel did not report one.
    data: mimebundle of representations.
    metadata: open map, kept verbatim.
    """

    output_type: ClassVar[str] = "execute_result"

    execution_count: Optional[int]
    data: Mimebundle = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DisplayData:
    output_type: ClassVar[str] = "display_data"

    data: Mimebundle = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Stream:
    """Stream output. ``name`` is usually stdout or stderr but not restricted."""

    output_type: ClassVar[str] = "stream"

    name: str
    text: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Error:
    output_type: ClassVar[str] = "error"

    ename: str
    evalue: str
    traceback: List[str] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)


Output = Union[ExecuteResult, DisplayData, Stream, Error]

OUTPUT_TYPES: Dict[str, type] = {
    cls.output_type: cls for cls in (ExecuteResult, DisplayData, Stream, Error)
}


# ---------- Cell metadata ----------


@dataclass(frozen=True)
class CellMetadata:
    """Metadata shared by every cell type.

    name: optional, non-empty, unique across the notebook.
    tags: optional, unique within the cell, no commas.
    jupyter: official Jupyter metadata (open map).
    extra: every other key, kept verbatim.
    """

    name: Optional[str] = None
    tags: Optional[List[str]] = None
    jupyter: Optional[Dict[str, Any]] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RawCellMetadata(CellMetadata):
    format: Optional[str] = None  # nbconvert target format


@dataclass(frozen=True)
class CodeCellMetadata(CellMetadata):
    """Adds execution timing and output display flags.

    execution: lifecycle event name -> ISO-8601 timestamp.
    scrolled: True, False or "auto".
    """

    execution: Optional[Dict[str, Any]] = None
    collapsed: Optional[bool] = None
    scrolled: Optional[Union[bool, str]] = None


EXECUTION_KEYS = (
    "iopub.execute_input",
    "iopub.status.busy",
    "shell.execute_reply",
    "iopub.status.idle",
)


# ---------- Cells ----------


@dataclass(frozen=True)
class RawCell:
    cell_type: ClassVar[str] = "raw"

    id: Optional[str]
    source: str = ""
    metadata: RawCellMetadata = field(default_factory=RawCellMetadata)
    attachments: Optional[Attachments] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MarkdownCell:
    cell_type: ClassVar[str] = "markdown"

    id: Optional[str]
    source: str = ""
    metadata: CellMetadata = field(default_factory=CellMetadata)
    attachments: Optional[Attachments] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CodeCell:
    """A code cell.

    execution_count is mandatory on the wire but nullable: None means the
    cell has not been run and is written as null.
    """

    cell_type: ClassVar[str] = "code"

    id: Optional[str]
    source: str = ""
    metadata: CodeCellMetadata = field(default_factory=CodeCellMetadata)
    outputs: List[Output] = field(default_factory=list)
    execution_count: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)


Cell = Union[RawCell, MarkdownCell, CodeCell]

CELL_TYPES: Dict[str, type] = {
    cls.cell_type: cls for cls in (RawCell, MarkdownCell, CodeCell)
}


# ---------- Notebook ----------


@dataclass(frozen=True)
class KernelSpec:
    name: str
    display_name: str
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class LanguageInfo:
    name: str
    codemirror_mode: Optional[Union[str, Dict[str, Any]]] = None
    file_extension: Optional[str] = None
    mimetype: Optional[str] = None
    pygments_lexer: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NotebookMetadata:
    kernelspec: Optional[KernelSpec] = None
    language_info: Optional[LanguageInfo] = None
    orig_nbformat: Optional[int] = None
    title: Optional[str] = None
    authors: Optional[List[Any]] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Notebook:
    """A validated notebook document.

    Instances are frozen; derive changed documents with dataclasses.replace
    and run validate() on the result.

    cells: ordered list of cells in document order.
    extra: unrecognized top-level keys, re-emitted on serialization.
    """

    nbformat: int
    nbformat_minor: int
    metadata: NotebookMetadata = field(default_factory=NotebookMetadata)
    cells: List[Cell] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    def cell_by_id(self) -> Dict[str, Cell]:
        return {c.id: c for c in self.cells if c.id is not None}

    def cell_by_name(self) -> Dict[str, Cell]:
        return {c.metadata.name: c for c in self.cells if c.metadata.name}
