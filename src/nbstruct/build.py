"""Constructors for building notebooks in code, in the style of nbformat.v4."""

from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional

from .model import (
    Attachments,
    CellMetadata,
    CodeCell,
    CodeCellMetadata,
    DisplayData,
    Error,
    ExecuteResult,
    KernelSpec,
    LanguageInfo,
    MarkdownCell,
    Mimebundle,
    Notebook,
    NotebookMetadata,
    Output,
    RawCell,
    RawCellMetadata,
    Stream,
)

NBFORMAT = 4
NBFORMAT_MINOR = 5


def random_cell_id() -> str:
    return uuid.uuid4().hex[:8]


def new_notebook(
    cells: Optional[Iterable] = None,
    *,
    kernel_name: Optional[str] = None,
    display_name: Optional[str] = None,
    language: Optional[str] = None,
    metadata: Optional[NotebookMetadata] = None,
) -> Notebook:
    meta = metadata or NotebookMetadata()
    if kernel_name:
        meta = replace(meta, kernelspec=KernelSpec(kernel_name, display_name or kernel_name))
    if language:
        meta = replace(meta, language_info=LanguageInfo(language))
    return Notebook(NBFORMAT, NBFORMAT_MINOR, meta, list(cells or []))


def new_code_cell(
    source: str = "",
    *,
    id: Optional[str] = None,
    outputs: Optional[List[Output]] = None,
    execution_count: Optional[int] = None,
    metadata: Optional[CodeCellMetadata] = None,
) -> CodeCell:
    return CodeCell(
        id or random_cell_id(),
        source,
        metadata or CodeCellMetadata(),
        list(outputs or []),
        execution_count,
    )


def new_markdown_cell(
    source: str = "",
    *,
    id: Optional[str] = None,
    attachments: Optional[Attachments] = None,
    metadata: Optional[CellMetadata] = None,
) -> MarkdownCell:
    return MarkdownCell(id or random_cell_id(), source, metadata or CellMetadata(), attachments)


def new_raw_cell(
    source: str = "",
    *,
    id: Optional[str] = None,
    format: Optional[str] = None,
    attachments: Optional[Attachments] = None,
    metadata: Optional[RawCellMetadata] = None,
) -> RawCell:
    meta = metadata or RawCellMetadata()
    if format is not None:
        meta = replace(meta, format=format)
    return RawCell(id or random_cell_id(), source, meta, attachments)


def new_stream(text: str = "", name: str = "stdout") -> Stream:
    return Stream(name, text)


def new_display_data(data: Optional[Mimebundle] = None, metadata: Optional[Dict[str, Any]] = None) -> DisplayData:
    return DisplayData(dict(data or {}), dict(metadata or {}))


def new_execute_result(
    execution_count: Optional[int],
    data: Optional[Mimebundle] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> ExecuteResult:
    return ExecuteResult(execution_count, dict(data or {}), dict(metadata or {}))


def new_error(ename: str, evalue: str, traceback: Optional[List[str]] = None) -> Error:
    return Error(ename, evalue, list(traceback or []))
