from __future__ import annotations

import copy
import json
import logging
from typing import Any, Dict, Optional, Union

from .config import WriterOptions
from .model import (
    Attachments,
    Cell,
    CellMetadata,
    CodeCell,
    CodeCellMetadata,
    DisplayData,
    Error,
    ExecuteResult,
    Mimebundle,
    Notebook,
    NotebookMetadata,
    Output,
    RawCellMetadata,
    Stream,
)
from .text import split_text

log = logging.getLogger(__name__)

# Key order used when keys are not sorted; unknown keys follow in their own order.
_CANON_KEY_ORDER = [
    "id",
    "cell_type",
    "output_type",
    "name",
    "metadata",
    "source",
    "attachments",
    "outputs",
    "execution_count",
    "data",
    "text",
    "ename",
    "evalue",
    "traceback",
    "nbformat",
    "nbformat_minor",
    "cells",
]


def _ordered(known: Dict[str, Any], extra: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for k in _CANON_KEY_ORDER:
        if k in known:
            out[k] = known[k]
    for k, v in known.items():
        if k not in out:
            out[k] = v
    for k, v in extra.items():
        if k not in out:
            out[k] = copy.deepcopy(v)
    return out


class _Writer:
    def __init__(self, options: WriterOptions):
        self.options = options

    def text(self, value: str) -> Union[str, list]:
        if self.options.multiline == "lines":
            return split_text(value)
        return value

    def mimebundle(self, bundle: Mimebundle) -> Dict[str, Any]:
        return {mimetype: self.text(payload) for mimetype, payload in bundle.items()}

    def attachments(self, attachments: Attachments) -> Dict[str, Any]:
        return {name: self.mimebundle(bundle) for name, bundle in attachments.items()}

    def output(self, out: Output) -> Dict[str, Any]:
        known: Dict[str, Any] = {"output_type": out.output_type}
        if isinstance(out, ExecuteResult):
            known["execution_count"] = out.execution_count
            known["data"] = self.mimebundle(out.data)
            known["metadata"] = copy.deepcopy(out.metadata)
        elif isinstance(out, DisplayData):
            known["data"] = self.mimebundle(out.data)
            known["metadata"] = copy.deepcopy(out.metadata)
        elif isinstance(out, Stream):
            known["name"] = out.name
            known["text"] = self.text(out.text)
        elif isinstance(out, Error):
            known["ename"] = out.ename
            known["evalue"] = out.evalue
            known["traceback"] = list(out.traceback)
        else:
            raise TypeError(f"not an output: {out!r}")
        return _ordered(known, out.extra)

    def cell_metadata(self, meta: CellMetadata) -> Dict[str, Any]:
        known: Dict[str, Any] = {}
        if meta.name is not None:
            known["name"] = meta.name
        if meta.tags is not None:
            known["tags"] = list(meta.tags)
        if meta.jupyter is not None:
            known["jupyter"] = copy.deepcopy(meta.jupyter)
        if isinstance(meta, RawCellMetadata) and meta.format is not None:
            known["format"] = meta.format
        if isinstance(meta, CodeCellMetadata):
            if meta.execution is not None:
                known["execution"] = copy.deepcopy(meta.execution)
            if meta.collapsed is not None:
                known["collapsed"] = meta.collapsed
            if meta.scrolled is not None:
                known["scrolled"] = meta.scrolled
        return _ordered(known, meta.extra)

    def cell(self, cell: Cell) -> Dict[str, Any]:
        known: Dict[str, Any] = {"cell_type": cell.cell_type}
        if cell.id is not None:
            known["id"] = cell.id
        known["metadata"] = self.cell_metadata(cell.metadata)
        known["source"] = self.text(cell.source)
        if isinstance(cell, CodeCell):
            known["outputs"] = [self.output(o) for o in cell.outputs]
            # mandatory on code cells: None is written as null
            known["execution_count"] = cell.execution_count
        elif cell.attachments is not None:
            known["attachments"] = self.attachments(cell.attachments)
        return _ordered(known, cell.extra)

    def notebook_metadata(self, meta: NotebookMetadata) -> Dict[str, Any]:
        known: Dict[str, Any] = {}
        if meta.kernelspec is not None:
            ks = meta.kernelspec
            known["kernelspec"] = _ordered({"name": ks.name, "display_name": ks.display_name}, ks.extra)
        if meta.language_info is not None:
            li = meta.language_info
            li_known: Dict[str, Any] = {"name": li.name}
            for key in ("codemirror_mode", "file_extension", "mimetype", "pygments_lexer"):
                value = getattr(li, key)
                if value is not None:
                    li_known[key] = copy.deepcopy(value)
            known["language_info"] = _ordered(li_known, li.extra)
        if meta.orig_nbformat is not None:
            if self.options.strip_orig_nbformat:
                log.debug("dropping metadata.orig_nbformat=%s on write", meta.orig_nbformat)
            else:
                known["orig_nbformat"] = meta.orig_nbformat
        if meta.title is not None:
            known["title"] = meta.title
        if meta.authors is not None:
            known["authors"] = copy.deepcopy(meta.authors)
        extra = meta.extra
        if self.options.strip_orig_nbformat and "orig_nbformat" in extra:
            extra = {k: v for k, v in extra.items() if k != "orig_nbformat"}
        return _ordered(known, extra)

    def notebook(self, nb: Notebook) -> Dict[str, Any]:
        known = {
            "nbformat": nb.nbformat,
            "nbformat_minor": nb.nbformat_minor,
            "metadata": self.notebook_metadata(nb.metadata),
            "cells": [self.cell(c) for c in nb.cells],
        }
        return _ordered(known, nb.extra)


def to_dict(nb: Notebook, options: Optional[WriterOptions] = None) -> Dict[str, Any]:
    """Return the wire form of ``nb`` as plain dicts and lists."""
    return _Writer(options or WriterOptions()).notebook(nb)


def serialize(nb: Notebook, options: Optional[WriterOptions] = None) -> str:
    """Return the JSON text of ``nb``, ending with a newline."""
    options = options or WriterOptions()
    d = to_dict(nb, options)
    text = json.dumps(
        d,
        indent=options.indent,
        sort_keys=options.sort_keys,
        ensure_ascii=False,
        separators=(",", ": ") if options.indent is not None else (",", ":"),
    )
    return text + "\n"


def write_file(nb: Notebook, path: str, options: Optional[WriterOptions] = None) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(serialize(nb, options))

