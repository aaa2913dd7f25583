from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .config import Policy
from .errors import (
    DiscriminantError,
    EncodingError,
    NotebookFormatError,
    NotebookValidationError,
    PathPart,
    StructuralError,
)
from .model import (
    CELL_TYPES,
    EXECUTION_KEYS,
    OUTPUT_TYPES,
    Attachments,
    Cell,
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
from .text import is_multiline, join_text
from .validate import UniqueRegistry, check_tags, check_unique

log = logging.getLogger(__name__)

Loc = Tuple[PathPart, ...]

_MISSING = object()

_CELL_KEYS = {
    "raw": {"id", "cell_type", "metadata", "source", "attachments"},
    "markdown": {"id", "cell_type", "metadata", "source", "attachments"},
    "code": {"id", "cell_type", "metadata", "source", "outputs", "execution_count"},
}
# Fields that belong to another cell variant.
_MISPLACED_KEYS = {
    "raw": ("outputs", "execution_count"),
    "markdown": ("outputs", "execution_count"),
    "code": ("attachments",),
}
_OUTPUT_KEYS = {
    "execute_result": {"output_type", "execution_count", "data", "metadata"},
    "display_data": {"output_type", "data", "metadata"},
    "stream": {"output_type", "name", "text"},
    "error": {"output_type", "ename", "evalue", "traceback"},
}
_LANGUAGE_INFO_STRINGS = ("file_extension", "mimetype", "pygments_lexer")


@dataclass
class ParseResult:
    """Outcome of parsing: a notebook, or the complete list of violations."""

    notebook: Optional[Notebook]
    violations: List[NotebookFormatError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _extra(obj: Dict[str, Any], known: set) -> Dict[str, Any]:
    return {k: copy.deepcopy(v) for k, v in obj.items() if k not in known}


class _Reader:
    """Walks a wire document, building model values and collecting violations."""

    def __init__(self, policy: Policy):
        self.policy = policy
        self.violations: List[NotebookFormatError] = []

    # ---------- primitives ----------

    def structural(self, message: str, path: Loc) -> None:
        self.violations.append(StructuralError(message, path))

    def required(self, obj: Dict[str, Any], key: str, path: Loc) -> Any:
        if key not in obj:
            self.structural(f"missing required field '{key}'", path + (key,))
            return _MISSING
        return obj[key]

    def string(self, value: Any, path: Loc) -> Optional[str]:
        if value is _MISSING:
            return None
        if not isinstance(value, str):
            self.structural(f"expected string, got {_type_name(value)}", path)
            return None
        return value

    def mapping(self, value: Any, path: Loc) -> Optional[Dict[str, Any]]:
        if value is _MISSING:
            return None
        if not isinstance(value, dict):
            self.structural(f"expected object, got {_type_name(value)}", path)
            return None
        return value

    def text(self, value: Any, path: Loc) -> Optional[str]:
        if value is _MISSING:
            return None
        if not is_multiline(value):
            self.violations.append(
                EncodingError(f"expected string or array of strings, got {_type_name(value)}", path)
            )
            return None
        return join_text(value)

    def execution_count(self, obj: Dict[str, Any], path: Loc) -> Tuple[bool, Optional[int]]:
        value = self.required(obj, "execution_count", path)
        if value is _MISSING:
            return False, None
        if value is not None and not _is_int(value):
            self.structural(
                f"execution_count must be an integer or null, got {_type_name(value)}",
                path + ("execution_count",),
            )
            return False, None
        return True, value

    def misplaced(self, key: str, where: str, path: Loc) -> None:
        if self.policy.misplaced_fields == "reject":
            self.structural(f"'{key}' is not allowed on {where}", path + (key,))
        else:
            log.warning("%s: ignoring '%s' on %s", ".".join(map(str, path)), key, where)

    # ---------- mimebundles ----------

    def mimebundle(self, value: Any, path: Loc) -> Optional[Mimebundle]:
        raw = self.mapping(value, path)
        if raw is None:
            return None
        out: Mimebundle = {}
        ok = True
        for mimetype, payload in raw.items():
            text = self.text(payload, path + (mimetype,))
            if text is None:
                ok = False
            else:
                out[mimetype] = text
        return out if ok else None

    def attachments(self, value: Any, path: Loc) -> Optional[Attachments]:
        raw = self.mapping(value, path)
        if raw is None:
            return None
        out: Attachments = {}
        ok = True
        for filename, bundle in raw.items():
            parsed = self.mimebundle(bundle, path + (filename,))
            if parsed is None:
                ok = False
            else:
                out[filename] = parsed
        return out if ok else None

    # ---------- outputs ----------

    def output(self, value: Any, path: Loc) -> Optional[Output]:
        if not isinstance(value, dict):
            self.structural(f"output must be an object, got {_type_name(value)}", path)
            return None
        output_type = value.get("output_type", _MISSING)
        if output_type is _MISSING:
            self.violations.append(DiscriminantError("missing output_type", path + ("output_type",)))
            return None
        if not isinstance(output_type, str) or output_type not in OUTPUT_TYPES:
            self.violations.append(
                DiscriminantError(f"unknown output_type {output_type!r}", path + ("output_type",))
            )
            return None

        before = len(self.violations)
        extra = _extra(value, _OUTPUT_KEYS[output_type])
        out: Optional[Output] = None

        if output_type in ("execute_result", "display_data"):
            data = self.mimebundle(self.required(value, "data", path), path + ("data",))
            metadata = self.mapping(self.required(value, "metadata", path), path + ("metadata",))
            if output_type == "execute_result":
                has_count, count = self.execution_count(value, path)
                if has_count and data is not None and metadata is not None:
                    out = ExecuteResult(count, data, copy.deepcopy(metadata), extra)
            elif data is not None and metadata is not None:
                out = DisplayData(data, copy.deepcopy(metadata), extra)
        elif output_type == "stream":
            name = self.string(self.required(value, "name", path), path + ("name",))
            text = self.text(self.required(value, "text", path), path + ("text",))
            if name is not None and text is not None:
                out = Stream(name, text, extra)
        else:
            ename = self.string(self.required(value, "ename", path), path + ("ename",))
            evalue = self.string(self.required(value, "evalue", path), path + ("evalue",))
            traceback = self.traceback(self.required(value, "traceback", path), path + ("traceback",))
            if ename is not None and evalue is not None and traceback is not None:
                out = Error(ename, evalue, traceback, extra)

        return out if len(self.violations) == before else None

    def traceback(self, value: Any, path: Loc) -> Optional[List[str]]:
        if value is _MISSING:
            return None
        if not isinstance(value, list):
            self.structural(f"expected array of strings, got {_type_name(value)}", path)
            return None
        ok = True
        for i, line in enumerate(value):
            if not isinstance(line, str):
                self.structural(f"expected string, got {_type_name(line)}", path + (i,))
                ok = False
        return list(value) if ok else None

    # ---------- cells ----------

    def cell_metadata(self, raw: Dict[str, Any], cell_type: str, path: Loc) -> Optional[CellMetadata]:
        before = len(self.violations)
        known = {"name", "tags", "jupyter"}
        kwargs: Dict[str, Any] = {}

        if "name" in raw:
            name = raw["name"]
            if not isinstance(name, str) or not name:
                self.structural("name must be a non-empty string", path + ("name",))
            else:
                kwargs["name"] = name
        if "tags" in raw:
            self.violations.extend(check_tags(raw["tags"], path + ("tags",)))
            if isinstance(raw["tags"], list):
                kwargs["tags"] = list(raw["tags"])
        if "jupyter" in raw:
            jupyter = self.mapping(raw["jupyter"], path + ("jupyter",))
            if jupyter is not None:
                kwargs["jupyter"] = copy.deepcopy(jupyter)

        if cell_type == "raw":
            known.add("format")
            if "format" in raw:
                kwargs["format"] = self.string(raw["format"], path + ("format",))
            cls: type = RawCellMetadata
        elif cell_type == "code":
            known.update(("execution", "collapsed", "scrolled"))
            if "execution" in raw:
                kwargs["execution"] = self.execution(raw["execution"], path + ("execution",))
            if "collapsed" in raw:
                if isinstance(raw["collapsed"], bool):
                    kwargs["collapsed"] = raw["collapsed"]
                else:
                    self.structural(
                        f"collapsed must be a boolean, got {_type_name(raw['collapsed'])}",
                        path + ("collapsed",),
                    )
            if "scrolled" in raw:
                if isinstance(raw["scrolled"], bool) or raw["scrolled"] == "auto":
                    kwargs["scrolled"] = raw["scrolled"]
                else:
                    self.structural("scrolled must be true, false or \"auto\"", path + ("scrolled",))
            cls = CodeCellMetadata
        else:
            cls = CellMetadata

        if cell_type != "code" and "execution" in raw:
            known.add("execution")
            self.misplaced("execution", f"{cell_type} cell metadata", path)

        if len(self.violations) != before:
            return None
        return cls(extra=_extra(raw, known), **kwargs)

    def execution(self, value: Any, path: Loc) -> Optional[Dict[str, Any]]:
        raw = self.mapping(value, path)
        if raw is None:
            return None
        for key in EXECUTION_KEYS:
            if key in raw and not isinstance(raw[key], str):
                self.structural(f"expected ISO-8601 timestamp string, got {_type_name(raw[key])}", path + (key,))
        return copy.deepcopy(raw)

    def cell(self, value: Any, index: int, ids_required: bool) -> Optional[Cell]:
        path: Loc = ("cells", index)
        if not isinstance(value, dict):
            self.structural(f"cell must be an object, got {_type_name(value)}", path)
            return None
        cell_type = value.get("cell_type", _MISSING)
        if cell_type is _MISSING:
            self.violations.append(DiscriminantError(f"cell {index} has no cell_type", path + ("cell_type",)))
            return None
        if not isinstance(cell_type, str) or cell_type not in CELL_TYPES:
            self.violations.append(
                DiscriminantError(f"cell {index} has unknown cell_type {cell_type!r}", path + ("cell_type",))
            )
            return None

        before = len(self.violations)
        known = set(_CELL_KEYS[cell_type])
        for key in _MISPLACED_KEYS[cell_type]:
            if key in value:
                known.add(key)
                self.misplaced(key, f"{cell_type} cells", path)

        cell_id: Optional[str] = None
        if "id" in value:
            cell_id = self.string(value["id"], path + ("id",))
        elif ids_required:
            self.structural("missing required field 'id'", path + ("id",))

        source = self.text(self.required(value, "source", path), path + ("source",))
        raw_meta = self.mapping(self.required(value, "metadata", path), path + ("metadata",))
        metadata = None
        if raw_meta is not None:
            metadata = self.cell_metadata(raw_meta, cell_type, path + ("metadata",))
        extra = _extra(value, known)

        if cell_type == "code":
            raw_outputs = self.required(value, "outputs", path)
            outputs: List[Output] = []
            if raw_outputs is not _MISSING:
                if not isinstance(raw_outputs, list):
                    self.structural(
                        f"outputs must be an array, got {_type_name(raw_outputs)}", path + ("outputs",)
                    )
                else:
                    for j, raw_out in enumerate(raw_outputs):
                        out = self.output(raw_out, path + ("outputs", j))
                        if out is not None:
                            outputs.append(out)
            _, count = self.execution_count(value, path)
            if len(self.violations) != before:
                return None
            return CodeCell(cell_id, source, metadata, outputs, count, extra)

        attachments = None
        if "attachments" in value:
            attachments = self.attachments(value["attachments"], path + ("attachments",))
        if len(self.violations) != before:
            return None
        cls = RawCell if cell_type == "raw" else MarkdownCell
        return cls(cell_id, source, metadata, attachments, extra)

    # ---------- notebook ----------

    def version(self, obj: Dict[str, Any], key: str) -> Optional[int]:
        value = self.required(obj, key, ())
        if value is _MISSING:
            return None
        if not _is_int(value):
            self.structural(f"{key} must be an integer, got {_type_name(value)}", (key,))
            return None
        if value < 0:
            self.structural(f"{key} must be non-negative, got {value}", (key,))
            return None
        return value

    def notebook_metadata(self, raw: Dict[str, Any]) -> Optional[NotebookMetadata]:
        path: Loc = ("metadata",)
        before = len(self.violations)
        kwargs: Dict[str, Any] = {}

        if "kernelspec" in raw:
            ks = self.mapping(raw["kernelspec"], path + ("kernelspec",))
            if ks is not None:
                ks_path = path + ("kernelspec",)
                name = self.string(self.required(ks, "name", ks_path), ks_path + ("name",))
                display = self.string(self.required(ks, "display_name", ks_path), ks_path + ("display_name",))
                if name is not None and display is not None:
                    kwargs["kernelspec"] = KernelSpec(name, display, _extra(ks, {"name", "display_name"}))
        if "language_info" in raw:
            li = self.mapping(raw["language_info"], path + ("language_info",))
            if li is not None:
                kwargs["language_info"] = self.language_info(li, path + ("language_info",))
        if "orig_nbformat" in raw:
            if _is_int(raw["orig_nbformat"]):
                kwargs["orig_nbformat"] = raw["orig_nbformat"]
            else:
                self.structural(
                    f"orig_nbformat must be an integer, got {_type_name(raw['orig_nbformat'])}",
                    path + ("orig_nbformat",),
                )
        if "title" in raw:
            kwargs["title"] = self.string(raw["title"], path + ("title",))
        if "authors" in raw:
            if isinstance(raw["authors"], list):
                kwargs["authors"] = copy.deepcopy(raw["authors"])
            else:
                self.structural(f"authors must be an array, got {_type_name(raw['authors'])}", path + ("authors",))

        if len(self.violations) != before:
            return None
        known = {"kernelspec", "language_info", "orig_nbformat", "title", "authors"}
        return NotebookMetadata(extra=_extra(raw, known), **kwargs)

    def language_info(self, raw: Dict[str, Any], path: Loc) -> Optional[LanguageInfo]:
        before = len(self.violations)
        name = self.string(self.required(raw, "name", path), path + ("name",))
        kwargs: Dict[str, Any] = {}
        if "codemirror_mode" in raw:
            mode = raw["codemirror_mode"]
            if isinstance(mode, (str, dict)):
                kwargs["codemirror_mode"] = copy.deepcopy(mode)
            else:
                self.structural(
                    f"codemirror_mode must be a string or object, got {_type_name(mode)}",
                    path + ("codemirror_mode",),
                )
        for key in _LANGUAGE_INFO_STRINGS:
            if key in raw:
                kwargs[key] = self.string(raw[key], path + (key,))
        if len(self.violations) != before or name is None:
            return None
        known = {"name", "codemirror_mode"} | set(_LANGUAGE_INFO_STRINGS)
        return LanguageInfo(name, extra=_extra(raw, known), **kwargs)

    def notebook(self, value: Any) -> Optional[Notebook]:
        if not isinstance(value, dict):
            self.structural(f"notebook must be an object, got {_type_name(value)}", ())
            return None

        major = self.version(value, "nbformat")
        minor = self.version(value, "nbformat_minor")
        if major is not None and major != 4:
            log.warning("nbformat %d is not version 4; validating against the v4 model", major)

        metadata = None
        raw_meta = self.mapping(self.required(value, "metadata", ()), ("metadata",))
        if raw_meta is not None:
            metadata = self.notebook_metadata(raw_meta)

        raw_cells = self.required(value, "cells", ())
        if raw_cells is _MISSING:
            return None
        if not isinstance(raw_cells, list):
            self.structural(f"cells must be an array, got {_type_name(raw_cells)}", ("cells",))
            return None

        if major is not None and minor is not None:
            ids_required = self.policy.ids_required(major, minor)
        else:
            ids_required = bool(self.policy.require_cell_ids)

        ids = UniqueRegistry("id", ("id",))
        names: List[Tuple[int, str]] = []
        cells: List[Cell] = []
        for index, raw_cell in enumerate(raw_cells):
            cell = self.cell(raw_cell, index, ids_required)
            if isinstance(raw_cell, dict):
                cell_id = raw_cell.get("id")
                if isinstance(cell_id, str):
                    dup = ids.add(cell_id, index)
                    if dup is not None:
                        self.violations.append(dup)
                meta = raw_cell.get("metadata")
                if isinstance(meta, dict) and isinstance(meta.get("name"), str) and meta["name"]:
                    names.append((index, meta["name"]))
            if cell is not None:
                cells.append(cell)
        self.violations.extend(check_unique(names, "name", ("metadata", "name")))

        if self.violations:
            return None
        log.debug("parsed notebook v%s.%s with %d cells", major, minor, len(cells))
        return Notebook(major, minor, metadata, cells, _extra(value, {"nbformat", "nbformat_minor", "metadata", "cells"}))


def parse_dict(value: Any, policy: Optional[Policy] = None) -> ParseResult:
    """Validate a JSON-like value and build a Notebook from it.

    Validation is exhaustive: every violation in the document is reported.
    On any violation the result carries no notebook.
    """
    reader = _Reader(policy or Policy())
    nb = reader.notebook(value)
    if reader.violations:
        log.debug("notebook has %d violations", len(reader.violations))
        return ParseResult(None, reader.violations)
    return ParseResult(nb)


def load(value: Any, policy: Optional[Policy] = None) -> Notebook:
    """Like parse_dict, but raise NotebookValidationError on violations."""
    result = parse_dict(value, policy)
    if result.notebook is None:
        raise NotebookValidationError(result.violations)
    return result.notebook


def parse_text(text: str, policy: Optional[Policy] = None) -> ParseResult:
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        return ParseResult(None, [StructuralError(f"invalid JSON: {e}", ())])
    return parse_dict(value, policy)


def parse_file(path: str, policy: Optional[Policy] = None) -> ParseResult:
    with open(path, "rb") as f:
        data = f.read()
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        return ParseResult(None, [StructuralError(f"invalid UTF-8: {e}", ())])
    return parse_text(text, policy)
