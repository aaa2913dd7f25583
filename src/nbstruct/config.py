from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import ConfigError

MISPLACED_POLICIES = ("reject", "ignore")
MULTILINE_ENCODINGS = ("lines", "string")


@dataclass
class Policy:
    """Validation policy.

    misplaced_fields: what to do with a variant field found on the wrong
        cell type ("reject" reports a StructuralError, "ignore" drops it).
    require_cell_ids: None follows the format version (ids from 4.5 on);
        True or False forces the rule.
    """

    misplaced_fields: str = "reject"
    require_cell_ids: Optional[bool] = None

    def __post_init__(self) -> None:
        if self.misplaced_fields not in MISPLACED_POLICIES:
            raise ConfigError(
                f"policy.misplaced_fields must be one of {MISPLACED_POLICIES}, "
                f"got {self.misplaced_fields!r}"
            )
        if self.require_cell_ids is not None and not isinstance(self.require_cell_ids, bool):
            raise ConfigError("policy.require_cell_ids must be true, false or null")

    def ids_required(self, nbformat: int, nbformat_minor: int) -> bool:
        if self.require_cell_ids is not None:
            return self.require_cell_ids
        return (nbformat, nbformat_minor) >= (4, 5)


@dataclass
class WriterOptions:
    """How the serializer lays out the wire document.

    multiline: "lines" writes multiline fields as lists of lines,
        "string" as single strings.
    """

    multiline: str = "lines"
    indent: Optional[int] = 1
    sort_keys: bool = True
    strip_orig_nbformat: bool = True

    def __post_init__(self) -> None:
        if self.multiline not in MULTILINE_ENCODINGS:
            raise ConfigError(
                f"writer.multiline must be one of {MULTILINE_ENCODINGS}, got {self.multiline!r}"
            )
        if self.indent is not None and (
            isinstance(self.indent, bool) or not isinstance(self.indent, int) or self.indent < 0
        ):
            raise ConfigError("writer.indent must be a non-negative integer or null")
        for name in ("sort_keys", "strip_orig_nbformat"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigError(f"writer.{name} must be a boolean")


@dataclass
class Config:
    policy: Policy = field(default_factory=Policy)
    writer: WriterOptions = field(default_factory=WriterOptions)


def _section(data: Mapping[str, Any], name: str, cls: type) -> Any:
    raw = data.get(name) or {}
    if not isinstance(raw, Mapping):
        raise ConfigError(f"'{name}' section must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"unknown keys in '{name}': {', '.join(map(str, unknown))}")
    return cls(**dict(raw))


def config_from_mapping(data: Optional[Mapping[str, Any]]) -> Config:
    if data is None:
        return Config()
    if not isinstance(data, Mapping):
        raise ConfigError("configuration must be a mapping")
    unknown = sorted(set(data) - {"policy", "writer"})
    if unknown:
        raise ConfigError(f"unknown configuration sections: {', '.join(map(str, unknown))}")
    return Config(
        policy=_section(data, "policy", Policy),
        writer=_section(data, "writer", WriterOptions),
    )


def load_config(path: Union[str, Path]) -> Config:
    """Read a YAML configuration file."""
    text = Path(path).read_text(encoding="utf-8")
    yaml = YAML(typ="safe")
    try:
        data: Dict[str, Any] = yaml.load(text)
    except YAMLError as e:
        raise ConfigError(f"{path}: invalid YAML: {e}") from e
    return config_from_mapping(data)
