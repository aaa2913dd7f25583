from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import Config, load_config
from .errors import ConfigError, NotebookValidationError
from .fmt import format_file
from .jupyter import schema_violations
from .parse import parse_file


def _cmd_validate(path: Path, config: Config, schema: bool) -> int:
    result = parse_file(str(path), config.policy)
    nb = result.notebook
    violations = list(result.violations)
    if nb is not None and schema:
        violations.extend(schema_violations(nb))
    for v in violations:
        print(f"{v.kind}: {v}")
    if nb is None or violations:
        print(f"FAIL: {len(violations)} violation(s) in {path}")
        return 1
    print(f"OK: {path} ({len(nb.cells)} cells)")
    return 0


def _cmd_fmt(path: Path, config: Config, check: bool) -> int:
    changed = format_file(path, config, check=check)
    if check:
        print(f"{'Would reformat' if changed else 'Unchanged'}: {path}")
        return 1 if changed else 0
    print(f"{'Formatted' if changed else 'Unchanged'}: {path}")
    return 0


def _cmd_cells(path: Path, config: Config) -> int:
    result = parse_file(str(path), config.policy)
    if result.notebook is None:
        for v in result.violations:
            print(f"{v.kind}: {v}")
        return 1
    for i, cell in enumerate(result.notebook.cells):
        print(f"{i}\t{cell.id or '-'}\t{cell.cell_type}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="nbstruct", description="Notebook document validator")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_validate = sub.add_parser("validate", help="Validate a notebook and list every violation")
    p_validate.add_argument("file")
    p_validate.add_argument(
        "--schema",
        action="store_true",
        help="Also check against nbformat's JSON schema",
    )

    p_fmt = sub.add_parser("fmt", help="Rewrite a notebook in canonical form")
    p_fmt.add_argument("file")
    p_fmt.add_argument("--check", action="store_true", help="Only report whether the file would change")

    p_cells = sub.add_parser("cells", help="List cell index, id and type")
    p_cells.add_argument("file")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config) if args.config else Config()
    except (OSError, ConfigError) as e:
        print(f"config error: {e}", file=sys.stderr)
        return 2

    path = Path(args.file)
    try:
        if args.cmd == "validate":
            return _cmd_validate(path, config, args.schema)
        if args.cmd == "fmt":
            return _cmd_fmt(path, config, args.check)
        if args.cmd == "cells":
            return _cmd_cells(path, config)
    except NotebookValidationError as e:
        print(str(e))
        return 1
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    parser.error(f"unknown command {args.cmd}")
    return 2


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
