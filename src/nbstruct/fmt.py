from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .config import Config
from .errors import NotebookValidationError, StructuralError
from .parse import parse_text
from .serialize import serialize

log = logging.getLogger(__name__)


def format_text(text: str, config: Optional[Config] = None) -> str:
    """Rewrite a notebook document in canonical form.

    Multiline fields take the configured wire encoding and keys are laid out
    by the writer options. Formatting an already formatted text is a no-op.
    """
    config = config or Config()
    result = parse_text(text, config.policy)
    if result.notebook is None:
        raise NotebookValidationError(result.violations)
    return serialize(result.notebook, config.writer)


def format_file(path: Path, config: Optional[Config] = None, *, check: bool = False) -> bool:
    """Format ``path`` in place. Returns True if the text changed.

    With check=True the file is left untouched.
    """
    try:
        original = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise NotebookValidationError([StructuralError(f"invalid UTF-8: {e}", ())]) from e
    text = format_text(original, config)
    changed = text != original
    if changed and not check:
        path.write_text(text, encoding="utf-8")
        log.debug("rewrote %s", path)
    return changed
