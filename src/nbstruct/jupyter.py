from __future__ import annotations

import logging
from typing import List, Optional

import nbformat

from .config import Policy, WriterOptions
from .errors import StructuralError
from .model import Notebook
from .parse import load
from .serialize import to_dict

log = logging.getLogger(__name__)


def to_notebook_node(nb: Notebook, options: Optional[WriterOptions] = None) -> nbformat.NotebookNode:
    """Convert a Notebook to nbformat's NotebookNode."""
    return nbformat.from_dict(to_dict(nb, options))


def from_notebook_node(node: nbformat.NotebookNode, policy: Optional[Policy] = None) -> Notebook:
    """Build a Notebook from a NotebookNode, e.g. one from ``nbformat.read``.

    Raises NotebookValidationError if the node is not a valid document.
    """
    return load(node, policy)


def schema_violations(nb: Notebook) -> List[StructuralError]:
    """Check the serialized notebook against nbformat's bundled JSON schema.

    nbformat stops at the first schema error, so at most one violation is
    returned.
    """
    node = to_notebook_node(nb)
    try:
        nbformat.validate(node)
    except nbformat.ValidationError as e:
        message = getattr(e, "message", None) or str(e)
        path = tuple(getattr(e, "absolute_path", ()) or ())
        log.debug("nbformat schema check failed: %s", message)
        return [StructuralError(f"schema: {message}", path)]
    return []
