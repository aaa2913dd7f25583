"""nbstruct – data model, validator and serializer for Jupyter notebook documents.

Parse with parse_dict/parse_text/parse_file (or load to raise on violations),
build with the new_* helpers, write with serialize/to_dict.
"""

__all__ = [
    "Notebook",
    "NotebookMetadata",
    "RawCell",
    "MarkdownCell",
    "CodeCell",
    "ExecuteResult",
    "DisplayData",
    "Stream",
    "Error",
    "ParseResult",
    "parse_dict",
    "parse_text",
    "parse_file",
    "load",
    "validate",
    "to_dict",
    "serialize",
    "NotebookFormatError",
    "StructuralError",
    "DiscriminantError",
    "UniquenessError",
    "EncodingError",
    "NotebookValidationError",
]

__version__ = "0.1.0"

from .model import (  # noqa: E402
    CodeCell,
    DisplayData,
    Error,
    ExecuteResult,
    MarkdownCell,
    Notebook,
    NotebookMetadata,
    RawCell,
    Stream,
)
from .errors import (  # noqa: E402
    DiscriminantError,
    EncodingError,
    NotebookFormatError,
    NotebookValidationError,
    StructuralError,
    UniquenessError,
)
from .parse import ParseResult, load, parse_dict, parse_file, parse_text  # noqa: E402
from .serialize import serialize, to_dict  # noqa: E402
from .validate import validate  # noqa: E402
