"""
Canonical JSON codec for dialog trees.

Reading runs three gates in order: JSON decoding, the bundled JSON
Schema (schemas/dialog_tree.schema.json), then the Pydantic model. Any
failure is reported as a DocumentError with a message fit for display.

Writing always produces the canonical document: tree-level fields only,
in schema key order, so exporting an unchanged tree yields identical
bytes every time.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import jsonschema
from pydantic import ValidationError

from dialogs.model import DialogTree

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schemas" / "dialog_tree.schema.json"


class DocumentError(ValueError):
    """A dialog tree document could not be read."""


@lru_cache(maxsize=1)
def load_schema() -> dict[str, Any]:
    """Load the bundled dialog tree JSON Schema."""
    with open(SCHEMA_PATH, 'r', encoding='utf-8') as f:
        return json.load(f)


def validate_document(data: Any) -> None:
    """
    Check decoded JSON against the dialog tree schema.

    Raises:
        DocumentError: Describing the first schema violation
    """
    try:
        jsonschema.validate(instance=data, schema=load_schema())
    except jsonschema.ValidationError as e:
        location = "/".join(str(part) for part in e.absolute_path) or "<root>"
        raise DocumentError(f"Schema violation at {location}: {e.message}") from e


def tree_from_dict(data: Any) -> DialogTree:
    """Build a tree from decoded JSON, enforcing schema and model rules."""
    validate_document(data)
    try:
        return DialogTree.from_dict(data)
    except ValidationError as e:
        first = e.errors()[0]
        raise DocumentError(f"Invalid dialog tree: {first['msg']}") from e


def tree_from_json(content: str | bytes) -> DialogTree:
    """
    Parse a canonical dialog tree document.

    Args:
        content: JSON text or UTF-8 bytes

    Raises:
        DocumentError: If the content is not a valid dialog tree
    """
    if isinstance(content, bytes):
        try:
            content = content.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise DocumentError(f"Document is not UTF-8: {e}") from e

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise DocumentError(
            f"Invalid JSON at line {e.lineno}, column {e.colno}: {e.msg}"
        ) from e

    return tree_from_dict(data)


def tree_to_json(tree: DialogTree, indent: int = 2) -> str:
    """Serialize a tree to its canonical JSON document."""
    return json.dumps(tree.to_dict(), indent=indent, ensure_ascii=False)
