"""
Dialogs module - the dialog tree domain.

Provides:
- Data model (DialogTree, DialogNode, Response, Portrait)
- Canonical JSON reading/writing with schema checks
- Validation (errors and warnings)
- Structural auto-layout
- Text script import
- Preview playback
"""

from dialogs.model import DialogTree, DialogNode, Response, Portrait, new_tree_template
from dialogs.codec import DocumentError, tree_from_json, tree_to_json
from dialogs.validator import (
    IssueKind,
    Severity,
    ValidationIssue,
    ValidationReport,
    ValidationRule,
    validate_tree,
)
from dialogs.layout import NodePosition, auto_layout, compute_depths
from dialogs.parser import DialogParser, ScriptSyntaxError
from dialogs.player import DialogPlayer, PlayerEvent

__all__ = [
    "DialogTree",
    "DialogNode",
    "Response",
    "Portrait",
    "new_tree_template",
    "DocumentError",
    "tree_from_json",
    "tree_to_json",
    "IssueKind",
    "Severity",
    "ValidationIssue",
    "ValidationReport",
    "ValidationRule",
    "validate_tree",
    "NodePosition",
    "auto_layout",
    "compute_depths",
    "DialogParser",
    "ScriptSyntaxError",
    "DialogPlayer",
    "PlayerEvent",
]
