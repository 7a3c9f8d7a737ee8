"""
Editor session state.

Everything here is ephemeral: positions, selection, the dirty flag and
cached validation. None of it is ever written into a tree document.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Optional

from dialogs.layout import NodePosition
from dialogs.validator import ValidationReport


@dataclass
class EditorSession:
    """
    Attributes:
        key: Identifies the session for debounced work
        node_positions: Canvas position per node id (optional per node)
        selected_node_id: Highlighted node
        selected_response_index: Highlighted response of selected_node_id
        is_dirty: Unsaved changes since the last load or save
        source_name: Named resource the tree was loaded from / saved to
        revision: Incremented by every mutation
        validation: Cached report, or None when stale
        validated_revision: Revision the cached report describes
    """
    key: str = field(default_factory=lambda: uuid.uuid4().hex)
    node_positions: dict[str, NodePosition] = field(default_factory=dict)
    selected_node_id: Optional[str] = None
    selected_response_index: Optional[int] = None
    is_dirty: bool = False
    source_name: Optional[str] = None
    revision: int = 0
    validation: Optional[ValidationReport] = None
    validated_revision: int = -1

    @property
    def validation_is_current(self) -> bool:
        return self.validation is not None and self.validated_revision == self.revision

    def clear_selection(self) -> None:
        self.selected_node_id = None
        self.selected_response_index = None

    def clear(self) -> None:
        """Forget everything tied to the current tree."""
        self.node_positions.clear()
        self.clear_selection()
        self.is_dirty = False
        self.source_name = None
        self.validation = None
        self.validated_revision = -1
        self.revision += 1
