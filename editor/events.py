"""
Editor events.

Published on the editor's EventBus so views can refresh without
watching the store.
"""

from __future__ import annotations

from enum import Enum, auto


class EditorEvent(Enum):
    """Editor-specific events."""

    # Tree lifecycle
    TREE_LOADED = auto()
    TREE_RESET = auto()
    TREE_MODIFIED = auto()

    # Derived state
    VALIDATION_UPDATED = auto()
    LAYOUT_UPDATED = auto()

    # Selection events
    SELECTION_CHANGED = auto()

    # Persistence events
    TREE_SAVED = auto()
    TREE_EXPORTED = auto()
    LOAD_FAILED = auto()
    SAVE_FAILED = auto()
    EXPORT_FAILED = auto()
