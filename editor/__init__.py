"""
Editor module.

Provides the authoring side of dialog trees:
- TreeStore: the edited tree, its session, and the mutation API
- PersistenceGateway / TreeRepository: load, save and export
- Confirmation and notification ports (tkinter or headless)
- Editor events and exceptions
"""

from editor.errors import (
    EditorError,
    MutationError,
    NoActiveTreeError,
    DuplicateIdError,
    UnknownNodeError,
    IndexOutOfRangeError,
    PersistenceError,
    TreeParseError,
    TreeWriteError,
    TreeNotFoundError,
    InvalidTreeNameError,
    LoadInProgressError,
)
from editor.events import EditorEvent
from editor.session import EditorSession
from editor.store import TreeStore, MoveDirection
from editor.prompts import (
    ConfirmationPort,
    NotificationSink,
    StaticConfirm,
    LogNotifier,
    TkPrompt,
)
from editor.project import TreeRepository, PersistenceGateway, PersistResult

__all__ = [
    # Errors
    "EditorError",
    "MutationError",
    "NoActiveTreeError",
    "DuplicateIdError",
    "UnknownNodeError",
    "IndexOutOfRangeError",
    "PersistenceError",
    "TreeParseError",
    "TreeWriteError",
    "TreeNotFoundError",
    "InvalidTreeNameError",
    "LoadInProgressError",
    # State
    "EditorEvent",
    "EditorSession",
    "TreeStore",
    "MoveDirection",
    # Ports
    "ConfirmationPort",
    "NotificationSink",
    "StaticConfirm",
    "LogNotifier",
    "TkPrompt",
    # Persistence
    "TreeRepository",
    "PersistenceGateway",
    "PersistResult",
]
