"""
Editor exceptions.

MutationError subclasses signal caller misuse of the Tree Store; the
store is unchanged when one is raised. PersistenceError subclasses are
caught by the persistence gateway and reported to the user, never
propagated to the host.
"""

from __future__ import annotations


class EditorError(Exception):
    """Base class for editor failures."""


# -----------------------------------------------------------------------------
# Mutation errors
# -----------------------------------------------------------------------------

class MutationError(EditorError):
    """A Tree Store operation was called with invalid arguments."""


class NoActiveTreeError(MutationError):
    def __init__(self):
        super().__init__("No dialog tree is loaded")


class DuplicateIdError(MutationError):
    def __init__(self, node_id: str):
        super().__init__(f'Node "{node_id}" already exists')
        self.node_id = node_id


class UnknownNodeError(MutationError):
    def __init__(self, node_id: str | None):
        super().__init__(f'Node "{node_id}" does not exist')
        self.node_id = node_id


class IndexOutOfRangeError(MutationError, IndexError):
    def __init__(self, node_id: str, index: int, size: int):
        super().__init__(
            f'Response index {index} out of range for node "{node_id}" ({size} responses)'
        )
        self.node_id = node_id
        self.index = index


# -----------------------------------------------------------------------------
# Persistence errors
# -----------------------------------------------------------------------------

class PersistenceError(EditorError):
    """Loading, saving or exporting failed; in-memory state is unchanged."""


class TreeParseError(PersistenceError):
    """A document or script could not be turned into a dialog tree."""


class TreeWriteError(PersistenceError):
    """A tree document could not be written."""


class TreeNotFoundError(PersistenceError):
    def __init__(self, name: str):
        super().__init__(f'Dialog tree "{name}" not found')
        self.name = name


class InvalidTreeNameError(PersistenceError):
    def __init__(self, name: str):
        super().__init__(f'Invalid dialog tree name "{name}"')
        self.name = name


class LoadInProgressError(PersistenceError):
    def __init__(self):
        super().__init__("Another dialog tree is still loading")
