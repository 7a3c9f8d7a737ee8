"""
Tree Store - the single owner of the dialog tree being edited.

All edits go through the store's methods. Each successful mutation:
- marks the session dirty
- bumps the session revision, which invalidates cached validation
- schedules a debounced validation pass (when a Debouncer is attached)
- publishes EditorEvent.TREE_MODIFIED

The live tree is never handed out; snapshot() and get_node() return
copies. Queries pull derived state on demand: validation() returns the
cached report when it is current and recomputes otherwise.

Usage:
    store = TreeStore(events=bus, debouncer=Debouncer(0.3))
    store.create_new_tree()
    store.add_node("shop")
    store.add_response("start")
    store.update_response("start", 0, "Show me your wares", "shop")
    report = store.validation()
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional

from dialogs.layout import NodePosition, auto_layout
from dialogs.model import DialogNode, DialogTree, Portrait, Response, new_tree_template
from dialogs.validator import ValidationIssue, ValidationReport, validate_tree
from editor.errors import (
    DuplicateIdError,
    IndexOutOfRangeError,
    MutationError,
    NoActiveTreeError,
    UnknownNodeError,
)
from editor.events import EditorEvent
from editor.session import EditorSession
from runtime.config import EditorConfig
from runtime.events import EventBus
from runtime.scheduler import Debouncer

logger = logging.getLogger(__name__)


class MoveDirection(str, Enum):
    UP = "up"
    DOWN = "down"


class TreeStore:
    """
    Authoritative in-memory dialog tree plus editor session.

    Attributes:
        events: Bus for change notifications
        debouncer: Scheduler for validation passes (None = validate lazily)
        config: Layout spacing and validation limits
    """

    def __init__(
        self,
        events: Optional[EventBus] = None,
        debouncer: Optional[Debouncer] = None,
        config: Optional[EditorConfig] = None,
    ):
        self.events = events or EventBus()
        self.debouncer = debouncer
        self.config = config or EditorConfig()
        self.session = EditorSession()
        self._tree: Optional[DialogTree] = None

    @classmethod
    def from_config(cls, config: EditorConfig, events: Optional[EventBus] = None) -> TreeStore:
        """Store with a debouncer using the configured validation delay."""
        return cls(events=events, debouncer=Debouncer(config.debounce_seconds), config=config)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def has_tree(self) -> bool:
        return self._tree is not None

    @property
    def is_dirty(self) -> bool:
        return self.session.is_dirty

    @property
    def tree_id(self) -> Optional[str]:
        return self._tree.id if self._tree else None

    @property
    def start_node_id(self) -> Optional[str]:
        return self._tree.start_node_id if self._tree else None

    @property
    def selected_node_id(self) -> Optional[str]:
        return self.session.selected_node_id

    @property
    def selected_response_index(self) -> Optional[int]:
        return self.session.selected_response_index

    @property
    def node_positions(self) -> dict[str, NodePosition]:
        return dict(self.session.node_positions)

    def snapshot(self) -> DialogTree:
        """Deep copy of the current tree."""
        return self._require_tree().model_copy(deep=True)

    def get_node(self, node_id: str) -> DialogNode:
        """Copy of one node."""
        return self._require_node(node_id).model_copy(deep=True)

    def node_ids(self) -> list[str]:
        return list(self._require_tree().nodes)

    def has_node(self, node_id: str) -> bool:
        return self._tree is not None and node_id in self._tree.nodes

    def suggest_node_id(self, base: str = "node") -> str:
        """First unused id among base, base-1, base-2, ..."""
        tree = self._require_tree()
        candidate = base
        counter = 1
        while candidate in tree.nodes:
            candidate = f"{base}-{counter}"
            counter += 1
        return candidate

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def load_dialog_tree(self, tree: DialogTree, source_name: Optional[str] = None) -> None:
        """Replace the whole tree. The session starts clean."""
        self._cancel_pending_validation()
        self._tree = tree.model_copy(deep=True)
        self.session.clear()
        self.session.source_name = source_name
        self._refresh_validation()
        logger.info('Loaded dialog tree "%s" (%d nodes)', self._tree.id, len(self._tree.nodes))
        self.events.publish(EditorEvent.TREE_LOADED, tree_id=self._tree.id, source_name=source_name)

    def create_new_tree(self) -> None:
        """Replace the tree with the single-start-node template."""
        self.load_dialog_tree(new_tree_template())

    def reset(self) -> None:
        """Drop the tree and all session state."""
        self._cancel_pending_validation()
        self._tree = None
        self.session.clear()
        self.events.publish(EditorEvent.TREE_RESET)

    def mark_clean(self, source_name: Optional[str] = None) -> None:
        """Record that the current tree has been durably stored."""
        self.session.is_dirty = False
        if source_name is not None:
            self.session.source_name = source_name

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def update_tree_metadata(
        self,
        *,
        id: Optional[str] = None,
        character_name: Optional[str] = None,
        portrait: Optional[Portrait] = None,
    ) -> None:
        """Change tree-level fields; arguments left as None are untouched."""
        tree = self._require_tree()
        if id is not None:
            tree.id = id
        if character_name is not None:
            tree.character_name = character_name
        if portrait is not None:
            tree.portrait = portrait.model_copy()
        self._touch("update_tree_metadata")

    def add_node(self, node_id: str, message: str = "") -> None:
        """
        Insert an empty node and select it.

        Raises:
            DuplicateIdError: If node_id is taken
        """
        tree = self._require_tree()
        if not node_id:
            raise MutationError("Node id must not be empty")
        if node_id in tree.nodes:
            raise DuplicateIdError(node_id)

        tree.nodes[node_id] = DialogNode(id=node_id, message=message)
        self.session.selected_node_id = node_id
        self.session.selected_response_index = None
        self._touch("add_node", node_id=node_id)

    def delete_node(self, node_id: str) -> None:
        """
        Remove a node. Every response that pointed at it becomes terminal.

        Deleting the start node leaves start_node_id dangling; the
        validator reports it.
        """
        tree = self._require_tree()
        self._require_node(node_id)

        del tree.nodes[node_id]
        rewired = 0
        for node in tree.nodes.values():
            for response in node.responses:
                if response.next_node_id == node_id:
                    response.next_node_id = None
                    rewired += 1

        self.session.node_positions.pop(node_id, None)
        if self.session.selected_node_id == node_id:
            self.session.clear_selection()

        if rewired:
            logger.debug('Deleting "%s" made %d response(s) terminal', node_id, rewired)
        self._touch("delete_node", node_id=node_id)

    def update_node_message(self, node_id: str, message: str) -> None:
        self._require_node(node_id).message = message
        self._touch("update_node_message", node_id=node_id)

    def update_node_portrait(self, node_id: str, portrait: Optional[Portrait]) -> None:
        """Set the node's portrait override; None reverts to the tree portrait."""
        node = self._require_node(node_id)
        node.portrait = portrait.model_copy() if portrait is not None else None
        self._touch("update_node_portrait", node_id=node_id)

    def set_start_node(self, node_id: str) -> None:
        tree = self._require_tree()
        self._require_node(node_id)
        tree.start_node_id = node_id
        self._touch("set_start_node", node_id=node_id)

    def add_response(self, node_id: str) -> int:
        """Append an empty terminal response. Returns its index."""
        node = self._require_node(node_id)
        node.responses.append(Response())
        index = len(node.responses) - 1
        self._touch("add_response", node_id=node_id, index=index)
        return index

    def update_response(
        self,
        node_id: str,
        index: int,
        text: str,
        next_node_id: Optional[str],
    ) -> None:
        """
        Replace text and target of a response.

        The target does not have to exist yet; a dangling target is a
        validation error, not a mutation error.
        """
        node = self._require_node(node_id)
        self._require_index(node, index)
        response = node.responses[index]
        response.text = text
        response.next_node_id = next_node_id or None
        self._touch("update_response", node_id=node_id, index=index)

    def delete_response(self, node_id: str, index: int) -> None:
        node = self._require_node(node_id)
        self._require_index(node, index)
        del node.responses[index]

        if self.session.selected_node_id == node_id:
            selected = self.session.selected_response_index
            if selected == index:
                self.session.selected_response_index = None
            elif selected is not None and selected > index:
                self.session.selected_response_index = selected - 1

        self._touch("delete_response", node_id=node_id, index=index)

    def move_response(
        self,
        node_id: str,
        index: int,
        direction: MoveDirection | str,
    ) -> bool:
        """
        Swap a response with its neighbour.

        Moving the first response up or the last one down does nothing
        and leaves the tree clean.

        Returns:
            True if the order changed
        """
        node = self._require_node(node_id)
        self._require_index(node, index)
        try:
            direction = MoveDirection(direction)
        except ValueError:
            raise MutationError(f'Unknown move direction "{direction}"') from None

        other = index - 1 if direction is MoveDirection.UP else index + 1
        if not 0 <= other < len(node.responses):
            return False

        responses = node.responses
        responses[index], responses[other] = responses[other], responses[index]

        if self.session.selected_node_id == node_id:
            if self.session.selected_response_index == index:
                self.session.selected_response_index = other
            elif self.session.selected_response_index == other:
                self.session.selected_response_index = index

        self._touch("move_response", node_id=node_id, index=index, to_index=other)
        return True

    # -------------------------------------------------------------------------
    # Selection and positions (session only, never dirty)
    # -------------------------------------------------------------------------

    def select_node(self, node_id: Optional[str]) -> None:
        if node_id is not None:
            self._require_node(node_id)
        self.session.selected_node_id = node_id
        self.session.selected_response_index = None
        self._publish_selection()

    def select_response(self, node_id: str, index: int) -> None:
        node = self._require_node(node_id)
        self._require_index(node, index)
        self.session.selected_node_id = node_id
        self.session.selected_response_index = index
        self._publish_selection()

    def focus_issue(self, issue: ValidationIssue) -> bool:
        """
        Select whatever a validation issue refers to.

        Returns:
            False if the issue names no node that still exists
        """
        if not issue.node_id or not self.has_node(issue.node_id):
            return False
        node = self._tree.nodes[issue.node_id]
        index = issue.response_index
        if index is not None and 0 <= index < len(node.responses):
            self.select_response(issue.node_id, index)
        else:
            self.select_node(issue.node_id)
        return True

    def set_node_position(self, node_id: str, x: float, y: float) -> None:
        self._require_node(node_id)
        self.session.node_positions[node_id] = NodePosition(float(x), float(y))

    def layout(self) -> dict[str, NodePosition]:
        """Structural layout of the current tree, without applying it."""
        return auto_layout(
            self._require_tree(),
            column_width=self.config.column_width,
            row_spacing=self.config.row_spacing,
        )

    def apply_layout(self) -> dict[str, NodePosition]:
        """Run auto-layout and merge the result into the session positions."""
        positions = self.layout()
        self.session.node_positions.update(positions)
        self.events.publish(EditorEvent.LAYOUT_UPDATED, positions=dict(positions))
        return positions

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validation(self) -> ValidationReport:
        """Current report, recomputed if any mutation happened since the last pass."""
        self._require_tree()
        if not self.session.validation_is_current:
            self._refresh_validation()
        return self.session.validation

    @property
    def validation_errors(self) -> list[ValidationIssue]:
        return list(self.validation().errors)

    @property
    def validation_warnings(self) -> list[ValidationIssue]:
        return list(self.validation().warnings)

    def validate_now(self) -> ValidationReport:
        """Recompute immediately, dropping any pending debounced pass."""
        self._require_tree()
        self._cancel_pending_validation()
        return self._refresh_validation()

    def _refresh_validation(self) -> ValidationReport:
        report = validate_tree(self._tree, self.config.validation_limits())
        self.session.validation = report
        self.session.validated_revision = self.session.revision
        self.events.publish(
            EditorEvent.VALIDATION_UPDATED,
            report=report,
            revision=self.session.revision,
        )
        return report

    def _run_scheduled_validation(self) -> None:
        if self._tree is None or self.session.validation_is_current:
            return
        self._refresh_validation()

    def _cancel_pending_validation(self) -> None:
        if self.debouncer is not None:
            self.debouncer.cancel(self.session.key)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _touch(self, operation: str, **data: Any) -> None:
        session = self.session
        session.is_dirty = True
        session.revision += 1
        session.validation = None
        if self.debouncer is not None:
            self.debouncer.schedule(session.key, self._run_scheduled_validation)
        self.events.publish(EditorEvent.TREE_MODIFIED, operation=operation, **data)

    def _publish_selection(self) -> None:
        self.events.publish(
            EditorEvent.SELECTION_CHANGED,
            node_id=self.session.selected_node_id,
            response_index=self.session.selected_response_index,
        )

    def _require_tree(self) -> DialogTree:
        if self._tree is None:
            raise NoActiveTreeError()
        return self._tree

    def _require_node(self, node_id: str) -> DialogNode:
        node = self._require_tree().nodes.get(node_id)
        if node is None:
            raise UnknownNodeError(node_id)
        return node

    @staticmethod
    def _require_index(node: DialogNode, index: int) -> None:
        if not 0 <= index < len(node.responses):
            raise IndexOutOfRangeError(node.id, index, len(node.responses))
