"""
Dialog player - walks a tree the way the game runtime does.

Used by the editor's preview: the tree is read, never modified.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional

from dialogs.model import DialogNode, DialogTree, Portrait, Response
from runtime.events import EventBus

logger = logging.getLogger(__name__)


class PlayerEvent(Enum):
    """Preview playback events."""
    DIALOG_STARTED = auto()
    NODE_ENTERED = auto()
    DIALOG_ENDED = auto()


@dataclass
class HistoryEntry:
    """One exchange: what was said and what the player answered."""
    node_id: str
    speaker: str
    message: str
    response_text: Optional[str] = None


class DialogPlayer:
    """
    Plays a dialog tree one node at a time.

    Usage:
        player = DialogPlayer(tree, variables={"player_name": "Ash"})
        player.start()
        while player.is_active:
            print(player.message)
            player.choose(0)
    """

    def __init__(
        self,
        tree: DialogTree,
        events: Optional[EventBus] = None,
        variables: Optional[dict[str, Any]] = None,
    ):
        self.tree = tree
        self.events = events
        self.variables: dict[str, Any] = dict(variables or {})

        self._current_id: Optional[str] = None
        self._history: list[HistoryEntry] = []

    @property
    def is_active(self) -> bool:
        return self._current_id is not None

    @property
    def current_node(self) -> Optional[DialogNode]:
        return self.tree.get_node(self._current_id)

    @property
    def message(self) -> str:
        """Current message with {variable} placeholders filled in."""
        node = self.current_node
        if node is None:
            return ""
        return self._process_text(node.message)

    @property
    def current_portrait(self) -> Optional[Portrait]:
        node = self.current_node
        if node is None:
            return None
        return node.portrait or self.tree.portrait

    @property
    def choices(self) -> list[Response]:
        node = self.current_node
        return list(node.responses) if node else []

    @property
    def history(self) -> list[HistoryEntry]:
        return list(self._history)

    def start(self) -> bool:
        """Enter the start node. Returns False if it does not exist."""
        self._history.clear()
        if not self.tree.has_node(self.tree.start_node_id):
            logger.warning(
                'Cannot preview "%s": start node "%s" not found',
                self.tree.id, self.tree.start_node_id,
            )
            self._current_id = None
            return False

        self._publish(PlayerEvent.DIALOG_STARTED, tree_id=self.tree.id)
        self._enter(self.tree.start_node_id)
        return True

    def choose(self, index: int) -> Optional[DialogNode]:
        """
        Pick a response of the current node.

        A node without responses ends the conversation on any choice.

        Returns:
            The node entered, or None if the conversation ended

        Raises:
            RuntimeError: If no conversation is active
            IndexError: If index is not a response of the current node
        """
        node = self.current_node
        if node is None:
            raise RuntimeError("No active conversation")

        if not node.responses:
            self._record(node, None)
            self._end()
            return None

        if not 0 <= index < len(node.responses):
            raise IndexError(
                f'Response {index} out of range for node "{node.id}" '
                f"({len(node.responses)} responses)"
            )

        response = node.responses[index]
        self._record(node, response.text)

        target = response.next_node_id
        if target is None:
            self._end()
            return None
        if not self.tree.has_node(target):
            logger.warning('Dialog node not found: "%s"', target)
            self._end()
            return None

        self._enter(target)
        return self.current_node

    def stop(self) -> None:
        if self.is_active:
            self._end()

    def _enter(self, node_id: str) -> None:
        self._current_id = node_id
        self._publish(PlayerEvent.NODE_ENTERED, tree_id=self.tree.id, node_id=node_id)

    def _end(self) -> None:
        self._current_id = None
        self._publish(PlayerEvent.DIALOG_ENDED, tree_id=self.tree.id)

    def _record(self, node: DialogNode, response_text: Optional[str]) -> None:
        self._history.append(HistoryEntry(
            node_id=node.id,
            speaker=self.tree.character_name,
            message=self._process_text(node.message),
            response_text=response_text,
        ))

    def _process_text(self, text: str) -> str:
        result = text
        for key, value in self.variables.items():
            result = result.replace(f"{{{key}}}", str(value))
        return result

    def _publish(self, event_type: PlayerEvent, **data: Any) -> None:
        if self.events:
            self.events.publish(event_type, **data)
