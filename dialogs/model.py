"""
Dialog tree data model.

A DialogTree is one character's branching conversation. Nodes are keyed
by id; each node carries an ordered list of player responses, and a
response either points at another node or ends the conversation (null
target).

Models use Pydantic for:
- Validation when reading documents
- camelCase aliases matching the game's JSON format
- Structural equality (==) for comparing snapshots

Python code uses snake_case field names; construction accepts either
form:

    Response(text="Bye", next_node_id=None)
    Response.model_validate({"text": "Bye", "nextNodeId": None})
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Portrait(BaseModel):
    """Portrait image reference. A null path means no image."""

    model_config = ConfigDict(extra='ignore', validate_assignment=True)

    path: str | None = None
    alt: str = ""

    def to_dict(self) -> dict:
        return {"path": self.path, "alt": self.alt}


class Response(BaseModel):
    """A player choice. next_node_id None terminates the conversation."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra='ignore',
        validate_assignment=True,
    )

    text: str = ""
    next_node_id: str | None = Field(default=None, alias="nextNodeId")

    @property
    def is_terminal(self) -> bool:
        return self.next_node_id is None

    def to_dict(self) -> dict:
        return {"text": self.text, "nextNodeId": self.next_node_id}


class DialogNode(BaseModel):
    """
    One conversation beat.

    Attributes:
        id: Permanent identifier, equal to the node's key in the tree
        message: Text spoken by the character
        responses: Player choices, in display order
        portrait: Override for the tree portrait (None = use the tree's)
    """

    model_config = ConfigDict(extra='ignore', validate_assignment=True)

    id: str
    message: str = ""
    responses: list[Response] = Field(default_factory=list)
    portrait: Portrait | None = None

    def targets(self) -> list[str]:
        """Non-null response targets, in response order."""
        return [r.next_node_id for r in self.responses if r.next_node_id is not None]

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "message": self.message,
            "responses": [r.to_dict() for r in self.responses],
        }
        if self.portrait is not None:
            data["portrait"] = self.portrait.to_dict()
        return data


class DialogTree(BaseModel):
    """
    A complete branching conversation for one character.

    The node mapping keeps insertion order, which is the order used for
    export and for laying out unreachable nodes.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra='ignore',
        validate_assignment=True,
    )

    id: str
    character_name: str = Field(default="", alias="characterName")
    portrait: Portrait = Field(default_factory=Portrait)
    start_node_id: str = Field(default="", alias="startNodeId")
    nodes: dict[str, DialogNode] = Field(default_factory=dict)

    @model_validator(mode='after')
    def _check_node_keys(self) -> DialogTree:
        for key, node in self.nodes.items():
            if node.id != key:
                raise ValueError(
                    f'Node key "{key}" does not match node id "{node.id}"'
                )
        return self

    def get_node(self, node_id: str | None) -> DialogNode | None:
        if node_id is None:
            return None
        return self.nodes.get(node_id)

    def has_node(self, node_id: str | None) -> bool:
        return node_id is not None and node_id in self.nodes

    def to_dict(self) -> dict:
        """Canonical document: tree-level fields only, in schema order."""
        return {
            "id": self.id,
            "characterName": self.character_name,
            "portrait": self.portrait.to_dict(),
            "startNodeId": self.start_node_id,
            "nodes": {key: node.to_dict() for key, node in self.nodes.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> DialogTree:
        return cls.model_validate(data)


def new_tree_template() -> DialogTree:
    """Minimal tree: a single empty start node."""
    return DialogTree(
        id="new-tree",
        character_name="Character Name",
        portrait=Portrait(path=None, alt="Character portrait"),
        start_node_id="start",
        nodes={"start": DialogNode(id="start")},
    )
