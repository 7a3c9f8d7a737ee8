"""
Auto-layout for dialog trees.

Positions come from graph structure alone:
- Column = shortest distance (in responses) from the start node
- Row = order of discovery within the column, breadth-first
- Nodes unreachable from the start share one extra column to the right
  of the deepest reachable column, in tree order

Saved positions are never consulted, so laying out an unchanged tree
always gives the same result.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass

from dialogs.model import DialogTree

COLUMN_WIDTH = 300.0
ROW_SPACING = 150.0


@dataclass(frozen=True)
class NodePosition:
    """Canvas coordinates of a node."""
    x: float
    y: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


def compute_levels(tree: DialogTree) -> tuple[list[list[str]], list[str]]:
    """
    Group node ids by depth.

    Returns:
        (levels, unreachable): levels[d] lists the ids at depth d in
        discovery order; unreachable lists the remaining ids in tree order
    """
    levels: list[list[str]] = []
    depth: dict[str, int] = {}

    start = tree.start_node_id
    if tree.has_node(start):
        depth[start] = 0
        queue = deque([start])
        while queue:
            node_id = queue.popleft()
            level = depth[node_id]
            if level == len(levels):
                levels.append([])
            levels[level].append(node_id)

            for target in tree.nodes[node_id].targets():
                # First discovery fixes the depth; cycles end here.
                if target in tree.nodes and target not in depth:
                    depth[target] = level + 1
                    queue.append(target)

    unreachable = [node_id for node_id in tree.nodes if node_id not in depth]
    return levels, unreachable


def compute_depths(tree: DialogTree) -> dict[str, int | None]:
    """Depth of each node; None for nodes unreachable from the start."""
    levels, unreachable = compute_levels(tree)
    depths: dict[str, int | None] = {}
    for level, node_ids in enumerate(levels):
        for node_id in node_ids:
            depths[node_id] = level
    for node_id in unreachable:
        depths[node_id] = None
    return depths


def auto_layout(
    tree: DialogTree,
    column_width: float = COLUMN_WIDTH,
    row_spacing: float = ROW_SPACING,
) -> dict[str, NodePosition]:
    """
    Compute a position for every node.

    Args:
        tree: Tree snapshot (not modified)
        column_width: Horizontal distance between depth columns
        row_spacing: Vertical distance between nodes in a column

    Returns:
        Mapping of node id to NodePosition
    """
    levels, unreachable = compute_levels(tree)
    columns = levels + ([unreachable] if unreachable else [])

    positions: dict[str, NodePosition] = {}
    for column, node_ids in enumerate(columns):
        column_height = len(node_ids) * row_spacing
        for row, node_id in enumerate(node_ids):
            positions[node_id] = NodePosition(
                x=column * column_width,
                y=row * row_spacing - column_height / 2,
            )
    return positions
