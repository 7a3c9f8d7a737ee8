import os
import sys
import pytest

# Ensure project packages can be imported
sys.path.append(os.getcwd())


def make_tree(edges, start="start", tree_id="test-tree"):
    """
    Build a tree from {node_id: [target, ...]} (None = terminal response).

    Every node and response gets non-empty text so only the graph shape
    matters to the validator.
    """
    from dialogs.model import DialogTree, DialogNode, Response

    nodes = {}
    for node_id, targets in edges.items():
        nodes[node_id] = DialogNode(
            id=node_id,
            message=f"Message of {node_id}",
            responses=[
                Response(text=f"Go to {target}", next_node_id=target)
                for target in targets
            ],
        )
    return DialogTree(
        id=tree_id,
        character_name="Tester",
        start_node_id=start,
        nodes=nodes,
    )


@pytest.fixture
def tree_factory():
    return make_tree


@pytest.fixture
def sample_tree():
    """Merchant conversation: clean, one cycle, one terminal."""
    from dialogs.model import DialogTree, DialogNode, Response, Portrait

    return DialogTree(
        id="merchant",
        character_name="Mira",
        portrait=Portrait(path="portraits/mira.png", alt="Mira"),
        start_node_id="start",
        nodes={
            "start": DialogNode(
                id="start",
                message="Welcome, traveller. Looking to trade?",
                responses=[
                    Response(text="Show me your wares", next_node_id="shop"),
                    Response(text="Who are you?", next_node_id="about"),
                ],
            ),
            "about": DialogNode(
                id="about",
                message="Just a merchant with too many potions.",
                responses=[Response(text="Back", next_node_id="start")],
                portrait=Portrait(path="portraits/mira_smile.png", alt="Mira smiling"),
            ),
            "shop": DialogNode(
                id="shop",
                message="Take a look.",
                responses=[Response(text="Leave", next_node_id=None)],
            ),
        },
    )


@pytest.fixture
def event_bus():
    """Fresh EventBus for each test."""
    from runtime.events import EventBus
    return EventBus()


@pytest.fixture
def debouncer():
    from runtime.scheduler import Debouncer
    return Debouncer(delay=0.3)


@pytest.fixture
def store(event_bus):
    """Store without a debouncer: validation is computed on demand."""
    from editor.store import TreeStore
    return TreeStore(events=event_bus)


@pytest.fixture
def loaded_store(store, sample_tree):
    store.load_dialog_tree(sample_tree, source_name="merchant")
    return store


@pytest.fixture
def content_dir(tmp_path):
    path = tmp_path / "dialog-trees"
    path.mkdir()
    return path


@pytest.fixture
def notifier():
    from editor.prompts import LogNotifier
    return LogNotifier()


@pytest.fixture
def confirm():
    from editor.prompts import StaticConfirm
    return StaticConfirm(True)


@pytest.fixture
def gateway(store, content_dir, confirm, notifier):
    from editor.project import PersistenceGateway, TreeRepository
    return PersistenceGateway(store, TreeRepository(content_dir), confirm=confirm, notifier=notifier)
