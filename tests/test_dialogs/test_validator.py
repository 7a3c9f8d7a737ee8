"""
Test dialog tree validation: structure, reachability, terminal paths, limits.
"""

import pytest

from dialogs import validator
from dialogs.model import DialogNode, DialogTree, Response
from dialogs.validator import (
    IssueKind,
    Severity,
    ValidationRule,
    has_terminal_path,
    is_terminal_node,
    reachable_nodes,
    validate_tree,
)
from runtime.config import ValidationLimits


def test_clean_tree(sample_tree):
    """A well-formed tree has no issues."""
    report = validate_tree(sample_tree)
    assert report.is_clean
    assert report.summary() == "0 error(s), 0 warning(s)"


def test_missing_start_node_id(tree_factory):
    """An empty start id is one error and no orphan warnings."""
    tree = tree_factory({"start": [None]}, start="")
    report = validate_tree(tree)

    assert [i.kind for i in report.errors] == [IssueKind.MISSING_START]
    assert report.errors[0].message == "Missing start node ID"
    assert not report.warnings


def test_unknown_start_node(tree_factory):
    """A start id naming no node is an error."""
    tree = tree_factory({"start": [None]}, start="intro")
    report = validate_tree(tree)

    assert report.kinds() == {IssueKind.UNKNOWN_START}
    assert report.errors[0].message == 'Start node "intro" does not exist'


def test_empty_message_and_response_text(sample_tree):
    """Blank messages and response texts are errors, in tree order."""
    sample_tree.nodes["shop"].message = "   "
    sample_tree.nodes["start"].responses[1].text = ""
    report = validate_tree(sample_tree)

    assert len(report.errors) == 2
    empty_response, empty_message = report.errors
    assert empty_message.kind is IssueKind.EMPTY_MESSAGE
    assert empty_message.node_id == "shop"
    assert empty_response.kind is IssueKind.EMPTY_RESPONSE
    assert empty_response.message == "Response 2 has empty text"
    assert empty_response.response_index == 1


def test_dangling_target(tree_factory):
    """A response naming a node that was never created is an error."""
    tree = tree_factory({"start": ["missing", None]})
    report = validate_tree(tree)

    assert len(report.errors) == 1
    issue = report.errors[0]
    assert issue.severity is Severity.ERROR
    assert issue.kind is IssueKind.DANGLING_TARGET
    assert issue.message == 'Response 1 references non-existent node "missing"'
    assert (issue.node_id, issue.response_index) == ("start", 0)


def test_orphaned_nodes(tree_factory):
    """Nodes unreachable from the start are warnings."""
    tree = tree_factory({"start": [None], "lost": ["start"], "lost2": []})
    report = validate_tree(tree)

    orphans = [i for i in report.warnings if i.kind is IssueKind.ORPHANED_NODE]
    assert [i.node_id for i in orphans] == ["lost", "lost2"]
    assert not report.has_errors


def test_pure_cycle_has_no_terminal_path(tree_factory):
    """a -> b -> a with no way out warns about looping."""
    tree = tree_factory({"a": ["b"], "b": ["a"]}, start="a")
    report = validate_tree(tree)

    assert not has_terminal_path(tree)
    assert report.kinds() == {IssueKind.NO_TERMINAL_PATH}
    assert report.warnings[0].message == (
        "No terminal path found (conversation may loop indefinitely)"
    )


def test_cycle_with_exit_is_fine(tree_factory):
    """A node without responses breaks the loop."""
    tree = tree_factory({"a": ["b"], "b": ["a", "c"], "c": []}, start="a")
    assert has_terminal_path(tree)
    assert validate_tree(tree).is_clean


def test_hub_with_goodbye_is_terminal(tree_factory):
    """A hub whose Goodbye response ends the conversation is an exit."""
    tree = tree_factory({"start": ["shop", None], "shop": ["start"]})

    assert is_terminal_node(tree, "start")
    assert not is_terminal_node(tree, "shop")
    assert has_terminal_path(tree)
    assert IssueKind.NO_TERMINAL_PATH not in validate_tree(tree).kinds()


def test_dangling_targets_do_not_count_as_exits(tree_factory):
    """Targets missing from the tree are not followed."""
    tree = tree_factory({"a": ["b", "ghost"], "b": ["a"]}, start="a")
    assert not has_terminal_path(tree)


def test_deep_chain_does_not_recurse(tree_factory):
    """Long chains are walked iteratively."""
    edges = {f"n{i}": [f"n{i + 1}"] for i in range(5000)}
    edges["n5000"] = ["n0"]
    tree = tree_factory(edges, start="n0")

    assert not has_terminal_path(tree)
    assert len(reachable_nodes(tree)) == 5001


def test_thresholds():
    """Long texts and too many responses are warnings only."""
    node = DialogNode(
        id="start",
        message="x" * 1001,
        responses=[Response(text="y" * 201)] + [Response(text="ok") for _ in range(4)],
    )
    tree = DialogTree(id="t", character_name="C", start_node_id="start", nodes={"start": node})
    report = validate_tree(tree)

    assert not report.has_errors
    assert report.kinds() == {
        IssueKind.LONG_MESSAGE,
        IssueKind.LONG_RESPONSE,
        IssueKind.TOO_MANY_RESPONSES,
    }
    assert "Node has 5 responses (recommended max: 4)" in [i.message for i in report.warnings]


def test_thresholds_at_limit_are_fine(tree_factory):
    """Values exactly at a limit do not warn."""
    tree = tree_factory({"start": [None, None, None, None]})
    tree.nodes["start"].message = "x" * 1000
    tree.nodes["start"].responses[0].text = "y" * 200

    assert validate_tree(tree).is_clean


def test_custom_limits(sample_tree):
    """Limits can be tightened per call."""
    report = validate_tree(sample_tree, ValidationLimits(max_responses=1))
    assert [i.node_id for i in report.warnings] == ["start"]


def test_rule_subset(tree_factory):
    """Only the requested rules run."""
    tree = tree_factory({"start": ["ghost"], "lost": []})
    report = validate_tree(tree, rules=(ValidationRule.REACHABILITY,))

    assert not report.has_errors
    assert report.kinds() == {IssueKind.ORPHANED_NODE}


def test_failing_rule_contributes_nothing(tree_factory, monkeypatch, caplog):
    """A rule that raises is logged and the others still report."""
    def broken(tree, limits):
        raise RuntimeError("boom")

    monkeypatch.setitem(validator._RULES, ValidationRule.REACHABILITY, broken)
    tree = tree_factory({"start": ["ghost", "end"], "end": [None], "lost": []})
    report = validate_tree(tree)

    assert report.kinds() == {IssueKind.DANGLING_TARGET}
    assert "REACHABILITY" in caplog.text


def test_every_rule_registered():
    """Each rule kind has a check."""
    assert set(validator._RULES) == set(ValidationRule)


def test_validation_does_not_modify_tree(sample_tree):
    """Validation reads the snapshot only."""
    before = sample_tree.to_dict()
    validate_tree(sample_tree)
    assert sample_tree.to_dict() == before


def test_issues_for_node(tree_factory):
    """Issues can be looked up by node for highlighting."""
    tree = tree_factory({"start": ["ghost"], "lost": []})
    tree.nodes["lost"].message = ""
    report = validate_tree(tree)

    kinds = {i.kind for i in report.issues_for_node("lost")}
    assert kinds == {IssueKind.EMPTY_MESSAGE, IssueKind.ORPHANED_NODE}
