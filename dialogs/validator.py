"""
Dialog tree validator.

validate_tree() is a pure function of a tree snapshot. It reports:

Errors (block save and export):
- Missing start node id, or start node not in the tree
- Response pointing at a node that does not exist
- Empty node message
- Empty response text

Warnings (need confirmation before save and export):
- Orphaned nodes, unreachable from the start node
- No terminal path: every route from the start loops forever
- Response text, message length and response count over the limits

Checks are grouped into rules. Each rule runs in isolation; a rule that
raises is logged and contributes nothing, so one broken check never
hides the results of the others.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable

from dialogs.model import DialogTree
from runtime.config import ValidationLimits

logger = logging.getLogger(__name__)


class Severity(Enum):
    ERROR = auto()
    WARNING = auto()


class IssueKind(Enum):
    """Every condition the validator can report."""
    MISSING_START = auto()
    UNKNOWN_START = auto()
    DANGLING_TARGET = auto()
    EMPTY_MESSAGE = auto()
    EMPTY_RESPONSE = auto()
    ORPHANED_NODE = auto()
    NO_TERMINAL_PATH = auto()
    LONG_RESPONSE = auto()
    LONG_MESSAGE = auto()
    TOO_MANY_RESPONSES = auto()


@dataclass(frozen=True)
class ValidationIssue:
    """
    A single finding.

    Attributes:
        severity: ERROR blocks persistence, WARNING asks for confirmation
        kind: What was found
        message: Human readable description
        node_id: Offending node, for cross-highlighting
        response_index: Offending response within node_id, if any
    """
    severity: Severity
    kind: IssueKind
    message: str
    node_id: str | None = None
    response_index: int | None = None

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR


@dataclass
class ValidationReport:
    """Errors and warnings for one snapshot."""
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def is_clean(self) -> bool:
        return not self.errors and not self.warnings

    @property
    def issues(self) -> list[ValidationIssue]:
        return self.errors + self.warnings

    def add(self, issue: ValidationIssue) -> None:
        if issue.is_error:
            self.errors.append(issue)
        else:
            self.warnings.append(issue)

    def issues_for_node(self, node_id: str) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.node_id == node_id]

    def kinds(self) -> set[IssueKind]:
        return {issue.kind for issue in self.issues}

    def summary(self) -> str:
        return f"{len(self.errors)} error(s), {len(self.warnings)} warning(s)"


# -----------------------------------------------------------------------------
# Graph helpers
# -----------------------------------------------------------------------------

def reachable_nodes(tree: DialogTree) -> set[str]:
    """
    Ids reachable from the start node over non-null response edges.

    Targets absent from the tree are not followed. Empty if the start
    node is missing.
    """
    if not tree.has_node(tree.start_node_id):
        return set()

    visited = {tree.start_node_id}
    queue = deque([tree.start_node_id])
    while queue:
        node = tree.nodes[queue.popleft()]
        for target in node.targets():
            if target in tree.nodes and target not in visited:
                visited.add(target)
                queue.append(target)
    return visited


def is_terminal_node(tree: DialogTree, node_id: str) -> bool:
    """A node ends the conversation if it has no responses or any null one."""
    node = tree.nodes[node_id]
    if not node.responses:
        return True
    return any(response.is_terminal for response in node.responses)


def has_terminal_path(tree: DialogTree) -> bool:
    """
    True if some path from the start node reaches a terminal node.

    Iterative depth-first search. A node already on the stack is a cycle
    back-edge and is not expanded again; a node whose subtree was fully
    explored without success is not explored twice.
    """
    start = tree.start_node_id
    if not tree.has_node(start):
        return False

    on_stack: set[str] = set()
    exhausted: set[str] = set()
    # (node id, targets not yet tried)
    stack: list[tuple[str, list[str]]] = []

    def enter(node_id: str) -> bool:
        if is_terminal_node(tree, node_id):
            return True
        on_stack.add(node_id)
        targets = [t for t in tree.nodes[node_id].targets() if t in tree.nodes]
        stack.append((node_id, targets))
        return False

    if enter(start):
        return True

    while stack:
        node_id, targets = stack[-1]
        if not targets:
            stack.pop()
            on_stack.discard(node_id)
            exhausted.add(node_id)
            continue

        target = targets.pop(0)
        if target in on_stack or target in exhausted:
            continue
        if enter(target):
            return True

    return False


# -----------------------------------------------------------------------------
# Rules
# -----------------------------------------------------------------------------

class ValidationRule(Enum):
    """Groups of checks; every member must have an entry in _RULES."""
    STRUCTURE = auto()
    REACHABILITY = auto()
    TERMINAL_PATH = auto()
    THRESHOLDS = auto()


def _error(kind: IssueKind, message: str, node_id: str | None = None,
           response_index: int | None = None) -> ValidationIssue:
    return ValidationIssue(Severity.ERROR, kind, message, node_id, response_index)


def _warning(kind: IssueKind, message: str, node_id: str | None = None,
             response_index: int | None = None) -> ValidationIssue:
    return ValidationIssue(Severity.WARNING, kind, message, node_id, response_index)


def _check_structure(tree: DialogTree, limits: ValidationLimits) -> list[ValidationIssue]:
    issues = []

    if not tree.start_node_id:
        issues.append(_error(IssueKind.MISSING_START, "Missing start node ID"))
    elif tree.start_node_id not in tree.nodes:
        issues.append(_error(
            IssueKind.UNKNOWN_START,
            f'Start node "{tree.start_node_id}" does not exist',
            node_id=tree.start_node_id,
        ))

    for node_id, node in tree.nodes.items():
        if not node.message.strip():
            issues.append(_error(IssueKind.EMPTY_MESSAGE, "Node has empty message", node_id))

        for index, response in enumerate(node.responses):
            if not response.text.strip():
                issues.append(_error(
                    IssueKind.EMPTY_RESPONSE,
                    f"Response {index + 1} has empty text",
                    node_id, index,
                ))
            target = response.next_node_id
            if target is not None and target not in tree.nodes:
                issues.append(_error(
                    IssueKind.DANGLING_TARGET,
                    f'Response {index + 1} references non-existent node "{target}"',
                    node_id, index,
                ))

    return issues


def _check_reachability(tree: DialogTree, limits: ValidationLimits) -> list[ValidationIssue]:
    # Without a valid start node every node would be "orphaned"; the
    # structure rule already reports the real problem.
    if not tree.has_node(tree.start_node_id):
        return []

    reachable = reachable_nodes(tree)
    return [
        _warning(
            IssueKind.ORPHANED_NODE,
            f'Node "{node_id}" is orphaned (unreachable from start node)',
            node_id,
        )
        for node_id in tree.nodes
        if node_id not in reachable
    ]


def _check_terminal_path(tree: DialogTree, limits: ValidationLimits) -> list[ValidationIssue]:
    if not tree.has_node(tree.start_node_id):
        return []
    if has_terminal_path(tree):
        return []
    return [_warning(
        IssueKind.NO_TERMINAL_PATH,
        "No terminal path found (conversation may loop indefinitely)",
    )]


def _check_thresholds(tree: DialogTree, limits: ValidationLimits) -> list[ValidationIssue]:
    issues = []
    for node_id, node in tree.nodes.items():
        if len(node.message) > limits.max_message_chars:
            issues.append(_warning(
                IssueKind.LONG_MESSAGE,
                f"Message exceeds {limits.max_message_chars} characters "
                f"({len(node.message)} chars)",
                node_id,
            ))

        for index, response in enumerate(node.responses):
            if len(response.text) > limits.max_response_chars:
                issues.append(_warning(
                    IssueKind.LONG_RESPONSE,
                    f'Response "{response.text[:30]}..." exceeds '
                    f"{limits.max_response_chars} characters ({len(response.text)} chars)",
                    node_id, index,
                ))

        if len(node.responses) > limits.max_responses:
            issues.append(_warning(
                IssueKind.TOO_MANY_RESPONSES,
                f"Node has {len(node.responses)} responses "
                f"(recommended max: {limits.max_responses})",
                node_id,
            ))
    return issues


RuleCheck = Callable[[DialogTree, ValidationLimits], list[ValidationIssue]]

_RULES: dict[ValidationRule, RuleCheck] = {
    ValidationRule.STRUCTURE: _check_structure,
    ValidationRule.REACHABILITY: _check_reachability,
    ValidationRule.TERMINAL_PATH: _check_terminal_path,
    ValidationRule.THRESHOLDS: _check_thresholds,
}

_missing_rules = set(ValidationRule) - set(_RULES)
if _missing_rules:
    raise RuntimeError(f"No check registered for {sorted(r.name for r in _missing_rules)}")


def validate_tree(
    tree: DialogTree,
    limits: ValidationLimits | None = None,
    rules: tuple[ValidationRule, ...] = tuple(ValidationRule),
) -> ValidationReport:
    """
    Validate a tree snapshot.

    Args:
        tree: Snapshot to check (not modified)
        limits: Advisory thresholds (defaults: 200 / 1000 / 4)
        rules: Subset of rules to run, in order

    Returns:
        ValidationReport with errors and warnings in rule order
    """
    limits = limits or ValidationLimits()
    report = ValidationReport()

    for rule in rules:
        try:
            issues = _RULES[rule](tree, limits)
        except Exception:
            logger.exception("Validation rule %s failed on tree %r", rule.name, tree.id)
            continue
        for issue in issues:
            report.add(issue)

    return report
