from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet

from seamscan.core.tree import CODE_UNIT_KINDS, Node, NodeKind, Span, SyntaxTree


# Nested function-like constructs are scored on their own and never
# contribute to the unit that contains them.
NESTED_UNIT_KINDS: FrozenSet[NodeKind] = frozenset({
    NodeKind.LAMBDA,
    NodeKind.LOCAL_FUNCTION,
    NodeKind.ANONYMOUS_METHOD,
})

LOGICAL_OPERATORS: FrozenSet[str] = frozenset({"&&", "||", "??"})


def _always(node: Node) -> int:
    return 1


def _unless_discard(node: Node) -> int:
    # A match-everything fallback adds no branch.
    return 0 if node.is_discard else 1


def _logical(node: Node) -> int:
    return 1 if node.operator in LOGICAL_OPERATORS else 0


DECISION_POINTS: Dict[NodeKind, Callable[[Node], int]] = {
    NodeKind.IF: _always,
    NodeKind.CASE_LABEL: _unless_discard,
    NodeKind.SWITCH_ARM: _unless_discard,
    NodeKind.FOR: _always,
    NodeKind.FOREACH: _always,
    NodeKind.WHILE: _always,
    NodeKind.DO: _always,
    NodeKind.CATCH: _always,
    NodeKind.BINARY: _logical,
    NodeKind.CONDITIONAL: _always,
}


@dataclass(frozen=True)
class CodeUnit:
    """A function-like subtree with its own complexity score."""
    tree: SyntaxTree
    node: Node
    name: str

    @property
    def has_body(self) -> bool:
        return self.tree.body(self.node) is not None

    @property
    def span(self) -> Span:
        return self.node.span


def display_name(tree: SyntaxTree, node: Node) -> str:
    if node.kind == NodeKind.ACCESSOR:
        accessor = node.name or "get"
        owner = tree.parent(node)
        if owner is not None and owner.kind == NodeKind.PROPERTY and owner.name:
            return f"{owner.name}.{accessor}"
        return accessor
    if node.kind == NodeKind.LAMBDA:
        return node.name or "<lambda>"
    if node.kind == NodeKind.ANONYMOUS_METHOD:
        return node.name or "<anonymous>"
    return node.name or "<unnamed>"


def code_unit(tree: SyntaxTree, node: Node) -> CodeUnit:
    if node.kind not in CODE_UNIT_KINDS:
        raise ValueError(f"{node.kind.value} node {node.index} is not a code unit")
    return CodeUnit(tree=tree, node=node, name=display_name(tree, node))


def complexity(unit: CodeUnit) -> int:
    """
    Cyclomatic complexity of exactly one code unit.

    Starts at 1 and adds one per decision point in the unit's own body.
    Units without a body (abstract, extern, interface members) score 1.
    """
    tree = unit.tree
    score = 1
    stack = [
        child for child in reversed(tree.children(unit.node))
        if child.kind != NodeKind.PARAMETER
    ]
    while stack:
        current = stack.pop()
        if current.kind in NESTED_UNIT_KINDS:
            continue
        weigh = DECISION_POINTS.get(current.kind)
        if weigh is not None:
            score += weigh(current)
        stack.extend(reversed(tree.children(current)))
    return score
