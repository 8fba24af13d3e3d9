"""
Syntax tree model consumed by the analysis core.

The front-end hands over an arena of nodes addressed by index. Each node
stores the index of its parent, so ancestor walks are plain loops over
integers and no node ever holds a reference to another node.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple


class NodeKind(Enum):
    """Closed set of node kinds the front-end can report."""
    COMPILATION_UNIT = "compilation_unit"
    NAMESPACE = "namespace"

    # Type declarations
    CLASS = "class"
    RECORD = "record"
    STRUCT = "struct"
    INTERFACE = "interface"

    # Member declarations
    METHOD = "method"
    CONSTRUCTOR = "constructor"
    PROPERTY = "property"
    ACCESSOR = "accessor"
    FIELD = "field"
    VARIABLE_DECLARATOR = "variable_declarator"
    PARAMETER = "parameter"

    # Nested code units
    LOCAL_FUNCTION = "local_function"
    LAMBDA = "lambda"
    ANONYMOUS_METHOD = "anonymous_method"

    # Bodies and statements
    BLOCK = "block"
    EXPRESSION_BODY = "expression_body"
    STATEMENT = "statement"
    IF = "if"
    FOR = "for"
    FOREACH = "foreach"
    WHILE = "while"
    DO = "do"
    SWITCH = "switch"
    CASE_LABEL = "case_label"
    DEFAULT_LABEL = "default_label"
    TRY = "try"
    CATCH = "catch"
    FINALLY = "finally"

    # Expressions
    SWITCH_EXPRESSION = "switch_expression"
    SWITCH_ARM = "switch_arm"
    BINARY = "binary"
    CONDITIONAL = "conditional"
    INVOCATION = "invocation"
    MEMBER_ACCESS = "member_access"
    IDENTIFIER = "identifier"
    OBJECT_CREATION = "object_creation"
    ARGUMENT = "argument"
    LITERAL = "literal"
    EXPRESSION = "expression"


TYPE_DECLARATION_KINDS: FrozenSet[NodeKind] = frozenset({
    NodeKind.CLASS,
    NodeKind.RECORD,
    NodeKind.STRUCT,
    NodeKind.INTERFACE,
})

# Function-like nodes that own a complexity score of their own.
CODE_UNIT_KINDS: FrozenSet[NodeKind] = frozenset({
    NodeKind.METHOD,
    NodeKind.CONSTRUCTOR,
    NodeKind.ACCESSOR,
    NodeKind.LOCAL_FUNCTION,
    NodeKind.LAMBDA,
    NodeKind.ANONYMOUS_METHOD,
})

BODY_KINDS: FrozenSet[NodeKind] = frozenset({NodeKind.BLOCK, NodeKind.EXPRESSION_BODY})


@dataclass(frozen=True)
class Span:
    """1-based line/column range of a node in its source file."""
    start_line: int = 0
    start_column: int = 0
    end_line: int = 0
    end_column: int = 0

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1

    def __str__(self) -> str:
        return f"{self.start_line}:{self.start_column}-{self.end_line}:{self.end_column}"


@dataclass(frozen=True)
class SymbolFact:
    """
    Resolved symbol information for a node.

    For a member (method, property, field) `containing_type` is the type that
    declares it. For a constructor call it is the constructed type, and the
    base-type chain and interfaces describe that type. For a parameter,
    `type_name` and `type_kind` (class, interface, struct, enum, delegate)
    describe the declared type, and `is_abstract`, `base_types` and
    `interfaces` describe that type too. `implements_interface` marks a method
    that implements an interface member.
    """
    name: str
    kind: str = "method"
    containing_type: Optional[str] = None
    namespace: Optional[str] = None
    type_name: Optional[str] = None
    type_kind: Optional[str] = None
    is_static: bool = False
    is_abstract: bool = False
    is_extern: bool = False
    implements_interface: bool = False
    base_types: Tuple[str, ...] = ()
    interfaces: FrozenSet[str] = frozenset()

    @property
    def containing_type_name(self) -> Optional[str]:
        """Simple (unqualified) name of the containing type."""
        if self.containing_type is None:
            return None
        return self.containing_type.rsplit(".", 1)[-1]

    @property
    def containing_namespace(self) -> str:
        """Namespace of the containing type; '' stands for the global namespace."""
        if self.namespace is not None:
            return self.namespace
        if self.containing_type is None or "." not in self.containing_type:
            return ""
        return self.containing_type.rsplit(".", 1)[0]

    def derives_from(self, type_name: str) -> bool:
        return type_name in self.base_types or type_name in self.interfaces


@dataclass(frozen=True)
class Node:
    index: int
    kind: NodeKind
    parent: Optional[int] = None
    children: Tuple[int, ...] = ()
    span: Span = field(default_factory=Span)
    name: Optional[str] = None
    name_span: Optional[Span] = None
    operator: Optional[str] = None
    modifiers: FrozenSet[str] = frozenset()
    is_discard: bool = False
    symbol: Optional[SymbolFact] = None

    @property
    def identifier_span(self) -> Span:
        """Span of the declared identifier, falling back to the whole node."""
        return self.name_span or self.span

    def has_modifier(self, modifier: str) -> bool:
        return modifier in self.modifiers


class SyntaxTree:
    """
    Immutable arena of nodes for one source file.

    Node 0 is the root. Nodes keep the order they were added in; snapshots
    are loaded in pre-order, which makes arena order match source order.
    """

    def __init__(self, path: str, nodes: Iterable[Node]):
        self.path = path
        self._nodes: Tuple[Node, ...] = tuple(nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def __getitem__(self, index: int) -> Node:
        return self._nodes[index]

    @property
    def root(self) -> Node:
        return self._nodes[0]

    def parent(self, node: Node) -> Optional[Node]:
        if node.parent is None:
            return None
        return self._nodes[node.parent]

    def children(self, node: Node) -> List[Node]:
        return [self._nodes[i] for i in node.children]

    def first_child(self, node: Node) -> Optional[Node]:
        if not node.children:
            return None
        return self._nodes[node.children[0]]

    def ancestors(self, node: Node) -> Iterator[Node]:
        """Yield the parent chain of `node`, nearest first."""
        current = node.parent
        # The arena is finite, so a malformed parent cycle cannot loop forever.
        remaining = len(self._nodes)
        while current is not None and remaining > 0:
            ancestor = self._nodes[current]
            yield ancestor
            current = ancestor.parent
            remaining -= 1

    def enclosing(self, node: Node, kinds: FrozenSet[NodeKind]) -> Optional[Node]:
        for ancestor in self.ancestors(node):
            if ancestor.kind in kinds:
                return ancestor
        return None

    def body(self, node: Node) -> Optional[Node]:
        """The block or expression body of a declaration, if it has one."""
        for child in self.children(node):
            if child.kind in BODY_KINDS:
                return child
        return None


class TreeBuilder:
    """
    Incrementally builds a SyntaxTree.

    Usage:
        builder = TreeBuilder("Foo.cs")
        cls = builder.add(NodeKind.CLASS, name="Foo")
        method = builder.add(NodeKind.METHOD, parent=cls, name="Bar")
        tree = builder.build()
    """

    def __init__(self, path: str = "<memory>"):
        self.path = path
        self._nodes: List[Node] = []
        self._children: Dict[int, List[int]] = {}
        self.add(NodeKind.COMPILATION_UNIT)

    @property
    def root(self) -> int:
        return 0

    def add(
        self,
        kind: NodeKind,
        parent: Optional[int] = None,
        name: Optional[str] = None,
        span: Optional[Span] = None,
        name_span: Optional[Span] = None,
        operator: Optional[str] = None,
        modifiers: Iterable[str] = (),
        is_discard: bool = False,
        symbol: Optional[SymbolFact] = None,
    ) -> int:
        index = len(self._nodes)
        if index > 0 and parent is None:
            parent = 0
        if parent is not None and not 0 <= parent < index:
            raise ValueError(f"Parent index {parent} does not exist yet")
        self._nodes.append(Node(
            index=index,
            kind=kind,
            parent=parent,
            span=span or Span(),
            name=name,
            name_span=name_span,
            operator=operator,
            modifiers=frozenset(modifiers),
            is_discard=is_discard,
            symbol=symbol,
        ))
        self._children[index] = []
        if parent is not None:
            self._children[parent].append(index)
        return index

    def set_span(self, index: int, span: Span) -> None:
        self._nodes[index] = replace(self._nodes[index], span=span)

    def build(self) -> SyntaxTree:
        nodes = [
            replace(node, children=tuple(self._children[node.index]))
            for node in self._nodes
        ]
        return SyntaxTree(self.path, nodes)
