"""
Lexical context classification.

Decides whether a node sits somewhere that rules treat specially: a
composition root, a DI factory delegate, a data-access class, and so on.
Every check is a name heuristic over the enclosing declarations. It
classifies lexical intent, not runtime behaviour.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet, Optional, Set, Tuple

from seamscan.core.tree import Node, NodeKind, SyntaxTree


class ContextTag(Enum):
    COMPOSITION_ROOT = "composition_root"
    FACTORY_DELEGATE = "factory_delegate"
    DATA_ACCESS_CLASS = "data_access_class"
    HTTP_CLIENT_FACTORY_CLASS = "http_client_factory_class"
    TEST_CLASS = "test_class"
    STATIC_READONLY_FIELD_INIT = "static_readonly_field_init"


@dataclass(frozen=True)
class ContextTables:
    """Recognised names. All comparisons are ordinal and case-sensitive."""
    composition_root_types: FrozenSet[str] = frozenset({
        "Startup",
        "Program",
        "CompositionRoot",
        "ServiceCollectionExtensions",
        "DependencyInjectionExtensions",
    })
    composition_root_methods: FrozenSet[str] = frozenset({
        "ConfigureServices",
        "AddServices",
        "RegisterServices",
        "Configure",
        "ConfigureContainer",
    })
    registration_prefixes: Tuple[str, ...] = ("Add",)
    registration_methods: FrozenSet[str] = frozenset({
        "Register",
        "RegisterType",
        "RegisterInstance",
    })
    data_access_suffixes: Tuple[str, ...] = ("Repository", "DataAccess")
    data_access_fragments: Tuple[str, ...] = ("DbContext", "ConnectionFactory", "ConnectionPool")
    http_factory_fragments: Tuple[str, ...] = ("Factory", "HttpClient")
    http_factory_methods: FrozenSet[str] = frozenset({
        "CreateClient",
        "CreateHttpClient",
        "Build",
    })
    test_prefixes: Tuple[str, ...] = ("Test",)
    test_suffixes: Tuple[str, ...] = ("Tests", "Test")
    shared_modifier: str = "static"
    assign_once_modifier: str = "readonly"


DEFAULT_TABLES = ContextTables()


@dataclass
class _Walk:
    tree: SyntaxTree
    tables: ContextTables
    tags: Set[ContextTag] = field(default_factory=set)
    field_scope_closed: bool = False


def _name(node: Node) -> str:
    return node.name or ""


def _class(walk: _Walk, node: Node) -> None:
    tables = walk.tables
    name = _name(node)
    if name in tables.composition_root_types:
        walk.tags.add(ContextTag.COMPOSITION_ROOT)
    if name.endswith(tables.data_access_suffixes) or any(
        fragment in name for fragment in tables.data_access_fragments
    ):
        walk.tags.add(ContextTag.DATA_ACCESS_CLASS)
    if any(fragment in name for fragment in tables.http_factory_fragments):
        walk.tags.add(ContextTag.HTTP_CLIENT_FACTORY_CLASS)
    if name.startswith(tables.test_prefixes) or name.endswith(tables.test_suffixes):
        walk.tags.add(ContextTag.TEST_CLASS)


def _method(walk: _Walk, node: Node) -> None:
    name = _name(node)
    if name in walk.tables.composition_root_methods:
        walk.tags.add(ContextTag.COMPOSITION_ROOT)
    if name in walk.tables.http_factory_methods:
        walk.tags.add(ContextTag.HTTP_CLIENT_FACTORY_CLASS)
    walk.field_scope_closed = True


def _member_boundary(walk: _Walk, node: Node) -> None:
    walk.field_scope_closed = True


def _field(walk: _Walk, node: Node) -> None:
    if walk.field_scope_closed:
        return
    walk.field_scope_closed = True
    if node.has_modifier(walk.tables.shared_modifier) and node.has_modifier(walk.tables.assign_once_modifier):
        walk.tags.add(ContextTag.STATIC_READONLY_FIELD_INIT)


def _delegate(walk: _Walk, node: Node) -> None:
    if is_registration_argument(walk.tree, node, walk.tables):
        walk.tags.add(ContextTag.FACTORY_DELEGATE)


_HANDLERS: Dict[NodeKind, Callable[[_Walk, Node], None]] = {
    NodeKind.CLASS: _class,
    NodeKind.RECORD: _class,
    NodeKind.METHOD: _method,
    NodeKind.CONSTRUCTOR: _member_boundary,
    NodeKind.PROPERTY: _member_boundary,
    NodeKind.FIELD: _field,
    NodeKind.LAMBDA: _delegate,
    NodeKind.ANONYMOUS_METHOD: _delegate,
}


def invoked_member_name(tree: SyntaxTree, invocation: Node) -> Optional[str]:
    """Name of the member called by `receiver.Member(...)`, if it has that shape."""
    callee = tree.first_child(invocation)
    if callee is None or callee.kind != NodeKind.MEMBER_ACCESS:
        return None
    return callee.name


def is_registration_argument(tree: SyntaxTree, node: Node, tables: ContextTables = DEFAULT_TABLES) -> bool:
    """True when `node` is passed straight to an `Add*`/`Register*` call."""
    argument = tree.parent(node)
    if argument is None or argument.kind != NodeKind.ARGUMENT:
        return False
    invocation = tree.parent(argument)
    if invocation is None or invocation.kind != NodeKind.INVOCATION:
        return False
    method_name = invoked_member_name(tree, invocation)
    if method_name is None:
        return False
    return method_name.startswith(tables.registration_prefixes) or method_name in tables.registration_methods


class ContextClassifier:
    """
    Walks the ancestors of a node once and collects every context tag that
    applies. A tag is set by the first ancestor that matches it; reaching the
    root without a match leaves the tag unset.
    """

    def __init__(self, tables: ContextTables = DEFAULT_TABLES):
        self.tables = tables

    def classify(self, tree: SyntaxTree, node: Node) -> FrozenSet[ContextTag]:
        walk = _Walk(tree=tree, tables=self.tables)
        for ancestor in tree.ancestors(node):
            handler = _HANDLERS.get(ancestor.kind)
            if handler is not None:
                handler(walk, ancestor)
        return frozenset(walk.tags)


def classify(tree: SyntaxTree, node: Node, tables: ContextTables = DEFAULT_TABLES) -> FrozenSet[ContextTag]:
    return ContextClassifier(tables).classify(tree, node)
