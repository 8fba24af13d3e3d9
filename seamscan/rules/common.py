"""
Shape helpers shared by the concrete rules.

Tree conventions the rules rely on:

- An `invocation` node's first child is the callee expression (usually a
  `member_access`); its symbol is the invoked method.
- A `member_access` node is named after the accessed member; its first child
  is the receiver expression and its symbol is the accessed member.
- An `object_creation` node is named after the type as written; its symbol
  describes the constructed type (`containing_type`, base chain, interfaces).
- A `field` node carries the modifiers; each `variable_declarator` child names
  one declared variable and owns its initializer.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from seamscan.core.tree import Node, NodeKind, SymbolFact, SyntaxTree


FRAMEWORK_NAMESPACES = ("System", "Microsoft")


def simple_name(full_name: Optional[str]) -> str:
    if not full_name:
        return ""
    return full_name.rsplit(".", 1)[-1]


def callee(tree: SyntaxTree, invocation: Node) -> Optional[Node]:
    return tree.first_child(invocation)


def member_callee(tree: SyntaxTree, invocation: Node) -> Optional[Node]:
    """The `member_access` an invocation calls through, or None."""
    target = callee(tree, invocation)
    if target is None or target.kind != NodeKind.MEMBER_ACCESS:
        return None
    return target


def receiver(tree: SyntaxTree, member_access: Node) -> Optional[Node]:
    return tree.first_child(member_access)


def is_member_of(symbol: Optional[SymbolFact], type_name: str, members) -> bool:
    """Resolved symbol is one of `members` declared on the fully-qualified `type_name`."""
    return symbol is not None and symbol.containing_type == type_name and symbol.name in members


def qualified_member(symbol: SymbolFact) -> str:
    """`Type.Member` using the simple type name, as shown in messages."""
    return f"{symbol.containing_type_name}.{symbol.name}"


def constructed_type(node: Node) -> Optional[str]:
    """Fully-qualified type an object creation constructs, when resolved."""
    if node.symbol is None:
        return None
    return node.symbol.containing_type


def is_framework_type(type_name: Optional[str]) -> bool:
    """Type lives under a platform namespace (`System`, `Microsoft`)."""
    if not type_name:
        return False
    return any(type_name == ns or type_name.startswith(ns + ".") for ns in FRAMEWORK_NAMESPACES)


def user_types(type_names: Iterable[str]) -> List[str]:
    return [name for name in type_names if not is_framework_type(name)]


def has_abstraction(symbol: SymbolFact) -> bool:
    """
    The described type could be replaced by something else: it implements an
    interface or derives from a base class that is not part of the platform.
    """
    return bool(user_types(symbol.interfaces) or user_types(symbol.base_types))
