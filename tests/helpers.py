"""
Tree-building helpers shared by the test modules.

They mirror the shapes a front-end exports: invocations whose first child is
the member access, member accesses whose first child is the receiver, and
fields whose declarators carry the variable names.
"""

from typing import Iterable, List, Optional, Sequence, Type

from seamscan.core.engine import AnalysisEngine
from seamscan.core.findings import Finding
from seamscan.core.options import MappingOptions
from seamscan.core.rules import Rule
from seamscan.core.tree import NodeKind, Span, SymbolFact, SyntaxTree, TreeBuilder


def span(line: int, column: int = 1, end_line: Optional[int] = None, end_column: int = 40) -> Span:
    return Span(line, column, end_line if end_line is not None else line, end_column)


def add_class(
    builder: TreeBuilder,
    name: str,
    parent: Optional[int] = None,
    line: int = 1,
    end_line: int = 100,
    modifiers: Iterable[str] = (),
    kind: NodeKind = NodeKind.CLASS,
) -> int:
    return builder.add(kind, parent=parent, name=name, span=span(line, 1, end_line, 2), modifiers=modifiers)


def add_method(
    builder: TreeBuilder,
    parent: int,
    name: str,
    line: int = 2,
    end_line: int = 10,
    modifiers: Iterable[str] = ("public",),
    body: Optional[NodeKind] = NodeKind.BLOCK,
    containing_type: str = "App.Service",
    is_abstract: bool = False,
    implements_interface: bool = False,
) -> int:
    """Add a method with a resolved symbol. Returns the body index, or the method index without a body."""
    method = builder.add(
        NodeKind.METHOD,
        parent=parent,
        name=name,
        span=span(line, 5, end_line, 6),
        name_span=span(line, 17, line, 17 + len(name)),
        modifiers=modifiers,
        symbol=SymbolFact(
            name=name,
            containing_type=containing_type,
            is_abstract=is_abstract,
            implements_interface=implements_interface,
        ),
    )
    if body is None:
        return method
    return builder.add(body, parent=method, span=span(line + 1, 5, end_line, 6))


def add_invocation(
    builder: TreeBuilder,
    parent: int,
    type_name: str,
    method: str,
    is_static: bool = True,
    line: int = 5,
    receiver: Optional[str] = None,
    receiver_symbol: Optional[SymbolFact] = None,
) -> int:
    """`Receiver.Method()` where the method resolves to `type_name.method`."""
    receiver_name = receiver or type_name.rsplit(".", 1)[-1]
    call = builder.add(
        NodeKind.INVOCATION,
        parent=parent,
        span=span(line, 13),
        symbol=SymbolFact(name=method, kind="method", containing_type=type_name, is_static=is_static),
    )
    access = builder.add(NodeKind.MEMBER_ACCESS, parent=call, name=method, span=span(line, 13, line, 30))
    builder.add(NodeKind.IDENTIFIER, parent=access, name=receiver_name, span=span(line, 13, line, 20), symbol=receiver_symbol)
    return call


def add_property_read(
    builder: TreeBuilder,
    parent: int,
    type_name: str,
    prop: str,
    is_static: bool = True,
    line: int = 5,
) -> int:
    access = builder.add(
        NodeKind.MEMBER_ACCESS,
        parent=parent,
        name=prop,
        span=span(line, 20, line, 32),
        symbol=SymbolFact(name=prop, kind="property", containing_type=type_name, is_static=is_static),
    )
    builder.add(NodeKind.IDENTIFIER, parent=access, name=type_name.rsplit(".", 1)[-1], span=span(line, 20, line, 28))
    return access


def add_creation(
    builder: TreeBuilder,
    parent: int,
    type_name: str,
    line: int = 5,
    base_types: Sequence[str] = (),
    interfaces: Iterable[str] = (),
) -> int:
    return builder.add(
        NodeKind.OBJECT_CREATION,
        parent=parent,
        name=type_name.rsplit(".", 1)[-1],
        span=span(line, 20, line, 45),
        symbol=SymbolFact(
            name=".ctor",
            kind="constructor",
            containing_type=type_name,
            base_types=tuple(base_types),
            interfaces=frozenset(interfaces),
        ),
    )


def add_field(
    builder: TreeBuilder,
    parent: int,
    name: str,
    type_name: str,
    modifiers: Iterable[str] = ("private", "static"),
    line: int = 3,
    containing_type: str = "App.Service",
) -> int:
    """Add a field with one declarator. Returns the declarator index."""
    field = builder.add(NodeKind.FIELD, parent=parent, span=span(line, 5), modifiers=modifiers)
    return builder.add(
        NodeKind.VARIABLE_DECLARATOR,
        parent=field,
        name=name,
        span=span(line, 30, line, 30 + len(name)),
        name_span=span(line, 30, line, 30 + len(name)),
        symbol=SymbolFact(name=name, kind="field", containing_type=containing_type, type_name=type_name),
    )


def add_parameter(
    builder: TreeBuilder,
    parent: int,
    name: str,
    type_name: str,
    type_kind: str = "class",
    is_abstract: bool = False,
    interfaces: Iterable[str] = (),
    line: int = 2,
) -> int:
    """`TypeName name` in a parameter list; the symbol describes the declared type."""
    return builder.add(
        NodeKind.PARAMETER,
        parent=parent,
        name=name,
        span=span(line, 30, line, 31 + len(type_name) + len(name)),
        symbol=SymbolFact(
            name=name,
            kind="parameter",
            type_name=type_name,
            type_kind=type_kind,
            is_abstract=is_abstract,
            interfaces=frozenset(interfaces),
        ),
    )


def add_ifs(builder: TreeBuilder, parent: int, count: int, first_line: int = 3) -> List[int]:
    return [
        builder.add(NodeKind.IF, parent=parent, span=span(first_line + i, 9))
        for i in range(count)
    ]


def method_with_ifs(count: int, name: str = "Process") -> SyntaxTree:
    builder = TreeBuilder("Service.cs")
    cls = add_class(builder, "Service")
    body = add_method(builder, cls, name, line=2, end_line=count + 4)
    add_ifs(builder, body, count)
    return builder.build()


def run_rules(
    rules: Sequence[Type[Rule]],
    tree: SyntaxTree,
    options: Optional[dict] = None,
    sections: Optional[list] = None,
) -> List[Finding]:
    engine = AnalysisEngine(
        [rule_class() for rule_class in rules],
        options=MappingOptions.from_data(options, sections),
    )
    return engine.analyze(tree)


def run_rule(rule: Type[Rule], tree: SyntaxTree, options: Optional[dict] = None) -> List[Finding]:
    return run_rules([rule], tree, options)
