"""
Inheritance blocker rules.

A test can only swap out behaviour it can override or extract. These rules
flag public methods that a subclass cannot override and large private methods
that no test can reach directly.
"""

from __future__ import annotations

from typing import Optional

from seamscan.core.findings import Finding, Severity
from seamscan.core.rules import Rule, RuleCategory, RuleContext, RuleDescriptor, rule
from seamscan.core.tree import TYPE_DECLARATION_KINDS, Node, NodeKind


ACCESS_MODIFIERS = frozenset({"public", "protected", "internal", "private"})

# Any of these already makes the method overridable or rules overriding out.
NON_OVERRIDABLE_MODIFIERS = frozenset({"virtual", "abstract", "override", "static", "sealed", "extern"})

# Framework plumbing that nobody overrides to create a seam.
EXEMPT_METHOD_NAMES = frozenset({"Dispose", "DisposeAsync", "ToString", "GetHashCode", "Equals"})

INHERITABLE_TYPE_KINDS = frozenset({NodeKind.CLASS, NodeKind.RECORD})

MIN_STATEMENTS = 2


def _is_inheritable(type_node: Optional[Node]) -> bool:
    """A public class or record that can be subclassed."""
    if type_node is None or type_node.kind not in INHERITABLE_TYPE_KINDS:
        return False
    if not type_node.has_modifier("public"):
        return False
    return not (type_node.has_modifier("sealed") or type_node.has_modifier("static"))


@rule
class NonVirtualMethodRule(Rule):
    """
    Flags public non-virtual methods of inheritable classes.

    Methods that implement an interface member are skipped, since the
    interface is already the seam. Trivial methods (expression bodies or a
    single statement) are skipped as well.
    """

    descriptor = RuleDescriptor(
        rule_id="SEAM010",
        title="Non-virtual method prevents override seam",
        message_format="Non-virtual method '{0}' cannot be overridden for testing purposes",
        category=RuleCategory.INHERITANCE_BLOCKERS,
        default_severity=Severity.INFO,
        enabled_by_default=False,
        description=(
            "Public methods that are not virtual cannot be overridden in a test subclass. "
            "Consider making the method virtual or extracting an interface."
        ),
    )
    node_kinds = frozenset({NodeKind.METHOD})

    def evaluate(self, node: Node, context: RuleContext) -> Optional[Finding]:
        if not node.has_modifier("public") or node.modifiers & NON_OVERRIDABLE_MODIFIERS:
            return None
        symbol = node.symbol
        if symbol is None or symbol.implements_interface or symbol.is_abstract or symbol.is_static:
            return None
        if node.name in EXEMPT_METHOD_NAMES:
            return None

        tree = context.tree
        body = tree.body(node)
        if body is None or body.kind != NodeKind.BLOCK or len(body.children) < MIN_STATEMENTS:
            return None
        if not _is_inheritable(tree.enclosing(node, TYPE_DECLARATION_KINDS)):
            return None

        config = context.config(self)
        if config.is_type_excluded(symbol.containing_type):
            return None
        if config.is_method_excluded(symbol.containing_type, symbol.name):
            return None
        return self.create_finding(context, node.identifier_span, node.name or symbol.name)


@rule
class ComplexPrivateMethodRule(Rule):
    """Flags long private methods whose logic cannot be tested in isolation."""

    descriptor = RuleDescriptor(
        rule_id="SEAM011",
        title="Complex private method should be extracted",
        message_format="Private method '{0}' has {1} lines and should be extracted to a separate testable class",
        category=RuleCategory.INHERITANCE_BLOCKERS,
        default_severity=Severity.INFO,
        enabled_by_default=False,
        description=(
            "Large private methods contain logic that cannot be tested in isolation. Consider extracting "
            "the logic to a separate class that can be injected and tested independently."
        ),
    )
    node_kinds = frozenset({NodeKind.METHOD})
    thresholds = {"complexity_threshold": 50}

    def evaluate(self, node: Node, context: RuleContext) -> Optional[Finding]:
        # Members without an access modifier default to private.
        if not node.has_modifier("private") and node.modifiers & ACCESS_MODIFIERS:
            return None
        body = context.tree.body(node)
        if body is None or body.kind != NodeKind.BLOCK:
            return None

        lines = node.span.line_count
        if lines <= context.config(self).threshold("complexity_threshold"):
            return None
        return self.create_finding(context, node.identifier_span, node.name or "", lines)
