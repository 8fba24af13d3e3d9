from __future__ import annotations

from typing import Optional

from seamscan.analysis.context import ContextTag
from seamscan.core.findings import Finding, Severity
from seamscan.core.rules import Rule, RuleCategory, RuleContext, RuleDescriptor, rule
from seamscan.core.tree import Node, NodeKind
from seamscan.rules.common import qualified_member


STRING_TYPES = frozenset({"string", "System.String"})
IMMUTABLE_NAMESPACES = ("System.Collections.Immutable.", "System.Collections.Frozen.")
IMMUTABLE_PREFIXES = ("Immutable", "IImmutable", "Frozen")

AMBIENT_PROPERTIES = {
    "System.Threading.Thread": frozenset({"CurrentThread", "CurrentPrincipal"}),
    "System.Security.Claims.ClaimsPrincipal": frozenset({"Current"}),
    "System.Threading.SynchronizationContext": frozenset({"Current"}),
}


def _is_immutable_type(type_name: str) -> bool:
    if type_name.startswith(IMMUTABLE_NAMESPACES):
        return True
    simple = type_name.split("<", 1)[0].rsplit(".", 1)[-1]
    return simple.startswith(IMMUTABLE_PREFIXES)


@rule
class StaticMutableFieldRule(Rule):
    descriptor = RuleDescriptor(
        rule_id="SEAM013",
        title="Static mutable field creates shared state",
        message_format="Static mutable field '{0}' creates shared state that can cause test pollution",
        category=RuleCategory.GLOBAL_STATE,
        default_severity=Severity.WARNING,
        description=(
            "Static mutable fields create shared state that persists across tests and can cause "
            "unpredictable behavior. Consider converting to instance fields."
        ),
    )
    node_kinds = frozenset({NodeKind.VARIABLE_DECLARATOR})

    def evaluate(self, node: Node, context: RuleContext) -> Optional[Finding]:
        field = context.tree.parent(node)
        if field is None or field.kind != NodeKind.FIELD:
            return None
        if not field.has_modifier("static") or field.has_modifier("readonly") or field.has_modifier("const"):
            return None

        symbol = node.symbol or field.symbol
        type_name = symbol.type_name if symbol is not None else None
        if type_name is None:
            return None
        if type_name in STRING_TYPES or _is_immutable_type(type_name):
            return None
        if ContextTag.TEST_CLASS in context.tags(field):
            return None
        if symbol.containing_type and context.config(self).is_type_excluded(symbol.containing_type):
            return None
        return self.create_finding(context, node.identifier_span, node.name or "")


@rule
class AmbientContextRule(Rule):
    descriptor = RuleDescriptor(
        rule_id="SEAM014",
        title="Ambient context creates hidden dependency",
        message_format="Ambient context '{0}' creates a hidden dependency that is difficult to control in tests",
        category=RuleCategory.GLOBAL_STATE,
        default_severity=Severity.WARNING,
        description=(
            "Ambient contexts like HttpContext.Current create hidden dependencies that are difficult to "
            "set up in tests. Consider injecting IHttpContextAccessor instead."
        ),
    )
    node_kinds = frozenset({NodeKind.MEMBER_ACCESS})

    def evaluate(self, node: Node, context: RuleContext) -> Optional[Finding]:
        symbol = node.symbol
        if symbol is None or symbol.kind != "property" or not symbol.is_static:
            return None
        if symbol.name not in AMBIENT_PROPERTIES.get(symbol.containing_type or "", ()):
            return None
        if self.is_type_excluded(context, symbol):
            return None
        return self.create_finding(context, node.span, qualified_member(symbol))
