"""
Static dependency rules.

Detects calls and property reads that reach straight into static APIs
(clocks, GUID and random generators, the process environment) instead of
going through an injectable abstraction.
"""

from __future__ import annotations

from typing import Optional

from seamscan.core.findings import Finding, Severity
from seamscan.core.rules import Rule, RuleCategory, RuleContext, RuleDescriptor, rule
from seamscan.core.tree import Node, NodeKind
from seamscan.rules.common import is_member_of, member_callee, qualified_member, receiver


CLOCK_PROPERTIES = {
    "System.DateTime": frozenset({"Now", "UtcNow", "Today"}),
    "System.DateTimeOffset": frozenset({"Now", "UtcNow"}),
}
TIME_PROVIDER = "System.TimeProvider"
TIME_PROVIDER_METHODS = frozenset({"GetUtcNow", "GetLocalNow"})

GUID_TYPE = "System.Guid"
GUID_FACTORIES = frozenset({"NewGuid", "CreateVersion7", "CreateVersion8"})

ENVIRONMENT_TYPE = "System.Environment"
ENVIRONMENT_METHODS = frozenset({
    "GetEnvironmentVariable",
    "GetEnvironmentVariables",
    "SetEnvironmentVariable",
    "ExpandEnvironmentVariables",
})

RANDOM_TYPE = "System.Random"

# Ambient static properties that read machine, thread or process state.
AMBIENT_STATIC_PROPERTIES = {
    "System.Environment": frozenset({
        "CurrentDirectory",
        "MachineName",
        "UserName",
        "UserDomainName",
        "ProcessorCount",
        "TickCount",
        "OSVersion",
    }),
    "System.Threading.Thread": frozenset({"CurrentThread"}),
    "System.Globalization.CultureInfo": frozenset({"CurrentCulture", "CurrentUICulture"}),
    "System.Configuration.ConfigurationManager": frozenset({"AppSettings", "ConnectionStrings"}),
}

# Pure helpers with no side effects are never worth wrapping.
PURE_STATIC_TYPES = frozenset({"System.IO.Path"})


def _static_property(node: Optional[Node], name: str) -> bool:
    """`node` is a member access reading the static property `name`."""
    if node is None or node.kind != NodeKind.MEMBER_ACCESS or node.symbol is None:
        return False
    symbol = node.symbol
    return symbol.kind == "property" and symbol.is_static and symbol.name == name


@rule
class StaticMethodCallRule(Rule):
    descriptor = RuleDescriptor(
        rule_id="SEAM004",
        title="Static method call creates untestable dependency",
        message_format="Static method '{0}.{1}' creates a dependency that cannot be easily substituted for testing",
        category=RuleCategory.STATIC_DEPENDENCIES,
        default_severity=Severity.INFO,
        enabled_by_default=False,
        description=(
            "Calls to static methods like File.ReadAllText, Console.WriteLine create hard dependencies. "
            "Consider wrapping in an abstraction."
        ),
    )
    node_kinds = frozenset({NodeKind.INVOCATION})

    def evaluate(self, node: Node, context: RuleContext) -> Optional[Finding]:
        symbol = node.symbol
        if symbol is None or symbol.kind != "method" or not symbol.is_static:
            return None
        if member_callee(context.tree, node) is None or not symbol.containing_type:
            return None
        if symbol.containing_type in PURE_STATIC_TYPES:
            return None

        config = context.config(self)
        if config.is_type_excluded(symbol.containing_type):
            return None
        if config.is_method_excluded(symbol.containing_type, symbol.name):
            return None
        if config.is_in_excluded_namespace(symbol.containing_namespace):
            return None
        return self.create_finding(context, node.span, symbol.containing_type_name, symbol.name)


@rule
class DateTimeNowRule(Rule):
    descriptor = RuleDescriptor(
        rule_id="SEAM005",
        title="DateTime.Now/UtcNow creates non-deterministic dependency",
        message_format="'{0}' creates a non-deterministic dependency that makes testing difficult",
        category=RuleCategory.STATIC_DEPENDENCIES,
        default_severity=Severity.INFO,
        description=(
            "Using DateTime.Now or DateTime.UtcNow directly makes code non-deterministic and hard to test. "
            "Consider injecting ITimeProvider or TimeProvider (.NET 8+)."
        ),
    )
    node_kinds = frozenset({NodeKind.MEMBER_ACCESS, NodeKind.INVOCATION})

    def evaluate(self, node: Node, context: RuleContext) -> Optional[Finding]:
        if node.kind == NodeKind.MEMBER_ACCESS:
            return self._clock_property(node, context)
        return self._time_provider_call(node, context)

    def _clock_property(self, node: Node, context: RuleContext) -> Optional[Finding]:
        symbol = node.symbol
        if symbol is None or symbol.kind != "property" or not symbol.is_static:
            return None
        if symbol.name not in CLOCK_PROPERTIES.get(symbol.containing_type or "", ()):
            return None
        if self.is_type_excluded(context, symbol):
            return None
        return self.create_finding(context, node.span, qualified_member(symbol))

    def _time_provider_call(self, node: Node, context: RuleContext) -> Optional[Finding]:
        symbol = node.symbol
        if not is_member_of(symbol, TIME_PROVIDER, TIME_PROVIDER_METHODS):
            return None
        access = member_callee(context.tree, node)
        if access is None or not _static_property(receiver(context.tree, access), "System"):
            return None
        if self.is_type_excluded(context, symbol):
            return None
        return self.create_finding(context, node.span, f"TimeProvider.System.{symbol.name}()")


@rule
class StaticPropertyAccessRule(Rule):
    descriptor = RuleDescriptor(
        rule_id="SEAM008",
        title="Static property access creates untestable dependency",
        message_format="Static property '{0}.{1}' creates a dependency that cannot be easily substituted for testing",
        category=RuleCategory.STATIC_DEPENDENCIES,
        default_severity=Severity.INFO,
        enabled_by_default=False,
        description=(
            "Static properties like Environment.MachineName or CultureInfo.CurrentCulture read ambient state. "
            "Consider injecting the value or an abstraction that supplies it."
        ),
    )
    node_kinds = frozenset({NodeKind.MEMBER_ACCESS})

    def evaluate(self, node: Node, context: RuleContext) -> Optional[Finding]:
        symbol = node.symbol
        if symbol is None or symbol.kind != "property" or not symbol.is_static:
            return None
        if symbol.name not in AMBIENT_STATIC_PROPERTIES.get(symbol.containing_type or "", ()):
            return None
        if self.is_type_excluded(context, symbol):
            return None
        return self.create_finding(context, node.span, symbol.containing_type_name, symbol.name)


@rule
class GuidNewGuidRule(Rule):
    descriptor = RuleDescriptor(
        rule_id="SEAM006",
        title="Guid.NewGuid creates non-deterministic dependency",
        message_format="Guid.NewGuid() creates a non-deterministic dependency that makes testing difficult",
        category=RuleCategory.STATIC_DEPENDENCIES,
        default_severity=Severity.INFO,
        description=(
            "Using Guid.NewGuid() directly makes code non-deterministic and hard to test. "
            "Consider injecting an IGuidGenerator abstraction."
        ),
    )
    node_kinds = frozenset({NodeKind.INVOCATION})

    def evaluate(self, node: Node, context: RuleContext) -> Optional[Finding]:
        symbol = node.symbol
        if not is_member_of(symbol, GUID_TYPE, GUID_FACTORIES) or not symbol.is_static:
            return None
        if self.is_type_excluded(context, symbol):
            return None
        return self.create_finding(context, node.span)


@rule
class EnvironmentVariableRule(Rule):
    descriptor = RuleDescriptor(
        rule_id="SEAM007",
        title="Environment.GetEnvironmentVariable creates configuration dependency",
        message_format="Environment.GetEnvironmentVariable creates a hard dependency on environment configuration",
        category=RuleCategory.STATIC_DEPENDENCIES,
        default_severity=Severity.INFO,
        description=(
            "Direct access to environment variables makes code dependent on runtime environment. "
            "Consider injecting IConfiguration."
        ),
    )
    node_kinds = frozenset({NodeKind.INVOCATION})

    def evaluate(self, node: Node, context: RuleContext) -> Optional[Finding]:
        symbol = node.symbol
        if not is_member_of(symbol, ENVIRONMENT_TYPE, ENVIRONMENT_METHODS):
            return None
        if self.is_type_excluded(context, symbol):
            return None
        return self.create_finding(context, node.span)


@rule
class RandomSharedRule(Rule):
    descriptor = RuleDescriptor(
        rule_id="SEAM019",
        title="Random.Shared creates non-deterministic dependency",
        message_format="Random.Shared creates non-deterministic behavior that makes testing difficult",
        category=RuleCategory.STATIC_DEPENDENCIES,
        default_severity=Severity.INFO,
        description=(
            "Using Random.Shared directly makes code non-deterministic and hard to test. Consider injecting "
            "a Random instance or using a seeded Random for predictable test behavior."
        ),
    )
    node_kinds = frozenset({NodeKind.INVOCATION})

    def evaluate(self, node: Node, context: RuleContext) -> Optional[Finding]:
        symbol = node.symbol
        if symbol is None or symbol.kind != "method" or symbol.containing_type != RANDOM_TYPE:
            return None
        access = member_callee(context.tree, node)
        if access is None:
            return None
        shared = receiver(context.tree, access)
        if not _static_property(shared, "Shared") or shared.symbol.containing_type != RANDOM_TYPE:
            return None
        if self.is_type_excluded(context, symbol):
            return None
        return self.create_finding(context, node.span)
