from __future__ import annotations

from typing import Optional

from seamscan.analysis.context import ContextTag
from seamscan.core.findings import Finding, Severity
from seamscan.core.rules import Rule, RuleCategory, RuleContext, RuleDescriptor, rule
from seamscan.core.tree import Node, NodeKind, SymbolFact
from seamscan.rules.common import has_abstraction, is_framework_type, member_callee, receiver, simple_name


SERVICE_LOCATOR_TYPES = frozenset({
    "ServiceLocator",
    "DependencyResolver",
    "CommonServiceLocator",
    "IServiceLocator",
})

SERVICE_LOCATOR_METHODS = frozenset({
    "Resolve",
    "GetService",
    "GetInstance",
    "GetRequiredService",
    "ResolveOptional",
    "TryResolve",
})

SERVICE_PROVIDER_MARKER = "ServiceProvider"

# Resolving from the container is expected where the container is built.
ALLOWED_PROVIDER_CONTEXTS = frozenset({ContextTag.COMPOSITION_ROOT, ContextTag.FACTORY_DELEGATE})

# Places where constructing a concrete dependency is the expected wiring.
ALLOWED_CREATION_CONTEXTS = frozenset({
    ContextTag.COMPOSITION_ROOT,
    ContextTag.FACTORY_DELEGATE,
    ContextTag.STATIC_READONLY_FIELD_INIT,
    ContextTag.HTTP_CLIENT_FACTORY_CLASS,
    ContextTag.TEST_CLASS,
})

SERVICE_SUFFIXES = (
    "Service",
    "Repository",
    "Manager",
    "Provider",
    "Client",
    "Gateway",
    "Handler",
    "Processor",
    "Store",
)

EXCEPTION_BASE = "System.Exception"


@rule
class ServiceLocatorRule(Rule):
    """
    Flags service-locator style resolution.

    Three shapes are reported:
    - any resolve-like call on a well-known locator type
    - `IServiceProvider`-style calls outside the composition root and DI
      factory delegates
    - calls whose receiver is a locator type name used statically
    """

    descriptor = RuleDescriptor(
        rule_id="SEAM003",
        title="Service locator pattern usage",
        message_format="Service locator pattern hides dependencies and makes code harder to test",
        category=RuleCategory.DIRECT_DEPENDENCIES,
        default_severity=Severity.WARNING,
        description=(
            "The service locator pattern hides dependencies, making them implicit rather than explicit. "
            "Consider using constructor injection instead."
        ),
    )
    node_kinds = frozenset({NodeKind.INVOCATION})

    def evaluate(self, node: Node, context: RuleContext) -> Optional[Finding]:
        access = member_callee(context.tree, node)
        if access is None or access.name not in SERVICE_LOCATOR_METHODS:
            return None
        symbol = node.symbol
        if symbol is None or symbol.kind != "method":
            return None
        if self.is_type_excluded(context, symbol):
            return None

        if (
            symbol.containing_type_name in SERVICE_LOCATOR_TYPES
            or self._provider_outside_composition(node, symbol, context)
            or self._static_locator_receiver(access, context)
        ):
            return self.create_finding(context, node.span)
        return None

    def _provider_outside_composition(self, node: Node, symbol: SymbolFact, context: RuleContext) -> bool:
        if SERVICE_PROVIDER_MARKER not in (symbol.containing_type or ""):
            return False
        return not context.tags(node) & ALLOWED_PROVIDER_CONTEXTS

    def _static_locator_receiver(self, access: Node, context: RuleContext) -> bool:
        target = receiver(context.tree, access)
        if target is None or target.kind != NodeKind.IDENTIFIER or target.symbol is None:
            return False
        return target.symbol.kind == "type" and target.symbol.name in SERVICE_LOCATOR_TYPES


@rule
class DirectInstantiationRule(Rule):
    """
    Flags `new` of a concrete service type.

    Only types that look replaceable are reported: ones with a user-defined
    interface or base class, or named like a service. Platform types,
    exceptions and plain data classes are left alone.
    """

    descriptor = RuleDescriptor(
        rule_id="SEAM001",
        title="Direct instantiation of concrete type",
        message_format="Direct instantiation of '{0}' creates a hard dependency that prevents seam injection",
        category=RuleCategory.DIRECT_DEPENDENCIES,
        default_severity=Severity.INFO,
        description=(
            "Creating dependencies with 'new' inside a class hard-wires the implementation. "
            "Consider injecting the dependency through the constructor."
        ),
    )
    node_kinds = frozenset({NodeKind.OBJECT_CREATION})

    def evaluate(self, node: Node, context: RuleContext) -> Optional[Finding]:
        symbol = node.symbol
        if symbol is None or not symbol.containing_type:
            return None
        type_name = symbol.containing_type
        if is_framework_type(type_name) or self._is_exception(symbol):
            return None
        if not (has_abstraction(symbol) or symbol.containing_type_name.endswith(SERVICE_SUFFIXES)):
            return None
        if context.tags(node) & ALLOWED_CREATION_CONTEXTS:
            return None

        config = context.config(self)
        if config.is_type_excluded(type_name) or config.is_in_excluded_namespace(symbol.containing_namespace):
            return None
        return self.create_finding(context, node.span, symbol.containing_type_name)

    @staticmethod
    def _is_exception(symbol: SymbolFact) -> bool:
        return EXCEPTION_BASE in symbol.base_types or (symbol.containing_type_name or "").endswith("Exception")


@rule
class ConcreteConstructorParameterRule(Rule):
    descriptor = RuleDescriptor(
        rule_id="SEAM002",
        title="Concrete type in constructor parameter",
        message_format="Constructor parameter '{0}' uses concrete type '{1}' instead of an abstraction",
        category=RuleCategory.DIRECT_DEPENDENCIES,
        default_severity=Severity.INFO,
        enabled_by_default=False,
        description=(
            "Constructor parameters typed as concrete classes cannot be substituted in tests. "
            "Depend on the interface the class implements instead."
        ),
    )
    node_kinds = frozenset({NodeKind.PARAMETER})

    def evaluate(self, node: Node, context: RuleContext) -> Optional[Finding]:
        owner = context.tree.parent(node)
        if owner is None or owner.kind != NodeKind.CONSTRUCTOR:
            return None
        symbol = node.symbol
        if symbol is None or symbol.type_kind != "class" or symbol.is_abstract:
            return None
        type_name = symbol.type_name
        if not type_name or type_name == "string" or is_framework_type(type_name):
            return None
        # A class with nothing to stand in for it is a data carrier, not a service.
        if not has_abstraction(symbol):
            return None
        if context.config(self).is_type_excluded(type_name):
            return None
        return self.create_finding(context, node.span, node.name or symbol.name, simple_name(type_name))
