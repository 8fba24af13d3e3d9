"""
Rule contract and registry.

A rule declares the node kinds it wants to see and evaluates one node at a
time, returning at most one Finding. Everything a rule may consult (resolved
options, context tags, complexity) goes through the RuleContext, which is
bound to one syntax tree.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Type

from seamscan.analysis.complexity import code_unit, complexity
from seamscan.analysis.context import ContextClassifier, ContextTag
from seamscan.analysis.exclusions import ExclusionResolver, RuleConfig
from seamscan.core.findings import Finding, Location, MessageArgument, Severity
from seamscan.core.tree import Node, NodeKind, Span, SymbolFact, SyntaxTree


HELP_LINK_BASE = "https://github.com/iirorahkonen/Seams.Analyzers/blob/main/docs/rules/"


class RuleCategory:
    DIRECT_DEPENDENCIES = "DirectDependencies"
    STATIC_DEPENDENCIES = "StaticDependencies"
    INHERITANCE_BLOCKERS = "InheritanceBlockers"
    GLOBAL_STATE = "GlobalState"
    INFRASTRUCTURE = "Infrastructure"
    COMPLEXITY = "Complexity"


@dataclass(frozen=True)
class RuleDescriptor:
    """Static metadata for a rule. Message formats use positional `{0}` fields."""
    rule_id: str
    title: str
    message_format: str
    category: str
    default_severity: Severity
    enabled_by_default: bool = True
    description: str = ""

    @property
    def help_uri(self) -> str:
        return f"{HELP_LINK_BASE}{self.rule_id}.md"

    def format_message(self, arguments: Iterable[MessageArgument]) -> str:
        return self.message_format.format(*arguments)


class RuleContext:
    """Per-tree view of the shared analysis services."""

    def __init__(
        self,
        tree: SyntaxTree,
        resolver: ExclusionResolver,
        classifier: ContextClassifier,
    ):
        self.tree = tree
        self.resolver = resolver
        self.classifier = classifier

    @property
    def scope(self) -> str:
        return self.tree.path

    def config(self, rule: "Rule") -> RuleConfig:
        return self.resolver.resolve(rule.rule_id, self.scope, rule.thresholds)

    def tags(self, node: Node) -> FrozenSet[ContextTag]:
        return self.classifier.classify(self.tree, node)

    def complexity(self, node: Node) -> int:
        return complexity(code_unit(self.tree, node))

    def location(self, span: Span) -> Location:
        return Location(self.tree.path, span)


class Rule:
    """
    Base class for seam rules.

    Subclasses set `descriptor` and `node_kinds` and implement `evaluate`.
    `thresholds` maps each numeric option the rule reads to its default.
    """

    descriptor: RuleDescriptor
    node_kinds: FrozenSet[NodeKind] = frozenset()
    thresholds: Mapping[str, int] = {}

    @property
    def rule_id(self) -> str:
        return self.descriptor.rule_id

    def evaluate(self, node: Node, context: RuleContext) -> Optional[Finding]:
        raise NotImplementedError

    def create_finding(self, context: RuleContext, span: Span, *arguments: MessageArgument) -> Finding:
        return Finding(
            rule_id=self.rule_id,
            location=context.location(span),
            arguments=tuple(arguments),
        )

    def is_type_excluded(self, context: RuleContext, symbol: Optional[SymbolFact]) -> bool:
        """True when the user excluded the type this symbol belongs to."""
        if symbol is None:
            return False
        return context.config(self).is_type_excluded(symbol.containing_type)


class RuleRegistry:
    """Registry of rule classes, keyed by rule id."""

    def __init__(self):
        self._rules: Dict[str, Type[Rule]] = {}

    def register(self, rule_class: Type[Rule]) -> Type[Rule]:
        """
        Register a rule class.

        Can be used as a decorator:

        @registry.register
        class MyRule(Rule):
            ...
        """
        rule_id = rule_class.descriptor.rule_id
        existing = self._rules.get(rule_id)
        if existing is not None and existing is not rule_class:
            raise ValueError(f"Rule id {rule_id} is already registered by {existing.__name__}")
        self._rules[rule_id] = rule_class
        return rule_class

    def descriptors(self) -> List[RuleDescriptor]:
        return [self._rules[rule_id].descriptor for rule_id in sorted(self._rules)]

    def create(
        self,
        enabled: Iterable[str] = (),
        disabled: Iterable[str] = (),
    ) -> List[Rule]:
        """
        Instantiate the active rules.

        A rule is active when it is on by default or listed in `enabled`,
        and not listed in `disabled`.
        """
        enabled_ids = set(enabled)
        disabled_ids = set(disabled)
        rules: List[Rule] = []
        for rule_id in sorted(self._rules):
            rule_class = self._rules[rule_id]
            if rule_id in disabled_ids:
                continue
            if rule_class.descriptor.enabled_by_default or rule_id in enabled_ids:
                rules.append(rule_class())
        return rules


registry = RuleRegistry()


def rule(cls: Type[Rule]) -> Type[Rule]:
    """
    Decorator to register a rule with the global registry.

    Usage:
        @rule
        class MyRule(Rule):
            ...
    """
    return registry.register(cls)
