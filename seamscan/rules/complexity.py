from __future__ import annotations

from typing import Optional

from seamscan.analysis.complexity import display_name
from seamscan.core.findings import Finding, Severity
from seamscan.core.rules import Rule, RuleCategory, RuleContext, RuleDescriptor, rule
from seamscan.core.tree import Node, NodeKind


def _is_abstract_or_extern(node: Node) -> bool:
    if node.has_modifier("abstract") or node.has_modifier("extern"):
        return True
    symbol = node.symbol
    return symbol is not None and (symbol.is_abstract or symbol.is_extern)


@rule
class HighCyclomaticComplexityRule(Rule):
    """
    Flags methods, local functions and accessors whose cyclomatic
    complexity exceeds the configured threshold.
    """

    descriptor = RuleDescriptor(
        rule_id="SEAM020",
        title="Method has high cyclomatic complexity",
        message_format="Method '{0}' has cyclomatic complexity of {1} (threshold: {2})",
        category=RuleCategory.COMPLEXITY,
        default_severity=Severity.WARNING,
        description=(
            "Methods with high cyclomatic complexity are difficult to test and maintain. "
            "Consider breaking down into smaller methods."
        ),
    )
    node_kinds = frozenset({NodeKind.METHOD, NodeKind.LOCAL_FUNCTION, NodeKind.ACCESSOR})
    thresholds = {"cyclomatic_complexity_threshold": 25}

    def evaluate(self, node: Node, context: RuleContext) -> Optional[Finding]:
        if context.tree.body(node) is None:
            return None
        if node.kind == NodeKind.METHOD:
            # Declared methods need a resolved symbol; local functions and accessors do not.
            if node.symbol is None or _is_abstract_or_extern(node):
                return None

        threshold = context.config(self).threshold("cyclomatic_complexity_threshold")
        score = context.complexity(node)
        if score <= threshold:
            return None
        return self.create_finding(
            context,
            node.identifier_span,
            display_name(context.tree, node),
            score,
            threshold,
        )
