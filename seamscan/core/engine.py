"""
Analysis engine.

The engine:
1. Indexes the active rules by the node kinds they registered for
2. Walks every node of a tree once, dispatching it to the matching rules
3. Isolates rule failures so one broken rule cannot stop the others
4. Returns findings in a deterministic order
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from seamscan.analysis.context import DEFAULT_TABLES, ContextClassifier, ContextTables
from seamscan.analysis.exclusions import ExclusionResolver
from seamscan.core.findings import Finding, ScanReport
from seamscan.core.options import OptionsProvider
from seamscan.core.rules import Rule, RuleContext
from seamscan.core.tree import NodeKind, SyntaxTree


logger = logging.getLogger(__name__)


class AnalysisEngine:
    """Runs a fixed set of rules over syntax trees."""

    def __init__(
        self,
        rules: Iterable[Rule],
        options: Optional[OptionsProvider] = None,
        tables: ContextTables = DEFAULT_TABLES,
        max_workers: int = 4,
    ):
        self.rules: List[Rule] = list(rules)
        self.options = options
        self.classifier = ContextClassifier(tables)
        self.max_workers = max_workers
        self._dispatch: Dict[NodeKind, List[Rule]] = {}
        for rule in self.rules:
            for kind in rule.node_kinds:
                self._dispatch.setdefault(kind, []).append(rule)

    def _new_resolver(self) -> ExclusionResolver:
        return ExclusionResolver(self.options)

    def analyze(self, tree: SyntaxTree, resolver: Optional[ExclusionResolver] = None) -> List[Finding]:
        """Analyze one tree. Failing rules are logged and skipped for the rest of the tree."""
        findings, _ = self._analyze_tree(tree, resolver or self._new_resolver())
        return findings

    def _analyze_tree(
        self,
        tree: SyntaxTree,
        resolver: ExclusionResolver,
    ) -> Tuple[List[Finding], List[str]]:
        context = RuleContext(tree, resolver, self.classifier)
        findings: List[Finding] = []
        errors: List[str] = []
        failed = set()
        logger.debug("Analyzing %s (%d nodes)", tree.path, len(tree))

        for node in tree:
            for rule in self._dispatch.get(node.kind, ()):
                if rule.rule_id in failed:
                    continue
                try:
                    finding = rule.evaluate(node, context)
                except Exception as e:
                    logger.exception("Rule %s failed on %s", rule.rule_id, tree.path)
                    errors.append(f"Error running rule {rule.rule_id} on {tree.path}: {e}")
                    failed.add(rule.rule_id)
                    continue
                if finding is not None:
                    findings.append(finding)

        findings.sort(key=lambda f: f.sort_key)
        return findings, errors

    def scan(self, trees: Sequence[SyntaxTree]) -> ScanReport:
        """
        Analyze several trees and collect the results.

        Trees are analyzed in parallel when there is more than one and the
        engine allows more than one worker. The finding order does not depend
        on scheduling.
        """
        resolver = self._new_resolver()
        all_findings: List[Finding] = []
        errors: List[str] = []

        if len(trees) > 1 and self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                results = list(executor.map(lambda t: self._analyze_tree(t, resolver), trees))
        else:
            results = [self._analyze_tree(tree, resolver) for tree in trees]

        for findings, tree_errors in results:
            all_findings.extend(findings)
            errors.extend(tree_errors)

        all_findings.sort(key=lambda f: f.sort_key)
        return ScanReport(
            findings=all_findings,
            trees_analyzed=len(trees),
            rules_applied=sorted(rule.rule_id for rule in self.rules),
            errors=errors,
        )
