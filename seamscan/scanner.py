"""
Host wiring: configuration -> engine -> report.

This is the only module that knows about files on disk, the rule catalog and
the configuration file together. The analysis core sees trees and options.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

import seamscan.rules  # noqa: F401  (registers the rule catalog)
from seamscan.config import ScanConfig
from seamscan.core.engine import AnalysisEngine
from seamscan.core.findings import ScanReport, Severity
from seamscan.core.rules import RuleDescriptor, registry
from seamscan.core.tree import SyntaxTree
from seamscan.errors import SnapshotError
from seamscan.parsing.snapshot import iter_snapshot_files, load_snapshot


logger = logging.getLogger(__name__)


def create_engine(config: Optional[ScanConfig] = None, max_workers: Optional[int] = None) -> AnalysisEngine:
    config = config or ScanConfig.default()
    rules = registry.create(enabled=config.enabled_rules(), disabled=config.disabled_rules())
    logger.debug("Active rules: %s", ", ".join(rule.rule_id for rule in rules))
    return AnalysisEngine(
        rules,
        options=config.options(),
        max_workers=max_workers or config.max_workers(),
    )


def rule_descriptors() -> Dict[str, RuleDescriptor]:
    return {descriptor.rule_id: descriptor for descriptor in registry.descriptors()}


def rule_severities(config: ScanConfig) -> Dict[str, Severity]:
    """Effective severity of every registered rule under `config`."""
    return {
        descriptor.rule_id: config.rule_severity(descriptor.rule_id, descriptor.default_severity)
        for descriptor in registry.descriptors()
    }


def load_trees(paths: Iterable[str]) -> Tuple[List[SyntaxTree], List[str]]:
    trees: List[SyntaxTree] = []
    errors: List[str] = []
    for path in iter_snapshot_files(paths):
        try:
            trees.append(load_snapshot(path))
        except SnapshotError as e:
            logger.warning("Skipping %s", e)
            errors.append(f"Error loading {path}: {e}")
    return trees, errors


def scan_paths(
    paths: Iterable[str],
    config: Optional[ScanConfig] = None,
    max_workers: Optional[int] = None,
) -> ScanReport:
    """Load every snapshot under `paths` and analyze them with the configured rules."""
    trees, load_errors = load_trees(paths)
    report = create_engine(config, max_workers).scan(trees)
    report.errors = load_errors + report.errors
    return report


def exceeds_threshold(report: ScanReport, severities: Dict[str, Severity], threshold: Severity) -> bool:
    return any(threshold <= severities.get(finding.rule_id, Severity.WARNING) for finding in report.findings)
