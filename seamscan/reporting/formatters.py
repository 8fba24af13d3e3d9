"""
Report formatters.

Findings carry only a rule id, a location and message arguments. The
formatters pair them with the rule descriptors for wording and with the
effective severities chosen by the host configuration.
"""

from __future__ import annotations

import json
from io import StringIO
from typing import Any, Dict, List, Mapping

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from seamscan import __version__
from seamscan.core.findings import Finding, Location, ScanReport, Severity
from seamscan.core.rules import RuleDescriptor


SEVERITY_STYLES = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
    Severity.HIDDEN: "dim",
}

SARIF_LEVELS = {
    Severity.ERROR: "error",
    Severity.WARNING: "warning",
    Severity.INFO: "note",
    Severity.HIDDEN: "none",
}

SARIF_VERSION = "2.1.0"
SARIF_SCHEMA = "https://json.schemastore.org/sarif-2.1.0.json"


def format_message(descriptor: RuleDescriptor, finding: Finding) -> str:
    return descriptor.format_message(finding.arguments)


def _severity(finding: Finding, descriptors: Mapping[str, RuleDescriptor], severities: Mapping[str, Severity]) -> Severity:
    if finding.rule_id in severities:
        return severities[finding.rule_id]
    return descriptors[finding.rule_id].default_severity


def format_text(
    report: ScanReport,
    descriptors: Mapping[str, RuleDescriptor],
    severities: Mapping[str, Severity],
    color: bool = False,
) -> str:
    output = StringIO()
    console = Console(file=output, force_terminal=color, no_color=not color, width=120)

    for finding in report.findings:
        severity = _severity(finding, descriptors, severities)
        style = SEVERITY_STYLES[severity]
        message = format_message(descriptors[finding.rule_id], finding)
        console.print(
            f"[{style}]{severity.value}[/{style}] [bold]{finding.rule_id}[/bold] "
            f"{escape(str(finding.location))}: {escape(message)}",
            soft_wrap=True,
            highlight=False,
        )

    counts = report.by_rule()
    if counts:
        table = Table(title="Findings by rule")
        table.add_column("Rule")
        table.add_column("Title")
        table.add_column("Count", justify="right")
        for rule_id in sorted(counts):
            table.add_row(rule_id, descriptors[rule_id].title, str(counts[rule_id]))
        console.print(table)

    for error in report.errors:
        console.print(f"[red]error[/red] {escape(error)}", soft_wrap=True, highlight=False)

    console.print(
        f"{report.total_findings} finding(s) in {report.trees_analyzed} file(s)",
        soft_wrap=True,
        highlight=False,
    )
    return output.getvalue()


def format_json(
    report: ScanReport,
    descriptors: Mapping[str, RuleDescriptor],
    severities: Mapping[str, Severity],
) -> str:
    findings: List[Dict[str, Any]] = []
    for finding in report.findings:
        data = finding.to_dict()
        data["severity"] = _severity(finding, descriptors, severities).value
        data["message"] = format_message(descriptors[finding.rule_id], finding)
        findings.append(data)
    data = {
        "summary": {
            "count": report.total_findings,
            "trees_analyzed": report.trees_analyzed,
            "by_rule": report.by_rule(),
            "rules_applied": report.rules_applied,
        },
        "findings": findings,
        "errors": report.errors,
    }
    return json.dumps(data, indent=2)


def _sarif_rule(descriptor: RuleDescriptor) -> Dict[str, Any]:
    return {
        "id": descriptor.rule_id,
        "name": descriptor.title,
        "shortDescription": {"text": descriptor.title},
        "fullDescription": {"text": descriptor.description or descriptor.title},
        "helpUri": descriptor.help_uri,
        "properties": {"category": descriptor.category},
    }


def _sarif_physical_location(location: Location) -> Dict[str, Any]:
    physical: Dict[str, Any] = {"artifactLocation": {"uri": location.path.replace("\\", "/")}}
    span = location.span
    # SARIF lines are 1-based; findings without a position carry no region.
    if span.start_line >= 1:
        physical["region"] = {
            "startLine": span.start_line,
            "startColumn": span.start_column,
            "endLine": span.end_line,
            "endColumn": span.end_column,
        }
    return physical


def format_sarif(
    report: ScanReport,
    descriptors: Mapping[str, RuleDescriptor],
    severities: Mapping[str, Severity],
) -> str:
    rule_ids = sorted({finding.rule_id for finding in report.findings})
    rule_index = {rule_id: index for index, rule_id in enumerate(rule_ids)}
    results = []
    for finding in report.findings:
        results.append(
            {
                "ruleId": finding.rule_id,
                "ruleIndex": rule_index[finding.rule_id],
                "level": SARIF_LEVELS[_severity(finding, descriptors, severities)],
                "message": {"text": format_message(descriptors[finding.rule_id], finding)},
                "locations": [{"physicalLocation": _sarif_physical_location(finding.location)}],
            }
        )
    sarif = {
        "version": SARIF_VERSION,
        "$schema": SARIF_SCHEMA,
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": "seamscan",
                        "version": __version__,
                        "rules": [_sarif_rule(descriptors[rule_id]) for rule_id in rule_ids],
                    }
                },
                "results": results,
                "invocations": [
                    {
                        "executionSuccessful": not report.errors,
                        "toolExecutionNotifications": [
                            {"level": "error", "message": {"text": error}} for error in report.errors
                        ],
                    }
                ],
            }
        ],
    }
    return json.dumps(sarif, indent=2)


FORMATTERS = {
    "json": format_json,
    "sarif": format_sarif,
}


def format_report(
    report: ScanReport,
    fmt: str,
    descriptors: Mapping[str, RuleDescriptor],
    severities: Mapping[str, Severity],
    color: bool = False,
) -> str:
    if fmt == "text":
        return format_text(report, descriptors, severities, color=color)
    formatter = FORMATTERS.get(fmt)
    if formatter is None:
        raise ValueError(f"Unknown report format: {fmt}")
    return formatter(report, descriptors, severities)


def format_rules(descriptors: List[RuleDescriptor], active: Mapping[str, bool], color: bool = False) -> str:
    """Table of the rule catalog."""
    output = StringIO()
    console = Console(file=output, force_terminal=color, no_color=not color, width=160)
    table = Table(title="seamscan rules")
    table.add_column("Rule", no_wrap=True)
    table.add_column("Category", no_wrap=True)
    table.add_column("Severity", no_wrap=True)
    table.add_column("Enabled", no_wrap=True)
    table.add_column("Title")
    for descriptor in descriptors:
        table.add_row(
            descriptor.rule_id,
            descriptor.category,
            descriptor.default_severity.value,
            "yes" if active.get(descriptor.rule_id) else "no",
            descriptor.title,
        )
    console.print(table)
    return output.getvalue()
