"""
Finding data structures.

A Finding is the only thing the analysis core produces: which rule fired,
where, and the arguments for the host's message template. Severity and
wording belong to the rule descriptors and the reporting layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple, Union

from seamscan.core.tree import Span


MessageArgument = Union[str, int]


class Severity(Enum):
    """Severity levels a host can assign to findings."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HIDDEN = "hidden"

    @property
    def rank(self) -> int:
        order = [Severity.HIDDEN, Severity.INFO, Severity.WARNING, Severity.ERROR]
        return order.index(self)

    def __lt__(self, other):
        return self.rank < other.rank

    def __le__(self, other):
        return self == other or self < other


@dataclass(frozen=True)
class Location:
    """A span inside one source file."""
    path: str
    span: Span

    def __str__(self) -> str:
        return f"{self.path}:{self.span.start_line}:{self.span.start_column}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "start_line": self.span.start_line,
            "start_column": self.span.start_column,
            "end_line": self.span.end_line,
            "end_column": self.span.end_column,
        }


@dataclass(frozen=True)
class Finding:
    """One reported occurrence of a seam-blocking pattern."""
    rule_id: str
    location: Location
    arguments: Tuple[MessageArgument, ...] = ()

    @property
    def sort_key(self) -> Tuple[Any, ...]:
        span = self.location.span
        return (
            self.location.path,
            span.start_line,
            span.start_column,
            span.end_line,
            span.end_column,
            self.rule_id,
            tuple(str(arg) for arg in self.arguments),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "location": self.location.to_dict(),
            "arguments": list(self.arguments),
        }


@dataclass
class ScanReport:
    """Results of analysing one or more syntax trees."""
    findings: List[Finding]
    trees_analyzed: int
    rules_applied: List[str]
    errors: List[str] = field(default_factory=list)

    @property
    def total_findings(self) -> int:
        return len(self.findings)

    def by_rule(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for finding in self.findings:
            counts[finding.rule_id] = counts.get(finding.rule_id, 0) + 1
        return counts
