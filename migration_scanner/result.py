"""Core result data structures for the scanner."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .severity import AnalyzerCategory, Severity

SEVERITY_ORDER: Sequence[Severity] = (
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
    Severity.INFO,
)


@dataclass(frozen=True)
class Finding:
    """Capture a single detected portability issue."""

    file_path: str
    line: int
    message: str
    recommendation: str
    severity: Severity
    category: AnalyzerCategory
    rule_id: str

    def __post_init__(self) -> None:
        if not isinstance(self.severity, Severity):
            raise TypeError(f"severity must be a Severity, got {self.severity!r}")
        if not isinstance(self.category, AnalyzerCategory):
            raise TypeError(f"category must be an AnalyzerCategory, got {self.category!r}")
        if self.line < 1:
            raise ValueError(f"line numbers are 1-based, got {self.line}")

    def to_dict(self) -> Dict[str, object]:
        return {
            "file": self.file_path,
            "line": self.line,
            "message": self.message,
            "recommendation": self.recommendation,
            "severity": self.severity.value,
            "category": self.category.value,
            "ruleId": self.rule_id,
        }


@dataclass(frozen=True)
class RuleFailure:
    """Record a rule that could not complete for a unit or for the whole run."""

    rule_id: str
    message: str
    unit: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {"ruleId": self.rule_id, "message": self.message, "unit": self.unit}


def effort_days(findings: Iterable[Finding]) -> float:
    """Return the total remediation effort for ``findings``."""

    return sum(finding.severity.effort_days for finding in findings)


def severity_counts(findings: Iterable[Finding]) -> Dict[Severity, int]:
    """Histogram over all five severities, zero buckets included."""

    counts = {severity: 0 for severity in SEVERITY_ORDER}
    for finding in findings:
        counts[finding.severity] += 1
    return counts


def category_counts(findings: Iterable[Finding]) -> Dict[AnalyzerCategory, int]:
    counts = {category: 0 for category in AnalyzerCategory}
    for finding in findings:
        counts[finding.category] += 1
    return counts


@dataclass(frozen=True)
class AnalysisResult:
    """Immutable outcome of one analysis run.

    Instances are created through :meth:`build`, which derives the effort and
    histogram views from the filtered findings.
    """

    timestamp: datetime
    source_id: str
    findings: Tuple[Finding, ...]
    duration: timedelta
    units_scanned: int
    inventory: Mapping[str, int]
    failures: Tuple[RuleFailure, ...]
    effort_days: float
    severity_counts: Mapping[Severity, int]
    category_counts: Mapping[AnalyzerCategory, int]

    @classmethod
    def build(
        cls,
        source_id: str,
        findings: Iterable[Finding],
        duration: timedelta,
        units_scanned: int,
        inventory: Optional[Mapping[str, int]] = None,
        failures: Iterable[RuleFailure] = (),
        timestamp: Optional[datetime] = None,
    ) -> "AnalysisResult":
        kept = tuple(findings)
        return cls(
            timestamp=timestamp or datetime.now(timezone.utc),
            source_id=source_id,
            findings=kept,
            duration=max(duration, timedelta(0)),
            units_scanned=units_scanned,
            inventory=MappingProxyType(dict(inventory or {})),
            failures=tuple(failures),
            effort_days=effort_days(kept),
            severity_counts=MappingProxyType(severity_counts(kept)),
            category_counts=MappingProxyType(category_counts(kept)),
        )

    @property
    def passed(self) -> bool:
        return all(self.severity_counts[severity] == 0 for severity in SEVERITY_ORDER[:3])

    def exit_code(self) -> int:
        if self.severity_counts[Severity.CRITICAL] > 0 or self.severity_counts[Severity.HIGH] > 0:
            return 2
        if self.severity_counts[Severity.MEDIUM] > 0:
            return 1
        return 0

    def top_findings(self, limit: int = 5) -> List[Finding]:
        """Return findings ordered by severity ranking."""

        ordered = sorted(self.findings, key=lambda finding: -finding.severity.rank)
        return ordered[:limit]

    def to_dict(self) -> Dict[str, object]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "source": self.source_id,
            "durationSeconds": self.duration.total_seconds(),
            "unitsScanned": self.units_scanned,
            "effortDays": round(self.effort_days, 2),
            "summary": {severity.value.lower(): count for severity, count in self.severity_counts.items()},
            "categories": {category.value: count for category, count in self.category_counts.items()},
            "inventory": dict(self.inventory),
            "findings": [finding.to_dict() for finding in self.findings],
            "failures": [failure.to_dict() for failure in self.failures],
            "passed": self.passed,
        }


def format_summary_table(result: AnalysisResult, max_findings: int = 5) -> str:
    """Create a human-readable summary table for console output."""

    lines: List[str] = []
    lines.append("Migration Scan Summary")
    lines.append("=" * 40)
    header = f"{'Severity':<10} | {'Count':>5}"
    lines.append(header)
    lines.append("-" * len(header))
    for severity, count in result.severity_counts.items():
        lines.append(f"{severity.value:<10} | {count:>5}")
    lines.append("-" * len(header))
    status = "PASS" if result.passed else "FAIL"
    lines.append(f"Status    : {status}")
    lines.append(f"Findings  : {len(result.findings)}")
    lines.append(f"Files     : {result.units_scanned}")
    lines.append(f"Effort    : {result.effort_days:.1f} days")
    if result.failures:
        lines.append(f"Failures  : {len(result.failures)}")

    findings = result.top_findings(max_findings)
    if findings:
        lines.append("")
        lines.append("Top Findings")
        lines.append("-" * 40)
        for finding in findings:
            lines.append(f"[{finding.severity.value}] {finding.rule_id} {finding.message}")
            lines.append(f"  Location: {finding.file_path}:{finding.line}")
    return "\n".join(lines)
