"""Pure filters applied to the raw finding stream before aggregation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Pattern, Protocol, Tuple

from .result import Finding
from .severity import Severity


class FindingFilter(Protocol):
    def accepts(self, finding: Finding) -> bool:
        """Return True when ``finding`` survives the filter."""


def normalize_path(path: str) -> str:
    return path.replace("\\", "/")


@dataclass(frozen=True)
class SeverityCutoff:
    """Drop findings weaker than ``minimum``."""

    minimum: Severity = Severity.INFO

    def accepts(self, finding: Finding) -> bool:
        return finding.severity.at_least(self.minimum)


@dataclass(frozen=True)
class PathExclusion:
    """Drop findings whose slash-normalized path matches any pattern."""

    patterns: Tuple[Pattern[str], ...] = ()

    def accepts(self, finding: Finding) -> bool:
        path = normalize_path(finding.file_path)
        return not any(pattern.search(path) for pattern in self.patterns)


def apply_filters(findings: Iterable[Finding], filters: Iterable[FindingFilter]) -> Tuple[Finding, ...]:
    active = tuple(filters)
    return tuple(finding for finding in findings if all(item.accepts(finding) for item in active))
