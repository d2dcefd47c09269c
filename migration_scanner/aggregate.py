"""Turn a raw run record into the final :class:`AnalysisResult`."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable

from .filters import FindingFilter, apply_filters
from .result import AnalysisResult, category_counts, effort_days, severity_counts
from .severity import Severity

if TYPE_CHECKING:  # pragma: no cover
    from .engine import RunRecord

EFFORT_WEIGHTS: Dict[Severity, float] = {severity: severity.effort_days for severity in Severity}

__all__ = [
    "EFFORT_WEIGHTS",
    "aggregate",
    "category_counts",
    "effort_days",
    "severity_counts",
]


def aggregate(record: "RunRecord", filters: Iterable[FindingFilter] = ()) -> AnalysisResult:
    kept = apply_filters(record.findings, filters)
    return AnalysisResult.build(
        source_id=record.source_id,
        findings=kept,
        duration=record.duration,
        units_scanned=record.units_scanned,
        inventory=record.inventory,
        failures=record.failures,
    )
