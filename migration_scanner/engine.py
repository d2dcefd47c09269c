"""Run registered rules over a source model and aggregate the outcome."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

from .aggregate import aggregate
from .cancellation import AnalysisCancelled, CancellationToken
from .filters import FindingFilter
from .model import FatalLoadError, ModelProvider, SourceAccessError, SourceModel
from .result import AnalysisResult, Finding, RuleFailure
from .rules import Rule, RuleExecutionError
from .severity import AnalyzerCategory, Severity

logger = logging.getLogger(__name__)

UNREADABLE_UNIT_RULE = "SRC001"


class RunState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    RUNNING = "running"
    AGGREGATING = "aggregating"
    COMPLETE = "complete"
    FATAL = "fatal"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RuleOutcome:
    """What one rule contributed to a run."""

    rule_id: str
    name: str
    findings: Tuple[Finding, ...]
    failures: Tuple[RuleFailure, ...]
    elapsed: timedelta

    @property
    def failed(self) -> bool:
        return bool(self.failures)


@dataclass(frozen=True)
class RunRecord:
    """Unfiltered output of :meth:`Engine.run`."""

    source_id: str
    findings: Tuple[Finding, ...]
    failures: Tuple[RuleFailure, ...]
    units_scanned: int
    duration: timedelta
    inventory: Mapping[str, int]
    outcomes: Tuple[RuleOutcome, ...]


def unreadable_unit_findings(model: SourceModel) -> List[Finding]:
    """Info advisories for units whose syntax tree could not be supplied."""

    findings: List[Finding] = []
    for unit in model.units():
        try:
            unit.syntax_root()
        except SourceAccessError as exc:
            findings.append(
                Finding(
                    file_path=unit.path,
                    line=1,
                    message=f"File could not be analyzed: {exc}",
                    recommendation="Review this file manually for platform-specific code.",
                    severity=Severity.INFO,
                    category=AnalyzerCategory.GENERAL,
                    rule_id=UNREADABLE_UNIT_RULE,
                )
            )
    return findings


def package_inventory(model: SourceModel) -> Counter:
    return Counter(package.name for project in model.projects for package in project.packages)


class Engine:
    """Invoke rules in registration order with per-rule failure isolation."""

    def __init__(
        self,
        rules: Iterable[Rule],
        concurrent: bool = False,
        on_rule_complete: Optional[Callable[[RuleOutcome], None]] = None,
    ) -> None:
        self.rules: Sequence[Rule] = tuple(rules)
        self.concurrent = concurrent
        self.on_rule_complete = on_rule_complete
        self.state = RunState.IDLE

    async def run(self, model: SourceModel, token: Optional[CancellationToken] = None) -> RunRecord:
        token = token or CancellationToken()
        started = time.perf_counter()
        if self.concurrent:
            done = await asyncio.gather(
                *(self._run_rule(rule, model, token) for rule in self.rules), return_exceptions=True
            )
            for result in done:
                if isinstance(result, BaseException):
                    raise result
            outcomes = list(done)
            for outcome in outcomes:
                self._notify(outcome)
        else:
            outcomes = []
            for rule in self.rules:
                outcome = await self._run_rule(rule, model, token)
                self._notify(outcome)
                outcomes.append(outcome)

        findings = [finding for outcome in outcomes for finding in outcome.findings]
        findings.extend(unreadable_unit_findings(model))
        failures = tuple(failure for outcome in outcomes for failure in outcome.failures)
        return RunRecord(
            source_id=model.source_id,
            findings=tuple(findings),
            failures=failures,
            units_scanned=model.unit_count,
            duration=timedelta(seconds=time.perf_counter() - started),
            inventory=dict(package_inventory(model)),
            outcomes=tuple(outcomes),
        )

    async def _run_rule(self, rule: Rule, model: SourceModel, token: CancellationToken) -> RuleOutcome:
        started = time.perf_counter()
        token.raise_if_cancelled()
        failures: Tuple[RuleFailure, ...] = ()
        try:
            findings = tuple(await rule.analyze(model, token))
        except AnalysisCancelled:
            raise
        except RuleExecutionError as exc:
            logger.warning("Rule %s failed on %d scope(s); keeping partial findings", rule.id, len(exc.failures))
            findings = exc.findings
            failures = exc.failures
        except Exception as exc:
            logger.warning("Rule %s failed: %s", rule.id, exc, exc_info=logger.isEnabledFor(logging.DEBUG))
            findings = ()
            failures = (RuleFailure(rule.id, f"{type(exc).__name__}: {exc}"),)
        elapsed = timedelta(seconds=time.perf_counter() - started)
        logger.debug("Rule %s produced %d finding(s) in %s", rule.id, len(findings), elapsed)
        return RuleOutcome(rule.id, rule.name, findings, failures, elapsed)

    def _notify(self, outcome: RuleOutcome) -> None:
        if self.on_rule_complete is not None:
            self.on_rule_complete(outcome)

    async def analyze(
        self,
        provider: ModelProvider,
        filters: Iterable[FindingFilter] = (),
        token: Optional[CancellationToken] = None,
    ) -> AnalysisResult:
        """Load the model, run every rule and aggregate the filtered result.

        Raises :class:`FatalLoadError` when the provider cannot supply a model
        and :class:`AnalysisCancelled` when ``token`` fires; neither yields a
        result.
        """

        self.state = RunState.LOADING
        try:
            model = provider.load()
        except FatalLoadError:
            self.state = RunState.FATAL
            raise
        except Exception as exc:
            self.state = RunState.FATAL
            raise FatalLoadError(f"source model could not be loaded: {exc}") from exc

        self.state = RunState.RUNNING
        try:
            record = await self.run(model, token)
        except AnalysisCancelled:
            self.state = RunState.CANCELLED
            raise

        self.state = RunState.AGGREGATING
        result = aggregate(record, filters)
        self.state = RunState.COMPLETE
        logger.info(
            "Analyzed %d unit(s) of %s: %d finding(s), %d rule failure(s)",
            result.units_scanned,
            result.source_id,
            len(result.findings),
            len(result.failures),
        )
        return result

    def analyze_sync(
        self,
        provider: ModelProvider,
        filters: Iterable[FindingFilter] = (),
        token: Optional[CancellationToken] = None,
    ) -> AnalysisResult:
        return asyncio.run(self.analyze(provider, filters, token))
