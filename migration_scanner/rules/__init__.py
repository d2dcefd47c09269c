"""Rule contract and the shared traversal base for source rules."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from migration_scanner.cancellation import AnalysisCancelled, CancellationToken
from migration_scanner.model import (
    CompilationUnit,
    Node,
    Project,
    SourceAccessError,
    SourceModel,
    Symbol,
    SymbolResolver,
    walk,
)
from migration_scanner.result import Finding, RuleFailure
from migration_scanner.severity import AnalyzerCategory

from .matchers import FindingTemplate

logger = logging.getLogger(__name__)


class Rule(Protocol):
    """Protocol implemented by all rule evaluators."""

    id: str
    name: str
    category: AnalyzerCategory

    async def analyze(self, model: SourceModel, token: CancellationToken) -> List[Finding]:
        """Analyze ``model`` and return the findings, checking ``token`` per unit."""


class RuleExecutionError(Exception):
    """A rule could not complete one or more of its scopes.

    ``findings`` holds what the successful scopes produced.
    """

    def __init__(self, rule_id: str, failures: Sequence[RuleFailure], findings: Sequence[Finding] = ()) -> None:
        self.rule_id = rule_id
        self.failures = tuple(failures)
        self.findings = tuple(findings)
        detail = "; ".join(failure.message for failure in self.failures)
        super().__init__(f"{rule_id} failed on {len(self.failures)} scope(s): {detail}")


@dataclass
class UnitContext:
    """Traversal state for one project or compilation unit.

    A fresh context is created for every scope, so ``flags`` never leak from
    one compilation unit into the next.
    """

    project: Project
    path: str
    category: AnalyzerCategory
    unit: Optional[CompilationUnit] = None
    resolver: Optional[SymbolResolver] = None
    findings: List[Finding] = field(default_factory=list)
    flags: Dict[str, bool] = field(default_factory=dict)

    def resolve(self, node: Node) -> Optional[Symbol]:
        if self.resolver is None:
            return None
        return self.resolver.resolve(node)

    def report(self, template: FindingTemplate, line: int, file_path: Optional[str] = None, **fields: object) -> Finding:
        finding = template.render(file_path or self.path, line, self.category, **fields)
        self.findings.append(finding)
        return finding


class SourceRule:
    """Base class walking every compilation unit of every applicable project.

    Subclasses override the ``check_*`` hooks. Hooks report through the
    context they are given and keep no state on the rule instance.
    """

    id = ""
    name = ""
    category = AnalyzerCategory.GENERAL

    async def analyze(self, model: SourceModel, token: CancellationToken) -> List[Finding]:
        findings: List[Finding] = []
        failures: List[RuleFailure] = []
        for project in model.projects:
            token.raise_if_cancelled()
            if not self.applies_to(project):
                continue
            context = UnitContext(project=project, path=project.path, category=self.category)
            self._run_scope(context, self.check_project, findings, failures)
            for unit in project.units:
                token.raise_if_cancelled()
                await asyncio.sleep(0)
                try:
                    root = unit.syntax_root()
                except SourceAccessError:
                    continue
                context = UnitContext(
                    project=project,
                    path=unit.path,
                    category=self.category,
                    unit=unit,
                    resolver=unit.resolver,
                )
                self._run_scope(context, lambda ctx: self._visit_unit(ctx, root), findings, failures)
        if failures:
            raise RuleExecutionError(self.id, failures, findings)
        return findings

    def _run_scope(
        self,
        context: UnitContext,
        check: Callable[[UnitContext], None],
        findings: List[Finding],
        failures: List[RuleFailure],
    ) -> None:
        try:
            check(context)
        except AnalysisCancelled:
            raise
        except Exception as exc:
            logger.debug("%s failed on %s: %s", self.id, context.path, exc)
            failures.append(RuleFailure(self.id, f"{type(exc).__name__}: {exc}", context.path))
            return
        findings.extend(context.findings)

    def _visit_unit(self, context: UnitContext, root: Node) -> None:
        self.check_unit(context, root)
        for node in walk(root):
            self.check_node(context, node)
        self.finish_unit(context)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------
    def applies_to(self, project: Project) -> bool:
        return True

    def check_project(self, context: UnitContext) -> None:
        """Inspect project-level data such as packages and config files."""

    def check_unit(self, context: UnitContext, root: Node) -> None:
        """Inspect unit-level data such as directive trivia."""

    def check_node(self, context: UnitContext, node: Node) -> None:
        """Inspect one syntax node."""

    def finish_unit(self, context: UnitContext) -> None:
        """Report conclusions drawn from the unit's ``flags``."""
