"""Check Quartz.NET scheduling for container readiness."""

from __future__ import annotations

from typing import Iterable

from migration_scanner.model import Node, NodeKind, Project, source_text
from migration_scanner.severity import AnalyzerCategory, Severity

from . import SourceRule, UnitContext
from .matchers import FindingTemplate

PERSISTENT = "persistent_store"
CLUSTERED = "clustering"
CLUSTERED_KEY = "quartz.jobStore.clustered"
IN_MEMORY_MARKERS = ("UseInMemoryStore", "RAMJobStore")
PERSISTENT_MARKERS = ("UsePersistentStore", "AdoJobStore")
CLUSTERING_MARKERS = ("UseClustering",)
LOCAL_DATA_SOURCES = ("file://", "localdb")

IN_MEMORY_STORE = FindingTemplate(
    "QTZ001",
    Severity.HIGH,
    "Quartz.NET is configured to use in-memory job storage (RAMJobStore).",
    "For containerized environments, use persistent job storage (AdoJobStore with SQL) to "
    "maintain job state across container restarts and enable clustering.",
)
PERSISTENT_STORE = FindingTemplate(
    "QTZ001",
    Severity.INFO,
    "Quartz.NET persistent job storage detected (AdoJobStore).",
    "Persistent storage is recommended for containers. Ensure the database is reachable from the container network.",
)
CLUSTERING = FindingTemplate(
    "QTZ001",
    Severity.INFO,
    "Quartz.NET clustering configuration detected.",
    "Clustering is required for running multiple container instances.",
)
STORE_TYPE_KEY = FindingTemplate(
    "QTZ001",
    Severity.INFO,
    "Quartz.NET job store type configuration found.",
    "Verify it's set to AdoJobStore for persistent storage, not RAMJobStore.",
)
LOCAL_DATA_SOURCE = FindingTemplate(
    "QTZ001",
    Severity.HIGH,
    "Quartz.NET is using file-based or LocalDB storage.",
    "Use a shared SQL Server or PostgreSQL database accessible from all container instances.",
)
UNCLUSTERED_STORE = FindingTemplate(
    "QTZ001",
    Severity.MEDIUM,
    "Quartz.NET has persistent storage but clustering is not explicitly configured.",
    "Enable clustering (quartz.jobStore.clustered = true) for running multiple container instances.",
)


class QuartzRule(SourceRule):
    """Flag in-memory or unclustered Quartz.NET job stores.

    The persistent-store and clustering markers are tracked per compilation
    unit through ``UnitContext.flags``.
    """

    id = "QTZ001"
    name = "Quartz.NET Configuration Analyzer"
    category = AnalyzerCategory.CONFIGURATION

    def __init__(
        self,
        in_memory_markers: Iterable[str] = IN_MEMORY_MARKERS,
        persistent_markers: Iterable[str] = PERSISTENT_MARKERS,
        clustering_markers: Iterable[str] = CLUSTERING_MARKERS,
        local_data_sources: Iterable[str] = LOCAL_DATA_SOURCES,
    ) -> None:
        self._in_memory = tuple(in_memory_markers)
        self._persistent = tuple(persistent_markers)
        self._clustering = (CLUSTERED_KEY, *clustering_markers)
        self._local_sources = tuple(source.lower() for source in local_data_sources)

    def applies_to(self, project: Project) -> bool:
        return project.references("quartz")

    def check_node(self, context: UnitContext, node: Node) -> None:
        if node.kind is NodeKind.INVOCATION:
            self._check_invocation(context, node)
        elif node.kind is NodeKind.STRING_LITERAL and node.value is not None:
            self._check_literal(context, node)

    def _check_invocation(self, context: UnitContext, node: Node) -> None:
        method = node.name
        if any(marker in method for marker in self._in_memory):
            context.report(IN_MEMORY_STORE, node.line)
        if any(marker in method for marker in self._persistent):
            context.flags[PERSISTENT] = True
            context.report(PERSISTENT_STORE, node.line)
        if any(marker in method for marker in self._clustering) or CLUSTERED_KEY.lower() in source_text(node).lower():
            context.flags[CLUSTERED] = True
            context.report(CLUSTERING, node.line)

    def _check_literal(self, context: UnitContext, node: Node) -> None:
        value = node.value or ""
        if "quartz.jobStore.type" in value:
            context.report(STORE_TYPE_KEY, node.line)
        if CLUSTERED_KEY in value:
            context.flags[CLUSTERED] = True
        if "quartz.jobStore.dataSource" in value and any(source in value.lower() for source in self._local_sources):
            context.report(LOCAL_DATA_SOURCE, node.line)

    def finish_unit(self, context: UnitContext) -> None:
        if context.flags.get(PERSISTENT) and not context.flags.get(CLUSTERED):
            context.report(UNCLUSTERED_STORE, 1)
