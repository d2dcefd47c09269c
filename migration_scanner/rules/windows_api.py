"""Detect Windows-only namespaces and types."""

from __future__ import annotations

from typing import Iterable

from migration_scanner.model import Node, NodeKind
from migration_scanner.severity import AnalyzerCategory, Severity

from . import SourceRule, UnitContext
from .matchers import FindingTemplate, NamespacePrefixMatcher, TypeIdentityMatcher

WINDOWS_NAMESPACES = (
    "Microsoft.Win32",
    "System.Management",
    "System.ServiceProcess",
    "System.Diagnostics.EventLog",
    "System.DirectoryServices",
)
WINDOWS_TYPES = (
    "Registry",
    "RegistryKey",
    "EventLog",
    "ServiceController",
    "WindowsIdentity",
    "WindowsPrincipal",
)

NAMESPACE_USAGE = FindingTemplate(
    "WIN001",
    Severity.HIGH,
    "Usage of Windows-specific namespace '{namespace}' detected.",
    "Remove Windows-specific dependencies and use cross-platform alternatives "
    "(e.g., Microsoft.Extensions.Configuration instead of Registry).",
)
TYPE_USAGE = FindingTemplate(
    "WIN001",
    Severity.HIGH,
    "Usage of Windows-specific type '{type}' detected.",
    "Replace with cross-platform alternatives. Use ClaimsIdentity for WindowsIdentity, "
    "configuration for Registry, and logging for EventLog.",
)
SYMBOL_NAMESPACE = FindingTemplate(
    "WIN001",
    Severity.HIGH,
    "Usage of type '{name}' from Windows-specific namespace '{namespace}'.",
    "Replace with cross-platform alternatives compatible with Linux containers.",
)


class WindowsApiRule(SourceRule):
    """Flag usings, types and symbols that only exist on Windows."""

    id = "WIN001"
    name = "Windows API Usage"
    category = AnalyzerCategory.PLATFORM_API

    def __init__(
        self,
        namespaces: Iterable[str] = WINDOWS_NAMESPACES,
        types: Iterable[str] = WINDOWS_TYPES,
    ) -> None:
        namespaces = tuple(namespaces)
        self._usings = NamespacePrefixMatcher(namespaces, NAMESPACE_USAGE)
        self._types = TypeIdentityMatcher(
            types={type_name: TYPE_USAGE for type_name in types},
            namespaces=namespaces,
            namespace_template=SYMBOL_NAMESPACE,
        )

    def check_node(self, context: UnitContext, node: Node) -> None:
        if node.kind is NodeKind.USING_DIRECTIVE:
            self._usings.match(context, node)
        elif node.kind is NodeKind.IDENTIFIER:
            self._types.match(context, node)
