"""Detect P/Invoke declarations bound to native Windows libraries."""

from __future__ import annotations

from typing import Iterable, Optional

from migration_scanner.model import Node, NodeKind, argument_literal, arguments
from migration_scanner.severity import AnalyzerCategory, Severity

from . import SourceRule, UnitContext
from .matchers import FindingTemplate, attribute_name

WINDOWS_DLLS = (
    "kernel32.dll",
    "user32.dll",
    "gdi32.dll",
    "advapi32.dll",
    "shell32.dll",
    "ntdll.dll",
)

NATIVE_IMPORT = FindingTemplate(
    "WIN002",
    Severity.CRITICAL,
    "P/Invoke to native Windows DLL '{dll}' detected.",
    "This code will fail on Linux. Replace with a managed equivalent or use conditional "
    "compilation with platform checks.",
)


class PInvokeRule(SourceRule):
    """Flag ``[DllImport]`` methods targeting Windows DLLs."""

    id = "WIN002"
    name = "P/Invoke Detection"
    category = AnalyzerCategory.PLATFORM_API

    def __init__(self, dlls: Iterable[str] = WINDOWS_DLLS) -> None:
        self._dlls = frozenset(dll.lower() for dll in dlls)

    def check_node(self, context: UnitContext, node: Node) -> None:
        if node.kind is not NodeKind.METHOD_DECLARATION:
            return
        dll = self._imported_library(node)
        if dll is None:
            return
        if dll.lower() in self._dlls or dll.lower().endswith(".dll"):
            context.report(NATIVE_IMPORT, node.line, dll=dll)

    @staticmethod
    def _imported_library(method: Node) -> Optional[str]:
        for child in method.children:
            if child.kind is NodeKind.ATTRIBUTE and attribute_name(child.name) == "DllImport":
                args = arguments(child)
                return argument_literal(args[0]) if args else None
        return None
