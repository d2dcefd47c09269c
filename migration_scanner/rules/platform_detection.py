"""Report platform checks and Windows-only conditional compilation."""

from __future__ import annotations

from typing import Iterable

from migration_scanner.model import Node, NodeKind, arguments, source_text
from migration_scanner.severity import AnalyzerCategory, Severity

from . import SourceRule, UnitContext
from .matchers import DirectiveScanMatcher, FindingTemplate, TypeIdentityMatcher

WINDOWS_DIRECTIVE_TOKENS = ("WINDOWS", "WIN32", "WIN64")
WINDOWS_PLATFORM_IDS = ("Win32NT", "Win32Windows", "Win32S", "WinCE")

OS_VERSION = FindingTemplate(
    "PLT001",
    Severity.MEDIUM,
    "Environment.OSVersion usage detected.",
    "Environment.OSVersion returns different values on Windows vs Linux. Use "
    "RuntimeInformation.IsOSPlatform() for platform checks or avoid OS-specific logic.",
)
PLATFORM_PROPERTY = FindingTemplate(
    "PLT001",
    Severity.MEDIUM,
    "OperatingSystem.Platform property access detected.",
    "Platform checks should use RuntimeInformation.IsOSPlatform() for better cross-platform compatibility.",
)
IS_OS_PLATFORM_WINDOWS = FindingTemplate(
    "PLT002",
    Severity.INFO,
    "RuntimeInformation.IsOSPlatform(OSPlatform.Windows) detected.",
    "Verify that Linux code path exists and is tested. Ensure this code branch has cross-platform alternatives.",
)
PLATFORM_CALLS = {
    "OperatingSystem.IsWindows": FindingTemplate(
        "PLT002",
        Severity.INFO,
        "OperatingSystem.IsWindows() detected (.NET 5+).",
        "Ensure Linux code path exists and is tested.",
    ),
    "OperatingSystem.IsLinux": FindingTemplate(
        "PLT003",
        Severity.INFO,
        "OperatingSystem.IsLinux() detected - Linux-specific code path.",
        "Linux-specific code path exists. Ensure it's properly tested.",
    ),
}
for _method in ("IsMacOS", "IsFreeBSD", "IsAndroid"):
    PLATFORM_CALLS[f"OperatingSystem.{_method}"] = FindingTemplate(
        "PLT003",
        Severity.INFO,
        f"OperatingSystem.{_method}() detected - platform-specific code.",
        "Platform-specific code path detected. Ensure all target platforms are handled.",
    )
PLATFORM_ID = FindingTemplate(
    "PLT001",
    Severity.MEDIUM,
    "PlatformID.{value} detected - Windows platform check.",
    "PlatformID is legacy approach. Use RuntimeInformation.IsOSPlatform() or OperatingSystem.IsWindows() instead.",
)
OS_PLATFORM_WINDOWS = FindingTemplate(
    "PLT002",
    Severity.INFO,
    "OSPlatform.Windows detected in platform check.",
    "Platform detection found. Ensure cross-platform alternatives are implemented for Linux migration.",
)
PLATFORM_COMPARISON = FindingTemplate(
    "PLT001",
    Severity.MEDIUM,
    "Platform check using Environment.OSVersion.Platform == PlatformID.Win32NT detected.",
    "Use RuntimeInformation.IsOSPlatform(OSPlatform.Windows) or OperatingSystem.IsWindows() for modern platform detection.",
)
WINDOWS_DIRECTIVE = FindingTemplate(
    "PLT004",
    Severity.MEDIUM,
    "Windows-specific preprocessor directive detected: '#if {condition}'",
    "Review code within Windows-specific conditional blocks. Ensure Linux-compatible alternative "
    "code paths exist or migrate to runtime checks.",
)


class PlatformDetectionRule(SourceRule):
    id = "PLT001"
    name = "Platform Detection Analyzer"
    category = AnalyzerCategory.GENERAL

    def __init__(self, directive_tokens: Iterable[str] = WINDOWS_DIRECTIVE_TOKENS) -> None:
        self._directives = DirectiveScanMatcher(tuple(directive_tokens), WINDOWS_DIRECTIVE)
        self._calls = TypeIdentityMatcher(PLATFORM_CALLS, member=True, kinds=(NodeKind.INVOCATION,))

    def check_unit(self, context: UnitContext, root: Node) -> None:
        if context.unit is not None:
            self._directives.match(context, context.unit.directives)

    def check_node(self, context: UnitContext, node: Node) -> None:
        if node.kind is NodeKind.MEMBER_ACCESS:
            self._check_member_access(context, node)
        elif node.kind is NodeKind.INVOCATION:
            self._calls.match(context, node)
            self._check_is_os_platform(context, node)
        elif node.kind is NodeKind.IDENTIFIER:
            symbol = context.resolve(node)
            if symbol is None:
                return
            if symbol.type_name == "PlatformID" and symbol.name in WINDOWS_PLATFORM_IDS:
                context.report(PLATFORM_ID, node.line, value=symbol.name)
            elif symbol.type_name == "OSPlatform" and symbol.name == "Windows":
                context.report(OS_PLATFORM_WINDOWS, node.line)
        elif node.kind is NodeKind.BINARY_EXPRESSION:
            text = source_text(node)
            if "Environment.OSVersion.Platform" in text and ("Win32NT" in text or "Win32Windows" in text):
                context.report(PLATFORM_COMPARISON, node.line)

    def _check_member_access(self, context: UnitContext, node: Node) -> None:
        if "Environment.OSVersion" in node.name:
            context.report(OS_VERSION, node.line)
        symbol = context.resolve(node)
        if symbol is not None:
            if symbol.containing_type == "OperatingSystem" and symbol.name == "Platform":
                context.report(PLATFORM_PROPERTY, node.line)
            return
        if context.resolver is not None:
            return
        # no semantic model: recognise the qualified spellings
        type_name, _, member = node.name.rpartition(".")
        if type_name.endswith("PlatformID") and member in WINDOWS_PLATFORM_IDS:
            context.report(PLATFORM_ID, node.line, value=member)
        elif type_name.endswith("OSPlatform") and member == "Windows":
            context.report(OS_PLATFORM_WINDOWS, node.line)

    @staticmethod
    def _check_is_os_platform(context: UnitContext, node: Node) -> None:
        symbol = context.resolve(node)
        if symbol is not None:
            matched = symbol.containing_type == "RuntimeInformation" and symbol.name == "IsOSPlatform"
        else:
            matched = node.name.endswith("RuntimeInformation.IsOSPlatform")
        args = arguments(node)
        if matched and args and "OSPlatform.Windows" in source_text(args[0]):
            context.report(IS_OS_PLATFORM_WINDOWS, node.line)
