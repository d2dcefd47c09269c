"""Check CyberArk integrations that rely on Windows credential providers."""

from __future__ import annotations

from typing import Iterable

from migration_scanner.model import Node, NodeKind, Project
from migration_scanner.severity import AnalyzerCategory, Severity

from . import SourceRule, UnitContext
from .matchers import FindingTemplate, NamespacePrefixMatcher

CYBERARK_NAMESPACES = ("CyberArk", "PACyberArk", "CyberArk.AIM", "CyberArk.PasswordVault")
RETRIEVAL_METHODS = ("GetPassword", "RetrievePassword", "FetchCredential")

CYBERARK_NAMESPACE = FindingTemplate(
    "CYB001",
    Severity.MEDIUM,
    "CyberArk namespace '{namespace}' detected.",
    "Verify CyberArk SDK/API is compatible with Linux containers. Prefer REST API over native "
    "Windows credential providers.",
)
CREDENTIAL_PROVIDER = FindingTemplate(
    "CYB001",
    Severity.HIGH,
    "CyberArk Windows Credential Provider usage detected: '{name}'",
    "Replace with CyberArk REST API (Central Credential Provider) for cross-platform compatibility.",
)
AIM_SDK = FindingTemplate(
    "CYB001",
    Severity.MEDIUM,
    "CyberArk AIM CLI Password SDK detected.",
    "Ensure AIM binary is available in container image or use REST API instead. Mount credentials securely.",
)
BINARY_PATH = FindingTemplate(
    "CYB001",
    Severity.HIGH,
    "Hardcoded Windows path to CyberArk binary: '{value}'",
    "Remove hardcoded paths. Use environment variables or mount CyberArk binaries in container at runtime.",
)
APP_ID = FindingTemplate(
    "CYB001",
    Severity.INFO,
    "CyberArk AppID configuration detected.",
    "Ensure AppID is configured via environment variables or secrets, not hardcoded in source.",
)
CREDENTIAL_RETRIEVAL = FindingTemplate(
    "CYB001",
    Severity.INFO,
    "CyberArk credential retrieval detected.",
    "Verify network connectivity from the container to the CyberArk vault and the required firewall rules.",
)


class CyberArkRule(SourceRule):
    id = "CYB001"
    name = "CyberArk Integration Analyzer"
    category = AnalyzerCategory.SECURITY

    def __init__(self, namespaces: Iterable[str] = CYBERARK_NAMESPACES) -> None:
        self._usings = NamespacePrefixMatcher(tuple(namespaces), CYBERARK_NAMESPACE)

    def applies_to(self, project: Project) -> bool:
        return project.references("cyberark")

    def check_node(self, context: UnitContext, node: Node) -> None:
        if node.kind is NodeKind.USING_DIRECTIVE:
            self._usings.match(context, node)
        elif node.kind is NodeKind.IDENTIFIER:
            self._check_symbol(context, node)
        elif node.kind is NodeKind.STRING_LITERAL and node.value is not None:
            value = node.value
            if "clipasswordsdk" in value.lower() and ("C:\\" in value or "\\\\" in value):
                context.report(BINARY_PATH, node.line, value=value)
            if value.lower().startswith("appid="):
                context.report(APP_ID, node.line)
        elif node.kind is NodeKind.INVOCATION and any(method in node.name for method in RETRIEVAL_METHODS):
            symbol = context.resolve(node)
            if symbol is not None and "cyberark" in symbol.containing_namespace.lower():
                context.report(CREDENTIAL_RETRIEVAL, node.line)

    @staticmethod
    def _check_symbol(context: UnitContext, node: Node) -> None:
        symbol = context.resolve(node)
        if symbol is None:
            return
        if "CyberArk" in symbol.containing_namespace and (
            "CredentialProvider" in symbol.name or "WindowsCredential" in symbol.name
        ):
            context.report(CREDENTIAL_PROVIDER, node.line, name=symbol.name)
        if "CLIPasswordSDK" in symbol.name or "AIM" in symbol.name:
            context.report(AIM_SDK, node.line)
