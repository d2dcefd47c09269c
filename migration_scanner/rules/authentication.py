"""Detect Windows authentication, directory services and integrated security."""

from __future__ import annotations

import re
from typing import Iterable

from migration_scanner.model import Node, NodeKind, arguments, source_text
from migration_scanner.severity import AnalyzerCategory, Severity

from . import SourceRule, UnitContext
from .matchers import (
    FindingTemplate,
    LiteralPatternMatcher,
    NamespacePrefixMatcher,
    TypeIdentityMatcher,
    attribute_name,
    simple_name,
)

AUTH_NAMESPACES = (
    "System.DirectoryServices",
    "System.DirectoryServices.AccountManagement",
    "System.DirectoryServices.Protocols",
    "System.Security.Principal.Windows",
)
IDENTITY_TYPES = ("WindowsIdentity", "WindowsPrincipal", "NTAccount", "SecurityIdentifier")
DIRECTORY_TYPES = ("DirectoryEntry", "DirectorySearcher")
INSTANTIATED_TYPES = ("WindowsIdentity", "WindowsPrincipal")
WINDOWS_SCHEMES = ("Windows", "NTLM", "Negotiate")

AUTH_NAMESPACE = FindingTemplate(
    "AUTH001",
    Severity.HIGH,
    "Windows-specific authentication namespace '{namespace}' detected.",
    "Replace with cross-platform LDAP libraries (Novell.Directory.Ldap.NETStandard) or use "
    "Azure AD/OIDC for authentication.",
)
AUTHORIZE_SCHEME = FindingTemplate(
    "AUTH001",
    Severity.HIGH,
    "Windows authentication scheme detected in [Authorize] attribute.",
    "Replace with JWT Bearer authentication, OpenID Connect, or other cross-platform "
    "authentication schemes.",
)
IDENTITY_TYPE = FindingTemplate(
    "AUTH001",
    Severity.HIGH,
    "Windows-specific identity type '{type}' detected.",
    "Replace with ClaimsIdentity/ClaimsPrincipal for cross-platform authentication.",
)
DIRECTORY_TYPE = FindingTemplate(
    "AUTH001",
    Severity.HIGH,
    "LDAP type '{type}' from System.DirectoryServices detected.",
    "Replace with Novell.Directory.Ldap.NETStandard for cross-platform LDAP support.",
)
INTEGRATED_SECURITY = FindingTemplate(
    "AUTH001",
    Severity.HIGH,
    "Connection string with Windows Integrated Security detected.",
    "Replace with SQL authentication using username/password from secure configuration "
    "(e.g., environment variables or secrets manager).",
)
PROTOCOL_REFERENCE = FindingTemplate(
    "AUTH001",
    Severity.MEDIUM,
    "Windows authentication protocol reference detected: '{value}'",
    "Ensure authentication mechanisms are compatible with Linux containers. Consider OAuth2/OIDC.",
)
LDAP_URL = FindingTemplate(
    "AUTH001",
    Severity.INFO,
    "LDAP URL detected. Verify LDAP server is accessible from Linux containers.",
    "Ensure proper network configuration and DNS resolution for LDAP servers in containerized environment.",
)
INSTANTIATION = FindingTemplate(
    "AUTH001",
    Severity.HIGH,
    "Instantiation of Windows-specific type '{type}' detected.",
    "Refactor to use ClaimsIdentity/ClaimsPrincipal with appropriate claims transformation.",
)

AUTH_LITERALS = LiteralPatternMatcher(
    patterns=(
        (re.compile(r"integrated security|trusted_connection", re.IGNORECASE), INTEGRATED_SECURITY),
        (re.compile(r"ntlm|kerberos|negotiate", re.IGNORECASE), PROTOCOL_REFERENCE),
        (re.compile(r"^ldap://", re.IGNORECASE), LDAP_URL),
    ),
    first_match_only=False,
)


class AuthenticationRule(SourceRule):
    id = "AUTH001"
    name = "Authentication & Security Analyzer"
    category = AnalyzerCategory.SECURITY

    def __init__(
        self,
        namespaces: Iterable[str] = AUTH_NAMESPACES,
        identity_types: Iterable[str] = IDENTITY_TYPES,
        schemes: Iterable[str] = WINDOWS_SCHEMES,
    ) -> None:
        self._usings = NamespacePrefixMatcher(tuple(namespaces), AUTH_NAMESPACE)
        types = {name: IDENTITY_TYPE for name in identity_types}
        types.update({name: DIRECTORY_TYPE for name in DIRECTORY_TYPES})
        self._types = TypeIdentityMatcher(types)
        self._schemes = tuple(schemes)

    def check_node(self, context: UnitContext, node: Node) -> None:
        if node.kind is NodeKind.USING_DIRECTIVE:
            self._usings.match(context, node)
        elif node.kind is NodeKind.ATTRIBUTE and "Authorize" in attribute_name(node.name):
            for argument in arguments(node):
                text = source_text(argument)
                if any(scheme in text for scheme in self._schemes):
                    context.report(AUTHORIZE_SCHEME, node.line)
        elif node.kind is NodeKind.IDENTIFIER:
            self._types.match(context, node)
        elif node.kind is NodeKind.STRING_LITERAL:
            AUTH_LITERALS.match(context, node)
        elif node.kind is NodeKind.OBJECT_CREATION:
            symbol = context.resolve(node)
            type_name = symbol.type_name if symbol is not None and symbol.type_name else simple_name(node.name)
            if type_name in INSTANTIATED_TYPES:
                context.report(INSTANTIATION, node.line, type=type_name)
