"""Detect DPAPI, certificate-store and CSP cryptography."""

from __future__ import annotations

from typing import Iterable

from migration_scanner.model import Node, NodeKind, arguments
from migration_scanner.severity import AnalyzerCategory, Severity

from . import SourceRule, UnitContext
from .matchers import FindingTemplate, TypeIdentityMatcher, simple_name

CRYPTO_NAMESPACE = "System.Security.Cryptography"

DPAPI_USING = FindingTemplate(
    "CRY001",
    Severity.INFO,
    "Cryptography namespace '{namespace}' detected.",
    "If using DPAPI (ProtectedData), migrate to ASP.NET Core Data Protection API or use "
    "cross-platform encryption (AES).",
)
NAMESPACED_TYPES = {
    "ProtectedData": FindingTemplate(
        "CRY001",
        Severity.CRITICAL,
        "ProtectedData class usage detected (DPAPI - Data Protection API).",
        "DPAPI is Windows-only. Use ASP.NET Core Data Protection API for cross-platform or "
        "encrypt with AES + secure key storage (Azure Key Vault, AWS Secrets Manager).",
    ),
    "CspParameters": FindingTemplate(
        "CRY003",
        Severity.HIGH,
        "CspParameters usage detected (Windows CSP).",
        "Windows Cryptographic Service Providers are not available on Linux. Use standard "
        ".NET cryptography classes or OpenSSL.",
    ),
}
CRYPTO_TYPES = {
    "DataProtectionScope": FindingTemplate(
        "CRY001",
        Severity.CRITICAL,
        "DataProtectionScope usage detected (DPAPI).",
        "DPAPI scopes (CurrentUser/LocalMachine) are Windows-only. Replace with cross-platform encryption.",
    ),
    "X509Store": FindingTemplate(
        "CRY002",
        Severity.HIGH,
        "X509Store usage detected (Windows Certificate Store).",
        "Windows Certificate Store differs from Linux. Use PEM files or containerized "
        "certificate management. Ensure certificates are mounted in containers.",
    ),
    "StoreLocation": FindingTemplate(
        "CRY002",
        Severity.MEDIUM,
        "StoreLocation usage detected (Certificate Store location).",
        "StoreLocation.LocalMachine and CurrentUser are Windows-specific. Use file-based "
        "certificates or environment-specific certificate stores.",
    ),
    "RSACryptoServiceProvider": FindingTemplate(
        "CRY003",
        Severity.MEDIUM,
        "RSACryptoServiceProvider usage detected (CSP-based).",
        "Prefer RSA.Create() for cross-platform compatibility instead of RSACryptoServiceProvider.",
    ),
    "DSACryptoServiceProvider": FindingTemplate(
        "CRY003",
        Severity.MEDIUM,
        "DSACryptoServiceProvider usage detected (CSP-based).",
        "Prefer DSA.Create() for cross-platform compatibility instead of DSACryptoServiceProvider.",
    ),
}
CRYPTO_CALLS = {
    "ProtectedData.Protect": FindingTemplate(
        "CRY001",
        Severity.CRITICAL,
        "ProtectedData.Protect() call detected (DPAPI encryption).",
        "DPAPI encryption is Windows-only. Migrate to ASP.NET Core Data Protection or use AES "
        "with secure key management (Key Vault, Secrets Manager).",
    ),
    "ProtectedData.Unprotect": FindingTemplate(
        "CRY001",
        Severity.CRITICAL,
        "ProtectedData.Unprotect() call detected (DPAPI decryption).",
        "DPAPI decryption is Windows-only. Data encrypted with DPAPI must be decrypted before "
        "migration and re-encrypted with cross-platform method.",
    ),
    "X509Store.Open": FindingTemplate(
        "CRY002",
        Severity.MEDIUM,
        "X509Store.Open() call detected.",
        "Ensure certificate access works on Linux. Consider file-based certificates loaded "
        "via X509Certificate2 from PEM files.",
    ),
}
STORE_CREATION = FindingTemplate(
    "CRY002",
    Severity.HIGH,
    "X509Store instantiated with StoreLocation parameter.",
    "Certificate store locations differ between Windows and Linux. Store certificates as "
    "files in container or use cloud-based certificate management.",
)
CSP_CREATION = FindingTemplate(
    "CRY003",
    Severity.HIGH,
    "CspParameters object creation detected.",
    "CSP (Cryptographic Service Provider) is Windows-specific. Use standard cryptography "
    "classes without CSP parameters.",
)
WINDOWS_CRYPTO_TYPE = FindingTemplate(
    "CRY003",
    Severity.MEDIUM,
    "Windows-specific cryptography type '{type}' usage detected.",
    "Replace with cross-platform .NET cryptography classes (Aes, RSA.Create(), X509Certificate2 from files).",
)
WINDOWS_CRYPTO_CALL = FindingTemplate(
    "CRY003",
    Severity.MEDIUM,
    "Windows-specific cryptography call '{type}()' detected.",
    "Replace with cross-platform .NET cryptography classes (Aes, RSA.Create(), X509Certificate2 from files).",
)


class CryptographyRule(SourceRule):
    """Flag Windows-only cryptography: DPAPI (CRY001), cert store (CRY002), CSP (CRY003)."""

    id = "CRY001"
    name = "Cryptography Compatibility Analyzer"
    category = AnalyzerCategory.SECURITY

    def __init__(
        self,
        namespace: str = CRYPTO_NAMESPACE,
        namespaced_types: Iterable[str] = tuple(NAMESPACED_TYPES),
        types: Iterable[str] = tuple(CRYPTO_TYPES),
        calls: Iterable[str] = tuple(CRYPTO_CALLS),
    ) -> None:
        self._namespace = namespace
        self._namespaced = TypeIdentityMatcher(
            {name: NAMESPACED_TYPES.get(name, WINDOWS_CRYPTO_TYPE) for name in namespaced_types},
            required_namespace=namespace,
        )
        self._types = TypeIdentityMatcher({name: CRYPTO_TYPES.get(name, WINDOWS_CRYPTO_TYPE) for name in types})
        self._calls = TypeIdentityMatcher(
            {name: CRYPTO_CALLS.get(name, WINDOWS_CRYPTO_CALL) for name in calls},
            member=True,
            kinds=(NodeKind.INVOCATION,),
        )

    def check_node(self, context: UnitContext, node: Node) -> None:
        if node.kind is NodeKind.USING_DIRECTIVE:
            if self._namespace in node.name and ("ProtectedData" in node.name or "DataProtection" in node.name):
                context.report(DPAPI_USING, node.line, namespace=node.name)
        elif node.kind is NodeKind.IDENTIFIER:
            self._namespaced.match(context, node)
            self._types.match(context, node)
        elif node.kind is NodeKind.OBJECT_CREATION:
            symbol = context.resolve(node)
            type_name = symbol.type_name if symbol is not None and symbol.type_name else simple_name(node.name)
            if type_name == "X509Store" and len(arguments(node)) > 1:
                context.report(STORE_CREATION, node.line)
            elif type_name == "CspParameters":
                context.report(CSP_CREATION, node.line)
        elif node.kind is NodeKind.INVOCATION:
            self._calls.match(context, node)
