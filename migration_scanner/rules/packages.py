"""Inspect package and project references for Windows-only dependencies."""

from __future__ import annotations

import re
from typing import Mapping, Optional

from migration_scanner.severity import AnalyzerCategory, Severity

from . import SourceRule, UnitContext
from .matchers import FindingTemplate

PROBLEMATIC_PACKAGES: Mapping[str, str] = {
    "Microsoft.Win32.Registry": "Windows-specific registry access",
    "System.Management": "WMI is Windows-only",
    "System.ServiceProcess.ServiceController": "Windows Services only",
    "System.DirectoryServices": "Use Novell.Directory.Ldap.NETStandard instead",
    "System.DirectoryServices.AccountManagement": "Use Novell.Directory.Ldap.NETStandard instead",
    "System.Drawing": "Consider SkiaSharp or ImageSharp for cross-platform graphics",
    "System.Drawing.Common": "Limited Linux support; use SkiaSharp or ImageSharp",
}
MINIMUM_MAJOR_VERSION = 3
VERSION_PATTERN = re.compile(r"^(\d+)(?:\.\d+){1,3}$")

KNOWN_PACKAGE = FindingTemplate("PKG001", Severity.HIGH, "Package '{package}' v{version}: {reason}", "{reason}")
WINDOWS_PACKAGE = FindingTemplate(
    "PKG002",
    Severity.MEDIUM,
    "Potentially Windows-specific package: '{package}' v{version}",
    "Review package documentation for Linux compatibility.",
)
OLD_PACKAGE = FindingTemplate(
    "PKG003",
    Severity.LOW,
    "Old package version detected: '{package}' v{version}",
    "Consider updating to latest stable version for better cross-platform support.",
)
WINDOWS_PROJECT = FindingTemplate(
    "PKG004",
    Severity.MEDIUM,
    "Reference to potentially Windows-specific project: '{project}'",
    "Review referenced project for Windows dependencies.",
)


def major_version(version: str) -> Optional[int]:
    match = VERSION_PATTERN.match(version.strip())
    return int(match.group(1)) if match else None


class PackageRule(SourceRule):
    id = "PKG001"
    name = "NuGet Package Analyzer"
    category = AnalyzerCategory.DEPENDENCIES

    def __init__(
        self,
        packages: Mapping[str, str] = PROBLEMATIC_PACKAGES,
        minimum_major_version: int = MINIMUM_MAJOR_VERSION,
    ) -> None:
        self._packages = {name.lower(): reason for name, reason in packages.items()}
        self._minimum_major = minimum_major_version

    def check_project(self, context: UnitContext) -> None:
        for package in context.project.packages:
            if not package.name:
                continue
            fields = {"package": package.name, "version": package.version}
            reason = self._packages.get(package.name.lower())
            if reason is not None:
                context.report(KNOWN_PACKAGE, package.line, reason=reason, **fields)
            elif "windows" in package.name.lower():
                context.report(WINDOWS_PACKAGE, package.line, **fields)
            major = major_version(package.version)
            if major is not None and major < self._minimum_major:
                context.report(OLD_PACKAGE, package.line, **fields)

        for reference in context.project.project_references:
            lowered = reference.lower()
            if "windows" in lowered or "win32" in lowered:
                project = reference.replace("\\", "/").rsplit("/", 1)[-1]
                context.report(WINDOWS_PROJECT, 1, project=project)
