"""Inspect project settings and XML configuration files."""

from __future__ import annotations

import re
from typing import Pattern

from migration_scanner.model import ConfigDocument, SourceAccessError, find_elements
from migration_scanner.severity import AnalyzerCategory, Severity

from . import SourceRule, UnitContext
from .matchers import FindingTemplate

# net48, net472, net4.8 and "v4.7.2" style TargetFrameworkVersion values
LEGACY_FRAMEWORK_PATTERN = re.compile(r"^(?:v\d|net[1-4](?:\d+|(?:\.\d+)+)?$)", re.IGNORECASE)

WIN_EXE = FindingTemplate(
    "CFG001",
    Severity.HIGH,
    "Project OutputType is 'WinExe' (Windows GUI application).",
    "Change OutputType to 'Exe' for console apps or ensure GUI is cross-platform (e.g., Avalonia, MAUI).",
)
LEGACY_FRAMEWORK = FindingTemplate(
    "CFG001",
    Severity.CRITICAL,
    "Legacy target framework detected: '{framework}'",
    "Upgrade to .NET 8 (net8.0) for Linux container support.",
)
WEB_CONFIG = FindingTemplate(
    "CFG003",
    Severity.HIGH,
    "web.config file detected. IIS-specific configuration.",
    "Migrate settings to appsettings.json and use Kestrel as the web server. Remove system.webServer sections.",
)
WINDOWS_AUTH_MODE = FindingTemplate(
    "CFG004",
    Severity.CRITICAL,
    "Windows authentication mode configured in web.config.",
    "Switch to Forms, JWT, or OAuth2 authentication compatible with Linux containers.",
)
INTEGRATED_CONNECTION = FindingTemplate(
    "CFG005",
    Severity.HIGH,
    "Connection string with Integrated Security: '{name}'",
    "Replace with SQL authentication using environment variables or secrets manager.",
)
WEB_SERVER_SECTION = FindingTemplate(
    "CFG006",
    Severity.MEDIUM,
    "IIS-specific system.webServer configuration detected.",
    "Remove IIS-specific settings. Configure middleware in Startup.cs/Program.cs instead.",
)
UNREADABLE_CONFIG = FindingTemplate(
    "CFG003",
    Severity.INFO,
    "Could not analyze {file}: {error}",
    "Manually review configuration file.",
)
APP_CONFIG = FindingTemplate(
    "CFG007",
    Severity.MEDIUM,
    "app.config file detected.",
    "Migrate settings to appsettings.json for .NET 8 compatibility.",
)


def is_legacy_framework(framework: str, pattern: Pattern[str] = LEGACY_FRAMEWORK_PATTERN) -> bool:
    framework = framework.strip()
    if not framework:
        return False
    if not framework.lower().startswith("net"):
        return True
    return bool(pattern.match(framework))


class ConfigurationRule(SourceRule):
    id = "CFG001"
    name = "Configuration File Analyzer"
    category = AnalyzerCategory.CONFIGURATION

    def __init__(self, legacy_framework_pattern: str = LEGACY_FRAMEWORK_PATTERN.pattern) -> None:
        self._legacy_framework = re.compile(legacy_framework_pattern, re.IGNORECASE)

    def check_project(self, context: UnitContext) -> None:
        properties = context.project.properties
        if properties.get("OutputType") == "WinExe":
            context.report(WIN_EXE, 1)
        framework = properties.get("TargetFramework") or properties.get("TargetFrameworkVersion") or ""
        if is_legacy_framework(framework, self._legacy_framework):
            context.report(LEGACY_FRAMEWORK, 1, framework=framework)

        for document in context.project.config_files:
            name = document.file_name.lower()
            if name == "web.config":
                self._check_web_config(context, document)
            elif name == "app.config":
                context.report(APP_CONFIG, 1, file_path=document.path)

    def _check_web_config(self, context: UnitContext, document: ConfigDocument) -> None:
        try:
            root = document.document_root()
        except SourceAccessError as exc:
            context.report(UNREADABLE_CONFIG, 1, file_path=document.path, file="web.config", error=exc)
            return

        context.report(WEB_CONFIG, 1, file_path=document.path)
        authentication = next(find_elements(root, "authentication"), None)
        if authentication is not None and authentication.attributes.get("mode") == "Windows":
            context.report(WINDOWS_AUTH_MODE, authentication.line, file_path=document.path)

        for section in find_elements(root, "connectionStrings"):
            for entry in find_elements(section, "add"):
                connection = entry.attributes.get("connectionString", "")
                if "integrated security" in connection.lower():
                    context.report(
                        INTEGRATED_CONNECTION, entry.line, file_path=document.path, name=entry.attributes.get("name", "")
                    )

        web_server = next(find_elements(root, "system.webServer"), None)
        if web_server is not None:
            context.report(WEB_SERVER_SECTION, web_server.line, file_path=document.path)
