"""Detect hardcoded Windows paths and separator assumptions."""

from __future__ import annotations

import re
from typing import Iterable

from migration_scanner.model import Node, NodeKind
from migration_scanner.severity import AnalyzerCategory, Severity

from . import SourceRule, UnitContext
from .matchers import FindingTemplate, LiteralPatternMatcher

DRIVE_PATH_PATTERN = r"^[a-zA-Z]:\\"
UNC_PATH_PATTERN = r"^\\\\[a-zA-Z0-9]"
# two or more backslashes, no forward slash, no spaces
BACKSLASH_PATH_PATTERN = r"^(?!.*[/ ])(?:[^\\]*\\){2}"
SAFE_PATTERNS = (
    # no backslash at all
    r"^[^\\]*$",
    # ":\" past the start, e.g. "scheme:\x\y"
    r"^(?![a-zA-Z]:\\).*:\\",
    # "\\" not followed by a host name, e.g. device paths
    r"^\\\\(?![a-zA-Z0-9])",
)

DRIVE_PATH = FindingTemplate(
    "FS001",
    Severity.HIGH,
    "Hardcoded Windows path detected: '{value}'",
    "Use Path.Combine and relative paths, or configuration settings for paths. Avoid drive letters.",
)
UNC_PATH = FindingTemplate(
    "FS001",
    Severity.HIGH,
    "UNC path detected: '{value}'",
    "UNC paths may not be accessible from Linux containers. Ensure the target share is "
    "mounted or accessible via network.",
)
BACKSLASH_SEPARATOR = FindingTemplate(
    "FS001",
    Severity.MEDIUM,
    "Potential Windows-style path separator usage: '{value}'",
    "Use Path.DirectorySeparatorChar or forward slashes '/' which work on both Windows and Linux.",
)
TEMP_PATH = FindingTemplate(
    "FS001",
    Severity.MEDIUM,
    "Path.GetTempPath() usage detected",
    "Ensure the temporary directory environment variables are correctly set in the container.",
)


class FileSystemRule(SourceRule):
    """Flag path literals and temp-path lookups that assume Windows."""

    id = "FS001"
    name = "File System Paths"
    category = AnalyzerCategory.FILESYSTEM

    def __init__(
        self,
        drive_pattern: str = DRIVE_PATH_PATTERN,
        unc_pattern: str = UNC_PATH_PATTERN,
        backslash_pattern: str = BACKSLASH_PATH_PATTERN,
        safe_patterns: Iterable[str] = SAFE_PATTERNS,
    ) -> None:
        self._literals = LiteralPatternMatcher(
            patterns=(
                (re.compile(drive_pattern), DRIVE_PATH),
                (re.compile(unc_pattern), UNC_PATH),
                (re.compile(backslash_pattern), BACKSLASH_SEPARATOR),
            ),
            safe=tuple(re.compile(pattern) for pattern in safe_patterns),
        )

    def check_node(self, context: UnitContext, node: Node) -> None:
        if node.kind is NodeKind.STRING_LITERAL:
            self._literals.match(context, node)
        elif node.kind is NodeKind.INVOCATION and node.name.endswith("Path.GetTempPath"):
            context.report(TEMP_PATH, node.line)
