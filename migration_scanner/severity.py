"""Severity and category definitions for scanner findings."""

from __future__ import annotations

from enum import Enum


class Severity(str, Enum):
    """Enumerate the supported severity levels for findings."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"

    @property
    def rank(self) -> int:
        """Return an integer ranking; higher means more severe."""

        ordering = {
            Severity.CRITICAL: 4,
            Severity.HIGH: 3,
            Severity.MEDIUM: 2,
            Severity.LOW: 1,
            Severity.INFO: 0,
        }
        return ordering[self]

    @property
    def effort_days(self) -> float:
        """Return the remediation weight in developer-days."""

        weights = {
            Severity.CRITICAL: 5.0,
            Severity.HIGH: 3.0,
            Severity.MEDIUM: 1.0,
            Severity.LOW: 0.5,
            Severity.INFO: 0.1,
        }
        return weights[self]

    def at_least(self, other: "Severity") -> bool:
        return self.rank >= other.rank

    @classmethod
    def parse(cls, text: str) -> "Severity":
        """Parse a severity name in any letter case."""

        try:
            return cls(text.strip().upper())
        except ValueError:
            choices = ", ".join(member.value.lower() for member in cls)
            raise ValueError(f"Unknown severity '{text}' (expected one of: {choices})") from None


class AnalyzerCategory(str, Enum):
    """Closed set of domain areas a rule reports under."""

    PLATFORM_API = "platform_api"
    FILESYSTEM = "filesystem"
    SECURITY = "security"
    CONFIGURATION = "configuration"
    DEPENDENCIES = "dependencies"
    GENERAL = "general"
