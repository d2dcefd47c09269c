import dataclasses
from datetime import timedelta

import pytest

from migration_scanner.result import AnalysisResult, Finding, RuleFailure, format_summary_table
from migration_scanner.severity import AnalyzerCategory, Severity


def make_finding(severity, path="src/App/Program.cs", category=AnalyzerCategory.PLATFORM_API, rule_id="WIN001"):
    return Finding(path, 3, "message", "fix it", severity, category, rule_id)


def test_finding_is_immutable():
    finding = make_finding(Severity.HIGH)

    with pytest.raises(dataclasses.FrozenInstanceError):
        finding.severity = Severity.LOW


def test_finding_rejects_unknown_severity():
    with pytest.raises(TypeError):
        Finding("a.cs", 1, "m", "r", "HIGH", AnalyzerCategory.GENERAL, "X")


def test_finding_rejects_zero_line():
    with pytest.raises(ValueError):
        Finding("a.cs", 0, "m", "r", Severity.HIGH, AnalyzerCategory.GENERAL, "X")


def test_finding_serializes_stable_keys():
    data = make_finding(Severity.CRITICAL, rule_id="WIN002").to_dict()

    assert data == {
        "file": "src/App/Program.cs",
        "line": 3,
        "message": "message",
        "recommendation": "fix it",
        "severity": "CRITICAL",
        "category": "platform_api",
        "ruleId": "WIN002",
    }


def test_build_derives_effort_and_histograms():
    findings = [
        make_finding(Severity.CRITICAL),
        make_finding(Severity.HIGH, category=AnalyzerCategory.SECURITY),
        make_finding(Severity.INFO),
    ]

    result = AnalysisResult.build("App.sln", findings, timedelta(seconds=1), units_scanned=2)

    assert result.effort_days == pytest.approx(8.1)
    assert result.severity_counts[Severity.CRITICAL] == 1
    assert result.severity_counts[Severity.MEDIUM] == 0
    assert len(result.severity_counts) == 5
    assert result.category_counts[AnalyzerCategory.SECURITY] == 1
    assert result.category_counts[AnalyzerCategory.PLATFORM_API] == 2
    assert result.exit_code() == 2
    assert not result.passed


def test_inventory_is_read_only():
    result = AnalysisResult.build("App.sln", [], timedelta(0), 0, inventory={"Quartz": 1})

    with pytest.raises(TypeError):
        result.inventory["Quartz"] = 2


def test_exit_code_for_medium_only():
    result = AnalysisResult.build("App.sln", [make_finding(Severity.MEDIUM)], timedelta(0), 1)

    assert result.exit_code() == 1


def test_to_dict_and_summary_table():
    failure = RuleFailure("QTZ001", "RuntimeError: boom", "src/App/Jobs.cs")
    result = AnalysisResult.build(
        "App.sln",
        [make_finding(Severity.LOW), make_finding(Severity.HIGH)],
        timedelta(milliseconds=5),
        units_scanned=4,
        failures=[failure],
    )

    data = result.to_dict()
    table = format_summary_table(result)

    assert data["summary"]["high"] == 1
    assert data["summary"]["critical"] == 0
    assert data["unitsScanned"] == 4
    assert data["effortDays"] == 3.5
    assert data["failures"] == [{"ruleId": "QTZ001", "message": "RuntimeError: boom", "unit": "src/App/Jobs.cs"}]
    assert "Migration Scan Summary" in table
    assert "Failures  : 1" in table
    # highest severity listed first
    assert table.index("[HIGH]") < table.index("[LOW]")
