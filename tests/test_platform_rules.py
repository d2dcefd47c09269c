from helpers import analyze, argument, literal, model, node, project, single_unit_model, symbol, unit

from migration_scanner.model import Directive
from migration_scanner.rules.com_interop import ComInteropRule
from migration_scanner.rules.pinvoke import PInvokeRule
from migration_scanner.rules.platform_detection import PlatformDetectionRule
from migration_scanner.rules.windows_api import WindowsApiRule
from migration_scanner.severity import AnalyzerCategory, Severity


def dll_import(library, line=5):
    attribute = node("attribute", "DllImport", line=line, children=[argument(literal(library))])
    return node("method_declaration", "GetTickCount", line=line, children=[attribute])


def test_pinvoke_to_kernel32_is_single_critical_finding():
    findings = analyze(PInvokeRule(), single_unit_model(dll_import("kernel32.dll")))

    assert len(findings) == 1
    assert findings[0].severity is Severity.CRITICAL
    assert findings[0].rule_id == "WIN002"
    assert "kernel32.dll" in findings[0].message
    assert findings[0].category is AnalyzerCategory.PLATFORM_API


def test_pinvoke_flags_any_dll_and_ignores_shared_objects():
    source = single_unit_model(dll_import("Vendor.Native.DLL"), dll_import("libc.so.6"))

    findings = analyze(PInvokeRule(), source)

    assert [finding.message for finding in findings] == [
        "P/Invoke to native Windows DLL 'Vendor.Native.DLL' detected."
    ]


def test_windows_api_flags_usings_and_types():
    source = single_unit_model(
        node("using_directive", "Microsoft.Win32", line=1),
        node("using_directive", "System.Text", line=2),
        node("identifier", "Registry", line=8),
    )

    findings = analyze(WindowsApiRule(), source)

    assert [(finding.line, finding.severity) for finding in findings] == [(1, Severity.HIGH), (8, Severity.HIGH)]
    assert all(finding.rule_id == "WIN001" for finding in findings)


def test_windows_api_symbol_in_windows_namespace():
    source = single_unit_model(
        node("identifier", "GetValue", line=4, ref="s1"),
        symbols={"s1": symbol("GetValue", "Registry", "Microsoft.Win32")},
    )

    findings = analyze(WindowsApiRule(), source)

    # type match and namespace match are independent evidence
    assert len(findings) == 2


def test_windows_api_tables_are_configurable():
    rule = WindowsApiRule(namespaces=("Contoso.Windows",), types=())
    source = single_unit_model(
        node("using_directive", "Contoso.Windows.Shell"),
        node("using_directive", "Microsoft.Win32"),
        node("identifier", "Registry"),
    )

    findings = analyze(rule, source)

    assert len(findings) == 1
    assert "Contoso.Windows.Shell" in findings[0].message


def test_com_interop_detections():
    com_class = node(
        "class_declaration",
        "Automation",
        line=10,
        children=[node("attribute", "ComVisible", line=9), node("attribute", "GuidAttribute", line=9)],
    )
    activation = node(
        "invocation",
        "Activator.CreateInstance",
        line=20,
        children=[argument(node("invocation", "Type.GetTypeFromProgID", line=20))],
    )
    source = single_unit_model(
        node("using_directive", "System.EnterpriseServices", line=1),
        node("attribute", "ComImport", line=3),
        com_class,
        activation,
        node("invocation", "Marshal.ReleaseComObject", line=25),
    )

    findings = analyze(ComInteropRule(), source)

    summary = [(finding.rule_id, finding.severity, finding.line) for finding in findings]
    assert summary == [
        ("COM001", Severity.CRITICAL, 1),
        ("COM001", Severity.CRITICAL, 3),
        ("COM002", Severity.HIGH, 10),
        ("COM002", Severity.HIGH, 9),
        ("COM003", Severity.CRITICAL, 20),
        ("COM003", Severity.CRITICAL, 20),
        ("COM004", Severity.HIGH, 25),
    ]


def test_platform_detection_directives_and_checks():
    is_windows = node(
        "invocation",
        "RuntimeInformation.IsOSPlatform",
        line=6,
        children=[argument(text="OSPlatform.Windows")],
    )
    comparison = node("binary_expression", line=9, text="Environment.OSVersion.Platform == PlatformID.Win32NT")
    source = model(
        project(
            unit(
                "src/App/Platform.cs",
                is_windows,
                node("invocation", "OperatingSystem.IsLinux", line=7),
                comparison,
                directives=[Directive("WINDOWS", line=2), Directive("NET8_0", line=3)],
            )
        )
    )

    findings = analyze(PlatformDetectionRule(), source)

    summary = [(finding.rule_id, finding.line) for finding in findings]
    assert summary == [("PLT004", 2), ("PLT002", 6), ("PLT003", 7), ("PLT001", 9)]
    assert all(finding.category is AnalyzerCategory.GENERAL for finding in findings)


def test_platform_id_requires_symbol_type():
    source = single_unit_model(
        node("identifier", "Win32NT", line=3, ref="p"),
        node("identifier", "Win32NT", line=4, ref="other"),
        symbols={
            "p": symbol("Win32NT", "PlatformID", "System", type_name="PlatformID"),
            "other": symbol("Win32NT", "Build", "Contoso", type_name="BuildTarget"),
        },
    )

    findings = analyze(PlatformDetectionRule(), source)

    assert [(finding.line, finding.severity) for finding in findings] == [(3, Severity.MEDIUM)]
