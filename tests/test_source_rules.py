from helpers import analyze, argument, literal, model, node, project, single_unit_model, symbol, unit

from migration_scanner.rules.authentication import AuthenticationRule
from migration_scanner.rules.cryptography import CryptographyRule
from migration_scanner.rules.cyberark import CyberArkRule
from migration_scanner.rules.filesystem import FileSystemRule
from migration_scanner.severity import AnalyzerCategory, Severity


def test_drive_letter_path_is_single_high_finding():
    findings = analyze(FileSystemRule(), single_unit_model(literal("C:\\Temp\\data.txt", line=12)))

    assert len(findings) == 1
    assert findings[0].severity is Severity.HIGH
    assert findings[0].line == 12
    assert findings[0].message == "Hardcoded Windows path detected: 'C:\\Temp\\data.txt'"
    assert findings[0].category is AnalyzerCategory.FILESYSTEM


def test_forward_slash_path_is_not_flagged():
    assert analyze(FileSystemRule(), single_unit_model(literal("data/temp.txt"))) == []


def test_unc_and_separator_heuristics():
    source = single_unit_model(
        literal("\\\\fileserver\\share", line=1),
        literal("logs\\app\\today.log", line=2),
        literal("one\\backslash", line=3),
        literal("has space\\in\\it", line=4),
        literal("mixed/and\\back\\slash", line=5),
        node("invocation", "Path.GetTempPath", line=6),
    )

    findings = analyze(FileSystemRule(), source)

    assert [(finding.line, finding.severity) for finding in findings] == [
        (1, Severity.HIGH),
        (2, Severity.MEDIUM),
        (6, Severity.MEDIUM),
    ]


def test_separator_heuristic_skips_embedded_drives_and_device_paths():
    source = single_unit_model(
        literal("abc:\\d\\e", line=1),
        literal("\\\\.\\pipe\\x", line=2),
        literal("D:\\builds\\out", line=3),
        literal("\\\\nas01\\backups", line=4),
    )

    findings = analyze(FileSystemRule(), source)

    assert [(finding.line, finding.severity) for finding in findings] == [(3, Severity.HIGH), (4, Severity.HIGH)]


def test_authentication_detections():
    authorize = node(
        "attribute",
        "Authorize",
        line=4,
        children=[argument(text='AuthenticationSchemes = "Negotiate"'), argument(text='Roles = "Admin"')],
    )
    source = single_unit_model(
        node("using_directive", "System.DirectoryServices.AccountManagement", line=1),
        authorize,
        node("identifier", "DirectorySearcher", line=6),
        literal("Server=db;Integrated Security=true", line=7),
        literal("LDAP://corp.example.com", line=8),
        node("object_creation", "WindowsPrincipal", line=9),
    )

    findings = analyze(AuthenticationRule(), source)

    assert [(finding.line, finding.severity) for finding in findings] == [
        (1, Severity.HIGH),
        (4, Severity.HIGH),
        (6, Severity.HIGH),
        (7, Severity.HIGH),
        (8, Severity.INFO),
        (9, Severity.HIGH),
    ]
    assert all(finding.rule_id == "AUTH001" for finding in findings)
    assert all(finding.category is AnalyzerCategory.SECURITY for finding in findings)


def test_authentication_protocol_literal_is_medium():
    findings = analyze(AuthenticationRule(), single_unit_model(literal("Kerberos")))

    assert [finding.severity for finding in findings] == [Severity.MEDIUM]


def test_cryptography_detections_with_symbols():
    source = single_unit_model(
        node("using_directive", "System.Security.Cryptography.ProtectedData", line=1),
        node("invocation", "ProtectedData.Protect", line=5, ref="protect"),
        node("object_creation", "X509Store", line=7, children=[argument(text="StoreName.My"), argument(text="StoreLocation.LocalMachine")]),
        node("object_creation", "CspParameters", line=8),
        node("identifier", "RSACryptoServiceProvider", line=9, ref="rsa"),
        symbols={
            "protect": symbol("Protect", "ProtectedData", "System.Security.Cryptography"),
            "rsa": symbol("RSACryptoServiceProvider", None, "System.Security.Cryptography"),
        },
    )

    findings = analyze(CryptographyRule(), source)

    assert [(finding.rule_id, finding.severity, finding.line) for finding in findings] == [
        ("CRY001", Severity.INFO, 1),
        ("CRY001", Severity.CRITICAL, 5),
        ("CRY002", Severity.HIGH, 7),
        ("CRY003", Severity.HIGH, 8),
        ("CRY003", Severity.MEDIUM, 9),
    ]


def test_protected_data_outside_crypto_namespace_is_ignored():
    source = single_unit_model(
        node("identifier", "ProtectedData", ref="p"),
        symbols={"p": symbol("ProtectedData", None, "Contoso.Storage")},
    )

    assert analyze(CryptographyRule(), source) == []


def test_cyberark_only_applies_to_referencing_projects():
    code = (
        node("using_directive", "CyberArk.AIM.NetPasswordSDK", line=1),
        literal("AppID=Payroll", line=2),
        literal("C:\\Program Files\\CyberArk\\CLIPasswordSDK.exe", line=3),
        node("identifier", "WindowsCredentialProvider", line=4, ref="provider"),
    )
    symbols = {"provider": symbol("WindowsCredentialProvider", None, "CyberArk.Providers")}
    referencing = project(unit("src/Vault/Client.cs", *code, symbols=symbols), metadata_references=("CyberArk.AIM.dll",))
    plain = project(unit("src/Other/Client.cs", *code, symbols=symbols), name="Other", path="src/Other/Other.csproj")

    findings = analyze(CyberArkRule(), model(referencing, plain))

    assert {finding.file_path for finding in findings} == {"src/Vault/Client.cs"}
    assert [(finding.line, finding.severity) for finding in findings] == [
        (1, Severity.MEDIUM),
        (2, Severity.INFO),
        (3, Severity.HIGH),
        (4, Severity.HIGH),
    ]
