import re

from helpers import literal, node, project, symbol

from migration_scanner.model import Directive, NodeKind, TableResolver, TypeSymbol
from migration_scanner.rules import UnitContext
from migration_scanner.rules.matchers import (
    AttributePresenceMatcher,
    DirectiveScanMatcher,
    FindingTemplate,
    InheritanceChainMatcher,
    LiteralPatternMatcher,
    NamespacePrefixMatcher,
    TypeIdentityMatcher,
    attribute_name,
)
from migration_scanner.severity import AnalyzerCategory, Severity

HIGH = FindingTemplate("T001", Severity.HIGH, "matched {namespace}", "fix")
TYPE = FindingTemplate("T002", Severity.MEDIUM, "type {type}", "fix")
BASE = FindingTemplate("T003", Severity.HIGH, "{name} derives {base}", "fix")
VALUE = FindingTemplate("T005", Severity.MEDIUM, "literal {value}", "fix")
VALUE_HIGH = FindingTemplate("T006", Severity.HIGH, "high literal {value}", "fix")
ATTRIBUTE = FindingTemplate("T007", Severity.HIGH, "attribute {attribute}", "fix")
INTERFACE = FindingTemplate("T008", Severity.HIGH, "{name} implements {base}", "fix")


def context(symbols=None):
    resolver = TableResolver(symbols) if symbols is not None else None
    return UnitContext(project=project(), path="src/App/A.cs", category=AnalyzerCategory.GENERAL, resolver=resolver)


def test_namespace_prefix_is_case_insensitive_and_dotted():
    matcher = NamespacePrefixMatcher(("Microsoft.Win32",), HIGH)
    ctx = context()

    matcher.match(ctx, node("using_directive", "microsoft.win32.SafeHandles", line=2))
    matcher.match(ctx, node("using_directive", "Microsoft.Win32Extra"))

    assert len(ctx.findings) == 1
    assert ctx.findings[0].line == 2
    assert ctx.findings[0].message == "matched microsoft.win32.SafeHandles"


def test_namespace_prefix_exclusions():
    matcher = NamespacePrefixMatcher(("System.Web",), HIGH, exclude=("AspNetCore",))

    assert matcher.prefix_for("System.Web.Mvc") == "System.Web"
    assert matcher.prefix_for("System.Web.AspNetCore.Shim") is None


def test_type_identity_uses_symbol_when_available():
    matcher = TypeIdentityMatcher({"Registry": TYPE})
    ctx = context({"r1": symbol("GetValue", "Registry", "Microsoft.Win32")})

    found = matcher.match(ctx, node("identifier", "GetValue", ref="r1"))

    assert [finding.message for finding in found] == ["type Registry"]


def test_type_identity_falls_back_to_identifier_text():
    matcher = TypeIdentityMatcher({"Registry": TYPE})
    ctx = context()

    assert len(matcher.match(ctx, node("identifier", "Registry"))) == 1
    assert matcher.match(ctx, node("identifier", "Settings")) == []


def test_type_identity_member_mode_and_required_namespace():
    matcher = TypeIdentityMatcher(
        {"ProtectedData.Protect": TYPE},
        member=True,
        required_namespace="System.Security.Cryptography",
        kinds=(NodeKind.INVOCATION,),
    )
    ctx = context(
        {
            "ok": symbol("Protect", "ProtectedData", "System.Security.Cryptography"),
            "other": symbol("Protect", "ProtectedData", "Contoso.Security"),
        }
    )

    assert len(matcher.match(ctx, node("invocation", "ProtectedData.Protect", ref="ok"))) == 1
    assert matcher.match(ctx, node("invocation", "ProtectedData.Protect", ref="other")) == []


def test_type_identity_namespace_template():
    matcher = TypeIdentityMatcher({}, namespaces=("Microsoft.Win32",), namespace_template=HIGH)
    ctx = context({"k": symbol("RegistryHive", None, "Microsoft.Win32")})

    found = matcher.match(ctx, node("identifier", "RegistryHive", ref="k"))

    assert [finding.rule_id for finding in found] == ["T001"]


def test_literal_pattern_suppresses_safe_values():
    matcher = LiteralPatternMatcher(
        patterns=((re.compile(r"\\"), VALUE),),
        safe=(re.compile(r"^https?://"),),
    )
    ctx = context()

    matcher.match(ctx, literal("http://host/a\\b"))
    matcher.match(ctx, literal("a\\b"))

    assert len(ctx.findings) == 1
    assert ctx.findings[0].message == "literal a\\b"


def test_literal_pattern_all_matches_mode():
    patterns = ((re.compile("a"), VALUE), (re.compile("b"), VALUE_HIGH))
    ctx = context()

    LiteralPatternMatcher(patterns, first_match_only=False).match(ctx, literal("ab"))
    LiteralPatternMatcher(patterns).match(ctx, literal("ab"))

    assert [finding.rule_id for finding in ctx.findings] == ["T005", "T006", "T005"]


def test_attribute_names_match_with_or_without_suffix():
    matcher = AttributePresenceMatcher({"ComVisible": ATTRIBUTE})
    ctx = context()

    for name in ("ComVisible", "ComVisibleAttribute", "System.Runtime.InteropServices.ComVisibleAttribute"):
        matcher.match(ctx, node("attribute", name))
    matcher.match(ctx, node("attribute", "Serializable"))

    assert len(ctx.findings) == 3
    assert {finding.message for finding in ctx.findings} == {"attribute ComVisible"}
    assert attribute_name("Attribute") == "Attribute"


def test_inheritance_walks_entire_chain_and_inherited_interfaces():
    http_module = TypeSymbol("IHttpModule", "System.Web")
    root = TypeSymbol("HttpApplication", "System.Web", interfaces=(http_module,))
    middle = TypeSymbol("BaseApplication", "Contoso.Web", base=root)
    declared = TypeSymbol("Global", "Contoso.Web", base=middle)
    matcher = InheritanceChainMatcher(
        bases={"HttpApplication": BASE},
        interfaces={"IHttpModule": INTERFACE},
        namespaces=("System.Web",),
    )
    ctx = context({"g": symbol("Global", declared=declared)})

    found = matcher.match(ctx, node("class_declaration", "Global", ref="g"))

    assert [finding.rule_id for finding in found] == ["T003", "T008"]
    assert found[0].message == "Global derives System.Web.HttpApplication"
    assert found[1].message == "Global implements System.Web.IHttpModule"


def test_inheritance_lexical_fallback_uses_base_list():
    matcher = InheritanceChainMatcher(bases={"HttpHandler": BASE}, exclude=("AspNetCore",))
    ctx = context()
    declaration = node(
        "class_declaration",
        "ImageHandler",
        children=[node("base_type", "MyHttpHandler", line=4), node("base_type", "AspNetCore.HttpHandler")],
    )

    found = matcher.match(ctx, declaration)

    assert len(found) == 1
    assert found[0].line == 4


def test_directive_scan_reports_each_matching_directive():
    template = FindingTemplate("T004", Severity.MEDIUM, "#if {condition}", "fix")
    matcher = DirectiveScanMatcher(("WINDOWS", "WIN32"), template)
    ctx = context()

    matcher.match(
        ctx,
        [
            Directive("windows && DEBUG", line=3),
            Directive("LINUX", line=9),
            Directive("WIN32", line=12, kind="elif"),
            Directive("WIN32", line=14, kind="endif"),
        ],
    )

    assert [finding.line for finding in ctx.findings] == [3, 12]


def test_each_matcher_supplies_its_template_fields():
    def template(message):
        return FindingTemplate("T009", Severity.LOW, message, "fix")

    ctx = context({"r1": symbol("GetValue", "Registry", "Microsoft.Win32")})
    NamespacePrefixMatcher(("Microsoft.Win32",), template("{namespace} under {prefix}")).match(
        ctx, node("using_directive", "Microsoft.Win32.SafeHandles")
    )
    TypeIdentityMatcher({"Registry": template("{type} {name} in {namespace}")}).match(
        ctx, node("identifier", "GetValue", ref="r1")
    )
    LiteralPatternMatcher(((re.compile("x"), template("{value}")),)).match(ctx, literal("x1"))
    AttributePresenceMatcher({"ComImport": template("{attribute}")}).match(ctx, node("attribute", "ComImportAttribute"))
    InheritanceChainMatcher(bases={"Handler": template("{name} : {base}")}).match(
        ctx, node("class_declaration", "Mine", children=[node("base_type", "BaseHandler")])
    )
    DirectiveScanMatcher(("WIN",), template("#{condition}")).match(ctx, [Directive("WIN32", line=1)])

    assert [finding.message for finding in ctx.findings] == [
        "Microsoft.Win32.SafeHandles under Microsoft.Win32",
        "Registry GetValue in Microsoft.Win32",
        "x1",
        "ComImport",
        "Mine : BaseHandler",
        "#WIN32",
    ]
