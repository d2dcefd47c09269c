"""Detect IIS hosting and ASP.NET Classic dependencies."""

from __future__ import annotations

from typing import Iterable

from migration_scanner.model import ConfigDocument, Node, NodeKind, SourceAccessError, find_elements
from migration_scanner.severity import AnalyzerCategory, Severity

from . import SourceRule, UnitContext
from .matchers import FindingTemplate, InheritanceChainMatcher, NamespacePrefixMatcher, TypeIdentityMatcher

SYSTEM_WEB = "System.Web"
ASP_NET_CORE = "AspNetCore"
SYSTEM_WEB_TYPES = (
    "HttpContext",
    "HttpRequest",
    "HttpResponse",
    "HttpServerUtility",
    "HttpApplication",
    "HttpModule",
    "HttpHandler",
    "SessionState",
    "HttpSessionState",
)
GLOBAL_ASAX_NAMES = ("global.asax", "global.asax.cs")

GLOBAL_ASAX = FindingTemplate(
    "IIS006",
    Severity.HIGH,
    "Global.asax file detected - ASP.NET Classic application.",
    "Migrate to ASP.NET Core. Replace Global.asax logic with Startup.cs or Program.cs middleware configuration.",
)
SYSTEM_WEB_SECTION = FindingTemplate(
    "IIS001",
    Severity.HIGH,
    "<system.web> section detected in web.config - ASP.NET Classic configuration.",
    "Migrate to ASP.NET Core which uses appsettings.json and does not require system.web configuration.",
)
HTTP_MODULES_SECTION = FindingTemplate(
    "IIS002",
    Severity.HIGH,
    "HTTP Modules detected in web.config: {names}",
    "HTTP Modules are IIS-specific. Migrate to ASP.NET Core middleware. Replace modules with "
    "middleware in Startup.cs/Program.cs.",
)
HTTP_HANDLERS_SECTION = FindingTemplate(
    "IIS003",
    Severity.HIGH,
    "HTTP Handlers detected in web.config: {names}",
    "HTTP Handlers are IIS-specific. Migrate to ASP.NET Core endpoint routing or middleware.",
)
IIS_MODULES = FindingTemplate(
    "IIS004",
    Severity.HIGH,
    "IIS modules detected in system.webServer: {names}",
    "IIS modules need migration to ASP.NET Core middleware or Kestrel configuration.",
)
REWRITE_RULES = FindingTemplate(
    "IIS005",
    Severity.MEDIUM,
    "IIS URL Rewrite rules detected in web.config.",
    "Migrate URL rewrite rules to ASP.NET Core URL Rewriting middleware or use reverse proxy (nginx) rules.",
)
IIS_HANDLERS = FindingTemplate(
    "IIS003",
    Severity.HIGH,
    "IIS handlers detected in system.webServer configuration.",
    "Migrate IIS handlers to ASP.NET Core endpoint routing.",
)
UNPARSED_WEB_CONFIG = FindingTemplate(
    "IIS001",
    Severity.INFO,
    "Could not fully parse web.config: {error}",
    "Manually review web.config for IIS-specific settings.",
)
SYSTEM_WEB_USING = FindingTemplate(
    "IIS001",
    Severity.HIGH,
    "System.Web namespace '{namespace}' detected - ASP.NET Classic dependency.",
    "System.Web is not available in .NET Core/5+. Migrate to ASP.NET Core equivalents "
    "(Microsoft.AspNetCore.Http for HttpContext, etc.).",
)
CURRENT_CONTEXT = FindingTemplate(
    "IIS001",
    Severity.HIGH,
    "HttpContext.Current usage detected - ASP.NET Classic pattern.",
    "HttpContext.Current is not available in ASP.NET Core. Use dependency injection to pass "
    "HttpContext to services, or access via IHttpContextAccessor.",
)
MAP_PATH = FindingTemplate(
    "IIS001",
    Severity.HIGH,
    "Server.MapPath() usage detected - ASP.NET Classic HttpServerUtility.",
    "Use IWebHostEnvironment.ContentRootPath or WebRootPath in ASP.NET Core instead of Server.MapPath().",
)
SYSTEM_WEB_TYPE = FindingTemplate(
    "IIS001",
    Severity.HIGH,
    "System.Web.{type} usage detected.",
    "Replace with ASP.NET Core equivalent. Use Microsoft.AspNetCore.Http.HttpContext instead of System.Web.HttpContext.",
)
HTTP_APPLICATION = FindingTemplate(
    "IIS006",
    Severity.HIGH,
    "Class '{name}' inherits from System.Web.HttpApplication (Global.asax).",
    "HttpApplication is ASP.NET Classic. Migrate application events to ASP.NET Core Startup.cs "
    "or Program.cs with middleware.",
)
HTTP_MODULE_CLASS = FindingTemplate(
    "IIS002",
    Severity.HIGH,
    "Class '{name}' implements IHttpModule or inherits HttpModule.",
    "HTTP Modules are IIS-specific. Migrate to ASP.NET Core middleware.",
)
HTTP_HANDLER_CLASS = FindingTemplate(
    "IIS003",
    Severity.HIGH,
    "Class '{name}' implements IHttpHandler.",
    "HTTP Handlers are IIS-specific. Migrate to ASP.NET Core endpoint routing or middleware.",
)
MODULE_INTERFACE = FindingTemplate(
    "IIS002",
    Severity.HIGH,
    "Class '{name}' implements IHttpModule.",
    "IHttpModule is IIS-specific. Migrate to ASP.NET Core middleware pattern.",
)
HANDLER_INTERFACE = FindingTemplate(
    "IIS003",
    Severity.HIGH,
    "Class '{name}' implements IHttpHandler.",
    "IHttpHandler is IIS-specific. Migrate to ASP.NET Core endpoint routing.",
)
SYSTEM_WEB_ANCESTOR = FindingTemplate(
    "IIS001",
    Severity.HIGH,
    "Class '{name}' derives from or implements '{base}' - ASP.NET Classic type.",
    "Replace ASP.NET Classic base types with ASP.NET Core middleware or endpoints.",
)
BASE_CLASSES = {
    "HttpApplication": HTTP_APPLICATION,
    "HttpModule": HTTP_MODULE_CLASS,
    "HttpHandler": HTTP_HANDLER_CLASS,
}
INTERFACES = {"IHttpModule": MODULE_INTERFACE, "IHttpHandler": HANDLER_INTERFACE}


def _attribute_list(elements, attribute: str) -> str:
    return ", ".join(element.attributes.get(attribute, "Unknown") for element in elements)


class IisCompatibilityRule(SourceRule):
    id = "IIS001"
    name = "IIS Compatibility Analyzer"
    category = AnalyzerCategory.CONFIGURATION

    def __init__(
        self,
        types: Iterable[str] = SYSTEM_WEB_TYPES,
        bases: Iterable[str] = tuple(BASE_CLASSES),
        interfaces: Iterable[str] = tuple(INTERFACES),
    ) -> None:
        self._usings = NamespacePrefixMatcher((SYSTEM_WEB,), SYSTEM_WEB_USING, exclude=(ASP_NET_CORE,))
        self._types = TypeIdentityMatcher(
            {name: SYSTEM_WEB_TYPE for name in types},
            required_namespace=SYSTEM_WEB,
            kinds=(NodeKind.MEMBER_ACCESS,),
        )
        self._ancestry = InheritanceChainMatcher(
            bases={name: BASE_CLASSES.get(name, SYSTEM_WEB_ANCESTOR) for name in bases},
            interfaces={name: INTERFACES.get(name, SYSTEM_WEB_ANCESTOR) for name in interfaces},
            namespaces=(SYSTEM_WEB,),
            exclude=(ASP_NET_CORE,),
        )

    # ------------------------------------------------------------------
    # Project files
    # ------------------------------------------------------------------
    def check_project(self, context: UnitContext) -> None:
        for document in context.project.config_files:
            if document.file_name.lower() == "web.config":
                self._check_web_config(context, document)
        for path in context.project.files:
            if path.replace("\\", "/").rsplit("/", 1)[-1].lower() in GLOBAL_ASAX_NAMES:
                context.report(GLOBAL_ASAX, 1, file_path=path)
                break

    def _check_web_config(self, context: UnitContext, document: ConfigDocument) -> None:
        path = document.path
        try:
            root = document.document_root()
        except SourceAccessError as exc:
            context.report(UNPARSED_WEB_CONFIG, 1, file_path=path, error=exc)
            return

        system_web = next(find_elements(root, "system.web"), None)
        if system_web is not None:
            context.report(SYSTEM_WEB_SECTION, system_web.line, file_path=path)

        modules = next(find_elements(root, "httpModules"), None)
        if modules is not None:
            names = _attribute_list(find_elements(modules, "add"), "name")
            context.report(HTTP_MODULES_SECTION, modules.line, file_path=path, names=names)

        handlers = next(find_elements(root, "httpHandlers"), None)
        if handlers is not None:
            paths = _attribute_list(find_elements(handlers, "add"), "path")
            context.report(HTTP_HANDLERS_SECTION, handlers.line, file_path=path, names=paths)

        web_server = next(find_elements(root, "system.webServer"), None)
        if web_server is None:
            return
        server_modules = next(find_elements(web_server, "modules"), None)
        if server_modules is not None:
            added = list(find_elements(server_modules, "add"))
            if added:
                context.report(IIS_MODULES, server_modules.line, file_path=path, names=_attribute_list(added, "name"))
        rewrite = next(find_elements(web_server, "rewrite"), None)
        rules = next(find_elements(rewrite, "rules"), None) if rewrite is not None else None
        if rules is not None and rules.children:
            context.report(REWRITE_RULES, rules.line, file_path=path)
        server_handlers = next(find_elements(web_server, "handlers"), None)
        if server_handlers is not None and server_handlers.children:
            context.report(IIS_HANDLERS, server_handlers.line, file_path=path)

    # ------------------------------------------------------------------
    # Source
    # ------------------------------------------------------------------
    def check_node(self, context: UnitContext, node: Node) -> None:
        if node.kind is NodeKind.USING_DIRECTIVE:
            if node.name.startswith(SYSTEM_WEB):
                self._usings.match(context, node)
        elif node.kind is NodeKind.MEMBER_ACCESS:
            if "HttpContext.Current" in node.name:
                context.report(CURRENT_CONTEXT, node.line)
            if "Server.MapPath" in node.name:
                context.report(MAP_PATH, node.line)
            if context.resolve(node) is not None:
                self._types.match(context, node)
        elif node.kind is NodeKind.CLASS_DECLARATION:
            self._ancestry.match(context, node)
