"""Detect COM interop namespaces, attributes and activation calls."""

from __future__ import annotations

from typing import Iterable

from migration_scanner.model import Node, NodeKind, arguments, walk
from migration_scanner.severity import AnalyzerCategory, Severity

from . import SourceRule, UnitContext
from .matchers import (
    AttributePresenceMatcher,
    FindingTemplate,
    NamespacePrefixMatcher,
    TypeIdentityMatcher,
    attribute_names,
    simple_name,
)

COM_NAMESPACES = (
    "System.Runtime.InteropServices.ComTypes",
    "System.EnterpriseServices",
)
COM_ATTRIBUTES = (
    "ComImport",
    "ComVisible",
    "ProgId",
    "ClassInterface",
    "InterfaceType",
    "ComSourceInterfaces",
    "DispId",
)
COM_TYPE_FACTORIES = ("GetTypeFromProgID", "GetTypeFromCLSID")

COM_NAMESPACE = FindingTemplate(
    "COM001",
    Severity.CRITICAL,
    "COM Interop namespace '{namespace}' detected.",
    "COM is Windows-only. Replace with cross-platform alternatives or use gRPC/REST APIs "
    "for inter-process communication.",
)
_ATTRIBUTE_RECOMMENDATION = (
    "COM Interop attributes indicate Windows-specific COM dependencies. Remove COM usage "
    "or isolate in Windows-specific assemblies with runtime checks."
)
COM_IMPORT_ATTRIBUTE = FindingTemplate(
    "COM001", Severity.CRITICAL, "COM attribute '[{attribute}]' detected.", _ATTRIBUTE_RECOMMENDATION
)
COM_ATTRIBUTE = FindingTemplate(
    "COM002", Severity.HIGH, "COM attribute '[{attribute}]' detected.", _ATTRIBUTE_RECOMMENDATION
)
COM_CLASS = FindingTemplate(
    "COM002",
    Severity.HIGH,
    "Class '{name}' has COM attributes.",
    "COM-enabled classes cannot be used on Linux. Isolate COM functionality or replace "
    "with cross-platform alternatives.",
)
_ACTIVATION_RECOMMENDATION = (
    "COM objects cannot be created on Linux. Replace with managed .NET libraries or use REST/gRPC APIs."
)
COM_CALLS = {
    "Type.GetTypeFromProgID": FindingTemplate(
        "COM003",
        Severity.CRITICAL,
        "Type.GetTypeFromProgID() call detected - creates COM objects via ProgID.",
        _ACTIVATION_RECOMMENDATION,
    ),
    "Type.GetTypeFromCLSID": FindingTemplate(
        "COM003",
        Severity.CRITICAL,
        "Type.GetTypeFromCLSID() call detected - creates COM objects via CLSID.",
        _ACTIVATION_RECOMMENDATION,
    ),
    "Marshal.ReleaseComObject": FindingTemplate(
        "COM004",
        Severity.HIGH,
        "Marshal.ReleaseComObject() call detected - COM object lifetime management.",
        "Indicates COM Interop usage. Remove COM dependencies for Linux compatibility.",
    ),
    "Marshal.GetActiveObject": FindingTemplate(
        "COM003",
        Severity.CRITICAL,
        "Marshal.GetActiveObject() call detected - retrieves running COM object.",
        "COM ROT (Running Object Table) is Windows-only. Use alternative IPC mechanisms.",
    ),
}
COM_ACTIVATION = FindingTemplate(
    "COM003",
    Severity.CRITICAL,
    "Activator.CreateInstance() with COM type detected.",
    "Creating COM objects will fail on Linux. Replace with managed alternatives.",
)


class ComInteropRule(SourceRule):
    id = "COM001"
    name = "COM Interop Detector"
    category = AnalyzerCategory.PLATFORM_API

    def __init__(
        self,
        namespaces: Iterable[str] = COM_NAMESPACES,
        attributes: Iterable[str] = COM_ATTRIBUTES,
    ) -> None:
        self._usings = NamespacePrefixMatcher(tuple(namespaces), COM_NAMESPACE)
        attributes = tuple(attributes)
        self._attributes = AttributePresenceMatcher(
            {name: COM_IMPORT_ATTRIBUTE if name == "ComImport" else COM_ATTRIBUTE for name in attributes}
        )
        self._calls = TypeIdentityMatcher(COM_CALLS, member=True, kinds=(NodeKind.INVOCATION,))

    def check_node(self, context: UnitContext, node: Node) -> None:
        if node.kind is NodeKind.USING_DIRECTIVE:
            self._usings.match(context, node)
        elif node.kind is NodeKind.ATTRIBUTE:
            self._attributes.match(context, node)
        elif node.kind is NodeKind.CLASS_DECLARATION:
            if any(self._attributes.template_for(name) for name in attribute_names(node)):
                context.report(COM_CLASS, node.line, name=node.name)
        elif node.kind is NodeKind.INVOCATION:
            self._calls.match(context, node)
            if self._is_com_activation(context, node):
                context.report(COM_ACTIVATION, node.line)

    @staticmethod
    def _is_com_activation(context: UnitContext, node: Node) -> bool:
        symbol = context.resolve(node)
        if symbol is not None:
            if (symbol.containing_type, symbol.name) != ("Activator", "CreateInstance"):
                return False
        elif not node.name.endswith("Activator.CreateInstance"):
            return False
        args = arguments(node)
        if not args:
            return False
        for inner in walk(args[0]):
            if inner.kind is not NodeKind.INVOCATION:
                continue
            inner_symbol = context.resolve(inner)
            inner_name = inner_symbol.name if inner_symbol is not None else simple_name(inner.name)
            if inner_name in COM_TYPE_FACTORIES:
                return True
        return False
