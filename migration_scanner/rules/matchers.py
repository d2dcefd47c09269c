"""Reusable detection strategies that rules delegate to.

Matchers are immutable and configured through their constructors. Each call
reports zero or more findings through the unit context; independent matches
on the same node are all kept.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, List, Mapping, Optional, Pattern, Tuple

from migration_scanner.model import Directive, Node, NodeKind, TypeSymbol
from migration_scanner.result import Finding
from migration_scanner.severity import AnalyzerCategory, Severity

if TYPE_CHECKING:  # pragma: no cover
    from . import UnitContext


@dataclass(frozen=True)
class FindingTemplate:
    """Message and recommendation with ``str.format`` fields."""

    rule_id: str
    severity: Severity
    message: str
    recommendation: str

    def render(self, file_path: str, line: int, category: AnalyzerCategory, **fields: object) -> Finding:
        return Finding(
            file_path=file_path,
            line=max(line, 1),
            message=self.message.format(**fields),
            recommendation=self.recommendation.format(**fields),
            severity=self.severity,
            category=category,
            rule_id=self.rule_id,
        )


def _starts_with_namespace(name: str, prefix: str) -> bool:
    name = name.lower()
    prefix = prefix.lower()
    return name == prefix or name.startswith(prefix + ".")


def simple_name(name: str) -> str:
    """Drop namespace qualification and generic arguments from ``name``."""

    return name.split("<", 1)[0].rsplit(".", 1)[-1].strip()


@dataclass(frozen=True)
class NamespacePrefixMatcher:
    prefixes: Tuple[str, ...]
    template: FindingTemplate
    exclude: Tuple[str, ...] = ()
    kinds: Tuple[NodeKind, ...] = (NodeKind.USING_DIRECTIVE,)

    def prefix_for(self, name: str) -> Optional[str]:
        if any(fragment.lower() in name.lower() for fragment in self.exclude):
            return None
        for prefix in self.prefixes:
            if _starts_with_namespace(name, prefix):
                return prefix
        return None

    def match(self, context: "UnitContext", node: Node) -> List[Finding]:
        if node.kind not in self.kinds:
            return []
        prefix = self.prefix_for(node.name)
        if prefix is None:
            return []
        return [context.report(self.template, node.line, namespace=node.name, prefix=prefix)]


@dataclass(frozen=True)
class TypeIdentityMatcher:
    """Compare a node's resolved type (or ``Type.Member``) against a table.

    Without a symbol the node's own name is compared instead.
    """

    types: Mapping[str, FindingTemplate]
    member: bool = False
    namespaces: Tuple[str, ...] = ()
    namespace_template: Optional[FindingTemplate] = None
    required_namespace: Optional[str] = None
    kinds: Tuple[NodeKind, ...] = (NodeKind.IDENTIFIER,)

    def _key(self, type_name: Optional[str], name: str) -> str:
        if self.member:
            return f"{type_name}.{name}" if type_name else name
        return type_name or name

    def match(self, context: "UnitContext", node: Node) -> List[Finding]:
        if node.kind not in self.kinds:
            return []
        found: List[Finding] = []
        symbol = context.resolve(node)
        if symbol is None:
            parts = node.name.split("<", 1)[0].split(".")
            key = ".".join(parts[-2:]) if self.member else parts[-1]
            template = self.types.get(key)
            if template is not None:
                found.append(context.report(template, node.line, type=key, name=node.name, namespace=""))
            return found

        key = self._key(symbol.containing_type, symbol.name)
        namespace = symbol.containing_namespace
        template = self.types.get(key)
        namespace_ok = self.required_namespace is None or self.required_namespace.lower() in namespace.lower()
        if template is not None and namespace_ok:
            found.append(context.report(template, node.line, type=key, name=symbol.name, namespace=namespace))
        if self.namespace_template is not None and namespace:
            for prefix in self.namespaces:
                if _starts_with_namespace(namespace, prefix):
                    found.append(
                        context.report(self.namespace_template, node.line, type=key, name=symbol.name, namespace=namespace)
                    )
                    break
        return found


@dataclass(frozen=True)
class LiteralPatternMatcher:
    patterns: Tuple[Tuple[Pattern[str], FindingTemplate], ...]
    safe: Tuple[Pattern[str], ...] = ()
    first_match_only: bool = True

    def is_safe(self, value: str) -> bool:
        return any(pattern.search(value) for pattern in self.safe)

    def match(self, context: "UnitContext", node: Node) -> List[Finding]:
        if node.kind is not NodeKind.STRING_LITERAL or node.value is None:
            return []
        value = node.value
        if self.is_safe(value):
            return []
        found: List[Finding] = []
        for pattern, template in self.patterns:
            if pattern.search(value):
                found.append(context.report(template, node.line, value=value))
                if self.first_match_only:
                    break
        return found


def attribute_name(name: str) -> str:
    """Normalize ``[System.Foo.BarAttribute]`` and ``[Bar]`` to ``Bar``."""

    short = simple_name(name)
    if short.endswith("Attribute") and short != "Attribute":
        short = short[: -len("Attribute")]
    return short


def attribute_names(declaration: Node) -> List[str]:
    return [attribute_name(child.name) for child in declaration.children if child.kind is NodeKind.ATTRIBUTE]


@dataclass(frozen=True)
class AttributePresenceMatcher:
    names: Mapping[str, FindingTemplate]

    def template_for(self, name: str) -> Optional[FindingTemplate]:
        return self.names.get(attribute_name(name))

    def match(self, context: "UnitContext", node: Node) -> List[Finding]:
        if node.kind is not NodeKind.ATTRIBUTE:
            return []
        template = self.template_for(node.name)
        if template is None:
            return []
        return [context.report(template, node.line, attribute=attribute_name(node.name))]


@dataclass(frozen=True)
class InheritanceChainMatcher:
    """Match configured ancestors anywhere in a class's base chain.

    ``bases`` keys are matched as name suffixes, ``interfaces`` keys exactly.
    Interfaces implemented by any ancestor count as implemented.
    """

    bases: Mapping[str, FindingTemplate] = field(default_factory=dict)
    interfaces: Mapping[str, FindingTemplate] = field(default_factory=dict)
    namespaces: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()

    def _allowed(self, symbol: TypeSymbol) -> bool:
        if any(fragment.lower() in symbol.full_name.lower() for fragment in self.exclude):
            return False
        if not self.namespaces:
            return True
        return any(_starts_with_namespace(symbol.namespace, prefix) for prefix in self.namespaces)

    def _base_template(self, name: str) -> Optional[FindingTemplate]:
        for suffix, template in self.bases.items():
            if name.endswith(suffix):
                return template
        return None

    def match(self, context: "UnitContext", node: Node) -> List[Finding]:
        if node.kind is not NodeKind.CLASS_DECLARATION:
            return []
        symbol = context.resolve(node)
        declared = symbol.declared if symbol is not None else None
        if declared is None:
            return self._match_lexically(context, node)

        found: List[Finding] = []
        chain = [declared, *declared.ancestry()]
        for ancestor in chain[1:]:
            template = self._base_template(ancestor.name)
            if template is not None and self._allowed(ancestor):
                found.append(context.report(template, node.line, name=node.name, base=ancestor.full_name))

        seen = set()
        for interface in _all_interfaces(chain):
            if interface.full_name in seen:
                continue
            seen.add(interface.full_name)
            template = self.interfaces.get(interface.name)
            if template is not None and self._allowed(interface):
                found.append(context.report(template, node.line, name=node.name, base=interface.full_name))
        return found

    def _match_lexically(self, context: "UnitContext", node: Node) -> List[Finding]:
        found: List[Finding] = []
        for child in node.children:
            if child.kind is not NodeKind.BASE_TYPE:
                continue
            if any(fragment.lower() in child.name.lower() for fragment in self.exclude):
                continue
            short = simple_name(child.name)
            template = self.interfaces.get(short) or self._base_template(short)
            if template is not None:
                found.append(context.report(template, child.line, name=node.name, base=child.name))
        return found


def _all_interfaces(chain: Iterable[TypeSymbol]) -> List[TypeSymbol]:
    collected: List[TypeSymbol] = []
    pending = [interface for symbol in chain for interface in symbol.interfaces]
    while pending:
        interface = pending.pop(0)
        collected.append(interface)
        pending.extend(interface.interfaces)
    return collected


@dataclass(frozen=True)
class DirectiveScanMatcher:
    tokens: Tuple[str, ...]
    template: FindingTemplate
    kinds: Tuple[str, ...] = ("if", "elif")

    def match(self, context: "UnitContext", directives: Iterable[Directive]) -> List[Finding]:
        found: List[Finding] = []
        for directive in directives:
            if directive.kind not in self.kinds:
                continue
            condition = directive.condition.lower()
            if any(token.lower() in condition for token in self.tokens):
                found.append(context.report(self.template, directive.line, condition=directive.condition))
        return found
