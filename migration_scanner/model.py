"""Source model contract consumed by the engine.

The engine never parses source code itself. A provider hands it a
:class:`SourceModel`: projects, their compilation units, each unit's syntax
tree as a tree of :class:`Node` values, and an optional symbol resolver.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Mapping, Optional, Protocol, Tuple


class SourceAccessError(Exception):
    """A compilation unit or document could not be supplied by the provider."""


class FatalLoadError(Exception):
    """The source model itself could not be obtained."""


class NodeKind(str, Enum):
    COMPILATION_UNIT = "compilation_unit"
    USING_DIRECTIVE = "using_directive"
    NAMESPACE = "namespace"
    CLASS_DECLARATION = "class_declaration"
    METHOD_DECLARATION = "method_declaration"
    ATTRIBUTE = "attribute"
    ARGUMENT = "argument"
    BASE_TYPE = "base_type"
    IDENTIFIER = "identifier"
    MEMBER_ACCESS = "member_access"
    INVOCATION = "invocation"
    OBJECT_CREATION = "object_creation"
    BINARY_EXPRESSION = "binary_expression"
    STRING_LITERAL = "string_literal"
    ELEMENT = "element"


@dataclass(frozen=True, eq=False)
class Node:
    """One syntax node.

    ``name`` holds the identifier, qualified name, callee, type or element name
    depending on ``kind``; ``value`` holds the literal value of string literals;
    ``text`` is the node's source text when the provider supplies it.
    ``attributes`` carries XML attributes for configuration ``ELEMENT`` nodes.
    """

    kind: NodeKind
    line: int = 1
    name: str = ""
    value: Optional[str] = None
    text: str = ""
    children: Tuple["Node", ...] = ()
    attributes: Mapping[str, str] = field(default_factory=dict)
    ref: Optional[str] = None


def walk(node: Node) -> Iterator[Node]:
    """Yield ``node`` and its descendants in pre-order."""

    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def arguments(node: Node) -> Tuple[Node, ...]:
    return tuple(child for child in node.children if child.kind is NodeKind.ARGUMENT)


def argument_literal(argument: Node) -> Optional[str]:
    """Return the string literal passed as ``argument``, if any."""

    if argument.value is not None:
        return argument.value
    for child in walk(argument):
        if child.kind is NodeKind.STRING_LITERAL and child.value is not None:
            return child.value
    return None


# ----------------------------------------------------------------------
# Semantic information
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class TypeSymbol:
    name: str
    namespace: str = ""
    base: Optional["TypeSymbol"] = None
    interfaces: Tuple["TypeSymbol", ...] = ()

    @property
    def full_name(self) -> str:
        return f"{self.namespace}.{self.name}" if self.namespace else self.name

    def ancestry(self) -> Iterator["TypeSymbol"]:
        """Yield every base type up to the root of the chain."""

        current = self.base
        seen = set()
        while current is not None and id(current) not in seen:
            seen.add(id(current))
            yield current
            current = current.base


@dataclass(frozen=True)
class Symbol:
    """What the resolver knows about an identifier or expression."""

    name: str
    containing_type: Optional[str] = None
    containing_namespace: str = ""
    type_name: Optional[str] = None
    declared: Optional[TypeSymbol] = None


class SymbolResolver(Protocol):
    def resolve(self, node: Node) -> Optional[Symbol]:
        """Return the symbol for ``node`` or ``None`` when unknown."""


class TableResolver:
    """Resolve nodes through a table keyed by ``Node.ref``."""

    def __init__(self, symbols: Mapping[str, Symbol]) -> None:
        self._symbols = dict(symbols)

    def resolve(self, node: Node) -> Optional[Symbol]:
        if node.ref is None:
            return None
        return self._symbols.get(node.ref)


# ----------------------------------------------------------------------
# Units, projects and the model
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class Directive:
    """A conditional-compilation directive found in a unit's trivia."""

    condition: str
    line: int = 1
    kind: str = "if"


@dataclass(frozen=True)
class CompilationUnit:
    path: str
    root: Optional[Node] = None
    resolver: Optional[SymbolResolver] = None
    directives: Tuple[Directive, ...] = ()
    error: Optional[str] = None

    def syntax_root(self) -> Node:
        if self.error is not None:
            raise SourceAccessError(f"{self.path}: {self.error}")
        if self.root is None:
            raise SourceAccessError(f"{self.path}: no syntax tree available")
        return self.root


@dataclass(frozen=True)
class PackageReference:
    name: str
    version: str = ""
    line: int = 1


@dataclass(frozen=True)
class ConfigDocument:
    """A parsed XML configuration file (web.config, app.config)."""

    path: str
    root: Optional[Node] = None
    error: Optional[str] = None

    @property
    def file_name(self) -> str:
        return self.path.replace("\\", "/").rsplit("/", 1)[-1]

    def document_root(self) -> Node:
        if self.error is not None or self.root is None:
            raise SourceAccessError(f"{self.path}: {self.error or 'document not available'}")
        return self.root


@dataclass(frozen=True)
class Project:
    name: str
    path: str
    units: Tuple[CompilationUnit, ...] = ()
    packages: Tuple[PackageReference, ...] = ()
    project_references: Tuple[str, ...] = ()
    properties: Mapping[str, str] = field(default_factory=dict)
    metadata_references: Tuple[str, ...] = ()
    config_files: Tuple[ConfigDocument, ...] = ()
    files: Tuple[str, ...] = ()

    def references(self, fragment: str) -> bool:
        """Return True when any metadata reference mentions ``fragment``."""

        needle = fragment.lower()
        return any(needle in reference.lower() for reference in self.metadata_references)


@dataclass(frozen=True)
class SourceModel:
    source_id: str
    projects: Tuple[Project, ...] = ()

    def units(self) -> Iterator[CompilationUnit]:
        for project in self.projects:
            yield from project.units

    @property
    def unit_count(self) -> int:
        return sum(len(project.units) for project in self.projects)


class ModelProvider(Protocol):
    def load(self) -> SourceModel:
        """Return the source model or raise :class:`FatalLoadError`."""


def source_text(node: Node) -> str:
    """Return the node's source text, rebuilt from its subtree when absent."""

    if node.text:
        return node.text
    parts = [part for child in walk(node) for part in (child.name, child.value or "") if part]
    return " ".join(parts)


def find_elements(root: Node, tag: str) -> Iterator[Node]:
    """Yield configuration elements named ``tag`` in document order."""

    for node in walk(root):
        if node.kind is NodeKind.ELEMENT and node.name == tag:
            yield node
