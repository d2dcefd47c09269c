"""Builders for small source models used across the tests."""

import asyncio

from migration_scanner.cancellation import CancellationToken
from migration_scanner.model import (
    CompilationUnit,
    Node,
    NodeKind,
    Project,
    SourceModel,
    Symbol,
    TableResolver,
)


def node(kind, name="", line=1, children=(), **kwargs):
    return Node(kind=NodeKind(kind), line=line, name=name, children=tuple(children), **kwargs)


def literal(value, line=1):
    return Node(kind=NodeKind.STRING_LITERAL, line=line, value=value)


def argument(*children, text=""):
    return Node(kind=NodeKind.ARGUMENT, children=tuple(children), text=text)


def unit(path, *children, symbols=None, directives=(), error=None):
    root = Node(kind=NodeKind.COMPILATION_UNIT, children=tuple(children))
    resolver = TableResolver(symbols) if symbols is not None else None
    return CompilationUnit(path=path, root=root, resolver=resolver, directives=tuple(directives), error=error)


def project(*units, name="App", path="src/App/App.csproj", **kwargs):
    return Project(name=name, path=path, units=tuple(units), **kwargs)


def model(*projects, source="App.sln"):
    return SourceModel(source_id=source, projects=tuple(projects))


def single_unit_model(*children, path="src/App/Program.cs", symbols=None, **project_kwargs):
    return model(project(unit(path, *children, symbols=symbols), **project_kwargs))


def symbol(name, containing_type=None, namespace="", **kwargs):
    return Symbol(name=name, containing_type=containing_type, containing_namespace=namespace, **kwargs)


def analyze(rule, source_model):
    return asyncio.run(rule.analyze(source_model, CancellationToken()))
