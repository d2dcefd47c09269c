"""Load serialized source-model snapshots (YAML or JSON).

A snapshot is what a parser front end exports: projects, their units as
syntax trees, symbol tables and configuration documents. Loading one gives the
engine a :class:`SourceModel` without a live parser.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from migration_scanner.model import (
    CompilationUnit,
    ConfigDocument,
    Directive,
    FatalLoadError,
    Node,
    NodeKind,
    PackageReference,
    Project,
    SourceModel,
    Symbol,
    TableResolver,
    TypeSymbol,
)

from .fileio import read_text_file, read_yaml_file

logger = logging.getLogger(__name__)


def _node(data: Mapping[str, Any]) -> Node:
    try:
        kind = NodeKind(data["kind"])
    except (KeyError, ValueError) as exc:
        raise FatalLoadError(f"invalid node kind in snapshot: {data.get('kind')!r}") from exc
    return Node(
        kind=kind,
        line=int(data.get("line", 1)),
        name=str(data.get("name", "")),
        value=data.get("value"),
        text=str(data.get("text", "")),
        children=tuple(_node(child) for child in data.get("children") or ()),
        attributes={str(key): str(value) for key, value in (data.get("attributes") or {}).items()},
        ref=data.get("ref"),
    )


def _type_symbol(data: Optional[Mapping[str, Any]]) -> Optional[TypeSymbol]:
    if not data:
        return None
    return TypeSymbol(
        name=data["name"],
        namespace=data.get("namespace", ""),
        base=_type_symbol(data.get("base")),
        interfaces=tuple(_type_symbol(item) for item in data.get("interfaces") or ()),
    )


def _symbol(data: Mapping[str, Any]) -> Symbol:
    return Symbol(
        name=data["name"],
        containing_type=data.get("containing_type"),
        containing_namespace=data.get("containing_namespace", ""),
        type_name=data.get("type_name"),
        declared=_type_symbol(data.get("declared")),
    )


def _unit(data: Mapping[str, Any]) -> CompilationUnit:
    symbols = data.get("symbols")
    resolver = None
    if symbols is not None:
        resolver = TableResolver({str(ref): _symbol(item) for ref, item in symbols.items()})
    root = data.get("root")
    return CompilationUnit(
        path=data["path"],
        root=_node(root) if root else None,
        resolver=resolver,
        directives=tuple(
            Directive(condition=item["condition"], line=int(item.get("line", 1)), kind=item.get("kind", "if"))
            for item in data.get("directives") or ()
        ),
        error=data.get("error"),
    )


def _config_document(data: Mapping[str, Any]) -> ConfigDocument:
    root = data.get("root")
    return ConfigDocument(path=data["path"], root=_node(root) if root else None, error=data.get("error"))


def _project(data: Mapping[str, Any]) -> Project:
    return Project(
        name=data.get("name") or Path(data["path"]).stem,
        path=data["path"],
        units=tuple(_unit(item) for item in data.get("units") or ()),
        packages=tuple(
            PackageReference(name=item["name"], version=str(item.get("version", "")), line=int(item.get("line", 1)))
            for item in data.get("packages") or ()
        ),
        project_references=tuple(data.get("project_references") or ()),
        properties={str(key): str(value) for key, value in (data.get("properties") or {}).items()},
        metadata_references=tuple(data.get("metadata_references") or ()),
        config_files=tuple(_config_document(item) for item in data.get("config_files") or ()),
        files=tuple(data.get("files") or ()),
    )


def parse_snapshot(data: Any, default_source: str = "") -> SourceModel:
    """Build a :class:`SourceModel` from decoded snapshot data."""

    if not isinstance(data, dict):
        raise FatalLoadError("snapshot must be a mapping with a 'projects' list")
    try:
        projects: List[Project] = [_project(item) for item in data.get("projects") or ()]
    except (KeyError, TypeError, AttributeError, ValueError, RecursionError) as exc:
        raise FatalLoadError(f"malformed snapshot: {exc!r}") from exc
    return SourceModel(source_id=data.get("source") or default_source, projects=tuple(projects))


def load_snapshot(path: Path) -> SourceModel:
    if not path.exists():
        raise FatalLoadError(f"Snapshot not found: {path}")
    try:
        if path.suffix.lower() == ".json":
            data: Dict[str, Any] = json.loads(read_text_file(path))
        else:
            data = read_yaml_file(path)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise FatalLoadError(f"Snapshot could not be parsed: {path}: {exc}") from exc
    model = parse_snapshot(data, default_source=str(path))
    logger.debug("Loaded snapshot %s with %d unit(s)", path, model.unit_count)
    return model


class SnapshotProvider:
    """Model provider backed by a snapshot file."""

    def __init__(self, path: str) -> None:
        self.path = Path(path)

    def load(self) -> SourceModel:
        return load_snapshot(self.path)
