"""
Syntax tree snapshots.

A front-end exports each parsed file as a nested JSON or YAML document:

    path: src/Orders/OrderService.cs
    root:
      kind: compilation_unit
      children:
        - kind: class
          name: OrderService
          span: [3, 1, 40, 2]
          children:
            - kind: method
              name: Process
              name_span: [5, 17, 5, 24]
              modifiers: [public]
              children: [...]

`span` and `name_span` are `[start_line, start_column, end_line, end_column]`.
`symbol` carries the resolved SymbolFact fields. Nodes are loaded in
pre-order, so arena order follows source order.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

import yaml

from seamscan.core.tree import NodeKind, Span, SymbolFact, SyntaxTree, TreeBuilder
from seamscan.errors import SnapshotError


logger = logging.getLogger(__name__)

SNAPSHOT_EXTENSIONS = {".json", ".yaml", ".yml"}

# Expected value type of each SymbolFact field in a document.
_SYMBOL_FIELDS = {
    "name": str,
    "kind": str,
    "containing_type": str,
    "namespace": str,
    "type_name": str,
    "type_kind": str,
    "is_static": bool,
    "is_abstract": bool,
    "is_extern": bool,
    "implements_interface": bool,
    "base_types": list,
    "interfaces": list,
}


def _span(raw: Any, where: str, path: Optional[str]) -> Optional[Span]:
    if raw is None:
        return None
    values = raw
    if isinstance(raw, Mapping):
        values = [raw.get("start_line"), raw.get("start_column"), raw.get("end_line"), raw.get("end_column")]
    if (
        not isinstance(values, (list, tuple))
        or len(values) != 4
        or not all(isinstance(value, int) and not isinstance(value, bool) for value in values)
    ):
        raise SnapshotError(f"Invalid {where} {raw!r}; expected [start_line, start_column, end_line, end_column]", path)
    return Span(*values)


def _string(raw: Any, where: str, path: Optional[str]) -> Optional[str]:
    if raw is not None and not isinstance(raw, str):
        raise SnapshotError(f"Invalid {where} {raw!r}; expected a string", path)
    return raw


def _string_list(raw: Any, where: str, path: Optional[str]) -> List[str]:
    if raw is None:
        return []
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        raise SnapshotError(f"Invalid {where} {raw!r}; expected a list of strings", path)
    return raw


def _flag(raw: Any, where: str, path: Optional[str]) -> bool:
    if raw is None:
        return False
    if not isinstance(raw, bool):
        raise SnapshotError(f"Invalid {where} {raw!r}; expected true or false", path)
    return raw


def _symbol(raw: Any, path: Optional[str]) -> Optional[SymbolFact]:
    if raw is None:
        return None
    if not isinstance(raw, Mapping) or not isinstance(raw.get("name"), str):
        raise SnapshotError(f"Invalid symbol {raw!r}; a symbol needs at least a name", path)
    unknown = set(raw) - set(_SYMBOL_FIELDS)
    if unknown:
        logger.debug("Ignoring unknown symbol fields %s", sorted(unknown))

    fields: Dict[str, Any] = {}
    for key, expected in _SYMBOL_FIELDS.items():
        value = raw.get(key)
        if value is None:
            continue
        if expected is list:
            value = _string_list(value, f"symbol.{key}", path)
        elif not isinstance(value, expected):
            raise SnapshotError(
                f"Invalid symbol.{key} {value!r}; expected {expected.__name__}",
                path,
            )
        fields[key] = value
    fields["base_types"] = tuple(fields.get("base_types", ()))
    fields["interfaces"] = frozenset(fields.get("interfaces", ()))
    return SymbolFact(**fields)


def _kind(raw: Any, path: Optional[str]) -> NodeKind:
    try:
        return NodeKind(raw)
    except ValueError:
        raise SnapshotError(f"Unknown node kind '{raw}'", path) from None


def _walk(root: Mapping[str, Any], path: str) -> Iterator[Tuple[Mapping[str, Any], Optional[int]]]:
    """Pre-order over the nested document, yielding each node with its parent's position."""
    stack: List[Tuple[Any, Optional[int]]] = [(root, None)]
    position = 0
    while stack:
        raw, parent = stack.pop()
        if not isinstance(raw, Mapping):
            raise SnapshotError(f"Invalid node {raw!r}; expected a mapping", path)
        yield raw, parent
        children = raw.get("children") or []
        if not isinstance(children, list):
            raise SnapshotError(f"Invalid children {children!r}; expected a list", path)
        stack.extend((child, position) for child in reversed(children))
        position += 1


def tree_from_dict(data: Mapping[str, Any], path: Optional[str] = None) -> SyntaxTree:
    """Build a SyntaxTree from a decoded snapshot document."""
    if not isinstance(data, Mapping) or not isinstance(data.get("root"), Mapping):
        raise SnapshotError("Snapshot must be a mapping with a 'root' node", path)
    tree_path = str(data.get("path") or path or "<snapshot>")

    root = data["root"]
    if _kind(root.get("kind"), tree_path) != NodeKind.COMPILATION_UNIT:
        raise SnapshotError(f"Root node must be '{NodeKind.COMPILATION_UNIT.value}'", tree_path)

    builder = TreeBuilder(tree_path)
    root_span = _span(root.get("span"), "span", tree_path)
    # The builder owns the root node; only its span comes from the document.
    positions: Dict[int, int] = {0: builder.root}
    if root_span is not None:
        builder.set_span(builder.root, root_span)

    for position, (raw, parent) in enumerate(_walk(root, tree_path)):
        if parent is None:
            continue
        positions[position] = builder.add(
            _kind(raw.get("kind"), tree_path),
            parent=positions[parent],
            name=_string(raw.get("name"), "name", tree_path),
            span=_span(raw.get("span"), "span", tree_path),
            name_span=_span(raw.get("name_span"), "name_span", tree_path),
            operator=_string(raw.get("operator"), "operator", tree_path),
            modifiers=_string_list(raw.get("modifiers"), "modifiers", tree_path),
            is_discard=_flag(raw.get("discard"), "discard", tree_path),
            symbol=_symbol(raw.get("symbol"), tree_path),
        )
    return builder.build()


def load_snapshot(path: str) -> SyntaxTree:
    snapshot_path = Path(path)
    if not snapshot_path.exists():
        raise SnapshotError("Snapshot file not found", path)
    try:
        raw = snapshot_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SnapshotError(f"Cannot read snapshot: {e}", path) from e
    try:
        if snapshot_path.suffix.lower() == ".json":
            data = json.loads(raw)
        else:
            data = yaml.safe_load(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SnapshotError(f"Cannot parse snapshot: {e}", path) from e
    tree = tree_from_dict(data, path)
    logger.debug("Loaded %s with %d nodes", tree.path, len(tree))
    return tree


def iter_snapshot_files(paths: Iterable[str]) -> Iterator[str]:
    """Expand directories into the snapshot files they contain, sorted by path. Dotfiles are skipped."""
    for path in paths:
        target = Path(path)
        if target.is_dir():
            for candidate in sorted(target.rglob("*")):
                if candidate.name.startswith("."):
                    continue
                if candidate.is_file() and candidate.suffix.lower() in SNAPSHOT_EXTENSIONS:
                    yield str(candidate)
        else:
            yield str(target)
