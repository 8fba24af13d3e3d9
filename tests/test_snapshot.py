"""
Tests for loading syntax-tree snapshots.
"""

import json

import pytest
import yaml

from seamscan.core.tree import NodeKind, Span
from seamscan.errors import SnapshotError
from seamscan.parsing.snapshot import iter_snapshot_files, load_snapshot, tree_from_dict
from seamscan.scanner import scan_paths


SERVICE_SNAPSHOT = {
    "path": "src/Orders/OrderService.cs",
    "root": {
        "kind": "compilation_unit",
        "span": [1, 1, 40, 2],
        "children": [
            {
                "kind": "class",
                "name": "OrderService",
                "span": [3, 1, 40, 2],
                "children": [
                    {
                        "kind": "method",
                        "name": "Process",
                        "span": [5, 5, 20, 6],
                        "name_span": [5, 17, 5, 24],
                        "modifiers": ["public"],
                        "symbol": {"name": "Process", "containing_type": "Orders.OrderService"},
                        "children": [
                            {
                                "kind": "block",
                                "children": [
                                    {"kind": "if", "span": [6, 9, 8, 10]},
                                    {
                                        "kind": "invocation",
                                        "span": {"start_line": 9, "start_column": 9, "end_line": 9, "end_column": 25},
                                        "symbol": {
                                            "name": "NewGuid",
                                            "containing_type": "System.Guid",
                                            "is_static": True,
                                        },
                                        "children": [{"kind": "member_access", "name": "NewGuid"}],
                                    },
                                ],
                            },
                        ],
                    },
                ],
            },
        ],
    },
}


class TestTreeFromDict:
    """Decoding snapshot documents."""

    def test_pre_order(self):
        """Nodes are numbered in pre-order with correct parents."""
        tree = tree_from_dict(SERVICE_SNAPSHOT)
        assert tree.path == "src/Orders/OrderService.cs"
        assert [node.kind for node in tree] == [
            NodeKind.COMPILATION_UNIT,
            NodeKind.CLASS,
            NodeKind.METHOD,
            NodeKind.BLOCK,
            NodeKind.IF,
            NodeKind.INVOCATION,
            NodeKind.MEMBER_ACCESS,
        ]
        assert [node.parent for node in tree] == [None, 0, 1, 2, 3, 3, 5]
        assert tree[3].children == (4, 5)

    def test_node_fields(self):
        """Spans, modifiers and symbols are decoded."""
        tree = tree_from_dict(SERVICE_SNAPSHOT)
        method = tree[2]
        assert method.name == "Process"
        assert method.identifier_span == Span(5, 17, 5, 24)
        assert method.has_modifier("public")
        assert method.symbol.containing_type_name == "OrderService"
        assert tree[5].span == Span(9, 9, 9, 25)
        assert tree[5].symbol.is_static
        assert tree.root.span == Span(1, 1, 40, 2)

    def test_symbol_collections(self):
        """Base types keep their order, interfaces become a set."""
        data = {
            "root": {
                "kind": "compilation_unit",
                "children": [{
                    "kind": "object_creation",
                    "symbol": {
                        "name": ".ctor",
                        "kind": "constructor",
                        "containing_type": "Vendor.Conn",
                        "base_types": ["System.Data.Common.DbConnection", "System.Object"],
                        "interfaces": ["System.IDisposable"],
                    },
                }],
            },
        }
        symbol = tree_from_dict(data, "x.cs")[1].symbol
        assert symbol.base_types == ("System.Data.Common.DbConnection", "System.Object")
        assert symbol.interfaces == frozenset({"System.IDisposable"})
        assert symbol.derives_from("System.Data.Common.DbConnection")

    def test_path_falls_back_to_argument(self):
        """Documents without a path take the file path."""
        tree = tree_from_dict({"root": {"kind": "compilation_unit"}}, "fallback.json")
        assert tree.path == "fallback.json"
        assert len(tree) == 1

    @pytest.mark.parametrize("data,message", [
        ({"root": {"kind": "compilation_unit", "children": [{"kind": "goto"}]}}, "Unknown node kind"),
        ({"root": {"kind": "class"}}, "Root node must be"),
        ({"nodes": []}, "'root'"),
        ({"root": {"kind": "compilation_unit", "children": ["class"]}}, "expected a mapping"),
        ({"root": {"kind": "compilation_unit", "children": {"kind": "class"}}}, "expected a list"),
        ({"root": {"kind": "compilation_unit", "children": [{"kind": "class", "span": [1, 2]}]}}, "Invalid span"),
        ({"root": {"kind": "compilation_unit", "children": [{"kind": "class", "span": [1, 2, 3, 4, 5]}]}}, "Invalid span"),
        ({"root": {"kind": "compilation_unit", "children": [{"kind": "class", "symbol": {"kind": "type"}}]}}, "Invalid symbol"),
    ])
    def test_malformed(self, data, message):
        """Malformed documents raise SnapshotError."""
        with pytest.raises(SnapshotError, match=message):
            tree_from_dict(data, "bad.json")

    @pytest.mark.parametrize("node,message", [
        ({"kind": "object_creation", "symbol": {"name": ".ctor", "base_types": 5}}, "Invalid symbol.base_types"),
        ({"kind": "object_creation", "symbol": {"name": ".ctor", "interfaces": [["x"]]}}, "Invalid symbol.interfaces"),
        ({"kind": "invocation", "symbol": {"name": "Now", "is_static": "yes"}}, "Invalid symbol.is_static"),
        ({"kind": "invocation", "symbol": {"name": "Now", "containing_type": 7}}, "Invalid symbol.containing_type"),
        ({"kind": "field", "modifiers": "static"}, "Invalid modifiers"),
        ({"kind": "field", "modifiers": ["static", 1]}, "Invalid modifiers"),
        ({"kind": "class", "name": 5}, "Invalid name"),
        ({"kind": "binary", "operator": 1}, "Invalid operator"),
        ({"kind": "identifier", "discard": "no"}, "Invalid discard"),
        ({"kind": "class", "span": "1234"}, "Invalid span"),
        ({"kind": "class", "name_span": [1, 2, 3, True]}, "Invalid name_span"),
    ])
    def test_wrong_field_types(self, node, message):
        """Fields with the wrong value type raise SnapshotError instead of leaking TypeError."""
        data = {"root": {"kind": "compilation_unit", "children": [node]}}
        with pytest.raises(SnapshotError, match=message):
            tree_from_dict(data, "bad.json")

    def test_scalar_modifiers_rejected(self):
        """A bare string is not split into single-character modifiers."""
        data = {"root": {"kind": "compilation_unit", "children": [{"kind": "field", "modifiers": "static"}]}}
        with pytest.raises(SnapshotError) as exc_info:
            tree_from_dict(data, "bad.json")
        assert exc_info.value.path == "bad.json"


class TestLoadSnapshot:
    """Reading snapshot files."""

    def test_json_and_yaml(self, snapshot_dir):
        """JSON and YAML files give the same tree."""
        json_path = snapshot_dir / "service.json"
        yaml_path = snapshot_dir / "service.yaml"
        json_path.write_text(json.dumps(SERVICE_SNAPSHOT))
        yaml_path.write_text(yaml.safe_dump(SERVICE_SNAPSHOT))
        from_json = load_snapshot(str(json_path))
        from_yaml = load_snapshot(str(yaml_path))
        assert list(from_json) == list(from_yaml)

    def test_missing_file(self, tmp_path):
        """A missing file names the path."""
        missing = tmp_path / "missing.json"
        with pytest.raises(SnapshotError, match="not found") as exc_info:
            load_snapshot(str(missing))
        assert exc_info.value.path == str(missing)

    def test_invalid_json(self, tmp_path):
        """Unparseable content is a SnapshotError."""
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(SnapshotError, match="Cannot parse"):
            load_snapshot(str(path))

    def test_undecodable_bytes(self, tmp_path):
        """Content that is not UTF-8 is a SnapshotError naming the path."""
        path = tmp_path / "bad.json"
        path.write_bytes(b'{"root": "\xff"}')
        with pytest.raises(SnapshotError, match="Cannot read") as exc_info:
            load_snapshot(str(path))
        assert exc_info.value.path == str(path)

    def test_error_without_path(self):
        """Errors raised without a path keep the bare message."""
        error = SnapshotError("Snapshot must be a mapping")
        assert error.path is None
        assert str(error) == "Snapshot must be a mapping"
        assert str(SnapshotError("broken", "a.json")) == "a.json: broken"

    def test_directory_instead_of_file(self, tmp_path):
        """A path that cannot be read as a file is a SnapshotError."""
        directory = tmp_path / "looks_like.json"
        directory.mkdir()
        with pytest.raises(SnapshotError, match="Cannot read"):
            load_snapshot(str(directory))


class TestScanPaths:
    """Loading a mix of good and bad snapshots."""

    def test_bad_file_does_not_abort_scan(self, snapshot_dir):
        """An undecodable file is recorded as an error and the rest are analyzed."""
        (snapshot_dir / "good.json").write_text(json.dumps(SERVICE_SNAPSHOT))
        (snapshot_dir / "bad.json").write_bytes(b"\xff\xfe{")
        report = scan_paths([str(snapshot_dir)])
        assert report.trees_analyzed == 1
        loading_errors = [error for error in report.errors if error.startswith("Error loading")]
        assert len(loading_errors) == 1
        assert loading_errors[0].startswith(f"Error loading {snapshot_dir / 'bad.json'}")

    def test_wrong_field_type_does_not_abort_scan(self, snapshot_dir):
        """A symbol with a mistyped field is recorded as an error."""
        broken = {
            "root": {
                "kind": "compilation_unit",
                "children": [{"kind": "object_creation", "symbol": {"name": ".ctor", "base_types": 5}}],
            },
        }
        (snapshot_dir / "good.json").write_text(json.dumps(SERVICE_SNAPSHOT))
        (snapshot_dir / "broken.json").write_text(json.dumps(broken))
        report = scan_paths([str(snapshot_dir)])
        assert report.trees_analyzed == 1
        assert len([error for error in report.errors if "Invalid symbol.base_types" in error]) == 1


class TestIterSnapshotFiles:
    """Expanding paths."""

    def test_directory_expansion(self, snapshot_dir):
        """Directories yield snapshot files sorted, skipping dotfiles and other extensions."""
        (snapshot_dir / "nested").mkdir(parents=True)
        (snapshot_dir / "b.json").write_text("{}")
        (snapshot_dir / "nested" / "a.yaml").write_text("{}")
        (snapshot_dir / "notes.txt").write_text("")
        (snapshot_dir / ".seamscan.yaml").write_text("{}")
        files = list(iter_snapshot_files([str(snapshot_dir)]))
        assert files == [str(snapshot_dir / "b.json"), str(snapshot_dir / "nested" / "a.yaml")]

    def test_files_pass_through(self, tmp_path):
        """Explicit file paths are yielded as given."""
        path = str(tmp_path / "anything.txt")
        assert list(iter_snapshot_files([path])) == [path]
