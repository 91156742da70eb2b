"""Tests for paths, the scalar codec and DocumentModel."""

import pytest

from yed._path import Index, Key, NodePath
from yed._scalar import escape_string, parse_user_text, preview, unescape_string
from yed.model import (
    DocumentModel,
    DuplicateKeyError,
    InvalidTargetError,
    NodeType,
    NotFoundError,
    dump_yaml,
    load_document,
    parse_yaml,
)


def _find(node, path):
    """Depth-first lookup of a shadow tree node by path."""
    if node.path == path:
        return node
    for child in node.children:
        found = _find(child, path)
        if found is not None:
            return found
    return None


def _sample():
    return DocumentModel(
        {
            "server": {"host": "localhost", "port": 8080, "tls": {"enabled": True}},
            "items": [1, 2, 3],
            "name": None,
        },
        "",
    )


class TestNodePath:
    """Path construction and identity."""

    def test_dot_path(self):
        path = NodePath((Key("items"), Index(0), Key("name")))
        assert path.dot_path() == "items.0.name"

    def test_depth(self):
        path = NodePath.root().child_key("server").child_key("tls").child_key("enabled")
        assert path.depth() == 3

    def test_child_does_not_mutate(self):
        base = NodePath.root().child_key("a")
        child = base.child_index(2)
        assert base.segments == (Key("a"),)
        assert child.segments == (Key("a"), Index(2))

    def test_split_parent(self):
        path = NodePath.root().child_key("a").child_index(1)
        parent, last = path.split_parent()
        assert parent == NodePath.root().child_key("a")
        assert last == Index(1)

    def test_split_root_raises(self):
        with pytest.raises(ValueError):
            NodePath.root().split_parent()

    def test_equality_is_segment_equality(self):
        assert NodePath.from_dot("a.0") == NodePath((Key("a"), Index(0)))
        assert NodePath((Key("0"),)) != NodePath((Index(0),))

    def test_dotted_key_collides_with_nested_path(self):
        """Keys containing '.' are not escaped, so distinct paths can share a
        dot path. Known limitation."""
        dotted = NodePath.root().child_key("a.b")
        nested = NodePath.root().child_key("a").child_key("b")
        assert dotted != nested
        assert dotted.dot_path() == nested.dot_path() == "a.b"


class TestScalarCodec:
    """parse_user_text precedence and preview formatting."""

    def test_kinds(self):
        assert parse_user_text("42") == 42 and type(parse_user_text("42")) is int
        assert parse_user_text("3.14") == 3.14
        assert parse_user_text("true") is True
        assert parse_user_text("FALSE") is False
        assert parse_user_text("null") is None
        assert parse_user_text("hello") == "hello"

    def test_empty_is_null(self):
        assert parse_user_text("") is None
        assert parse_user_text("   ") is None

    def test_quoting_overrides_keywords(self):
        assert parse_user_text('"true"') == "true"
        assert parse_user_text('"42"') == "42"
        assert parse_user_text("'null'") == "null"

    def test_quoted_escapes(self):
        assert parse_user_text(r'"a\nb\t\"c\"\\"') == 'a\nb\t"c"\\'

    def test_unknown_escape_keeps_backslash(self):
        assert unescape_string(r"a\qb") == r"a\qb"
        assert unescape_string("end\\") == "end\\"

    def test_single_quote_char_is_plain_string(self):
        assert parse_user_text('"') == '"'

    def test_negative_and_signed_numbers(self):
        assert parse_user_text("-7") == -7
        assert parse_user_text("+1.5e3") == 1500.0

    def test_plain_text_is_trimmed(self):
        assert parse_user_text("  some words  ") == "some words"

    def test_underscored_digits_stay_string(self):
        assert parse_user_text("1_000") == "1_000"

    def test_non_ascii_digits_stay_string(self):
        assert parse_user_text("٤٢") == "٤٢"
        assert parse_user_text("٤.٢") == "٤.٢"

    def test_preview(self):
        assert preview("x") == '"x"'
        assert preview('a"b\n') == '"a\\"b\\n"'
        assert preview(True) == "true"
        assert preview(None) == "null"
        assert preview(3) == "3"
        assert preview(2.5) == "2.5"
        assert preview({"a": 1}) == ""
        assert preview([1]) == ""

    def test_escape_then_parse_restores_string(self):
        value = 'tab\there "quoted" back\\slash'
        assert parse_user_text(f'"{escape_string(value)}"') == value


class TestShadowTree:
    """build_tree output."""

    def test_paths_types_and_previews(self):
        tree = _sample().build_tree()
        assert tree.node_type is NodeType.MAP
        port = _find(tree, NodePath.from_dot("server.port"))
        assert port.node_type is NodeType.INTEGER
        assert port.value_preview == "8080"
        enabled = _find(tree, NodePath.from_dot("server.tls.enabled"))
        assert enabled.node_type is NodeType.BOOL
        name = _find(tree, NodePath.from_dot("name"))
        assert name.node_type is NodeType.NULL
        assert name.value_preview == "null"

    def test_sequence_item_labels(self):
        model = DocumentModel({"list": [{"id": 1, "x": 2}, {}, [], "s" * 50, 7]})
        tree = model.build_tree()
        labels = [child.key for child in tree.children[0].children]
        assert labels[0] == "id"
        assert labels[1] == "{}"
        assert labels[2] == "[]"
        assert len(labels[3]) == 40 and labels[3].endswith("…")
        assert labels[4] == "7"

    def test_non_string_keys_are_labelled(self):
        tree = DocumentModel({200: "ok"}).build_tree()
        assert tree.children[0].key == "<non-string>"

    def test_containers_have_empty_preview(self):
        tree = _sample().build_tree()
        assert _find(tree, NodePath.from_dot("server")).value_preview == ""
        assert _find(tree, NodePath.from_dot("items")).node_type is NodeType.SEQ


class TestMutations:
    """Path-addressed mutations and their failures."""

    def test_empty_document_add_child(self):
        model = DocumentModel.empty()
        model.add_mapping_child(NodePath.root(), "name", "x")
        tree = model.build_tree()
        assert tree.node_type is NodeType.MAP
        assert len(tree.children) == 1
        assert tree.children[0].key == "name"
        assert tree.children[0].value_preview == '"x"'

    def test_add_mapping_child_duplicate(self):
        model = _sample()
        path = NodePath.from_dot("server")
        model.add_mapping_child(path, "user", "root")
        assert model.value_at(path.child_key("user")) == "root"
        before = dump_yaml(model.value)
        with pytest.raises(DuplicateKeyError):
            model.add_mapping_child(path, "user", "other")
        assert dump_yaml(model.value) == before

    def test_add_mapping_child_to_non_map(self):
        with pytest.raises(InvalidTargetError):
            _sample().add_mapping_child(NodePath.from_dot("items"), "k", 1)

    def test_add_child_kinds_from_user_text(self):
        model = DocumentModel.empty()
        root = NodePath.root()
        for key, text in [("i", "42"), ("f", "3.14"), ("b", "true"), ("n", "null"), ("s", "hello")]:
            model.add_mapping_child(root, key, parse_user_text(text))
        kinds = [child.node_type for child in model.build_tree().children]
        assert kinds == [
            NodeType.INTEGER,
            NodeType.FLOAT,
            NodeType.BOOL,
            NodeType.NULL,
            NodeType.STRING,
        ]

    def test_edit_value(self):
        model = _sample()
        model.edit_value(NodePath.from_dot("server.port"), 9090)
        assert model.value["server"]["port"] == 9090

    def test_edit_value_not_found(self):
        model = _sample()
        with pytest.raises(NotFoundError):
            model.edit_value(NodePath.from_dot("server.missing"), 1)
        with pytest.raises(NotFoundError):
            model.edit_value(NodePath.from_dot("items.9"), 1)
        with pytest.raises(NotFoundError):
            model.edit_value(NodePath.from_dot("server.port.deeper"), 1)

    def test_rename_moves_to_end(self):
        model = _sample()
        model.rename_key(NodePath.from_dot("server"), "backend")
        assert list(model.value) == ["items", "name", "backend"]
        assert model.value_at(NodePath.from_dot("backend.port")) == 8080

    def test_rename_duplicate_keeps_original(self):
        model = _sample()
        with pytest.raises(DuplicateKeyError):
            model.rename_key(NodePath.from_dot("server"), "items")
        assert list(model.value) == ["server", "items", "name"]
        assert model.value["server"]["port"] == 8080

    def test_rename_invalid_targets(self):
        model = _sample()
        with pytest.raises(InvalidTargetError):
            model.rename_key(NodePath.root(), "x")
        with pytest.raises(InvalidTargetError):
            model.rename_key(NodePath.from_dot("items.0"), "x")

    def test_add_sequence_value(self):
        model = _sample()
        model.add_sequence_value(NodePath.from_dot("items"), "four")
        assert model.value["items"] == [1, 2, 3, "four"]
        with pytest.raises(InvalidTargetError):
            model.add_sequence_value(NodePath.from_dot("server"), 1)

    def test_add_sequence_empty_map(self):
        model = _sample()
        new_path = model.add_sequence_empty_map(NodePath.from_dot("items"))
        assert new_path == NodePath.from_dot("items.3")
        assert model.value_at(new_path) == {}
        model.add_mapping_child(new_path, "k", "v")
        assert model.value["items"][3] == {"k": "v"}

    def test_convert_to_empty_map(self):
        model = _sample()
        model.convert_to_empty_map(NodePath.from_dot("name"))
        assert model.value["name"] == {}
        with pytest.raises(NotFoundError):
            model.convert_to_empty_map(NodePath.from_dot("nope"))

    def test_delete_map_entry(self):
        model = _sample()
        path = NodePath.from_dot("server.tls")
        model.delete_node(path)
        assert _find(model.build_tree(), path) is None

    def test_delete_root_fails(self):
        with pytest.raises(InvalidTargetError):
            _sample().delete_node(NodePath.root())

    def test_delete_sequence_item_shifts_later_items(self):
        """The old path of index 2 now addresses what followed it."""
        model = DocumentModel([1, 2, 3])
        model.delete_node(NodePath.root().child_index(1))
        assert model.value == [1, 3]
        assert model.value_at(NodePath.root().child_index(1)) == 3
        with pytest.raises(NotFoundError):
            model.value_at(NodePath.root().child_index(2))

    def test_delete_mismatched_segment(self):
        with pytest.raises(InvalidTargetError):
            _sample().delete_node(NodePath((Key("items"), Key("x"))))


class TestLoadSave:
    """Codec boundary and file round trips."""

    def test_parse_first_document_only(self):
        assert parse_yaml("a: 1\n---\nb: 2\n") == {"a": 1}

    def test_blank_and_comment_only_text_is_empty_map(self):
        assert parse_yaml("") == {}
        assert parse_yaml("# just a comment\n") == {}

    def test_explicit_null_document_stays_null(self):
        assert parse_yaml("null\n") is None

    def test_yaml_11_booleans_stay_strings(self):
        value = parse_yaml("on:\n  push: 1\nflag: yes\nother: off\nreal: true\n")
        assert value == {"on": {"push": 1}, "flag": "yes", "other": "off", "real": True}

    def test_workflow_on_key_edit_and_save(self, tmp_path):
        path = tmp_path / "ci.yml"
        path.write_text("name: ci\non:\n  push:\n    branches: [main]\n", encoding="utf-8")
        model = load_document(path).model
        tree = model.build_tree()
        assert [child.key for child in tree.children] == ["name", "on"]
        model.edit_value(NodePath.from_dot("on.push.branches.0"), "dev")
        model.save()
        text = path.read_text(encoding="utf-8")
        assert not text.startswith("true")
        assert "true:" not in text
        assert load_document(path).model.value == {
            "name": "ci",
            "on": {"push": {"branches": ["dev"]}},
        }
        model.delete_node(NodePath.from_dot("on"))
        assert model.value == {"name": "ci"}

    def test_load_ok(self, tmp_path):
        path = tmp_path / "doc.yaml"
        path.write_text("a: 1\nb: [x, y]\n", encoding="utf-8")
        result = load_document(path)
        assert result.parse_error is None
        assert result.raw_content is None
        assert result.model.value == {"a": 1, "b": ["x", "y"]}
        assert result.model.file_path == str(path)

    def test_load_parse_error_returns_raw(self, tmp_path):
        path = tmp_path / "bad.yaml"
        text = "a: [1, 2\nb: 3\n"
        path.write_text(text, encoding="utf-8")
        result = load_document(path)
        assert result.parse_error
        assert result.raw_content == text

    def test_load_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            load_document(tmp_path / "missing.yaml")

    def test_save_preserves_insertion_order(self, tmp_path):
        path = tmp_path / "doc.yaml"
        path.write_text("z: 1\na: 2\n", encoding="utf-8")
        model = load_document(path).model
        model.add_mapping_child(NodePath.root(), "m", "ü")
        model.save()
        text = path.read_text(encoding="utf-8")
        assert text.index("z:") < text.index("a:") < text.index("m:")
        assert "ü" in text
        assert load_document(path).model.value == {"z": 1, "a": 2, "m": "ü"}

    def test_save_to_bad_path_raises(self, tmp_path):
        model = DocumentModel({"a": 1}, str(tmp_path / "no" / "such" / "dir.yaml"))
        with pytest.raises(OSError):
            model.save()
