"""Tests for resource data and the state store."""

import json

import pytest

from src.awsprov.schema import Field, FieldType, Schema, tags_all_schema, tags_schema
from src.awsprov.state import ResourceData, StateStore, redact

SCHEMA = Schema(
    {
        "name": Field(FieldType.STRING, required=True),
        "format": Field(FieldType.STRING, required=True, force_new=True),
        "description": Field(FieldType.STRING, optional=True, computed=True),
        "secret": Field(FieldType.STRING, computed=True, sensitive=True),
        "subnets": Field(FieldType.SET, optional=True),
        "tags": tags_schema(),
        "tags_all": tags_all_schema(),
    }
)


class TestResourceData:
    """Test ResourceData planning and state output."""

    def test_new_resource_has_no_state(self):
        data = ResourceData(SCHEMA, config={"name": "a", "format": "TXT"})

        assert data.id == ""
        assert data.state() is None
        assert data.get("name") == "a"

    def test_written_values_take_precedence(self):
        data = ResourceData(SCHEMA, state={"id": "r-1", "name": "a"}, config={"name": "b"})
        data.set("name", "c")

        assert data.get("name") == "c"
        assert data.get_change("name") == ("a", "b")

    def test_has_change(self):
        data = ResourceData(
            SCHEMA,
            state={"id": "r-1", "name": "a", "format": "TXT", "subnets": ["s-2", "s-1"]},
            config={"name": "b", "format": "TXT", "subnets": ["s-1", "s-2"]},
        )

        assert data.has_change("name")
        assert not data.has_change("format")
        assert not data.has_change("subnets")
        assert data.changed_keys() == ["name"]
        assert data.has_changes_except("tags", "tags_all")
        assert not data.has_changes_except("name")

    def test_optional_computed_keeps_remote_value(self):
        data = ResourceData(
            SCHEMA,
            state={"id": "r-1", "name": "a", "format": "TXT", "description": "remote"},
            config={"name": "a", "format": "TXT"},
        )

        assert not data.has_change("description")
        assert data.get("description") == "remote"

    def test_removed_optional_value_is_a_change(self):
        data = ResourceData(
            SCHEMA,
            state={"id": "r-1", "name": "a", "format": "TXT", "tags": {"k": "v"}},
            config={"name": "a", "format": "TXT"},
        )

        assert data.get_change("tags") == ({"k": "v"}, {})

    def test_requires_replacement(self):
        data = ResourceData(
            SCHEMA,
            state={"id": "r-1", "name": "a", "format": "TXT"},
            config={"name": "a", "format": "STIX"},
        )

        assert SCHEMA.requires_replacement(data) == ["format"]

    def test_get_ok(self):
        data = ResourceData(SCHEMA, config={"name": "a", "format": "TXT"})

        assert data.get_ok("name") == ("a", True)
        assert data.get_ok("subnets") == ([], False)

    def test_unknown_attribute(self):
        data = ResourceData(SCHEMA)

        with pytest.raises(KeyError, match="Invalid attribute name"):
            data.get("bogus")

    def test_clearing_id_marks_absent(self):
        data = ResourceData(SCHEMA, state={"id": "r-1", "name": "a"})
        data.set_id("")

        assert data.state() is None

    def test_state_contains_every_attribute(self):
        data = ResourceData(SCHEMA, state={"id": "r-1", "name": "a", "ignored": "x"})

        assert data.state() == {
            "id": "r-1",
            "name": "a",
            "format": "",
            "description": "",
            "secret": "",
            "subnets": [],
            "tags": {},
            "tags_all": {},
        }


class TestRedact:
    """Test masking of sensitive attributes."""

    def test_masks_sensitive_values(self):
        assert redact({"id": "r-1", "secret": "s3cr3t"}, SCHEMA) == {
            "id": "r-1",
            "secret": "(sensitive)",
        }

    def test_leaves_empty_values(self):
        assert redact({"id": "r-1", "secret": ""}, SCHEMA)["secret"] == ""
        assert redact(None, SCHEMA) is None


class TestStateStore:
    """Test StateStore functionality."""

    @pytest.fixture
    def store(self, tmp_path):
        return StateStore(str(tmp_path / "state" / "state.json"))

    def test_creates_empty_state_file(self, store):
        assert store.state_file.exists()
        data = json.loads(store.state_file.read_text())
        assert data == {"version": 1, "resources": {}}

    def test_put_and_get(self, store):
        store.put("aws_emr_studio", "analytics", {"id": "es-1", "name": "analytics"})

        assert store.get("aws_emr_studio", "analytics") == {"id": "es-1", "name": "analytics"}
        assert store.get("aws_emr_studio", "other") is None

    def test_put_replaces_record(self, store):
        store.put("aws_emr_studio", "analytics", {"id": "es-1", "name": "a"})
        store.put("aws_emr_studio", "analytics", {"id": "es-2", "name": "b"})

        assert store.get("aws_emr_studio", "analytics") == {"id": "es-2", "name": "b"}

    def test_remove(self, store):
        store.put("aws_emr_studio", "analytics", {"id": "es-1"})

        assert store.remove("aws_emr_studio", "analytics") is True
        assert store.remove("aws_emr_studio", "analytics") is False
        assert store.get("aws_emr_studio", "analytics") is None

    def test_list(self, store):
        store.put("aws_ssm_activation", "b", {"id": "act-2"})
        store.put("aws_emr_studio", "z", {"id": "es-1"})
        store.put("aws_ssm_activation", "a", {"id": "act-1"})

        assert [r["id"] for r in store.list()] == ["es-1", "act-1", "act-2"]
        assert [r["name"] for r in store.list("aws_ssm_activation")] == ["a", "b"]

    def test_persists_across_instances(self, store):
        store.put("aws_emr_studio", "analytics", {"id": "es-1"})

        reopened = StateStore(str(store.state_file))
        assert reopened.get("aws_emr_studio", "analytics") == {"id": "es-1"}
