"""Tests for tag handling."""

import logging
from unittest.mock import MagicMock

import pytest

from src.awsprov.schema import Field, FieldType, Schema, tags_all_schema, tags_schema
from src.awsprov.state import ResourceData
from src.awsprov.tags import (
    DefaultTagsConfig,
    IgnoreTagsConfig,
    KeyValueTags,
    flatten_remote_tags,
    set_tags_diff,
    tags_for_create,
    update_emr_tags,
    update_guardduty_tags,
)

SCHEMA = Schema(
    {
        "name": Field(FieldType.STRING, optional=True),
        "tags": tags_schema(),
        "tags_all": tags_all_schema(),
    }
)


class TestKeyValueTags:
    """Test KeyValueTags operations."""

    def test_from_aws_list(self):
        tags = KeyValueTags.from_aws_list([{"Key": "a", "Value": "1"}, {"Key": "b", "Value": "2"}])
        assert tags.to_map() == {"a": "1", "b": "2"}

    def test_to_aws_list_is_sorted(self):
        tags = KeyValueTags({"b": "2", "a": "1"})
        assert tags.to_aws_list() == [{"Key": "a", "Value": "1"}, {"Key": "b", "Value": "2"}]

    def test_none_values_become_empty_strings(self):
        assert KeyValueTags({"a": None}).to_map() == {"a": ""}

    def test_ignore_aws(self):
        tags = KeyValueTags({"aws:cloudformation:stack-id": "x", "awsome": "y", "Team": "z"})
        assert tags.ignore_aws().to_map() == {"awsome": "y", "Team": "z"}

    def test_ignore_config(self):
        config = IgnoreTagsConfig(keys=["CostCenter"], key_prefixes=["kubernetes.io/"])
        tags = KeyValueTags({"CostCenter": "1", "kubernetes.io/cluster": "c", "Team": "z"})

        assert tags.ignore_config(config).to_map() == {"Team": "z"}
        assert tags.ignore_config(None) is tags

    def test_remove_default_config_keeps_overrides(self):
        defaults = DefaultTagsConfig({"Env": "prod", "Owner": "platform"})
        tags = KeyValueTags({"Env": "prod", "Owner": "data", "Team": "z"})

        assert tags.remove_default_config(defaults).to_map() == {"Owner": "data", "Team": "z"}

    def test_removed_and_updated(self):
        old = KeyValueTags({"a": "1", "b": "2", "c": "3"})
        new = KeyValueTags({"b": "2", "c": "30", "d": "4"})

        assert old.removed(new).keys_list() == ["a"]
        assert new.updated(old).to_map() == {"c": "30", "d": "4"}

    def test_immutable(self):
        tags = KeyValueTags({"a": "1"})
        merged = tags.merge({"b": "2"})

        assert tags.to_map() == {"a": "1"}
        assert merged.to_map() == {"a": "1", "b": "2"}


class TestDefaultTags:
    """Test default tag merging."""

    @pytest.mark.parametrize(
        "defaults,user",
        [
            ({}, {}),
            ({"Env": "prod"}, {}),
            ({}, {"Team": "data"}),
            ({"Env": "prod"}, {"Env": "dev", "Team": "data"}),
            ({"Env": "prod", "Owner": "x"}, {"Owner": "y"}),
        ],
    )
    def test_merged_tags_are_superset_of_user_tags(self, defaults, user):
        """Test that every user tag survives the merge with its own value."""
        merged = DefaultTagsConfig(defaults).merge_tags(KeyValueTags(user))

        assert set(user) <= set(merged)
        assert set(defaults) <= set(merged)
        for key, value in user.items():
            assert merged[key] == value

    def test_tags_for_create_drops_aws_keys(self):
        tags = tags_for_create({"Team": "z"}, DefaultTagsConfig({"aws:reserved": "x", "Env": "prod"}))
        assert tags.to_map() == {"Env": "prod", "Team": "z"}

    def test_tags_for_create_without_defaults(self):
        assert tags_for_create(None, None).to_map() == {}


class TestStateTags:
    """Test tag planning and flattening on resource data."""

    def test_set_tags_diff_plans_tags_all(self):
        data = ResourceData(
            SCHEMA,
            state={"id": "r-1", "tags": {"Team": "z"}, "tags_all": {"Team": "z"}},
            config={"tags": {"Team": "z"}},
        )

        set_tags_diff(data, DefaultTagsConfig({"Env": "prod"}))

        assert data.has_change("tags_all")
        assert data.get("tags_all") == {"Env": "prod", "Team": "z"}
        assert not data.has_change("tags")

    def test_set_tags_diff_without_tags_all(self):
        schema = Schema({"tags": tags_schema()})
        data = ResourceData(schema, config={"tags": {"a": "b"}})

        set_tags_diff(data, DefaultTagsConfig({"Env": "prod"}))

        assert data.get("tags") == {"a": "b"}

    def test_flatten_remote_tags(self):
        data = ResourceData(SCHEMA, state={"id": "r-1"})
        remote = KeyValueTags(
            {"Env": "prod", "Team": "z", "aws:created-by": "x", "Ignored": "1"}
        )

        flatten_remote_tags(
            data, remote, DefaultTagsConfig({"Env": "prod"}), IgnoreTagsConfig(keys=["Ignored"])
        )

        assert data.get("tags") == {"Team": "z"}
        assert data.get("tags_all") == {"Env": "prod", "Team": "z"}


class TestServiceTagUpdates:
    """Test per-service tag update calls."""

    def test_update_guardduty_tags(self):
        client = MagicMock()

        update_guardduty_tags(client, "arn:tis", {"a": "1", "b": "2"}, {"b": "3", "c": "4"})

        client.untag_resource.assert_called_once_with(ResourceArn="arn:tis", TagKeys=["a"])
        client.tag_resource.assert_called_once_with(ResourceArn="arn:tis", Tags={"b": "3", "c": "4"})

    def test_update_guardduty_tags_no_change(self):
        client = MagicMock()

        update_guardduty_tags(client, "arn:tis", {"a": "1"}, {"a": "1"})

        client.untag_resource.assert_not_called()
        client.tag_resource.assert_not_called()

    def test_update_emr_tags(self):
        client = MagicMock()

        update_emr_tags(client, "es-1", {"a": "1", "aws:x": "y"}, {"c": "4"})

        client.remove_tags.assert_called_once_with(ResourceId="es-1", TagKeys=["a"])
        client.add_tags.assert_called_once_with(
            ResourceId="es-1", Tags=[{"Key": "c", "Value": "4"}]
        )


class TestDuplicatedDefaultTags:
    """Test reporting of resource tags that repeat a default tag."""

    def test_set_tags_diff_warns_on_duplicated_default(self, caplog):
        data = ResourceData(SCHEMA, config={"tags": {"Env": "prod", "Owner": "data"}})

        with caplog.at_level(logging.WARNING):
            set_tags_diff(data, DefaultTagsConfig({"Env": "prod", "Owner": "platform"}))

        assert "['Env']" in caplog.text
        assert "Owner" not in caplog.text
        assert data.get("tags_all") == {"Env": "prod", "Owner": "data"}

    def test_set_tags_diff_quiet_without_duplicates(self, caplog):
        data = ResourceData(SCHEMA, config={"tags": {"Team": "z"}})

        with caplog.at_level(logging.WARNING):
            set_tags_diff(data, DefaultTagsConfig({"Env": "prod"}))

        assert caplog.text == ""
